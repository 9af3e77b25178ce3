import tempfile
from unittest.mock import Mock, patch
from urllib.parse import parse_qs, urlsplit

import pytest

from hourei_engine.core.law_explorer.cache_manager import FileStorage, LawCache, MemoryStorage
from hourei_engine.core.law_explorer.config import LawClientConfig
from hourei_engine.core.law_explorer.errors import LawApiError, LawClientError, ProxyTargetError
from hourei_engine.core.law_explorer.law_client import (
    LawApiClient,
    extract_provisions_by_keyword,
    resolve_category_codes,
    resolve_keyword,
)
from hourei_engine.core.law_explorer.models import LawDetail, SearchParams, SortOrder
from hourei_engine.core.law_explorer.payload_normalizer import normalize_law_detail


def requested_url(session):
    return session.get.call_args.args[0]


def requested_query(session):
    return {key: values[0] for key, values in parse_qs(urlsplit(requested_url(session)).query).items()}


def test_resolve_keyword():
    assert resolve_keyword(SearchParams(keyword="  民法 ")) == "民法"
    assert resolve_keyword(SearchParams(keywords=["個人", " ", "情報"])) == "個人 情報"
    assert resolve_keyword(SearchParams(keyword=" ", keywords=[])) == ""


def test_resolve_category_codes():
    assert resolve_category_codes(SearchParams(category="会社法")) == ["010", "024"]
    assert resolve_category_codes(SearchParams(category="民法")) == ["010"]
    assert resolve_category_codes(SearchParams(category="不明")) == []
    assert resolve_category_codes(SearchParams(category="民法", category_codes=["999"])) == ["999"]


class TestSearchLaws:
    """Tests for LawApiClient.search_laws."""

    def setup_method(self):
        """Set up test fixtures."""
        self.session = Mock()
        self.sleep = Mock()
        self.client = LawApiClient(LawClientConfig(disable_cache=True), session=self.session, sleep=self.sleep)

    @pytest.mark.parametrize("params", [
        SearchParams(),
        SearchParams(keyword="   "),
        SearchParams(keywords=["", " "]),
    ])
    def test_blank_keyword_is_rejected_before_any_request(self, params):
        with pytest.raises(LawClientError, match="keyword is required"):
            self.client.search_laws(params)
        self.session.get.assert_not_called()

    def test_search_builds_upstream_query(self, make_response, search_payload):
        self.session.get.return_value = make_response(200, search_payload)

        self.client.search_laws(SearchParams(
            keyword="取締役会",
            category="会社法",
            page=3,
            page_size=10,
            sort=SortOrder.PROMULGATION_DATE,
        ))

        assert requested_url(self.session).startswith("https://laws.e-gov.go.jp/api/2/keyword?")
        assert requested_query(self.session) == {
            "keyword": "取締役会",
            "limit": "10",
            "offset": "20",
            "category_cd": "010,024",
            "order": "-promulgation_date",
        }
        assert self.session.get.call_args.kwargs["headers"] == {"Accept": "application/json"}

    def test_search_normalizes_result(self, make_response, search_payload):
        self.session.get.return_value = make_response(200, search_payload)
        params = SearchParams(keyword="テスト")

        result = self.client.search_laws(params)

        assert result.total_count == 1
        assert result.results[0].law_id == "TEST-LAW-001"
        assert result.query is params
        assert result.execution_time_ms >= 0

    def test_retries_are_bounded(self, make_response):
        client = LawApiClient(
            LawClientConfig(disable_cache=True, max_retries=1),
            session=self.session,
            sleep=self.sleep,
        )
        self.session.get.return_value = make_response(503, {"message": "maintenance"})

        with pytest.raises(LawApiError) as excinfo:
            client.search_laws(SearchParams(keyword="民法"))

        assert self.session.get.call_count == 2
        assert excinfo.value.status == 503
        assert excinfo.value.upstream_message == "maintenance"

    def test_unexpected_body_raises(self, make_response):
        self.session.get.return_value = make_response(200, "Service page", content_type="text/html")
        with pytest.raises(LawApiError, match="Unexpected law API response body"):
            self.client.search_laws(SearchParams(keyword="民法"))

    def test_legacy_api_version(self, make_response):
        xml = (
            "<eGovLawSearchResult><result><status>0</status><numberOfResults>1</numberOfResults></result>"
            "<laws><law><lawId>129AC0000000089</lawId><lawName>民法</lawName></law></laws>"
            "</eGovLawSearchResult>"
        )
        self.session.get.return_value = make_response(200, xml, content_type="application/xml")
        client = LawApiClient(
            LawClientConfig(base_url="https://elaws.e-gov.go.jp/api/1/", api_version="1", disable_cache=True),
            session=self.session,
        )

        result = client.search_laws(SearchParams(keyword="民法"))

        assert requested_url(self.session).startswith("https://elaws.e-gov.go.jp/api/1/laws/search?")
        assert self.session.get.call_args.kwargs["headers"] == {"Accept": "application/xml"}
        assert result.results[0].law_name == "民法"


class TestGetLawById:
    """Tests for LawApiClient.get_law_by_id and caching."""

    def setup_method(self):
        """Set up test fixtures."""
        self.session = Mock()

    def test_fetches_and_normalizes_detail(self, make_response, detail_payload):
        self.session.get.return_value = make_response(200, detail_payload)
        client = LawApiClient(LawClientConfig(disable_cache=True), session=self.session)

        detail = client.get_law_by_id("TEST-LAW-001")

        assert requested_url(self.session) == "https://laws.e-gov.go.jp/api/2/law_data/TEST-LAW-001"
        assert detail.law_name == "テスト行政手続法"
        assert len(detail.provisions) == 3

    def test_law_id_is_path_encoded(self, make_response, detail_payload):
        self.session.get.return_value = make_response(200, detail_payload)
        client = LawApiClient(LawClientConfig(disable_cache=True), session=self.session)

        client.get_law_by_id("../keyword?x=1")

        assert requested_url(self.session) == "https://laws.e-gov.go.jp/api/2/law_data/..%2Fkeyword%3Fx%3D1"

    def test_blank_law_id_is_rejected(self):
        client = LawApiClient(LawClientConfig(disable_cache=True), session=self.session)
        with pytest.raises(LawClientError):
            client.get_law_by_id("  ")
        self.session.get.assert_not_called()

    def test_second_lookup_is_served_from_cache(self, tmp_path, make_response, detail_payload):
        self.session.get.return_value = make_response(200, detail_payload)
        cache = LawCache(session=MemoryStorage(), disk=FileStorage(str(tmp_path / "cache")))
        client = LawApiClient(LawClientConfig(), session=self.session, cache=cache)

        first = client.get_law_by_id("TEST-LAW-001")
        second = client.get_law_by_id("TEST-LAW-001")

        assert self.session.get.call_count == 1
        assert second == first

    def test_disabled_cache_always_fetches(self, make_response, detail_payload):
        self.session.get.return_value = make_response(200, detail_payload)
        client = LawApiClient(LawClientConfig(disable_cache=True), session=self.session)

        client.get_law_by_id("TEST-LAW-001")
        client.get_law_by_id("TEST-LAW-001")

        assert client.cache is None
        assert self.session.get.call_count == 2


class TestProxyAddressing:
    """Tests for proxied requests and the allow-list."""

    def test_requests_go_through_the_proxy(self, make_response, detail_payload):
        session = Mock()
        session.get.return_value = make_response(200, detail_payload)
        config = LawClientConfig(disable_cache=True, use_proxy=True, proxy_base_url="http://localhost:3000/api/proxy")
        client = LawApiClient(config, session=session)

        client.get_law_by_id("TEST-LAW-001")

        url = requested_url(session)
        assert url.startswith("http://localhost:3000/api/proxy?target=")
        assert parse_qs(urlsplit(url).query)["target"] == ["https://laws.e-gov.go.jp/api/2/law_data/TEST-LAW-001"]

    def test_endpoint_outside_allow_list_is_rejected(self):
        session = Mock()
        client = LawApiClient(LawClientConfig(disable_cache=True), session=session)
        with pytest.raises(ProxyTargetError):
            client.build_request_url("https://evil.example.com/api")
        session.get.assert_not_called()


class TestProvisionHelpers:
    """Tests for keyword extraction and random provision picks."""

    @pytest.fixture(autouse=True)
    def detail(self, detail_payload):
        self.detail = normalize_law_detail(detail_payload)

    def test_extract_provisions_by_keyword(self):
        assert len(extract_provisions_by_keyword(self.detail, "condition")) == 2
        assert len(extract_provisions_by_keyword(self.detail, "CONDITION")) == 2
        assert extract_provisions_by_keyword(self.detail, "") == []
        assert extract_provisions_by_keyword(self.detail, "absent") == []

    def test_pick_random_provision(self):
        client = LawApiClient(LawClientConfig(disable_cache=True), session=Mock(), random=lambda: 0.99)
        assert client.pick_random_provision(self.detail) == self.detail.provisions[-1]

    def test_pick_random_provision_without_provisions(self):
        client = LawApiClient(LawClientConfig(disable_cache=True), session=Mock())
        empty = LawDetail(law_id="X", law_name="空", articles=(), provisions=())
        with pytest.raises(LawClientError, match="No provisions"):
            client.pick_random_provision(empty)


class TestClientLifecycle:
    """Tests for close() and the context manager."""

    def setup_method(self):
        """Set up test fixtures."""
        self.session = Mock()

    @pytest.fixture(autouse=True)
    def temp_root(self, tmp_path, monkeypatch):
        self.temp_root = tmp_path / "tmp"
        self.temp_root.mkdir()
        self.cache_dir = str(tmp_path / "disk")
        monkeypatch.setattr(tempfile, "tempdir", str(self.temp_root))

    def test_memory_strategies_never_create_a_session_directory(self):
        config = LawClientConfig(cache_strategy="memory", detail_cache_strategy="memory", cache_dir=self.cache_dir)
        for _ in range(3):
            LawApiClient(config, session=self.session).close()

        assert list(self.temp_root.iterdir()) == []

    def test_context_exit_removes_the_session_directory(self, make_response, search_payload):
        self.session.get.return_value = make_response(200, search_payload)
        config = LawClientConfig(cache_strategy="session", cache_dir=self.cache_dir)

        with LawApiClient(config, session=self.session) as client:
            client.search_laws(SearchParams(keyword="テスト"))
            assert len(list(self.temp_root.iterdir())) == 1

        assert list(self.temp_root.iterdir()) == []

    def test_shared_cache_and_session_are_left_open(self):
        cache = Mock()
        with LawApiClient(LawClientConfig(), session=self.session, cache=cache):
            pass

        cache.close.assert_not_called()
        self.session.close.assert_not_called()

    def test_owned_http_session_is_closed(self):
        with patch("requests.Session") as session_class:
            client = LawApiClient(LawClientConfig(disable_cache=True))
            client.close()

        session_class.return_value.close.assert_called_once_with()
