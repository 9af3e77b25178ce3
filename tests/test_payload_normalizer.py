import pytest

from hourei_engine.core.law_explorer.errors import LawApiError
from hourei_engine.core.law_explorer.models import SearchParams
from hourei_engine.core.law_explorer.payload_normalizer import (
    is_current_detail_payload,
    is_current_search_payload,
    normalize_law_detail,
    normalize_search_result,
)


def test_payload_shape_detection(search_payload, detail_payload, legacy_search_payload):
    assert is_current_search_payload(search_payload)
    assert not is_current_search_payload(legacy_search_payload)
    assert is_current_detail_payload(detail_payload)
    assert not is_current_detail_payload({"eGovLawDetail": {}})


class TestSearchNormalization:
    """Tests for search envelopes of both shapes."""

    def test_current_search_payload(self, search_payload):
        query = SearchParams(keyword="テスト")
        result = normalize_search_result(search_payload, query=query, execution_time_ms=12.5)

        assert result.total_count == 1
        assert result.page == 1
        assert result.page_size == 20
        assert result.query is query
        assert result.execution_time_ms == 12.5
        summary = result.results[0]
        assert summary.law_id == "TEST-LAW-001"
        assert summary.law_name == "テスト行政手続法"
        assert summary.law_number == "令和元年法律第1号"
        assert summary.law_type == "Act"
        assert summary.categories == ("行政手続",)
        assert summary.highlights == ("この法律はハイライト用キーワードを含む 条文です。",)

    def test_page_math(self, search_payload):
        search_payload["total_count"] = 45
        first = normalize_search_result(search_payload, query=SearchParams(keyword="x", page=1))
        last = normalize_search_result(search_payload, query=SearchParams(keyword="x", page=3))

        assert first.has_next and not first.has_previous
        assert not last.has_next and last.has_previous

    def test_total_count_falls_back_to_results(self, search_payload):
        del search_payload["total_count"]
        result = normalize_search_result(search_payload)
        assert result.total_count == 1
        assert result.page_size == 1

    def test_legacy_search_payload(self, legacy_search_payload):
        result = normalize_search_result(legacy_search_payload, query=SearchParams(keyword="法", page_size=10))

        assert result.total_count == 42
        assert result.page == 2
        assert result.page_size == 10
        assert result.number_of_records == 2
        assert result.status == "0"
        assert result.message == "OK"
        assert [summary.law_name for summary in result.results] == ["民法", "刑法"]
        assert result.results[0].law_number == "明治二十九年法律第八十九号"
        assert result.results[1].law_number is None

    def test_single_legacy_law_is_not_a_list(self):
        payload = {"eGovLawSearchResult": {"laws": {"law": {"lawId": "A", "lawName": "民法"}}}}
        result = normalize_search_result(payload)
        assert [summary.law_id for summary in result.results] == ["A"]

    def test_missing_law_id_raises(self):
        payload = {"eGovLawSearchResult": {"laws": {"law": {"lawName": "民法"}}}}
        with pytest.raises(LawApiError, match="lawId") as excinfo:
            normalize_search_result(payload)
        assert not excinfo.value.retryable


class TestDetailNormalization:
    """Tests for detail envelopes of both shapes."""

    def test_current_detail_payload(self, detail_payload):
        detail = normalize_law_detail(detail_payload)

        assert detail.law_id == "TEST-LAW-001"
        assert detail.law_name == "テスト行政手続法"
        assert detail.law_number == "令和元年法律第1号"
        assert detail.promulgation_date == "2020-01-01"
        assert detail.categories == ("行政手続",)
        assert len(detail.articles) == 2
        assert len(detail.provisions) == 3
        assert detail.raw is detail_payload

    def test_current_detail_without_title_raises(self, detail_payload):
        detail_payload["revision_info"] = {}
        with pytest.raises(LawApiError, match="law_title"):
            normalize_law_detail(detail_payload)

    def test_legacy_detail_payload(self):
        payload = {
            "eGovLawDetail": {
                "law": {
                    "lawId": "129AC0000000089",
                    "lawName": "民法",
                    "lawNo": "明治二十九年法律第八十九号",
                    "lawBody": {
                        "Article": {
                            "ArticleNumber": "第1条",
                            "Paragraph": {"ParagraphNumber": "1", "ParagraphSentence": "私権は、公共の福祉に適合しなければならない。"},
                        }
                    },
                }
            }
        }
        detail = normalize_law_detail(payload)

        assert detail.law_id == "129AC0000000089"
        assert detail.law_name == "民法"
        assert detail.law_number == "明治二十九年法律第八十九号"
        assert [p.path for p in detail.provisions] == ["第1条 第1項"]

    def test_legacy_detail_without_law_node_raises(self):
        with pytest.raises(LawApiError, match="missing law node"):
            normalize_law_detail({"eGovLawDetail": {"result": {"status": "1"}}})
