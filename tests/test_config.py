from hourei_engine.core.law_explorer.config import CATEGORY_CODE_MAP, LawClientConfig
from hourei_engine.core.law_explorer.errors import LawApiError


def test_defaults_target_the_current_api():
    config = LawClientConfig()
    assert config.base_url == "https://laws.e-gov.go.jp/api/2/"
    assert config.search_endpoint == "keyword"
    assert config.detail_endpoint("ABC") == "law_data/ABC"
    assert config.max_retries == 3
    assert config.retry_delay_ms == 300


def test_legacy_endpoints():
    config = LawClientConfig(api_version="1")
    assert config.search_endpoint == "laws/search"
    assert config.detail_endpoint("ABC") == "laws/ABC"


def test_from_env(monkeypatch):
    monkeypatch.setenv("EGOV_USE_PROXY", "true")
    monkeypatch.setenv("EGOV_MAX_RETRIES", "1")
    monkeypatch.setenv("EGOV_ALLOWED_PROXY_HOSTS", "a.example, b.example")
    monkeypatch.setenv("HOUREI_DISABLE_CACHE", "yes")
    monkeypatch.setenv("EGOV_TIMEOUT_SECONDS", "2.5")
    monkeypatch.delenv("EGOV_LAW_API_BASE_URL", raising=False)

    config = LawClientConfig.from_env()

    assert config.use_proxy
    assert config.max_retries == 1
    assert config.allowed_hosts == ["a.example", "b.example"]
    assert config.disable_cache
    assert config.timeout_seconds == 2.5
    assert config.base_url == "https://laws.e-gov.go.jp/api/2/"


def test_category_table_shares_codes():
    assert CATEGORY_CODE_MAP["民法"] == ["010"]
    assert CATEGORY_CODE_MAP["会社法"] == ["010", "024"]


def test_api_error_retryable():
    assert LawApiError("x", status=503).retryable
    assert LawApiError("x", status=429).retryable
    assert not LawApiError("x", status=404).retryable
    assert not LawApiError("normalization").retryable
    assert LawApiError("transport", cause=OSError("reset")).retryable
