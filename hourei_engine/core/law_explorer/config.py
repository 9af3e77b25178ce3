"""
Configuration for the law explorer components.

Module-level constants describe the upstream e-Gov law API defaults.
LawClientConfig gathers the per-client settings and can be built from
environment variables (scripts load .env / .env.local with python-dotenv first).
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

# Upstream API
DEFAULT_BASE_URL = "https://laws.e-gov.go.jp/api/2/"
DEFAULT_API_VERSION = "2"
DEFAULT_PROXY_BASE = "http://localhost:3000/api/proxy"

# Retry policy
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 300

# Cache
DEFAULT_CACHE_DIR = "cache"
SEARCH_CACHE_TTL_MS = 5 * 60 * 1000
DETAIL_CACHE_TTL_MS = 15 * 60 * 1000
MIN_CACHE_TTL_MS = 1000
SEARCH_CACHE_NAMESPACE = "search"
DETAIL_CACHE_NAMESPACE = "law-detail"

# Paging
DEFAULT_PAGE_SIZE = 20

# Endpoints per API version: (search, detail template)
API_ENDPOINTS: Dict[str, Tuple[str, str]] = {
    "1": ("laws/search", "laws/{law_id}"),
    "2": ("keyword", "law_data/{law_id}"),
}

# Human-facing category labels to upstream category codes.
# Some labels intentionally share a code (民法 and 会社法 both map to 010).
CATEGORY_CODE_MAP: Dict[str, List[str]] = {
    "憲法": ["001"],
    "行政手続法": ["005"],
    "民法": ["010"],
    "会社法": ["010", "024"],
    "刑法": ["011"],
    "著作権法": ["027"],
    "金融法": ["043"],
}

# Sort keys to the upstream order token; relevance is the upstream default.
SORT_ORDER_TOKENS: Dict[str, Optional[str]] = {
    "relevance": None,
    "promulgationDate": "-promulgation_date",
    "lawNumber": "law_num",
}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


@dataclass
class LawClientConfig:
    """Settings for a LawApiClient instance."""
    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    use_proxy: bool = False
    proxy_base_url: str = DEFAULT_PROXY_BASE
    allowed_hosts: List[str] = field(default_factory=list)
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    timeout_seconds: Optional[float] = None
    disable_cache: bool = False
    cache_strategy: str = "session"
    detail_cache_strategy: str = "disk"
    search_cache_ttl_ms: int = SEARCH_CACHE_TTL_MS
    detail_cache_ttl_ms: int = DETAIL_CACHE_TTL_MS
    cache_dir: str = DEFAULT_CACHE_DIR

    @property
    def search_endpoint(self) -> str:
        return API_ENDPOINTS.get(self.api_version, API_ENDPOINTS[DEFAULT_API_VERSION])[0]

    def detail_endpoint(self, law_id: str) -> str:
        template = API_ENDPOINTS.get(self.api_version, API_ENDPOINTS[DEFAULT_API_VERSION])[1]
        return template.format(law_id=law_id)

    @classmethod
    def from_env(cls) -> "LawClientConfig":
        """
        Build a config from environment variables.

        Unset variables keep the dataclass defaults.

        Returns:
            LawClientConfig populated from the environment
        """
        extra_hosts = os.getenv("EGOV_ALLOWED_PROXY_HOSTS", "")
        return cls(
            base_url=os.getenv("EGOV_LAW_API_BASE_URL") or DEFAULT_BASE_URL,
            api_version=os.getenv("EGOV_LAW_API_VERSION") or DEFAULT_API_VERSION,
            use_proxy=_env_bool("EGOV_USE_PROXY", False),
            proxy_base_url=os.getenv("EGOV_PROXY_BASE_URL") or DEFAULT_PROXY_BASE,
            allowed_hosts=[host.strip() for host in extra_hosts.split(",") if host.strip()],
            max_retries=_env_int("EGOV_MAX_RETRIES", DEFAULT_MAX_RETRIES),
            retry_delay_ms=_env_int("EGOV_RETRY_DELAY_MS", DEFAULT_RETRY_DELAY_MS),
            timeout_seconds=_env_float("EGOV_TIMEOUT_SECONDS"),
            disable_cache=_env_bool("HOUREI_DISABLE_CACHE", False),
            cache_strategy=os.getenv("HOUREI_CACHE_STRATEGY") or "session",
            detail_cache_strategy=os.getenv("HOUREI_DETAIL_CACHE_STRATEGY") or "disk",
            search_cache_ttl_ms=_env_int("HOUREI_SEARCH_CACHE_TTL_MS", SEARCH_CACHE_TTL_MS),
            detail_cache_ttl_ms=_env_int("HOUREI_DETAIL_CACHE_TTL_MS", DETAIL_CACHE_TTL_MS),
            cache_dir=os.getenv("HOUREI_CACHE_DIR") or DEFAULT_CACHE_DIR,
        )
