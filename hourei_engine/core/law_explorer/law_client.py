"""
LawApiClient: search and fetch statutes from the e-Gov law API.

Builds upstream requests (direct or through the same-origin proxy), runs them
with bounded retries, decodes the body according to its content type and hands
the payload to the normalizers. Results are cached per query / law id.

Features:
- Keyword validation before any network call
- Page/page size converted to limit/offset, category labels mapped to upstream codes
- Allow-list check on every upstream URL before fetching
- Injectable requests session, cache, sleep and random source for tests
"""

import hashlib
import json
import logging
import random
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, urlencode, urljoin

import requests

from hourei_engine.core.law_explorer.cache_manager import LawCache
from hourei_engine.core.law_explorer.config import (
    CATEGORY_CODE_MAP,
    DETAIL_CACHE_NAMESPACE,
    SEARCH_CACHE_NAMESPACE,
    SORT_ORDER_TOKENS,
    LawClientConfig,
)
from hourei_engine.core.law_explorer.errors import LawApiError, LawClientError
from hourei_engine.core.law_explorer.models import LawDetail, LawsSearchResult, Provision, SearchParams, SortOrder
from hourei_engine.core.law_explorer.payload_normalizer import normalize_law_detail, normalize_search_result
from hourei_engine.core.law_explorer.proxy import build_proxy_url, resolve_allowed_hosts, validate_proxy_target
from hourei_engine.core.law_explorer.retry_policy import RetryPolicy, decode_response_body, execute_with_retry

logger = logging.getLogger(__name__)

ACCEPT_HEADERS = {
    "1": "application/xml",
    "2": "application/json",
}


def resolve_keyword(params: SearchParams) -> str:
    """Keyword from params.keyword, else the joined params.keywords; '' when neither has text."""
    if params.keyword and params.keyword.strip():
        return params.keyword.strip()
    tokens = [token.strip() for token in params.keywords if token and token.strip()]
    return " ".join(tokens)


def resolve_category_codes(params: SearchParams) -> List[str]:
    """Raw codes win over the label; unknown labels yield no filter."""
    if params.category_codes:
        return list(params.category_codes)
    if params.category:
        return list(CATEGORY_CODE_MAP.get(params.category, []))
    return []


def extract_provisions_by_keyword(detail: LawDetail, keyword: str) -> List[Provision]:
    """Provisions whose text contains keyword, case-insensitively. A blank keyword matches nothing."""
    if not keyword or not keyword.strip():
        return []
    needle = keyword.lower()
    return [provision for provision in detail.provisions if needle in provision.text.lower()]


class LawApiClient:
    """
    Client for the statute search and detail endpoints.

    Example:
        with LawApiClient(LawClientConfig.from_env()) as client:
            result = client.search_laws(SearchParams(keyword="個人情報"))
            detail = client.get_law_by_id(result.results[0].law_id)
    """

    def __init__(
        self,
        config: Optional[LawClientConfig] = None,
        session: Optional[requests.Session] = None,
        cache: Optional[LawCache] = None,
        sleep: Callable[[float], None] = time.sleep,
        random: Callable[[], float] = random.random,
    ):
        """
        Args:
            config: Client settings (defaults match the public v2 API)
            session: requests.Session-like object used for every call
            cache: Shared LawCache; a private one is created unless caching is disabled
            sleep: Backoff sleep, replaced in tests
            random: Random source for pick_random_provision
        """
        self.config = config or LawClientConfig()
        self.session = session or requests.Session()
        self.use_cache = not self.config.disable_cache
        self.cache = cache if cache is not None else (LawCache(cache_dir=self.config.cache_dir) if self.use_cache else None)
        self.sleep = sleep
        self.random = random
        self.retry_policy = RetryPolicy(
            max_retries=self.config.max_retries,
            base_delay_ms=self.config.retry_delay_ms,
        )
        self.allowed_hosts = resolve_allowed_hosts(self.config.base_url, self.config.allowed_hosts)
        self._owns_session = session is None
        self._owns_cache = cache is None

    def close(self) -> None:
        """Release the session cache directory and HTTP session this client created."""
        if self._owns_cache and self.cache is not None:
            self.cache.close()
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "LawApiClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    # --- Public operations ---

    def search_laws(self, params: SearchParams) -> LawsSearchResult:
        """
        Search statutes by keyword.

        Args:
            params: Search parameters; a keyword must be resolvable from keyword or keywords

        Returns:
            LawsSearchResult with page math derived from the total count

        Raises:
            LawClientError: If no keyword can be resolved (no request is made)
            LawApiError: If the upstream call or normalization fails
        """
        keyword = resolve_keyword(params)
        if not keyword:
            raise LawClientError("A search keyword is required.")

        query = self._build_search_query(params, keyword)
        cache_key = hashlib.sha256(json.dumps(query, sort_keys=True, ensure_ascii=False).encode("utf-8")).hexdigest()

        if self.use_cache:
            cached = self.cache.get(cache_key, namespace=SEARCH_CACHE_NAMESPACE, strategy=self.config.cache_strategy)
            if cached is not None:
                logger.info(f"✓ Retrieved search '{keyword}' from cache")
                return cached

        logger.info(f"→ Searching laws for '{keyword}' (page {params.page})")
        started = time.perf_counter()
        payload = self._fetch(self.config.search_endpoint, query)
        result = normalize_search_result(payload, query=params)
        elapsed_ms = (time.perf_counter() - started) * 1000
        result = replace(result, execution_time_ms=elapsed_ms)

        if self.use_cache:
            self.cache.set(
                cache_key,
                result,
                namespace=SEARCH_CACHE_NAMESPACE,
                strategy=self.config.cache_strategy,
                ttl_ms=self.config.search_cache_ttl_ms,
            )
        logger.info(f"✓ Found {result.total_count} laws for '{keyword}' in {elapsed_ms:.0f}ms")
        return result

    def get_law_by_id(self, law_id: str) -> LawDetail:
        """
        Fetch and normalize one statute.

        Raises:
            LawClientError: If law_id is blank
            LawApiError: If the upstream call or normalization fails
        """
        if not law_id or not law_id.strip():
            raise LawClientError("A law id is required.")
        law_id = law_id.strip()

        if self.use_cache:
            cached = self.cache.get(law_id, namespace=DETAIL_CACHE_NAMESPACE, strategy=self.config.detail_cache_strategy)
            if cached is not None:
                logger.info(f"✓ Retrieved law {law_id} from cache")
                return cached

        logger.info(f"→ Fetching law {law_id}")
        payload = self._fetch(self.config.detail_endpoint(quote(law_id, safe="")))
        detail = normalize_law_detail(payload)

        if self.use_cache:
            self.cache.set(
                law_id,
                detail,
                namespace=DETAIL_CACHE_NAMESPACE,
                strategy=self.config.detail_cache_strategy,
                ttl_ms=self.config.detail_cache_ttl_ms,
            )
        logger.info(f"✓ Loaded {detail.law_name}: {len(detail.provisions)} provisions")
        return detail

    def pick_random_provision(self, detail: LawDetail) -> Provision:
        """
        Uniformly pick one provision.

        Raises:
            LawClientError: If the law has no provisions
        """
        if not detail.provisions:
            raise LawClientError("No provisions available to pick from.")
        count = len(detail.provisions)
        return detail.provisions[min(int(self.random() * count), count - 1)]

    def extract_provisions_by_keyword(self, detail: LawDetail, keyword: str) -> List[Provision]:
        return extract_provisions_by_keyword(detail, keyword)

    # --- Request plumbing ---

    def _build_search_query(self, params: SearchParams, keyword: str) -> Dict[str, Any]:
        page = max(params.page, 1)
        page_size = max(params.page_size, 1)
        query: Dict[str, Any] = {
            "keyword": keyword,
            "limit": page_size,
            "offset": (page - 1) * page_size,
        }
        codes = resolve_category_codes(params)
        if codes:
            query["category_cd"] = ",".join(codes)
        if params.law_type:
            query["law_type"] = params.law_type
        if params.promulgation_date_from:
            query["promulgation_date_from"] = params.promulgation_date_from
        if params.promulgation_date_to:
            query["promulgation_date_to"] = params.promulgation_date_to
        order = SORT_ORDER_TOKENS.get(SortOrder(params.sort).value)
        if order:
            query["order"] = order
        return query

    def build_request_url(self, endpoint: str, query: Optional[Dict[str, Any]] = None) -> str:
        """
        Absolute URL for an endpoint, wrapped in the proxy URL when proxying is enabled.

        Raises:
            ProxyTargetError: If the upstream host is not on the allow-list
        """
        base = self.config.base_url if self.config.base_url.endswith("/") else f"{self.config.base_url}/"
        url = urljoin(base, endpoint)
        if query:
            filtered = {key: value for key, value in query.items() if value is not None and value != ""}
            if filtered:
                url = f"{url}?{urlencode(filtered)}"

        validate_proxy_target(url, self.allowed_hosts)
        if not self.config.use_proxy:
            return url
        return build_proxy_url(self.config.proxy_base_url, url)

    def _fetch(self, endpoint: str, query: Optional[Dict[str, Any]] = None) -> Any:
        url = self.build_request_url(endpoint, query)
        headers = {"Accept": ACCEPT_HEADERS.get(self.config.api_version, "application/json")}

        def http_call():
            return self.session.get(url, headers=headers, timeout=self.config.timeout_seconds)

        response = execute_with_retry(http_call, self.retry_policy, sleep=self.sleep, component_name="LawApiClient")

        try:
            kind, body = decode_response_body(response)
        except ValueError as e:
            raise LawApiError(f"Failed to decode law API response: {e}", status=response.status_code, cause=e) from e
        if kind == "text":
            raise LawApiError(
                f"Unexpected law API response body: {body[:200]}",
                status=response.status_code,
            )
        return body
