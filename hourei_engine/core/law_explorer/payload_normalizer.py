"""
Envelope normalization for search and detail payloads.

The upstream API has served two payload shapes:
- legacy (v1, XML-derived): eGovLawSearchResult / eGovLawDetail roots with
  result, laws/law and law/lawBody blocks
- current (v2, JSON): total_count / items[] for searches and
  law_info / revision_info / law_full_text for details

Both are mapped onto LawsSearchResult and LawDetail. Missing required fields
(law id, law name) raise LawApiError immediately; retrying cannot fix them.
"""

import logging
from typing import Any, List, Optional

from hourei_engine.core.law_explorer.errors import LawApiError
from hourei_engine.core.law_explorer.law_parser import transform_law_body
from hourei_engine.core.law_explorer.models import LawDetail, LawSummary, LawsSearchResult, SearchParams
from hourei_engine.core.law_explorer.text_utils import (
    ensure_array,
    get_first_matching_key,
    get_value_at_path,
    strip_html_tags,
    to_optional_string,
)

logger = logging.getLogger(__name__)

SEARCH_ROOT_KEYS = ["eGovLawSearchResult", "ELawsSearchResult"]
DETAIL_ROOT_KEYS = ["eGovLawDetail", "ELawsLawDetail"]
LAW_ID_KEYS = ["lawId", "LawID"]
LAW_NAME_KEYS = ["lawName", "LawTitle"]
LAW_NUMBER_KEYS = ["lawNo", "lawNumber", "LawNum"]
PROMULGATION_DATE_KEYS = ["promulgationDate"]
LAW_TYPE_KEYS = ["lawType"]
CATEGORY_KEYS = ["category", "categories"]


def is_current_search_payload(payload: Any) -> bool:
    return isinstance(payload, dict) and ("items" in payload or "total_count" in payload)


def is_current_detail_payload(payload: Any) -> bool:
    return isinstance(payload, dict) and ("law_info" in payload or "law_full_text" in payload)


def normalize_search_result(
    payload: Any,
    query: Optional[SearchParams] = None,
    execution_time_ms: float = 0.0,
) -> LawsSearchResult:
    """
    Map a search payload of either shape to LawsSearchResult.

    Args:
        payload: Parsed JSON dict or decoded XML dict
        query: Originating parameters; supplies page and page size when the payload does not
        execution_time_ms: Wall-clock time of the fetch, normalization included

    Returns:
        LawsSearchResult

    Raises:
        LawApiError: If a hit lacks its law id or name
    """
    page = query.page if query else 1
    page_size = query.page_size if query else 0

    if is_current_search_payload(payload):
        results = tuple(_normalize_current_summary(item) for item in ensure_array(payload.get("items")))
        total_count = _to_int(payload.get("total_count"), 0)
        return LawsSearchResult(
            total_count=total_count or len(results),
            page=page,
            page_size=page_size or len(results),
            results=results,
            query=query,
            execution_time_ms=execution_time_ms,
            number_of_records=len(results),
        )

    root = _first_present(payload, SEARCH_ROOT_KEYS, payload)
    result_node = get_first_matching_key(root, ["result"])
    laws_node = get_first_matching_key(root, ["laws"])
    results = tuple(
        normalize_law_summary(node) for node in ensure_array(get_first_matching_key(laws_node, ["law"]))
    )

    total_count = _to_int(get_first_matching_key(result_node, ["numberOfResults", "totalCount"]), 0)
    number_of_records = _to_int(get_first_matching_key(result_node, ["numberOfRecords", "count"]), 0)
    status = to_optional_string(get_first_matching_key(result_node, ["status"]))
    message = to_optional_string(get_first_matching_key(result_node, ["message"]))
    if status is not None:
        logger.debug(f"Legacy search status={status} message={message}")

    return LawsSearchResult(
        total_count=total_count or len(results),
        page=_to_int(get_first_matching_key(result_node, ["page", "pageNumber"]), page),
        page_size=page_size or len(results),
        results=results,
        query=query,
        execution_time_ms=execution_time_ms,
        number_of_records=number_of_records or len(results),
        status=status,
        message=message,
    )


def normalize_law_detail(payload: Any) -> LawDetail:
    """
    Map a detail payload of either shape to LawDetail.

    The raw payload is kept on the result for diagnostics.

    Raises:
        LawApiError: If the law node, law id or law name is missing
    """
    if is_current_detail_payload(payload):
        law_info = payload.get("law_info") or {}
        revision_info = payload.get("revision_info") or {}
        law_id = _required(get_value_at_path(law_info, "law_id"), "law_id")
        law_name = _required(get_value_at_path(revision_info, "law_title"), "law_title")
        body = transform_law_body(law_id, payload.get("law_full_text"))
        return LawDetail(
            law_id=law_id,
            law_name=law_name,
            articles=body.articles,
            provisions=body.provisions,
            law_number=to_optional_string(get_value_at_path(law_info, "law_num")),
            promulgation_date=to_optional_string(get_value_at_path(law_info, "promulgation_date")),
            law_type=to_optional_string(
                get_value_at_path(law_info, "law_type") or get_value_at_path(revision_info, "law_type")
            ),
            categories=_categories(get_value_at_path(revision_info, "category")),
            raw=payload,
        )

    root = _first_present(payload, DETAIL_ROOT_KEYS, payload)
    law_node = get_first_matching_key(root, ["law"])
    if not isinstance(law_node, dict):
        raise LawApiError("Law detail payload is missing law node.")

    law_id = _required(get_first_matching_key(law_node, LAW_ID_KEYS), "lawId")
    law_name = _required(get_first_matching_key(law_node, LAW_NAME_KEYS), "lawName")
    body = transform_law_body(law_id, get_first_matching_key(law_node, ["lawBody"]))
    return LawDetail(
        law_id=law_id,
        law_name=law_name,
        articles=body.articles,
        provisions=body.provisions,
        law_number=to_optional_string(get_first_matching_key(law_node, LAW_NUMBER_KEYS)),
        promulgation_date=to_optional_string(get_first_matching_key(law_node, PROMULGATION_DATE_KEYS)),
        law_type=to_optional_string(get_first_matching_key(law_node, LAW_TYPE_KEYS)),
        categories=_categories(get_first_matching_key(law_node, CATEGORY_KEYS)),
        raw=payload,
    )


def normalize_law_summary(node: Any) -> LawSummary:
    """Legacy law entry (lawId, lawName, lawNo, promulgationDate, lawType)."""
    return LawSummary(
        law_id=_required(get_first_matching_key(node, LAW_ID_KEYS), "lawId"),
        law_name=_required(get_first_matching_key(node, LAW_NAME_KEYS), "lawName"),
        law_number=to_optional_string(get_first_matching_key(node, LAW_NUMBER_KEYS)),
        promulgation_date=to_optional_string(get_first_matching_key(node, PROMULGATION_DATE_KEYS)),
        law_type=to_optional_string(get_first_matching_key(node, LAW_TYPE_KEYS)),
        categories=_categories(get_first_matching_key(node, CATEGORY_KEYS)),
    )


def _normalize_current_summary(item: Any) -> LawSummary:
    law_info = get_value_at_path(item, "law_info", {})
    revision_info = get_value_at_path(item, "revision_info", {})
    highlights = []
    for sentence in ensure_array(get_value_at_path(item, "sentences")):
        snippet = strip_html_tags(get_value_at_path(sentence, "text") if isinstance(sentence, dict) else sentence)
        if snippet:
            highlights.append(snippet)

    return LawSummary(
        law_id=_required(get_value_at_path(law_info, "law_id"), "law_id"),
        law_name=_required(get_value_at_path(revision_info, "law_title"), "law_title"),
        law_number=to_optional_string(get_value_at_path(law_info, "law_num")),
        promulgation_date=to_optional_string(get_value_at_path(law_info, "promulgation_date")),
        law_type=to_optional_string(
            get_value_at_path(law_info, "law_type") or get_value_at_path(revision_info, "law_type")
        ),
        categories=_categories(get_value_at_path(revision_info, "category")),
        highlights=tuple(highlights),
    )


def _first_present(source: Any, keys: List[str], fallback: Any) -> Any:
    for key in keys:
        value = get_first_matching_key(source, [key])
        if value is not None:
            return value
    return fallback


def _categories(value: Any) -> tuple:
    categories = (to_optional_string(entry) for entry in ensure_array(value))
    return tuple(category for category in categories if category)


def _required(value: Any, field_name: str) -> str:
    normalized = to_optional_string(value)
    if not normalized:
        raise LawApiError(f'Expected "{field_name}" in law payload.')
    return normalized


def _to_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default
