"""
Retry with exponential backoff for upstream law API calls.

Transport failures and 429/5xx responses are retried up to max_retries times,
waiting base_delay_ms * 2**attempt between attempts. Any other non-2xx status
fails immediately. Once retries are exhausted a LawApiError is raised carrying
the last status and, when the body can be parsed, the upstream error
code/message. The original exception stays attached as the cause.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import requests

from hourei_engine.core.law_explorer.config import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY_MS
from hourei_engine.core.law_explorer.errors import LawApiError
from hourei_engine.core.law_explorer.text_utils import get_first_matching_key, normalize_whitespace, to_optional_string
from hourei_engine.core.law_explorer.xml_parser import parse_xml_to_dict

logger = logging.getLogger(__name__)

ERROR_CODE_KEYS = ["code", "error_code", "errorCode"]
ERROR_MESSAGE_KEYS = ["message", "error_message", "errorMessage", "detail"]
ERROR_CONTAINER_KEYS = ["error", "result", "DataRoot"]
MAX_ERROR_TEXT_LENGTH = 200


@dataclass
class RetryPolicy:
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_ms: int = DEFAULT_RETRY_DELAY_MS

    def compute_delay(self, attempt: int) -> float:
        """Delay in seconds before the retry that follows the given 0-based attempt."""
        return self.base_delay_ms * (2 ** attempt) / 1000.0

    @staticmethod
    def should_retry(status: Optional[int]) -> bool:
        if status is None:
            return True
        return status >= 500 or status == 429


def decode_response_body(response: Any) -> Tuple[str, Any]:
    """
    Decode a response body according to its content type.

    Returns:
        (kind, value) where kind is "json", "xml" or "text". Unexpected content
        types are read as text; a JSON parse is attempted, then XML when the
        text looks like markup, and the raw text is returned otherwise.

    Raises:
        ValueError: If a body declared as JSON or XML cannot be parsed
    """
    content_type = (response.headers.get("content-type") or "").lower()
    text = response.text

    if "json" in content_type:
        return "json", json.loads(text)
    if "xml" in content_type:
        return "xml", parse_xml_to_dict(response.content)

    try:
        return "json", json.loads(text)
    except ValueError:
        pass
    if text.lstrip().startswith("<"):
        try:
            return "xml", parse_xml_to_dict(response.content)
        except ValueError:
            pass
    return "text", text


def _find_error_fields(payload: Any, depth: int = 0) -> Tuple[Optional[str], Optional[str]]:
    if not isinstance(payload, dict) or depth > 3:
        return None, None
    code = to_optional_string(get_first_matching_key(payload, ERROR_CODE_KEYS))
    message = to_optional_string(get_first_matching_key(payload, ERROR_MESSAGE_KEYS))
    if code or message:
        return code, message
    # XML roots arrive as {root_tag: {...}}
    candidates = [get_first_matching_key(payload, ERROR_CONTAINER_KEYS)]
    if len(payload) == 1:
        candidates.append(next(iter(payload.values())))
    for nested in candidates:
        code, message = _find_error_fields(nested, depth + 1)
        if code or message:
            return code, message
    return None, None


def extract_upstream_error(response: Any) -> Tuple[Optional[str], Optional[str]]:
    """Best-effort (code, message) from an error response body."""
    try:
        kind, body = decode_response_body(response)
    except ValueError:
        kind, body = "text", response.text
    if kind == "text":
        text = normalize_whitespace(body)[:MAX_ERROR_TEXT_LENGTH]
        return None, text or None
    return _find_error_fields(body)


def build_upstream_error(response: Any, component_name: str) -> LawApiError:
    status = response.status_code
    code, message = extract_upstream_error(response)
    detail = ""
    if code and message:
        detail = f" ({code}: {message})"
    elif code or message:
        detail = f" ({code or message})"
    return LawApiError(
        f"{component_name}: Law API request failed with status {status}{detail}",
        status=status,
        upstream_code=code,
        upstream_message=message,
    )


def execute_with_retry(
    call: Callable[[], Any],
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
    component_name: str = "LawApiClient",
) -> Any:
    """
    Run an HTTP call with retries.

    Args:
        call: Performs one request and returns a requests.Response-like object
        policy: Retry limits; defaults to 3 retries with a 300 ms base delay
        sleep: Called with the backoff delay in seconds
        component_name: Used in log lines and error messages

    Returns:
        The first response with a 2xx status

    Raises:
        LawApiError: When a non-retryable status is received or retries are exhausted
    """
    policy = policy or RetryPolicy()

    for attempt in range(policy.max_retries + 1):
        try:
            response = call()
        except requests.RequestException as e:
            if attempt < policy.max_retries:
                delay = policy.compute_delay(attempt)
                logger.warning(
                    f"{component_name}: Transport error (attempt {attempt + 1}/{policy.max_retries + 1}): {e}. "
                    f"Retrying in {delay:.2f}s..."
                )
                sleep(delay)
                continue
            logger.error(f"{component_name}: All {attempt + 1} attempts failed: {e}")
            raise LawApiError(f"{component_name}: Law API request failed: {e}", cause=e) from e

        status = response.status_code
        if 200 <= status < 300:
            return response

        if policy.should_retry(status) and attempt < policy.max_retries:
            delay = policy.compute_delay(attempt)
            logger.warning(
                f"{component_name}: Upstream status {status} (attempt {attempt + 1}/{policy.max_retries + 1}). "
                f"Retrying in {delay:.2f}s..."
            )
            sleep(delay)
            continue

        error = build_upstream_error(response, component_name)
        if policy.should_retry(status):
            logger.error(f"{component_name}: All {attempt + 1} attempts failed, last status {status}")
        raise error

    # max_retries < 0 leaves nothing to try
    raise LawApiError(f"{component_name}: Law API request exhausted retries.")
