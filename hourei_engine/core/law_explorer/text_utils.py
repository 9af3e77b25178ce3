"""
Text and tree helpers shared by the normalizer, the client and the quiz generator.

Two document shapes are handled here:
- the legacy flat-object dialect (plain nested dicts keyed by element name)
- the tagged-tree dialect ({"tag", "attr", "children"} nodes, children may be strings)

All key and tag lookups are case-insensitive.
"""

import re
from collections import deque
from typing import Any, Iterable, List, Optional, Sequence, Union

_WHITESPACE_RE = re.compile(r"\s+")
_HTML_TAG_RE = re.compile(r"<[^>]+>")
_NUMERIC_SEGMENT_RE = re.compile(r"^\d+$")

PathInput = Union[str, Sequence[Union[str, int]]]


def normalize_whitespace(value: Optional[str]) -> str:
    """Collapse every whitespace run to a single space and trim. None or empty gives ''."""
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value).strip()


def strip_html_tags(value: Optional[str]) -> str:
    """Remove HTML tags (e.g. upstream <span> highlight markers) and normalize whitespace."""
    if not value:
        return ""
    return normalize_whitespace(_HTML_TAG_RE.sub("", value))


def ensure_array(value: Any) -> List[Any]:
    """None -> [], list -> same list, anything else -> one-element list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def to_optional_string(value: Any) -> Optional[str]:
    """Stringify and normalize a scalar; None stays None."""
    if value is None:
        return None
    if isinstance(value, dict) and "#text" in value:
        value = value["#text"]
    return normalize_whitespace(str(value))


def get_first_matching_key(source: Any, candidates: Iterable[str], case_insensitive: bool = True) -> Any:
    """
    Return the value of the first key in source that matches any candidate name.

    Keys are scanned in the object's own order, so the first present key wins
    regardless of candidate order.

    Args:
        source: Object to inspect; anything that is not a dict yields None
        candidates: Accepted spellings of the same field (e.g. lawId, LawId, LawID)
        case_insensitive: Compare names ignoring case (default)

    Returns:
        The matching value, or None
    """
    if not isinstance(source, dict):
        return None
    if case_insensitive:
        wanted = {candidate.lower() for candidate in candidates}
        for key, value in source.items():
            if str(key).lower() in wanted:
                return value
    else:
        wanted = set(candidates)
        for key, value in source.items():
            if key in wanted:
                return value
    return None


def _normalize_path(path: PathInput) -> List[Union[str, int]]:
    if isinstance(path, (list, tuple)):
        return list(path)
    raw = str(path)
    if "." not in raw:
        return [raw]
    segments: List[Union[str, int]] = []
    for segment in raw.split("."):
        if segment == "":
            continue
        segments.append(int(segment) if _NUMERIC_SEGMENT_RE.match(segment) else segment)
    return segments


def get_value_at_path(source: Any, path: PathInput, fallback: Any = None) -> Any:
    """
    Walk a nested dict/list structure by a dotted path or a sequence of segments.

    Dict keys are matched case-insensitively; integer segments index lists.

    Example:
        get_value_at_path(doc, "root.Result.Status")
        get_value_at_path(doc, ["laws", "law", 0, "lawId"])
    """
    current = source
    for segment in _normalize_path(path):
        if current is None:
            return fallback
        if isinstance(current, list):
            try:
                index = int(segment)
            except (TypeError, ValueError):
                return fallback
            if index < 0 or index >= len(current):
                return fallback
            current = current[index]
            continue
        if isinstance(current, dict):
            key = _resolve_object_key(current, str(segment))
            if key is None:
                return fallback
            current = current[key]
            continue
        return fallback
    return fallback if current is None else current


def has_path(source: Any, path: PathInput) -> bool:
    return get_value_at_path(source, path) is not None


def _resolve_object_key(target: dict, segment: str) -> Optional[str]:
    if segment in target:
        return segment
    lower = segment.lower()
    for key in target:
        if str(key).lower() == lower:
            return key
    return None


# --- Tagged-tree dialect ---

def is_tagged_node(value: Any) -> bool:
    return isinstance(value, dict) and ("tag" in value or "children" in value)


def looks_like_tagged_tree(value: Any) -> bool:
    """True for a tagged node or a list holding at least one."""
    if isinstance(value, list):
        return any(is_tagged_node(entry) for entry in value)
    return is_tagged_node(value)


def node_tag(node: Any) -> str:
    if not isinstance(node, dict):
        return ""
    return str(node.get("tag") or "")


def tag_matches(node: Any, *tags: str) -> bool:
    tag = node_tag(node).lower()
    return bool(tag) and tag in {candidate.lower() for candidate in tags}


def node_children(node: Any) -> List[Any]:
    if isinstance(node, list):
        return node
    if not isinstance(node, dict):
        return []
    return ensure_array(node.get("children"))


def find_child(node: Any, *tags: str) -> Optional[dict]:
    """First direct child whose tag matches any of tags."""
    for child in node_children(node):
        if tag_matches(child, *tags):
            return child
    return None


def find_children(node: Any, *tags: str) -> List[dict]:
    """All direct children whose tag matches any of tags, in document order."""
    return [child for child in node_children(node) if tag_matches(child, *tags)]


def find_descendants(node: Any, *tags: str) -> List[dict]:
    """All descendants (not the node itself) whose tag matches, breadth-first."""
    found: List[dict] = []
    queue = deque(node_children(node))
    while queue:
        current = queue.popleft()
        if not isinstance(current, dict):
            continue
        if tag_matches(current, *tags):
            found.append(current)
        queue.extend(node_children(current))
    return found


def find_descendants_in_order(node: Any, *tags: str) -> List[dict]:
    """All descendants whose tag matches, depth-first in document order; matches are not descended into."""
    found: List[dict] = []
    for child in node_children(node):
        if not isinstance(child, dict):
            continue
        if tag_matches(child, *tags):
            found.append(child)
        else:
            found.extend(find_descendants_in_order(child, *tags))
    return found


def find_descendant(node: Any, *tags: str) -> Optional[dict]:
    """First descendant whose tag matches, depth-first in document order."""
    for child in node_children(node):
        if not isinstance(child, dict):
            continue
        if tag_matches(child, *tags):
            return child
        nested = find_descendant(child, *tags)
        if nested is not None:
            return nested
    return None


def get_text_content(node: Any) -> str:
    """Concatenate string leaves and descendant text with single spaces."""
    if node is None:
        return ""
    if isinstance(node, str):
        return normalize_whitespace(node)
    if isinstance(node, (int, float)):
        return str(node)
    parts = []
    for child in node_children(node):
        text = get_text_content(child)
        if text:
            parts.append(text)
    return normalize_whitespace(" ".join(parts))


def get_attribute(node: Any, name: str) -> Optional[str]:
    """Read an attribute case-insensitively, stringified and trimmed."""
    if not isinstance(node, dict):
        return None
    attributes = node.get("attr")
    value = get_first_matching_key(attributes, [name])
    if value is None:
        return None
    text = str(value).strip()
    return text or None
