"""
Law body normalizer.

Turns the body of a statute, in either of the two shapes the upstream API has
served over time, into Article/Paragraph/Item objects plus a flat list of
addressable provisions.

Key Features:
- Shape detection happens once at the entry point; each dialect has its own pure traversal
- Tagged-tree dialect: {"tag", "attr", "children"} nodes, articles found at any depth under LawBody
- Legacy dialect: nested dicts keyed by element name (JSON or decoded XML)
- Provision emission, path formatting and de-duplication shared by both dialects
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from hourei_engine.core.law_explorer.models import (
    Article,
    Item,
    LawBodyTransformResult,
    Paragraph,
    Provision,
)
from hourei_engine.core.law_explorer.text_utils import (
    ensure_array,
    find_children,
    find_descendant,
    find_descendants_in_order,
    get_attribute,
    get_first_matching_key,
    get_text_content,
    looks_like_tagged_tree,
    normalize_whitespace,
    tag_matches,
)

logger = logging.getLogger(__name__)

UNTITLED_ARTICLE = "無題"
DEFAULT_NUMBER = "1"

ARTICLE_KEYS = ["Article"]
ARTICLE_NUMBER_KEYS = ["ArticleNumber", "ArticleNum"]
ARTICLE_TITLE_KEYS = ["ArticleTitle"]
ARTICLE_CAPTION_KEYS = ["ArticleCaption"]
PARAGRAPH_KEYS = ["Paragraph"]
PARAGRAPH_NUMBER_KEYS = ["ParagraphNumber", "ParagraphNum"]
PARAGRAPH_TEXT_KEYS = ["ParagraphSentence", "ParagraphText"]
ITEM_KEYS = ["Item"]
ITEM_NUMBER_KEYS = ["ItemNumber", "ItemNum"]
ITEM_TEXT_KEYS = ["ItemSentence", "ItemText"]
SUBITEM_KEYS = ["Subitem1"]
SUBITEM_NUMBER_KEYS = ["Subitem1Title", "Subitem1Number", "Subitem1Num"]
SUBITEM_TEXT_KEYS = ["Subitem1Sentence", "Subitem1Text"]
SENTENCE_KEYS = ["Sentence"]
NUM_ATTRIBUTE = "Num"

# Article number candidates for the tagged dialect, in priority order.
TAGGED_ARTICLE_NUMBER_TAGS = ARTICLE_NUMBER_KEYS + ARTICLE_TITLE_KEYS


def transform_law_body(law_id: str, law_body: Any) -> LawBodyTransformResult:
    """
    Normalize a law body into articles and provisions.

    Args:
        law_id: Identifier copied onto every provision
        law_body: Tagged tree (node or list of nodes) or legacy nested dict; None is allowed

    Returns:
        LawBodyTransformResult, empty when the body is missing or holds no articles
    """
    if law_body is None:
        return LawBodyTransformResult(articles=(), provisions=())

    if looks_like_tagged_tree(law_body):
        articles = _parse_tagged_tree(law_body)
        dialect = "tagged"
    else:
        articles = _parse_legacy_body(law_body)
        dialect = "legacy"

    provisions = _emit_provisions(law_id, articles)
    logger.debug(f"Parsed {law_id} ({dialect}): {len(articles)} articles, {len(provisions)} provisions")
    return LawBodyTransformResult(articles=tuple(articles), provisions=tuple(provisions))


# --- Tagged-tree dialect ---

def _find_self_or_descendant(root: Any, tag: str) -> Optional[dict]:
    if isinstance(root, list):
        for entry in root:
            found = _find_self_or_descendant(entry, tag)
            if found is not None:
                return found
        return None
    if tag_matches(root, tag):
        return root
    return find_descendant(root, tag)


def _first_tag_text(node: Any, tags: List[str]) -> Optional[str]:
    """Text of the first child, in candidate order, that carries text content."""
    for tag in tags:
        for child in find_children(node, tag):
            text = get_text_content(child)
            if text:
                return text
    return None


def _tagged_sentence_text(node: Any, tags: List[str]) -> str:
    sentence = find_descendant(node, *tags)
    return get_text_content(sentence) if sentence is not None else ""


def _parse_tagged_tree(root: Any) -> List[Article]:
    law = _find_self_or_descendant(root, "Law")
    if law is None:
        law = root
    law_body = _find_self_or_descendant(law, "LawBody")
    if law_body is None:
        return []

    articles = []
    for article_node in find_descendants_in_order(law_body, *ARTICLE_KEYS):
        article_number = (
            _first_tag_text(article_node, TAGGED_ARTICLE_NUMBER_TAGS)
            or get_attribute(article_node, NUM_ATTRIBUTE)
            or UNTITLED_ARTICLE
        )
        article_title = _first_tag_text(article_node, ARTICLE_CAPTION_KEYS)
        paragraphs = tuple(
            _parse_tagged_paragraph(paragraph_node)
            for paragraph_node in find_children(article_node, *PARAGRAPH_KEYS)
        )
        articles.append(Article(article_number=article_number, paragraphs=paragraphs, article_title=article_title))
    return articles


def _parse_tagged_paragraph(node: dict) -> Paragraph:
    paragraph_number = (
        _first_tag_text(node, PARAGRAPH_NUMBER_KEYS)
        or get_attribute(node, NUM_ATTRIBUTE)
        or DEFAULT_NUMBER
    )
    items = tuple(_parse_tagged_item(item_node) for item_node in find_children(node, *ITEM_KEYS))
    return Paragraph(
        paragraph_number=paragraph_number,
        text=_tagged_sentence_text(node, PARAGRAPH_TEXT_KEYS),
        items=items,
    )


def _parse_tagged_item(node: dict) -> Item:
    item_number = (
        _first_tag_text(node, ITEM_NUMBER_KEYS)
        or get_attribute(node, NUM_ATTRIBUTE)
        or DEFAULT_NUMBER
    )
    sub_items = tuple(
        Item(
            item_number=(
                _first_tag_text(sub_node, SUBITEM_NUMBER_KEYS)
                or get_attribute(sub_node, NUM_ATTRIBUTE)
                or DEFAULT_NUMBER
            ),
            text=_tagged_sentence_text(sub_node, SUBITEM_TEXT_KEYS),
        )
        for sub_node in find_children(node, *SUBITEM_KEYS)
    )
    return Item(item_number=item_number, text=_tagged_sentence_text(node, ITEM_TEXT_KEYS), sub_items=sub_items)


# --- Legacy flat-object dialect ---

def _to_string_value(value: Any) -> Optional[str]:
    """Stringify and trim a scalar; dicts contribute their #text, None stays None."""
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("#text")
        if value is None:
            return None
    if isinstance(value, list):
        return None
    return str(value).strip()


def _sentence_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return normalize_whitespace(" ".join(_sentence_value(entry) for entry in value))
    if isinstance(value, dict):
        return normalize_whitespace(str(value.get("#text") or ""))
    return normalize_whitespace(str(value))


def _extract_sentence(source: Any, keys: List[str]) -> str:
    """Read sentence text directly or through one level of Sentence wrapper."""
    value = get_first_matching_key(source, keys)
    if isinstance(value, (str, int, float)):
        return normalize_whitespace(str(value))
    if isinstance(value, dict):
        nested = get_first_matching_key(value, SENTENCE_KEYS)
        if nested is not None:
            return _sentence_value(nested)
        return _sentence_value(value)
    if isinstance(value, list):
        return normalize_whitespace(" ".join(_extract_sentence({keys[0]: entry}, keys) for entry in value))
    return ""


def _read_number(source: Any, keys: List[str], fallback: str) -> str:
    number = _to_string_value(get_first_matching_key(source, keys))
    if not number:
        number = _to_string_value(get_first_matching_key(source, [NUM_ATTRIBUTE]))
    return number or fallback


def _collect_legacy_articles(node: Any, found: List[Any]) -> None:
    """Gather Article entries at any depth; grouping keys (Chapter, Section, ...) are walked through."""
    if isinstance(node, list):
        for entry in node:
            _collect_legacy_articles(entry, found)
        return
    if not isinstance(node, dict):
        return
    article_keys = {name.lower() for name in ARTICLE_KEYS}
    for key, value in node.items():
        if str(key).lower() in article_keys:
            found.extend(entry for entry in ensure_array(value) if isinstance(entry, dict))
        elif isinstance(value, (dict, list)):
            _collect_legacy_articles(value, found)


def _parse_legacy_body(law_body: Any) -> List[Article]:
    raw_articles: List[Any] = []
    _collect_legacy_articles(law_body, raw_articles)

    articles = []
    for raw_article in raw_articles:
        article_number = _read_number(raw_article, ARTICLE_NUMBER_KEYS, UNTITLED_ARTICLE)
        article_title = _to_string_value(get_first_matching_key(raw_article, ARTICLE_TITLE_KEYS)) or None
        paragraphs = tuple(
            _parse_legacy_paragraph(raw_paragraph)
            for raw_paragraph in ensure_array(get_first_matching_key(raw_article, PARAGRAPH_KEYS))
        )
        articles.append(Article(article_number=article_number, paragraphs=paragraphs, article_title=article_title))
    return articles


def _parse_legacy_paragraph(raw_paragraph: Any) -> Paragraph:
    items = tuple(
        _parse_legacy_item(raw_item)
        for raw_item in ensure_array(get_first_matching_key(raw_paragraph, ITEM_KEYS))
    )
    return Paragraph(
        paragraph_number=_read_number(raw_paragraph, PARAGRAPH_NUMBER_KEYS, DEFAULT_NUMBER),
        text=_extract_sentence(raw_paragraph, PARAGRAPH_TEXT_KEYS),
        items=items,
    )


def _parse_legacy_item(raw_item: Any) -> Item:
    sub_items = tuple(
        Item(
            item_number=_read_number(raw_sub, SUBITEM_NUMBER_KEYS, DEFAULT_NUMBER),
            text=_extract_sentence(raw_sub, SUBITEM_TEXT_KEYS),
        )
        for raw_sub in ensure_array(get_first_matching_key(raw_item, SUBITEM_KEYS))
    )
    return Item(
        item_number=_read_number(raw_item, ITEM_NUMBER_KEYS, DEFAULT_NUMBER),
        text=_extract_sentence(raw_item, ITEM_TEXT_KEYS),
        sub_items=sub_items,
    )


# --- Provision emission (shared) ---

def build_path(article_number: str, paragraph_number: Optional[str] = None, item_number: Optional[str] = None) -> str:
    """
    Human-readable provision path, e.g. "第2条 第1項 第1号".

    Values that already carry their unit (項, 号) are used as-is.
    """
    parts = [article_number]
    if paragraph_number:
        parts.append(paragraph_number if "項" in paragraph_number else f"第{paragraph_number}項")
    if item_number:
        parts.append(item_number if "号" in item_number else f"第{item_number}号")
    return " ".join(part for part in parts if part)


def _emit_provisions(law_id: str, articles: List[Article]) -> List[Provision]:
    candidates: List[Provision] = []

    def emit(text: str, article: Article, paragraph_number: Optional[str] = None, item_number: Optional[str] = None):
        candidates.append(Provision(
            law_id=law_id,
            article_number=article.article_number,
            paragraph_number=paragraph_number,
            item_number=item_number,
            text=normalize_whitespace(text),
            path=build_path(article.article_number, paragraph_number, item_number),
        ))

    for article in articles:
        for paragraph in article.paragraphs:
            for item in paragraph.items:
                emit(item.text, article, paragraph.paragraph_number, item.item_number)
            # Lead-in text of a paragraph with items stays addressable on its own
            if not paragraph.items or paragraph.text:
                emit(paragraph.text, article, paragraph.paragraph_number)
        if not article.paragraphs:
            emit(article.article_title or article.article_number, article)

    return _dedupe_provisions(candidates)


def _dedupe_provisions(candidates: List[Provision]) -> List[Provision]:
    """
    Drop empty and repeated (path, text) entries, then make the remaining paths unique.

    Distinct texts that landed on the same path (e.g. supplementary provisions
    restarting article numbering) get a " (2)", " (3)", ... suffix.
    """
    seen = set()
    path_counts: Dict[str, int] = {}
    provisions: List[Provision] = []
    for provision in candidates:
        key = f"{provision.path}:{provision.text}"
        if not provision.text or key in seen:
            continue
        seen.add(key)

        count = path_counts.get(provision.path, 0) + 1
        path_counts[provision.path] = count
        if count > 1:
            provision = _with_path(provision, f"{provision.path} ({count})")
        provisions.append(provision)
    return provisions


def _with_path(provision: Provision, path: str) -> Provision:
    return replace(provision, path=path)

