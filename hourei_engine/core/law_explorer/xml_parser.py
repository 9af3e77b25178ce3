"""
XML payload decoding for the legacy (v1) e-Gov law API.

Converts an XML document into the legacy flat-object dialect consumed by the
normalizer: nested dicts keyed by element name, attributes as plain keys,
repeated sibling tags as lists, and leaf element text as trimmed strings.
Mixed elements (text plus attributes or children) keep their text under "#text".
"""

from typing import Any, Dict, Union

from lxml import etree

TEXT_NODE_NAME = "#text"

_PARSER_OPTIONS = dict(
    resolve_entities=False,
    no_network=True,
    remove_comments=True,
    remove_pis=True,
    huge_tree=True,
)
_PARSER = etree.XMLParser(**_PARSER_OPTIONS)
# Text input is re-encoded as UTF-8, so its own encoding declaration must be ignored
_TEXT_PARSER = etree.XMLParser(encoding="utf-8", **_PARSER_OPTIONS)


def _local_name(tag: Any) -> str:
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname


def _element_to_value(element: etree._Element) -> Any:
    children = [child for child in element if isinstance(child.tag, str)]
    text = (element.text or "").strip()
    attributes = {_local_name(key): value.strip() for key, value in element.attrib.items()}

    if not children and not attributes:
        return text

    node: Dict[str, Any] = dict(attributes)
    for child in children:
        name = _local_name(child.tag)
        value = _element_to_value(child)
        if name in node:
            existing = node[name]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[name] = [existing, value]
        else:
            node[name] = value
        tail = (child.tail or "").strip()
        if tail:
            text = f"{text} {tail}".strip()

    if text:
        node[TEXT_NODE_NAME] = text
    return node


def parse_xml_to_dict(xml: Union[str, bytes]) -> Dict[str, Any]:
    """
    Parse XML text into nested dicts.

    Args:
        xml: XML document as text, or raw bytes decoded per their own declaration

    Returns:
        {root_tag: converted_root}

    Raises:
        ValueError: If the document is not well-formed XML
    """
    if isinstance(xml, str):
        payload, parser = xml.encode("utf-8"), _TEXT_PARSER
    else:
        payload, parser = xml, _PARSER
    try:
        root = etree.fromstring(payload, parser=parser)
    except etree.XMLSyntaxError as e:
        raise ValueError(f"Failed to parse XML: {e}") from e
    return {_local_name(root.tag): _element_to_value(root)}
