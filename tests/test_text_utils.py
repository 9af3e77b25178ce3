import pytest

from hourei_engine.core.law_explorer.text_utils import (
    ensure_array,
    find_child,
    find_descendant,
    find_descendants,
    find_descendants_in_order,
    get_attribute,
    get_first_matching_key,
    get_text_content,
    get_value_at_path,
    has_path,
    looks_like_tagged_tree,
    normalize_whitespace,
    strip_html_tags,
    to_optional_string,
)


@pytest.fixture(scope="module")
def document():
    return {"root": {"Result": {"Status": "0", "Message": "OK"}, "laws": [{"lawId": "A"}, {"lawId": "B"}]}}


def test_normalize_whitespace():
    assert normalize_whitespace("  foo   bar \n ") == "foo bar"
    assert normalize_whitespace(None) == ""
    assert normalize_whitespace("") == ""


def test_strip_html_tags():
    assert strip_html_tags("この<span>法律</span>は\n 目的") == "この法律は 目的"
    assert strip_html_tags(None) == ""


def test_ensure_array():
    values = ["a", "b"]
    assert ensure_array(None) == []
    assert ensure_array("value") == ["value"]
    assert ensure_array(values) is values


def test_to_optional_string():
    assert to_optional_string(None) is None
    assert to_optional_string(42) == "42"
    assert to_optional_string({"#text": " 第一条 "}) == "第一条"


def test_get_first_matching_key_is_case_insensitive():
    assert get_first_matching_key({"LawID": "X"}, ["lawId"]) == "X"
    assert get_first_matching_key({"LawID": "X"}, ["lawId"], case_insensitive=False) is None
    assert get_first_matching_key({"other": 1}, ["lawId"]) is None
    assert get_first_matching_key("not a dict", ["lawId"]) is None


def test_get_first_matching_key_follows_object_order():
    source = {"lawNo": "first", "lawNumber": "second"}
    assert get_first_matching_key(source, ["lawNumber", "lawNo"]) == "first"


def test_get_value_at_path(document):
    assert get_value_at_path(document, ["root", "result", "status"]) == "0"
    assert get_value_at_path(document, "root.Result.Message") == "OK"
    assert get_value_at_path(document, "root.laws.1.lawId") == "B"
    assert get_value_at_path(document, "root.laws.5.lawId", "fallback") == "fallback"
    assert get_value_at_path(document, "root.Result.Unknown", "fallback") == "fallback"


def test_has_path(document):
    assert has_path(document, "root.Result.Status")
    assert not has_path(document, "root.Result.Missing")


class TestTaggedTree:
    """Tests for the tagged-tree helpers."""

    def setup_method(self):
        """Set up test fixtures."""
        self.tree = {
            "tag": "Law",
            "children": [
                {
                    "tag": "Part",
                    "children": [
                        {"tag": "Article", "attr": {"Num": " 1 "}, "children": ["deep"]},
                    ],
                },
                {
                    "tag": "Article",
                    "attr": {"Num": "2"},
                    "children": ["shallow", {"tag": "Sentence", "children": ["text  with\nspaces"]}],
                },
            ],
        }

    def test_looks_like_tagged_tree(self):
        assert looks_like_tagged_tree(self.tree)
        assert looks_like_tagged_tree(["text", self.tree])
        assert not looks_like_tagged_tree({"Article": []})
        assert not looks_like_tagged_tree(["text"])

    def test_find_child_matches_tags_case_insensitively(self):
        assert find_child(self.tree, "part")["tag"] == "Part"
        assert find_child(self.tree, "Missing") is None

    def test_find_descendants_is_breadth_first(self):
        articles = find_descendants(self.tree, "Article")
        assert [get_attribute(article, "num") for article in articles] == ["2", "1"]

    def test_find_descendants_in_order_follows_the_document(self):
        articles = find_descendants_in_order(self.tree, "Article")
        assert [get_attribute(article, "num") for article in articles] == ["1", "2"]

    def test_find_descendant_is_depth_first(self):
        assert get_attribute(find_descendant(self.tree, "Article"), "Num") == "1"

    def test_get_text_content_joins_leaves(self):
        article = find_child(self.tree, "Article")
        assert get_text_content(article) == "shallow text with spaces"
        assert get_text_content(None) == ""

    def test_get_attribute_missing(self):
        assert get_attribute(self.tree, "Num") is None
        assert get_attribute("text", "Num") is None
