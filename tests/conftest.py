"""
Shared fixtures: sample upstream payloads and a fake HTTP response.
"""

import json

import pytest


class FakeResponse:
    """Just enough of requests.Response for the client and the retry loop."""

    def __init__(self, status_code=200, body="", content_type="application/json; charset=utf-8"):
        if not isinstance(body, (str, bytes)):
            body = json.dumps(body, ensure_ascii=False)
        self.status_code = status_code
        self.headers = {"content-type": content_type}
        self.content = body.encode("utf-8") if isinstance(body, str) else body
        self.text = self.content.decode("utf-8")


@pytest.fixture
def make_response():
    return FakeResponse


@pytest.fixture
def tagged_law_tree():
    """Two articles: the first with one paragraph, the second with one paragraph holding one item."""
    return {
        "tag": "Law",
        "attr": {"Era": "Reiwa"},
        "children": [
            {"tag": "LawNum", "children": ["令和元年法律第1号"]},
            {
                "tag": "LawBody",
                "children": [
                    {"tag": "LawTitle", "children": ["テスト法"]},
                    {
                        "tag": "MainProvision",
                        "children": [
                            {
                                "tag": "Article",
                                "attr": {"Num": "1"},
                                "children": [
                                    {"tag": "ArticleTitle", "children": ["第1条"]},
                                    {
                                        "tag": "Paragraph",
                                        "attr": {"Num": "1"},
                                        "children": [
                                            {"tag": "ParagraphNum", "children": []},
                                            {
                                                "tag": "ParagraphSentence",
                                                "children": [
                                                    {"tag": "Sentence", "children": ["This Act sets out its purpose."]}
                                                ],
                                            },
                                        ],
                                    },
                                ],
                            },
                            {
                                "tag": "Article",
                                "attr": {"Num": "2"},
                                "children": [
                                    {"tag": "ArticleTitle", "children": ["第2条"]},
                                    {
                                        "tag": "Paragraph",
                                        "attr": {"Num": "1"},
                                        "children": [
                                            {
                                                "tag": "ParagraphSentence",
                                                "children": [
                                                    {"tag": "Sentence", "children": ["The following Conditions apply:"]}
                                                ],
                                            },
                                            {
                                                "tag": "Item",
                                                "attr": {"Num": "1"},
                                                "children": [
                                                    {"tag": "ItemTitle", "children": ["一"]},
                                                    {
                                                        "tag": "ItemSentence",
                                                        "children": [
                                                            {"tag": "Sentence", "children": ["a condition of residence."]}
                                                        ],
                                                    },
                                                ],
                                            },
                                        ],
                                    },
                                ],
                            },
                        ],
                    },
                ],
            },
        ],
    }


@pytest.fixture
def detail_payload(tagged_law_tree):
    """Current (v2) law_data response."""
    return {
        "law_info": {
            "law_type": "Act",
            "law_id": "TEST-LAW-001",
            "law_num": "令和元年法律第1号",
            "promulgation_date": "2020-01-01",
        },
        "revision_info": {
            "law_title": "テスト行政手続法",
            "category": "行政手続",
        },
        "law_full_text": tagged_law_tree,
    }


@pytest.fixture
def search_payload():
    """Current (v2) keyword response."""
    return {
        "total_count": 1,
        "sentence_count": 1,
        "next_offset": None,
        "items": [
            {
                "law_info": {
                    "law_type": "Act",
                    "law_id": "TEST-LAW-001",
                    "law_num": "令和元年法律第1号",
                    "promulgation_date": "2020-01-01",
                },
                "revision_info": {
                    "law_title": "テスト行政手続法",
                    "law_type": "Act",
                    "category": "行政手続",
                },
                "sentences": [
                    {
                        "position": "mainprovision",
                        "text": "この法律は<span>ハイライト用キーワード</span>を含む\n  条文です。",
                    },
                    {"position": "mainprovision", "text": "<span></span>"},
                ],
            }
        ],
    }


@pytest.fixture
def legacy_search_payload():
    """Legacy (v1) search result, as decoded from XML."""
    return {
        "eGovLawSearchResult": {
            "result": {
                "status": "0",
                "message": "OK",
                "numberOfResults": "42",
                "page": "2",
                "numberOfRecords": "2",
            },
            "laws": {
                "law": [
                    {
                        "lawId": "129AC0000000089",
                        "lawName": "民法",
                        "lawNo": "明治二十九年法律第八十九号",
                        "promulgationDate": "18960427",
                        "lawType": "Act",
                    },
                    {"lawId": "140AC0000000045", "lawName": "刑法"},
                ]
            },
        }
    }
