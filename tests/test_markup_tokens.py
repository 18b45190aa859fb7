from __future__ import annotations

from typing import Iterator

import pytest

from format_engine.markup import HTML_VOID_ELEMENTS, TokenKind, classify, tokenize
from format_engine.markup.tokens import normalize


def kinds(markup: str, **kwargs) -> list[TokenKind]:
    return [token.kind for token in tokenize(markup, **kwargs)]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('<?xml version="1.0"?>', TokenKind.DECLARATION),
        ("<!-- note -->", TokenKind.COMMENT),
        ("<!DOCTYPE html>", TokenKind.COMMENT),
        ("</item>", TokenKind.CLOSE_TAG),
        ("<item/>", TokenKind.SELF_CLOSING_TAG),
        ('<item id="1" />', TokenKind.SELF_CLOSING_TAG),
        ('<item id="1">', TokenKind.OPEN_TAG),
        ("<br>", TokenKind.OPEN_TAG),
    ],
)
def test_classify_tags(raw: str, expected: TokenKind) -> None:
    assert classify(raw) is expected


def test_classify_void_elements_only_when_configured() -> None:
    assert classify("<br>", HTML_VOID_ELEMENTS) is TokenKind.SELF_CLOSING_TAG
    assert classify('<IMG src="a.png">', HTML_VOID_ELEMENTS) is TokenKind.SELF_CLOSING_TAG
    assert classify("<div>", HTML_VOID_ELEMENTS) is TokenKind.OPEN_TAG


def test_tokens_cover_normalized_input() -> None:
    markup = '<?xml version="1.0"?>\n<root>\n  <a>text here</a>\n  <b/>\n</root>\n'
    tokens = list(tokenize(markup))
    normalized = normalize(markup)

    assert "".join(token.raw for token in tokens) == normalized
    for token in tokens:
        assert normalized[token.start : token.end] == token.raw


def test_tokenize_is_lazy() -> None:
    assert isinstance(tokenize("<a></a>"), Iterator)


def test_inter_tag_whitespace_is_dropped() -> None:
    assert kinds("<a>\n   <b/>\n\t</a>") == [
        TokenKind.OPEN_TAG,
        TokenKind.SELF_CLOSING_TAG,
        TokenKind.CLOSE_TAG,
    ]


def test_comment_containing_angle_bracket_is_one_token() -> None:
    tokens = list(tokenize("<a><!-- x > y --></a>"))

    assert [t.kind for t in tokens] == [
        TokenKind.OPEN_TAG,
        TokenKind.COMMENT,
        TokenKind.CLOSE_TAG,
    ]
    assert tokens[1].raw == "<!-- x > y -->"


def test_cdata_section_is_kept_whole() -> None:
    tokens = list(tokenize("<a><![CDATA[1 > 0]]></a>"))
    assert tokens[1].kind is TokenKind.COMMENT
    assert tokens[1].raw == "<![CDATA[1 > 0]]>"


def test_empty_brackets_are_text() -> None:
    tokens = list(tokenize("a <> b<c/>"))
    assert [(t.kind, t.raw) for t in tokens] == [
        (TokenKind.TEXT, "a <> b"),
        (TokenKind.SELF_CLOSING_TAG, "<c/>"),
    ]


def test_unterminated_tag_becomes_text() -> None:
    tokens = list(tokenize("<a>x < y"))
    assert [(t.kind, t.raw) for t in tokens] == [
        (TokenKind.OPEN_TAG, "<a>"),
        (TokenKind.TEXT, "x < y"),
    ]


def test_quoted_angle_bracket_does_not_end_tag() -> None:
    tokens = list(tokenize('<r><a t="1>2" u=\'x > y\'><b/></a></r>'))

    assert [(t.kind, t.raw) for t in tokens] == [
        (TokenKind.OPEN_TAG, "<r>"),
        (TokenKind.OPEN_TAG, "<a t=\"1>2\" u='x > y'>"),
        (TokenKind.SELF_CLOSING_TAG, "<b/>"),
        (TokenKind.CLOSE_TAG, "</a>"),
        (TokenKind.CLOSE_TAG, "</r>"),
    ]


def test_whitespace_inside_attribute_survives_normalization() -> None:
    markup = '<a t="x>  <y">\n  <b/>\n</a>'

    assert normalize(markup) == '<a t="x>  <y"><b/></a>'


def test_unbalanced_quote_falls_back_to_first_bracket() -> None:
    tokens = list(tokenize("<a title='x>y</a>"))

    assert tokens[0].raw == "<a title='x>"
