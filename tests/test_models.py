from markdown_styler.models import (
    BlockStyle,
    CharacterStyle,
    ClassifiedLine,
    Element,
    ElementType,
    ParseResult,
    ParserContext,
    Token,
)


def test_block_style_flags():
    assert [style for style in BlockStyle if style.is_list] == [
        BlockStyle.UNORDERED_LIST,
        BlockStyle.ORDERED_LIST,
    ]
    assert [style for style in BlockStyle if style.is_heading] == [
        BlockStyle.H1,
        BlockStyle.H2,
        BlockStyle.H3,
        BlockStyle.H4,
        BlockStyle.H5,
        BlockStyle.H6,
    ]
    assert [style for style in BlockStyle if not style.should_tokenise] == [
        BlockStyle.CODE_BLOCK
    ]


def test_parser_context_defaults():
    ctx = ParserContext()

    assert ctx.close_token is None
    assert ctx.lines == []
    assert ctx.front_matter == {}
    assert ctx.previous_line is None


def test_parser_context_previous_line_tracks_last_emitted():
    first = ClassifiedLine("one")
    second = ClassifiedLine("two", style=BlockStyle.H2)
    ctx = ParserContext(lines=[first, second])

    assert ctx.previous_line is second


def test_contexts_do_not_share_state():
    ctx_one = ParserContext()
    ctx_two = ParserContext()

    ctx_one.lines.append(ClassifiedLine("text"))
    ctx_one.front_matter["key"] = "value"

    assert ctx_two.lines == []
    assert ctx_two.front_matter == {}


def test_element_defaults():
    element = Element("a")

    assert element.category is ElementType.LITERAL
    assert element.boundary_count == 0
    assert element.match_complete is False
    assert element.styles == []
    assert element.metadata == []


def test_token_to_dict():
    token = Token("text", (CharacterStyle.LINK,), ("http://x",))

    assert token.to_dict() == {"text": "text", "styles": ["link"], "metadata": ["http://x"]}


def test_parse_result_to_dict():
    line = ClassifiedLine(
        "item",
        style=BlockStyle.UNORDERED_LIST,
        raw_prefix="  - ",
        indent_depth=1,
        leading_space_width=2,
        tokens=[Token("item", (CharacterStyle.BOLD, CharacterStyle.ITALIC))],
    )
    result = ParseResult(lines=[line], front_matter={"title": "Doc"}, references={"a": "b"})

    assert result.to_dict() == {
        "front_matter": {"title": "Doc"},
        "references": {"a": "b"},
        "lines": [
            {
                "text": "item",
                "style": "unordered_list",
                "raw_prefix": "  - ",
                "indent_depth": 1,
                "leading_space_width": 2,
                "tokens": [{"text": "item", "styles": ["bold", "italic"], "metadata": []}],
            }
        ],
    }
