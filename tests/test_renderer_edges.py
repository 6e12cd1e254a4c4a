import time

import pytest

from swiftprimer.models import Block, BlockKind
from swiftprimer.renderer import parse_blocks, render_html, render_text

MALFORMED_INPUTS = [
    "",
    "\n\n\n",
    "```",
    "~~~~\nunclosed",
    "#",
    "#######",
    ">",
    "-",
    "1.",
    "**",
    "* * *",
    "\t\tcode",
    "[link](",
    "`unclosed span",
    "| a | b |\n|---|---|",
    "text\n===\n---\n***",
    "- a\n\n- - -\n",
    "\x00\x01 binary-ish",
    "\r\r\r# only carriage returns\r",
    "> > nested\n>\n> end",
]


@pytest.mark.parametrize("text", MALFORMED_INPUTS)
def test_parse_and_render_never_fail(text: str) -> None:
    blocks = parse_blocks(text)
    assert isinstance(render_html(blocks), str)
    assert isinstance(render_text(blocks), str)


def test_empty_input_has_no_blocks() -> None:
    assert parse_blocks("") == []
    assert parse_blocks("   \n\t\n") == []


def test_crlf_and_bom_are_normalised() -> None:
    blocks = parse_blocks("\ufeff# Title\r\n\r\nBody\r\nmore\r\n")
    assert blocks == [
        Block(kind=BlockKind.HEADING, text="Title", level=1),
        Block(kind=BlockKind.PARAGRAPH, text="Body\nmore"),
    ]


def test_unclosed_fence_runs_to_end() -> None:
    blocks = parse_blocks("```swift\nlet x = 1\n\n# still code")
    assert blocks == [Block(kind=BlockKind.CODE, text="let x = 1\n\n# still code", language="swift")]


def test_tilde_fence_needs_matching_closing_length() -> None:
    blocks = parse_blocks("~~~~ python extra\nx\n~~~\n```\n~~~~\nafter")
    assert blocks == [
        Block(kind=BlockKind.CODE, text="x\n~~~\n```", language="python"),
        Block(kind=BlockKind.PARAGRAPH, text="after"),
    ]


def test_fence_indentation_is_removed_from_body() -> None:
    blocks = parse_blocks("  ```\n    indented\n  two\n  ```")
    assert blocks == [Block(kind=BlockKind.CODE, text="  indented\ntwo")]


def test_backtick_info_string_with_backtick_is_not_a_fence() -> None:
    blocks = parse_blocks("``` not`a fence")
    assert blocks == [Block(kind=BlockKind.PARAGRAPH, text="``` not`a fence")]


def test_malformed_headings_pass_through_as_paragraphs() -> None:
    blocks = parse_blocks("#5 bolt\n\n####### seven")
    assert blocks == [
        Block(kind=BlockKind.PARAGRAPH, text="#5 bolt"),
        Block(kind=BlockKind.PARAGRAPH, text="####### seven"),
    ]


def test_empty_heading_and_hash_inside_text() -> None:
    blocks = parse_blocks("#\n# C#\n## ##")
    assert [(block.level, block.text) for block in blocks] == [(1, ""), (1, "C#"), (2, "")]


def test_dash_rule_is_not_a_list() -> None:
    blocks = parse_blocks("- - -\n\n- item")
    assert blocks == [Block(kind=BlockKind.RULE), Block(kind=BlockKind.LIST, items=("item",))]


def test_loose_list_stays_one_block() -> None:
    blocks = parse_blocks("- a\n\n- b\n\nAfter the list.")
    assert blocks == [
        Block(kind=BlockKind.LIST, items=("a", "b")),
        Block(kind=BlockKind.PARAGRAPH, text="After the list."),
    ]


def test_heading_ends_paragraph_without_blank_line() -> None:
    blocks = parse_blocks("Some prose\n## Next")
    assert blocks == [
        Block(kind=BlockKind.PARAGRAPH, text="Some prose"),
        Block(kind=BlockKind.HEADING, text="Next", level=2),
    ]


def test_html_escapes_heading_and_language() -> None:
    blocks = [
        Block(kind=BlockKind.HEADING, text="<script>", level=2),
        Block(kind=BlockKind.CODE, text="x", language='a"b'),
    ]
    assert render_html(blocks) == '<h2>&lt;script&gt;</h2>\n<pre><code class="language-a&quot;b">x</code></pre>'


def test_quote_keeps_paragraph_breaks() -> None:
    blocks = parse_blocks("> First note.\n>\n> Second note.")
    assert blocks == [Block(kind=BlockKind.QUOTE, text="First note.\n\nSecond note.")]
    assert render_html(blocks) == "<blockquote><p>First note.</p><p>Second note.</p></blockquote>"
    assert render_text(blocks) == "> First note.\n>\n> Second note."


def test_only_a_list_starting_at_one_interrupts_a_paragraph() -> None:
    assert parse_blocks("Swift 5 shipped in\n2019. It added ABI stability.") == [
        Block(kind=BlockKind.PARAGRAPH, text="Swift 5 shipped in\n2019. It added ABI stability."),
    ]
    assert parse_blocks("Steps:\n1. open\n2. close") == [
        Block(kind=BlockKind.PARAGRAPH, text="Steps:"),
        Block(kind=BlockKind.LIST, items=("open", "close"), ordered=True),
    ]


def test_unmatched_emphasis_markers_render_in_linear_time() -> None:
    blocks = parse_blocks("*a " * 8000)
    started = time.perf_counter()
    rendered = render_html(blocks)
    assert time.perf_counter() - started < 2.0
    assert rendered.count("*") == 8000
    assert "<em>" not in rendered
