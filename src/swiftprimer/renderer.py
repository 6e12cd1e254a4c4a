"""Turn markdown lesson text into typed blocks and formatted output."""

from __future__ import annotations

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.token import Token

from .models import Block, BlockKind, Lesson, Section

TEXT_RULE_WIDTH = 40

# Raw HTML in lessons is shown as text, never passed through.
_MARKDOWN = MarkdownIt("commonmark", {"html": False})


def parse_blocks(text: str) -> list[Block]:
    """Split markdown text into heading, prose and code blocks.

    Parsing follows CommonMark and never fails: anything that is not a
    block construct is kept verbatim as paragraph text. An unclosed code
    fence runs to the end of the input.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    tokens = _MARKDOWN.parse(text)
    blocks: list[Block] = []
    index = 0
    while index < len(tokens):
        end = _closing_index(tokens, index)
        block = _block_from_tokens(tokens[index], tokens[index + 1 : end])
        if block is not None:
            blocks.append(block)
        index = end + 1
    return blocks


def build_sections(blocks: list[Block]) -> list[Section]:
    """Group blocks under the heading that precedes them."""
    sections: list[Section] = []
    heading = ""
    level = 0
    current: list[Block] = []
    for block in blocks:
        if block.kind is BlockKind.HEADING:
            if current or level > 0:
                sections.append(Section(heading=heading, level=level, blocks=current))
            heading, level, current = block.text, block.level, []
        else:
            current.append(block)
    if current or level > 0:
        sections.append(Section(heading=heading, level=level, blocks=current))
    return sections


def build_lesson(text: str, *, lesson_id: str, order: int = 0, source: str = "") -> Lesson:
    """Parse one markdown document into a lesson."""
    blocks = parse_blocks(text)
    title = next(
        (block.text for block in blocks if block.kind is BlockKind.HEADING and block.level == 1 and block.text),
        lesson_id,
    )
    return Lesson(id=lesson_id, title=title, order=order, source=source, sections=build_sections(blocks))


def render_html(blocks: list[Block]) -> str:
    """Render blocks as an HTML fragment."""
    rendered: list[str] = []
    for block in blocks:
        if block.kind is BlockKind.HEADING:
            rendered.append(f"<h{block.level}>{_MARKDOWN.renderInline(block.text)}</h{block.level}>")
        elif block.kind is BlockKind.CODE:
            attrs = f' class="language-{escapeHtml(block.language)}"' if block.language else ""
            rendered.append(f"<pre><code{attrs}>{escapeHtml(block.text)}</code></pre>")
        elif block.kind is BlockKind.LIST:
            tag = "ol" if block.ordered else "ul"
            rendered.append(f"<{tag}>")
            rendered.extend(f"<li>{_MARKDOWN.renderInline(item)}</li>" for item in block.items)
            rendered.append(f"</{tag}>")
        elif block.kind is BlockKind.QUOTE:
            paragraphs = "".join(f"<p>{_MARKDOWN.renderInline(part)}</p>" for part in block.text.split("\n\n"))
            rendered.append(f"<blockquote>{paragraphs}</blockquote>")
        elif block.kind is BlockKind.RULE:
            rendered.append("<hr />")
        else:
            rendered.append(f"<p>{_MARKDOWN.renderInline(block.text)}</p>")
    return "\n".join(rendered)


def render_text(blocks: list[Block]) -> str:
    """Render blocks as plain text for a terminal."""
    rendered: list[str] = []
    for block in blocks:
        if block.kind is BlockKind.HEADING:
            if block.level == 1:
                rendered.append(f"{block.text}\n{'=' * max(len(block.text), 3)}")
            elif block.level == 2:
                rendered.append(f"{block.text}\n{'-' * max(len(block.text), 3)}")
            else:
                rendered.append(f"{'#' * block.level} {block.text}")
        elif block.kind is BlockKind.CODE:
            label = f"[{block.language}]" if block.language else "[code]"
            body = "\n".join(f"    {line}" if line else "" for line in block.text.split("\n"))
            rendered.append(f"{label}\n{body}")
        elif block.kind is BlockKind.LIST:
            rendered.append(
                "\n".join(
                    f"{number}. {item}" if block.ordered else f"- {item}"
                    for number, item in enumerate(block.items, start=1)
                )
            )
        elif block.kind is BlockKind.QUOTE:
            rendered.append("\n".join(f"> {line}".rstrip() for line in block.text.split("\n")))
        elif block.kind is BlockKind.RULE:
            rendered.append("-" * TEXT_RULE_WIDTH)
        else:
            rendered.append(block.text)
    return "\n\n".join(rendered)


def _closing_index(tokens: list[Token], index: int) -> int:
    """Return the index of the token that closes ``tokens[index]``."""
    if tokens[index].nesting != 1:
        return index
    depth = 0
    for position in range(index, len(tokens)):
        depth += tokens[position].nesting
        if depth == 0:
            return position
    return len(tokens) - 1


def _block_from_tokens(opener: Token, inner: list[Token]) -> Block | None:
    """Map one top-level token run onto a block."""
    if opener.type == "heading_open":
        return Block(kind=BlockKind.HEADING, text=_join_lines(_inline_content(inner), " "), level=int(opener.tag[1:]))
    if opener.type == "paragraph_open":
        return Block(kind=BlockKind.PARAGRAPH, text=_join_lines(_inline_content(inner), "\n"))
    if opener.type == "fence":
        info = opener.info.strip()
        return Block(kind=BlockKind.CODE, text=_code_text(opener.content), language=info.split()[0] if info else None)
    if opener.type == "code_block":
        return Block(kind=BlockKind.CODE, text=_code_text(opener.content))
    if opener.type in ("bullet_list_open", "ordered_list_open"):
        return Block(kind=BlockKind.LIST, items=_list_items(inner), ordered=opener.type == "ordered_list_open")
    if opener.type == "blockquote_open":
        return Block(kind=BlockKind.QUOTE, text=_quote_text(inner))
    if opener.type == "hr":
        return Block(kind=BlockKind.RULE)
    return None


def _inline_content(inner: list[Token]) -> str:
    return next((token.content for token in inner if token.type == "inline"), "")


def _join_lines(content: str, separator: str) -> str:
    """Strip each source line and rejoin them."""
    return separator.join(line.strip() for line in content.split("\n")).strip()


def _code_text(content: str) -> str:
    """Drop the line feed that ends the last code line."""
    return content[:-1] if content.endswith("\n") else content


def _list_items(inner: list[Token]) -> tuple[str, ...]:
    """Collect item texts, flattening nested lists into their parent."""
    items: list[str] = []
    for token in inner:
        if token.type == "list_item_open":
            items.append("")
        elif token.type == "inline" and items:
            items[-1] = f"{items[-1]} {_join_lines(token.content, ' ')}".strip()
    return tuple(items)


def _quote_text(inner: list[Token]) -> str:
    """Join quoted paragraphs with blank lines between them."""
    parts: list[str] = []
    for token in inner:
        if token.type == "inline":
            parts.append(_join_lines(token.content, "\n"))
        elif token.type in ("fence", "code_block"):
            parts.append(_code_text(token.content))
    return "\n\n".join(part for part in parts if part)
