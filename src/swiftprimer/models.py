"""Core document models for markdown lessons."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class BlockKind(str, Enum):
    """Kinds of content block a lesson is made of."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE = "code"
    LIST = "list"
    QUOTE = "quote"
    RULE = "rule"


@dataclass(frozen=True)
class Block:
    """One unit of lesson content.

    ``text`` holds the heading, paragraph, quote or code text. ``level`` is
    only meaningful for headings, ``language`` only for code, and ``items``
    with ``ordered`` only for lists.
    """

    kind: BlockKind
    text: str = ""
    level: int = 0
    language: str | None = None
    items: tuple[str, ...] = ()
    ordered: bool = False


@dataclass(frozen=True)
class Section:
    """Heading-delimited part of a lesson."""

    heading: str
    level: int
    blocks: list[Block] = field(default_factory=list)


@dataclass(frozen=True)
class Lesson:
    """One markdown document covering a topic."""

    id: str
    title: str
    order: int
    source: str
    sections: list[Section]

    @property
    def blocks(self) -> list[Block]:
        """All blocks in document order, headings included."""
        flattened: list[Block] = []
        for section in self.sections:
            if section.level > 0:
                flattened.append(Block(kind=BlockKind.HEADING, text=section.heading, level=section.level))
            flattened.extend(section.blocks)
        return flattened
