"""Lesson library queries used by the CLI."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .content_loader import LESSON_SUFFIX, load_lesson, load_lessons, load_lessons_from_dir
from .models import Block, BlockKind, Lesson

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LessonSummary:
    """One row of the lesson listing."""

    id: str
    title: str
    order: int
    section_count: int
    code_sample_count: int


@dataclass(frozen=True)
class TocEntry:
    """One heading in a lesson's table of contents."""

    heading: str
    level: int
    block_count: int


@dataclass(frozen=True)
class CodeSample:
    """A code block and the section it appears in."""

    lesson_id: str
    section: str
    language: str | None
    code: str


@dataclass(frozen=True)
class SearchHit:
    """A block whose text contains a search term."""

    lesson_id: str
    lesson_title: str
    section: str
    kind: BlockKind
    excerpt: str


class LessonService:
    """Indexes loaded lessons and answers reader queries."""

    def __init__(self, lessons_dir: Path | str | None = None) -> None:
        """Load lessons from a directory, or the bundled set when none is given."""
        if lessons_dir is None:
            self.lessons = load_lessons()
        else:
            self.lessons = load_lessons_from_dir(lessons_dir)
        logger.debug("Indexed %d lessons", len(self.lessons))

    def list_lessons(self) -> list[LessonSummary]:
        """Return lesson summaries in reading order."""
        return [
            LessonSummary(
                id=lesson.id,
                title=lesson.title,
                order=lesson.order,
                section_count=sum(1 for section in lesson.sections if section.level > 0),
                code_sample_count=sum(1 for block in lesson.blocks if block.kind is BlockKind.CODE),
            )
            for lesson in self.lessons.values()
        ]

    def get_lesson(self, lesson_id: str) -> Lesson | None:
        """Return one lesson by id."""
        return self.lessons.get(lesson_id)

    def resolve(self, target: str) -> Lesson:
        """Return a lesson by id, or load it from a markdown file path."""
        lesson = self.lessons.get(target)
        if lesson is not None:
            return lesson
        if target.endswith(LESSON_SUFFIX) or Path(target).is_file():
            return load_lesson(target)
        raise KeyError(target)

    def table_of_contents(self, target: str | Lesson) -> list[TocEntry]:
        """Return the headings of one lesson, given a lesson or anything ``resolve`` accepts."""
        lesson = target if isinstance(target, Lesson) else self.resolve(target)
        return [
            TocEntry(heading=section.heading, level=section.level, block_count=len(section.blocks))
            for section in lesson.sections
            if section.level > 0
        ]

    def code_samples(self, target: str | Lesson, language: str | None = None) -> list[CodeSample]:
        """Return the code blocks of one lesson, optionally filtered by language."""
        lesson = target if isinstance(target, Lesson) else self.resolve(target)
        wanted = language.lower() if language else None
        samples: list[CodeSample] = []
        for section in lesson.sections:
            for block in section.blocks:
                if block.kind is not BlockKind.CODE:
                    continue
                if wanted is not None and (block.language or "").lower() != wanted:
                    continue
                samples.append(
                    CodeSample(lesson_id=lesson.id, section=section.heading, language=block.language, code=block.text)
                )
        return samples

    def search(self, term: str) -> list[SearchHit]:
        """Find blocks containing a term, case-insensitively."""
        needle = term.strip().lower()
        if not needle:
            return []
        hits: list[SearchHit] = []
        for lesson in self.lessons.values():
            for section in lesson.sections:
                if needle in section.heading.lower():
                    hits.append(self._hit(lesson, section.heading, BlockKind.HEADING, section.heading, needle))
                for block in section.blocks:
                    text = _searchable_text(block)
                    if needle in text.lower():
                        hits.append(self._hit(lesson, section.heading, block.kind, text, needle))
        return hits

    @staticmethod
    def _hit(lesson: Lesson, section: str, kind: BlockKind, text: str, needle: str) -> SearchHit:
        return SearchHit(
            lesson_id=lesson.id,
            lesson_title=lesson.title,
            section=section,
            kind=kind,
            excerpt=_excerpt(text, needle),
        )


def _searchable_text(block: Block) -> str:
    """Return the text of a block that search should look at."""
    if block.kind is BlockKind.LIST:
        return "\n".join(block.items)
    return block.text


def _excerpt(text: str, needle: str, width: int = 30) -> str:
    """Return the line around the first match, trimmed to ``width`` chars each side."""
    match = re.search(re.escape(needle), text, re.IGNORECASE)
    if match is None:
        return text.strip()
    position, match_end = match.span()
    line_start = text.rfind("\n", 0, position) + 1
    line_end = text.find("\n", match_end)
    if line_end < 0:
        line_end = len(text)
    start = max(line_start, position - width)
    end = min(line_end, match_end + width)
    excerpt = text[start:end].strip()
    if start > line_start:
        excerpt = "..." + excerpt
    if end < line_end:
        excerpt = excerpt + "..."
    return excerpt
