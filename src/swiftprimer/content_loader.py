"""Load markdown lessons from bundled resources or a directory."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path

from .models import Lesson
from .renderer import build_lesson

CONTENT_PACKAGE = "swiftprimer.content.lessons"
LESSON_SUFFIX = ".md"

_ORDER_PREFIX = re.compile(r"^(\d+)[-_. ]+(.+)$")

logger = logging.getLogger(__name__)


class LessonReadError(OSError):
    """A lesson document exists but could not be read."""


class LessonNotFoundError(LessonReadError, FileNotFoundError):
    """A lesson document path does not exist."""


def read_document(path: Path | str) -> str:
    """Return the text of one document exactly as stored."""
    file_path = Path(path)
    if not file_path.is_file():
        raise LessonNotFoundError(f"Lesson file not found: {file_path}")
    try:
        raw = file_path.read_bytes()
    except FileNotFoundError as exc:
        raise LessonNotFoundError(f"Lesson file not found: {file_path}") from exc
    except OSError as exc:
        raise LessonReadError(f"Could not read lesson file {file_path}: {exc.strerror or exc}") from exc
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise LessonReadError(f"Lesson file {file_path} is not valid UTF-8.") from exc


def load_lesson(path: Path | str) -> Lesson:
    """Read and parse one lesson document."""
    file_path = Path(path)
    text = read_document(file_path)
    return _lesson_from_text(file_path.name, text)


def load_lessons() -> dict[str, Lesson]:
    """Load bundled lessons."""
    entries = sorted(
        (entry for entry in resources.files(CONTENT_PACKAGE).iterdir() if entry.name.endswith(LESSON_SUFFIX)),
        key=lambda entry: entry.name,
    )
    return _collect(_lesson_from_resource(entry) for entry in entries)


def load_lessons_from_dir(path: Path | str) -> dict[str, Lesson]:
    """Load every markdown lesson in a directory."""
    root = Path(path)
    if not root.is_dir():
        raise LessonNotFoundError(f"Lesson directory not found: {root}")
    return _collect(load_lesson(file_path) for file_path in sorted(root.glob(f"*{LESSON_SUFFIX}")))


def lesson_identity(file_name: str) -> tuple[str, int]:
    """Derive lesson id and order from a file name like ``04-optionals.md``."""
    stem = file_name[: -len(LESSON_SUFFIX)] if file_name.endswith(LESSON_SUFFIX) else file_name
    match = _ORDER_PREFIX.match(stem)
    if match is None:
        return stem, 0
    return match.group(2), int(match.group(1))


def _lesson_from_resource(entry: Traversable) -> Lesson:
    """Parse one bundled lesson resource."""
    return _lesson_from_text(entry.name, entry.read_bytes().decode("utf-8"))


def _lesson_from_text(file_name: str, text: str) -> Lesson:
    """Build a lesson named after its source file."""
    lesson_id, order = lesson_identity(file_name)
    lesson = build_lesson(text, lesson_id=lesson_id, order=order, source=file_name)
    logger.debug("Loaded lesson %s (%d sections) from %s", lesson.id, len(lesson.sections), file_name)
    return lesson


def _collect(lessons: Iterable[Lesson]) -> dict[str, Lesson]:
    """Index lessons by id in reading order, rejecting duplicate ids."""
    collected: dict[str, Lesson] = {}
    for lesson in lessons:
        previous = collected.get(lesson.id)
        if previous is not None:
            raise ValueError(f"Duplicate lesson id: {lesson.id} (in {previous.source} and {lesson.source})")
        collected[lesson.id] = lesson
    ordered = sorted(collected.values(), key=lambda item: (item.order, item.id))
    return {lesson.id: lesson for lesson in ordered}
