from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

WriteLesson = Callable[[str, str], Path]


@pytest.fixture
def lessons_dir(tmp_path: Path) -> Path:
    """Provide an empty directory for per-test lesson files."""
    root = tmp_path / "lessons"
    root.mkdir()
    return root


@pytest.fixture
def write_lesson(lessons_dir: Path) -> WriteLesson:
    """Write one markdown lesson into ``lessons_dir`` and return its path."""

    def _write(file_name: str, text: str) -> Path:
        path = lessons_dir / file_name
        path.write_bytes(text.encode("utf-8"))
        return path

    return _write
