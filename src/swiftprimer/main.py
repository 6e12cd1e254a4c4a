"""CLI entrypoint for reading Swift lessons."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Callable
from pathlib import Path

from . import __version__
from .content_loader import LessonReadError
from .models import Block, BlockKind, Lesson, Section
from .renderer import render_html, render_text
from .service import LessonService

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
LESSONS_DIR_ENV = "SWIFTPRIMER_LESSONS_DIR"
MENU_QUIT_COMMANDS = {"q", ":q", ":quit"}
MENU_BACK_COMMANDS = {"b", ":b", "back"}
OUTPUT_FORMATS = ("text", "html", "blocks")
BLOCK_SUMMARY_WIDTH = 60


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def _service(lessons_dir: Path | str | None) -> LessonService:
    """Create the lesson service for the configured lesson directory."""
    return LessonService(lessons_dir=lessons_dir)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="swiftprimer", description="Read the Swift primer lessons")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--lessons-dir",
        default=None,
        help=f"Directory of markdown lessons (default: ${LESSONS_DIR_ENV} or the bundled lessons)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr")
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("read", help="Browse lessons interactively (default)")
    commands.add_parser("list", help="List lessons")

    show = commands.add_parser("show", help="Print one lesson")
    show.add_argument("target", help="Lesson id or path to a markdown file")
    show.add_argument("--format", choices=OUTPUT_FORMATS, default="text")

    toc = commands.add_parser("toc", help="Print a lesson's headings")
    toc.add_argument("target", help="Lesson id or path to a markdown file")

    samples = commands.add_parser("samples", help="Print a lesson's code samples")
    samples.add_argument("target", help="Lesson id or path to a markdown file")
    samples.add_argument("--language", default=None, help="Only samples tagged with this language")

    search = commands.add_parser("search", help="Search all lessons for a term")
    search.add_argument("term")
    return parser


def run(argv: list[str] | None = None, input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    """Run the CLI application."""
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    lessons_dir = args.lessons_dir or os.environ.get(LESSONS_DIR_ENV) or None
    try:
        service = _service(lessons_dir)
        command = args.command or "read"
        if command == "list":
            _list_flow(service, print_fn)
        elif command == "show":
            _show_flow(service.resolve(args.target), args.format, print_fn)
        elif command == "toc":
            _toc_flow(service, args.target, print_fn)
        elif command == "samples":
            _samples_flow(service, args.target, args.language, print_fn)
        elif command == "search":
            _search_flow(service, args.term, print_fn)
        else:
            read_shell(service, input_fn, print_fn)
    except KeyError as exc:
        _error(f"Unknown lesson: {exc.args[0]}")
        return 1
    except LessonReadError as exc:
        _error(str(exc))
        return 1
    except ValueError as exc:
        _error(f"Invalid lesson set: {exc}")
        return 1
    return 0


def read_shell(service: LessonService, input_fn: InputFn = input, print_fn: PrintFn = print) -> None:
    """Run the menu-driven lesson reader."""
    try:
        while True:
            lessons = list(service.lessons.values())
            print_fn("\n=== Swift Primer ===")
            if not lessons:
                print_fn("No lessons available.")
                return
            for idx, lesson in enumerate(lessons, start=1):
                print_fn(f"{idx}) {lesson.title}")
            print_fn("q) Quit")

            choice = input_fn("Choose lesson: ").strip().lower()
            if choice in MENU_QUIT_COMMANDS:
                return
            if choice.isdigit():
                index = int(choice) - 1
                if 0 <= index < len(lessons):
                    _read_lesson_flow(lessons[index], input_fn, print_fn)
                    continue
            print_fn("Invalid choice.")
    except QuitApp:
        return


def _read_lesson_flow(lesson: Lesson, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Page through one lesson a section at a time."""
    sections = lesson.sections
    for position, section in enumerate(sections, start=1):
        print_fn("")
        print_fn(render_text(_section_blocks(section)))
        if position == len(sections):
            break
        choice = input_fn(f"[{position}/{len(sections)}] Enter) Next  b) Back  q) Quit: ").strip().lower()
        if choice in MENU_BACK_COMMANDS:
            return
        if choice in MENU_QUIT_COMMANDS:
            raise QuitApp()
    print_fn(f"\nEnd of lesson: {lesson.title}")


def _list_flow(service: LessonService, print_fn: PrintFn) -> None:
    """Print the lesson table."""
    summaries = service.list_lessons()
    if not summaries:
        print_fn("No lessons available.")
        return
    order_width = max(len("#"), max(len(str(item.order)) for item in summaries))
    id_width = max(len("Lesson"), max(len(item.id) for item in summaries))
    sections_width = len("Sections")
    samples_width = len("Samples")
    header = (
        f"{'#':>{order_width}} "
        f"{'Lesson':<{id_width}} "
        f"{'Sections':>{sections_width}} "
        f"{'Samples':>{samples_width}} "
        "Title"
    )
    print_fn(header)
    print_fn("-" * len(header))
    for item in summaries:
        print_fn(
            f"{item.order:>{order_width}} "
            f"{item.id:<{id_width}} "
            f"{item.section_count:>{sections_width}} "
            f"{item.code_sample_count:>{samples_width}} "
            f"{item.title}"
        )


def _show_flow(lesson: Lesson, output_format: str, print_fn: PrintFn) -> None:
    """Print a whole lesson in the requested format."""
    blocks = lesson.blocks
    if output_format == "html":
        print_fn(render_html(blocks))
    elif output_format == "blocks":
        for idx, block in enumerate(blocks, start=1):
            print_fn(f"{idx:>3} {block.kind.value:<9} {_block_summary(block)}")
    else:
        print_fn(render_text(blocks))


def _toc_flow(service: LessonService, target: str, print_fn: PrintFn) -> None:
    """Print the headings of a lesson, indented by level."""
    lesson = service.resolve(target)
    entries = service.table_of_contents(lesson)
    print_fn(f"Contents of {lesson.title}:")
    for entry in entries:
        print_fn(f"{'  ' * (entry.level - 1)}- {entry.heading}")


def _samples_flow(service: LessonService, target: str, language: str | None, print_fn: PrintFn) -> None:
    """Print the code samples of a lesson."""
    samples = service.code_samples(target, language)
    if not samples:
        print_fn("No code samples found.")
        return
    for idx, sample in enumerate(samples, start=1):
        label = sample.language or "code"
        section = sample.section or sample.lesson_id
        print_fn(f"\n--- {idx}. {section} [{label}] ---")
        print_fn(sample.code)


def _search_flow(service: LessonService, term: str, print_fn: PrintFn) -> None:
    """Print search hits across all lessons."""
    hits = service.search(term)
    if not hits:
        print_fn(f"No matches for '{term}'.")
        return
    print_fn(f"{len(hits)} match(es) for '{term}':")
    for hit in hits:
        where = f"{hit.lesson_id} > {hit.section}" if hit.section else hit.lesson_id
        print_fn(f"- {where} ({hit.kind.value}): {hit.excerpt}")


def _section_blocks(section: Section) -> list[Block]:
    """Return a section's blocks with its heading in front."""
    if section.level == 0:
        return section.blocks
    return [Block(kind=BlockKind.HEADING, text=section.heading, level=section.level), *section.blocks]


def _block_summary(block: Block) -> str:
    """Describe a block on one line."""
    if block.kind is BlockKind.HEADING:
        return f"h{block.level} {block.text}"
    if block.kind is BlockKind.CODE:
        line_count = len(block.text.split("\n")) if block.text else 0
        return f"{block.language or 'code'}, {line_count} line(s)"
    if block.kind is BlockKind.LIST:
        return f"{'ordered' if block.ordered else 'bullet'}, {len(block.items)} item(s)"
    if block.kind is BlockKind.RULE:
        return ""
    first_line = block.text.split("\n", 1)[0]
    if len(first_line) > BLOCK_SUMMARY_WIDTH:
        return first_line[: BLOCK_SUMMARY_WIDTH - 3] + "..."
    return first_line


def _error(message: str) -> None:
    print(f"swiftprimer: {message}", file=sys.stderr)


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
