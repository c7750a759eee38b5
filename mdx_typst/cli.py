"""Command-line entry point for the Typst exporter."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .archive import read_archive
from .config import DEFAULT_ARCHIVE_NAME, DEFAULT_TITLE, ExportConfig
from .errors import ExportError
from .exporter import convert_document, write_archive
from .utils import slugify

logger = logging.getLogger("mdx_typst.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or (first.startswith("-") and first != "-"):
        return argv
    return ("export", *argv)


def _add_export_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "input",
        type=Path,
        help="Markdown file to export, or '-' to read from standard input",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path of the zip archive to write (default: <title>_typst.zip)",
    )
    parser.add_argument("--title", default=None, help="Document title passed to the template")
    parser.add_argument("--author", default=None, help="Document author passed to the template")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Decode embedded images on this many threads",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Write the archive bytes to STDOUT instead of a file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_inspect_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("archive", type=Path, help="Previously exported zip archive")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert editor Markdown into a self-contained Typst project archive.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser(
        "export", help="Convert a Markdown document to a Typst project zip"
    )
    _add_export_arguments(export_parser)

    inspect_parser = subparsers.add_parser(
        "inspect", help="List the files inside an exported archive"
    )
    _add_inspect_arguments(inspect_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _configure_logging(verbose: bool, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    if quiet and not verbose:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _default_output(config: ExportConfig) -> Path:
    if config.title == DEFAULT_TITLE:
        return Path(DEFAULT_ARCHIVE_NAME)
    return Path(f"{slugify(config.title)}_typst.zip")


def _read_input(path: Path) -> str:
    if str(path) == "-":
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def _run_export(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose, quiet=args.stdout)

    config = ExportConfig.from_env(
        title=args.title,
        author=args.author,
        max_workers=max(1, args.workers),
    )

    try:
        markdown = _read_input(args.input)
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Unable to read %s: %s", args.input, exc)
        return 1

    try:
        result = convert_document(markdown, config)
    except ExportError as exc:
        logger.error("Typst export failed: %s", exc)
        return 1

    if args.stdout:
        sys.stdout.buffer.write(result.archive)
        sys.stdout.buffer.flush()
        return 0

    output_path = args.output or _default_output(config)
    try:
        write_archive(result, output_path.resolve())
    except OSError as exc:
        logger.error("Unable to write %s: %s", output_path, exc)
        return 1
    return 0


def _run_inspect(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)
    try:
        entries = read_archive(args.archive.read_bytes())
    except (OSError, ExportError) as exc:
        logger.error("Unable to inspect %s: %s", args.archive, exc)
        return 1

    for entry in entries:
        sys.stdout.write(f"{len(entry.content):>10}  {entry.path}\n")
    sys.stdout.flush()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    if args.command == "inspect":
        return _run_inspect(args)
    return _run_export(args)


if __name__ == "__main__":
    sys.exit(main())
