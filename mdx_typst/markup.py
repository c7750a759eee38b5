"""Markdown to Typst markup rewriting passes."""

from __future__ import annotations

import logging
import re
from typing import Callable, List, Tuple

from .utils import typst_string

logger = logging.getLogger("mdx_typst")

HEADING_PATTERN = re.compile(r"^(#{1,3}) (.*)$", re.MULTILINE)
BLOCKQUOTE_PATTERN = re.compile(r"^> (.*)$", re.MULTILINE)
LIST_ITEM_PATTERN = re.compile(r"^[-*] (.*)$", re.MULTILINE)
LINK_PATTERN = re.compile(r"\[(.*?)\]\((.*?)\)")
FIGURE_SOURCE_PATTERN = re.compile(r'#figure\(image\("(?:[^"\\]|\\.)*"')


def convert_headings(text: str) -> str:
    """``#``/``##``/``###`` become Typst ``=``/``==``/``===``."""
    return HEADING_PATTERN.sub(lambda m: "=" * len(m.group(1)) + " " + m.group(2), text)


def _find_closer(line: str, delimiter: str, start: int) -> int:
    # A closing run must directly follow non-whitespace.
    index = line.find(delimiter, start)
    while index != -1 and (index == start or line[index - 1].isspace()):
        index = line.find(delimiter, index + 1)
    return index


def _run_length(line: str, index: int) -> int:
    end = index
    while end < len(line) and line[end] == "*":
        end += 1
    return end - index


def _find_single_closer(line: str, start: int) -> int:
    # Complete **...** runs are stepped over so they stay nested inside.
    index = start
    while index < len(line):
        if line[index] != "*":
            index += 1
            continue
        run = _run_length(line, index)
        if run >= 2:
            closer = _find_closer(line, "**", index + 2) if _can_open(line, index + 2) else -1
            index = closer + 2 if closer != -1 else index + run
            continue
        if index > start and not line[index - 1].isspace():
            return index
        index += 1
    return -1


def _can_open(line: str, index: int) -> bool:
    return index < len(line) and not line[index].isspace()


def _convert_emphasis_line(line: str) -> str:
    out: List[str] = []
    i = 0
    length = len(line)
    while i < length:
        char = line[i]
        if char != "*":
            out.append(char)
            i += 1
            continue

        run = _run_length(line, i)
        if run == 3 and _can_open(line, i + 3):
            closer = _find_closer(line, "***", i + 3)
            if closer != -1:
                out.append("*_" + _convert_emphasis_line(line[i + 3 : closer]) + "_*")
                i = closer + 3
                continue

        if run >= 2 and _can_open(line, i + 2):
            closer = _find_closer(line, "**", i + 2)
            if closer != -1:
                out.append("*" + _convert_emphasis_line(line[i + 2 : closer]) + "*")
                i = closer + 2
                continue

        if run == 1 and _can_open(line, i + 1):
            closer = _find_single_closer(line, i + 1)
            if closer != -1:
                out.append("_" + _convert_emphasis_line(line[i + 1 : closer]) + "_")
                i = closer + 1
                continue

        out.append(char)
        i += 1
    return "".join(out)


def _convert_outside_figure_sources(line: str, convert: Callable[[str], str]) -> str:
    pieces: List[str] = []
    cursor = 0
    for match in FIGURE_SOURCE_PATTERN.finditer(line):
        pieces.append(convert(line[cursor : match.start()]))
        pieces.append(match.group(0))
        cursor = match.end()
    pieces.append(convert(line[cursor:]))
    return "".join(pieces)


def _convert_lines(text: str, convert: Callable[[str], str]) -> str:
    return "\n".join(
        _convert_outside_figure_sources(line, convert) for line in text.split("\n")
    )


def convert_emphasis(text: str) -> str:
    """Rewrite ``**bold**`` to ``*bold*``, ``*italic*`` to ``_italic_``
    and ``***both***`` to ``*_both_*``.

    Delimiters are told apart by run length within a single line, and the
    scanner never re-reads its own output, so converted bold text cannot be
    picked up again as italic. A ``*`` followed by whitespace never opens
    emphasis, which leaves line-leading ``* `` list markers intact. Image
    paths inside ``#figure(image("..."))`` are left as they are.
    """
    return _convert_lines(text, _convert_emphasis_line)


def convert_blockquotes(text: str) -> str:
    return BLOCKQUOTE_PATTERN.sub(r"#quote[\1]", text)


def convert_lists(text: str) -> str:
    return LIST_ITEM_PATTERN.sub(r"- \1", text)


def _convert_links_line(line: str) -> str:
    return LINK_PATTERN.sub(
        lambda m: f'#link("{typst_string(m.group(2))}")[{m.group(1)}]', line
    )


def convert_links(text: str) -> str:
    return _convert_lines(text, _convert_links_line)


# Applied in this order; list detection runs after emphasis has consumed
# its delimiters.
MARKUP_PASSES: Tuple[Tuple[str, Callable[[str], str]], ...] = (
    ("headings", convert_headings),
    ("emphasis", convert_emphasis),
    ("blockquotes", convert_blockquotes),
    ("lists", convert_lists),
    ("links", convert_links),
)


def convert_markup(text: str) -> str:
    """Apply every markup pass in order; unknown syntax passes through."""
    for name, convert in MARKUP_PASSES:
        text = convert(text)
        logger.debug("Applied %s pass (%d chars)", name, len(text))
    return text
