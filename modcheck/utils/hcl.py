"""Lightweight Terraform block-header extraction.

Only top-level block headers are recognised (``resource "t" "n" {``,
``module "n" {`` and so on); bodies are not parsed.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

LABELLED_TWICE = ("resource", "data")
LABELLED_ONCE = ("module", "variable", "output", "provider")
UNLABELLED = ("terraform", "locals", "moved", "import", "check")

HEREDOC_OPENER = re.compile(r"<<-?([A-Za-z_][A-Za-z0-9_]*)[ \t]*\r?\n")

HEADER_PATTERN = re.compile(
    r"""^[ \t]*(?P<kind>[a-z_]+)
        (?:[ \t]+(?P<first>"[^"\n]*"|[A-Za-z_][\w-]*))?
        (?:[ \t]+(?P<second>"[^"\n]*"|[A-Za-z_][\w-]*))?
        [ \t]*\{""",
    re.MULTILINE | re.VERBOSE,
)


@dataclass(frozen=True)
class Declaration:
    """A Terraform block header found in a ``.tf`` file."""

    kind: str
    name: str
    type: Optional[str]
    line: int


def strip_comments(text: str) -> str:
    """Blank out comments outside string literals, and heredoc bodies.

    ``#``, ``//`` and ``/* */`` comments are dropped; a ``<<EOT`` or
    ``<<-EOT`` heredoc becomes an empty string literal. Newlines are
    preserved so line numbers stay stable.
    """

    out: List[str] = []
    index = 0
    length = len(text)
    in_string = False
    while index < length:
        char = text[index]
        heredoc = HEREDOC_OPENER.match(text, index) if char == "<" and not in_string else None
        if in_string:
            out.append(char)
            if char == "\\" and index + 1 < length:
                out.append(text[index + 1])
                index += 2
                continue
            if char == '"' or char == "\n":
                in_string = False
            index += 1
            continue
        if char == '"':
            in_string = True
            out.append(char)
            index += 1
        elif char == "#" or text.startswith("//", index):
            end = text.find("\n", index)
            index = length if end == -1 else end
        elif heredoc is not None:
            end = _heredoc_end(text, heredoc)
            out.append('""' + "\n" * text.count("\n", index, end))
            index = end
        elif text.startswith("/*", index):
            end = text.find("*/", index + 2)
            end = length if end == -1 else end + 2
            out.append("\n" * text.count("\n", index, end))
            index = end
        else:
            out.append(char)
            index += 1
    return "".join(out)


def _unquote(label: Optional[str]) -> Optional[str]:
    if label is None:
        return None
    return label[1:-1] if label.startswith('"') else label


def parse_declarations(text: str) -> Tuple[Declaration, ...]:
    """Return the top-level block headers declared in ``text`` in source order."""

    cleaned = strip_comments(text)
    depth_at = _depth_index(cleaned)
    declarations: List[Declaration] = []
    for match in HEADER_PATTERN.finditer(cleaned):
        if depth_at(match.start("kind")) != 0:
            continue
        kind = match.group("kind")
        first = _unquote(match.group("first"))
        second = _unquote(match.group("second"))
        line = cleaned.count("\n", 0, match.start("kind")) + 1
        if kind in LABELLED_TWICE and first is not None and second is not None:
            declarations.append(Declaration(kind=kind, name=second, type=first, line=line))
        elif kind in LABELLED_ONCE and first is not None and second is None:
            declarations.append(Declaration(kind=kind, name=first, type=None, line=line))
        elif kind in UNLABELLED and first is None:
            declarations.append(Declaration(kind=kind, name=kind, type=None, line=line))
    return tuple(declarations)


def _depth_index(text: str) -> Callable[[int], int]:
    """Build a lookup returning the brace depth at a character offset."""

    offsets: List[int] = []
    depths: List[int] = []
    depth = 0
    in_string = False
    escaped = False
    for offset, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"' or char == "\n":
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        else:
            continue
        offsets.append(offset + 1)
        depths.append(depth)

    def lookup(position: int) -> int:
        index = bisect.bisect_right(offsets, position)
        return depths[index - 1] if index else 0

    return lookup


def _heredoc_end(text: str, opener: re.Match) -> int:
    """Return the offset just past the heredoc's closing marker, or the end of text."""

    closing = re.compile(r"^[ \t]*" + re.escape(opener.group(1)) + r"[ \t]*$", re.MULTILINE)
    match = closing.search(text, opener.end())
    return len(text) if match is None else match.end()
