"""Directive syntax table and logic fragment classification.

The table is built once at import time and never mutated: every compiler
instance reads the same directive definitions.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import NamedTuple

from vemtl.spec import SegmentKind


class DirectiveSyntax(NamedTuple):
    name: str
    opener: str
    closer: str
    kind: SegmentKind


DIRECTIVES: tuple[DirectiveSyntax, ...] = (
    DirectiveSyntax("logic", "<%", "%>", SegmentKind.LOGIC),
    DirectiveSyntax("expression", "<$", "$>", SegmentKind.EXPRESSION),
    DirectiveSyntax("line-up", "<up", "up>", SegmentKind.LOGIC),
)

DIRECTIVE_OPENER = re.compile("|".join(re.escape(d.opener) for d in DIRECTIVES))

LINE_BREAK = r"(?:\r\n|\n|\r|\u2028|\u2029)"
LINE_BREAKS = "\r\n\u2028\u2029"

COMMENT = re.compile(rf"{LINE_BREAK}?[\t ]*<#.*?#>")
LOGIC_LEADING_BREAK = re.compile(rf"{LINE_BREAK}[\t ]*<%")
LINE_UP_LEADING_SPACE = re.compile(rf"{LINE_BREAK}?[\t ]*<up")
LINE_UP_TRAILING_BREAK = re.compile(rf"up>{LINE_BREAK}[\t ]*")

MODE_TAG = re.compile(rf"{LINE_BREAK}?[\t ]*<\*.*?\*>")
INDENT_BACK_ON = "<* indent-back *>"
INDENT_BACK_OFF = "<* end:indent-back *>"

IMPORT_DIRECTIVE = re.compile(
    r'<import\s*template="(?P<name>[^"]+)"(?P<params>(?:\s+\w+="[^"]*")*)\s*>'
)
IMPORT_PARAM = re.compile(r'(\w+)="([^"]+)"')

DATA_DECLARATION = re.compile(
    r"<#\s*DATA:(?P<type>\w+)\s*\[\s*(?P<name>\w+)\s*=\s*(?P<value>.*?)\s*\]\s*#>"
)


class BlockRole(str, Enum):
    OPEN = "open"
    CONTINUE = "continue"
    CLOSE = "close"
    STATEMENT = "statement"


OPEN_KEYWORDS = frozenset(
    {"if", "for", "while", "with", "try", "match", "case", "def", "class", "async"}
)
CONTINUE_KEYWORDS = frozenset({"elif", "else", "except", "finally"})
CLOSE_FRAGMENTS = frozenset({"}", "end"})

_LEADING_KEYWORD = re.compile(r"[A-Za-z_]\w*")


def classify_logic(fragment: str) -> BlockRole:
    """Classify a logic fragment by its leading keyword.

    Only the first identifier is inspected, so names such as ``iffy`` or
    ``format`` never count as block keywords.
    """
    code = fragment.strip()
    if code in CLOSE_FRAGMENTS:
        return BlockRole.CLOSE

    match = _LEADING_KEYWORD.match(code)
    if not match or not code.endswith(":"):
        return BlockRole.STATEMENT

    keyword = match.group(0)
    if keyword in CONTINUE_KEYWORDS:
        return BlockRole.CONTINUE
    if keyword in OPEN_KEYWORDS:
        return BlockRole.OPEN
    return BlockRole.STATEMENT


def leading_keyword(fragment: str) -> str:
    """First identifier of a logic fragment, or "" when it has none."""
    match = _LEADING_KEYWORD.match(fragment.strip())
    return match.group(0) if match else ""


def leading_width(line: str) -> int:
    """Number of whitespace characters before the first visible one."""
    return len(line) - len(line.lstrip())


def line_number_for_index(text: str, index: int) -> int:
    """Convert a character offset to a 1-based line number (0 when missing)."""
    if index < 0:
        return 0
    return text.count("\n", 0, index) + 1


def nth_occurrence(text: str, sub: str, order: int) -> int:
    """Offset of the ``order``-th (1-based) occurrence of ``sub``, or -1."""
    index = -1
    for _ in range(order):
        index = text.find(sub, index + 1)
        if index < 0:
            return -1
    return index
