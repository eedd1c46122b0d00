"""Compiler IR spec - segments, generated program and error records."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from uuid_extensions import uuid7str


TEMPLATE_LINE_MARKER = "# TEMPLATE_LINE:"
TEMPLATE_LINE_ANNOTATION = re.compile(r"# TEMPLATE_LINE:(\d+)\s*$")

INDENT = "    "


class SegmentKind(str, Enum):
    TEXT = "TEXT"
    EXPRESSION = "EXPRESSION"
    LOGIC = "LOGIC"


@dataclass
class Segment:
    """One classified unit of template content."""

    content: str  # escaped text, or the directive's inner code
    original_content: str  # text as found in the intermediate template
    kind: SegmentKind = SegmentKind.TEXT
    source_line: int = 0

    @property
    def is_code(self) -> bool:
        return self.kind is not SegmentKind.TEXT


@dataclass
class ImportDirective:
    """A single <import template="..."> occurrence."""

    index: int  # occurrence order in the importing text
    target_name: str
    params: List[Tuple[str, str]] = field(default_factory=list)  # (key, expr)
    start: int = 0
    end: int = 0
    indentation: str = ""  # leading whitespace of the directive's line


@dataclass
class IndentationFrame:
    step_number: int
    baseline_spaces: int


@dataclass
class Statement:
    """A generated line of Python annotated with its template line."""

    code: str
    template_line: int = 0
    depth: int = 0

    def render(self) -> str:
        return f"{INDENT * self.depth}{self.code}  {TEMPLATE_LINE_MARKER}{self.template_line}"


@dataclass
class GeneratedProgram:
    """Complete generated program IR."""

    filename: str
    preamble: List[str] = field(default_factory=list)
    statements: List[Statement] = field(default_factory=list)
    epilogue: List[str] = field(default_factory=list)

    def lines(self) -> List[str]:
        return (
            list(self.preamble)
            + [statement.render() for statement in self.statements]
            + list(self.epilogue)
        )

    @property
    def source(self) -> str:
        return "\n".join(self.lines()) + "\n"

    def template_line_for(self, code_line: int) -> int:
        """Read the template line off the statement at a 1-based code line.

        Lines without an annotation (helper boilerplate) map to 0.
        """
        if not code_line:
            return 0

        lines = self.lines()
        if code_line < 1 or code_line > len(lines):
            return 0

        match = TEMPLATE_LINE_ANNOTATION.search(lines[code_line - 1])
        return int(match.group(1)) if match else 0


@dataclass
class DataDeclaration:
    """A <# DATA:TYPE [ name = literal ] #> declaration."""

    name: str
    type: str
    value: Any = None


@dataclass
class ValidationResult:
    """Outcome of a static check of the generated program."""

    valid: bool
    message: Optional[str] = None
    code_line: int = 0
    template_line: int = 0


class ErrorRecord(BaseModel):
    """A runtime failure mapped back to its template position."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=uuid7str)
    template_name: str
    code_line: int = 0
    template_line: int = 0
    is_child_execution: bool = False
    error: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
