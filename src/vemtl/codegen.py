"""Code generator - turns segments into an annotated Python program."""

from __future__ import annotations

import ast
import itertools
import logging
from dataclasses import dataclass
from types import CodeType
from typing import List, Sequence

from vemtl.spec import (
    GeneratedProgram,
    Segment,
    SegmentKind,
    Statement,
    ValidationResult,
)
from vemtl.syntax import BlockRole, classify_logic, leading_keyword

log = logging.getLogger(__name__)

PREAMBLE = [
    "from vemtl.runtime import TemplateParams, to_text as _text",
    "from vemtl.runtime import remove_last_line_break as _remove_last_line_break",
    "_blocks = []",
    "template_params = TemplateParams()",
    "def remove_last_line_break():",
    "    _remove_last_line_break(_blocks)",
]

OUTPUT_NAME = "_output"
EPILOGUE = [f'{OUTPUT_NAME} = "".join(_blocks)']

RESERVED_NAMES = frozenset(
    {"_blocks", "_text", "_remove_last_line_break", "TemplateParams",
     "template_params", "remove_last_line_break", OUTPUT_NAME}
)

_program_ids = itertools.count(1)


def to_literal(content: str) -> str:
    """Wrap already backslash-escaped text in a double-quoted literal."""
    content = (
        content.replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
        .replace("\x00", "\\x00")
    )
    return f'"{content}"'


def compile_program(program: GeneratedProgram, allow_await: bool = False) -> CodeType:
    """Compile the program text; top-level ``await`` only when allowed."""
    flags = ast.PyCF_ALLOW_TOP_LEVEL_AWAIT if allow_await else 0
    return compile(program.source, program.filename, "exec", flags=flags)


@dataclass
class OpenBlock:
    """A block opened by a logic fragment and not closed yet."""

    keyword: str
    has_body: bool = False


class CodeGenerator:
    """Generates a GeneratedProgram from template segments.

    Python delimits blocks by indentation, so the generator keeps a stack of
    open blocks: opening fragments push, ``end``/``}`` pops, and ``else:``
    style fragments pop and push again at the same level.
    """

    def __init__(self, template_name: str = "(anonymous template)"):
        self.template_name = template_name
        self._statements: List[Statement] = []
        self._open: List[OpenBlock] = []
        self._last_line = 0

    def generate(self, segments: Sequence[Segment]) -> GeneratedProgram:
        """Generate the program for a segment sequence.

        Args:
            segments: Segments in source order.

        Returns:
            A fresh program; nothing is shared with previous generations.
        """
        self._statements = []
        self._open = []
        self._last_line = 0

        for segment in segments:
            if segment.kind is SegmentKind.TEXT:
                self._text(segment)
            elif segment.kind is SegmentKind.EXPRESSION:
                self._last_line = segment.source_line
                self._emit(f"_blocks.append(_text({segment.content}))", segment.source_line)
            else:
                self._last_line = segment.source_line
                self._logic(segment)

        while self._open:
            log.warning(
                "Template %s leaves a block open; closing it at the end",
                self.template_name,
            )
            self._close_block(0)

        program = GeneratedProgram(
            filename=f"<template {self.template_name} #{next(_program_ids)}>",
            preamble=list(PREAMBLE),
            statements=self._statements,
            epilogue=list(EPILOGUE),
        )
        log.debug(
            "Generated %d statements for %s", len(program.statements), self.template_name
        )
        return program

    def _text(self, segment: Segment) -> None:
        # only case clauses may sit directly inside a match block
        if self._open and self._open[-1].keyword == "match" and not segment.content.strip():
            return

        # TEXT has no directive of its own: it reports the one before it
        self._emit(f"_blocks.append({to_literal(segment.content)})", self._last_line)

    def _logic(self, segment: Segment) -> None:
        code = segment.content.strip()
        if not code:
            return

        line = segment.source_line
        role = classify_logic(code)

        if role is BlockRole.CLOSE and self._open:
            self._close_block(line)
            return

        if role is BlockRole.CONTINUE and self._open:
            self._close_block(line)
            self._emit(code, line)
            self._open.append(OpenBlock(leading_keyword(code)))
            return

        if role is BlockRole.OPEN:
            self._emit(code, line)
            self._open.append(OpenBlock(leading_keyword(code)))
            return

        if role in (BlockRole.CLOSE, BlockRole.CONTINUE):
            log.warning(
                "Unbalanced block fragment %r at line %d of %s",
                code,
                line,
                self.template_name,
            )

        self._emit(code, line)

    def _emit(self, code: str, line: int) -> None:
        self._statements.append(Statement(code=code, template_line=line, depth=len(self._open)))
        if self._open:
            self._open[-1].has_body = True

    def _close_block(self, line: int) -> None:
        if not self._open[-1].has_body:
            self._emit("pass", line)
        self._open.pop()

    @staticmethod
    def validate(program: GeneratedProgram, allow_await: bool = True) -> ValidationResult:
        """Check the program compiles, without running it. Never raises."""
        try:
            compile_program(program, allow_await=allow_await)
        except SyntaxError as error:
            code_line = error.lineno or 0
            return ValidationResult(
                valid=False,
                message=f"{type(error).__name__}: {error.msg}",
                code_line=code_line,
                template_line=program.template_line_for(code_line),
            )
        except ValueError as error:
            return ValidationResult(valid=False, message=f"{type(error).__name__}: {error}")

        return ValidationResult(valid=True)
