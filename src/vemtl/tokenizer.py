"""Tokenizer - splits an expanded template into typed segments."""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Dict, Iterator, List, Optional, Tuple

from vemtl.indentation import IndentationNormalizer
from vemtl.spec import Segment, SegmentKind
from vemtl.syntax import (
    COMMENT,
    DIRECTIVE_OPENER,
    DIRECTIVES,
    LINE_UP_LEADING_SPACE,
    LINE_UP_TRAILING_BREAK,
    LOGIC_LEADING_BREAK,
    DirectiveSyntax,
    classify_logic,
    line_number_for_index,
    nth_occurrence,
)

log = logging.getLogger(__name__)

_BY_OPENER: Dict[str, DirectiveSyntax] = {d.opener: d for d in DIRECTIVES}
_LINE_END = re.compile(r"[\r\n\u2028\u2029]")


class Tokenizer:
    """Produces the ordered segment list of a template.

    Segments are handed to the indentation normalizer as they are produced,
    so its frame stack always reflects the blocks opened so far.
    """

    def __init__(self, normalizer: Optional[IndentationNormalizer] = None):
        self.normalizer = normalizer or IndentationNormalizer()

    @staticmethod
    def preprocess(template: str) -> str:
        """Strip comments and the line breaks that logic directives swallow.

        Args:
            template: Template with imports already expanded.

        Returns:
            The intermediate template the scanner runs over.
        """
        text = COMMENT.sub("", template)
        text = LOGIC_LEADING_BREAK.sub("<%", text)
        text = LINE_UP_LEADING_SPACE.sub("<up", text)
        text = LINE_UP_TRAILING_BREAK.sub("up>", text)
        return text

    def tokenize(self, template: str, intermediate: Optional[str] = None) -> List[Segment]:
        """Split a template into TEXT, EXPRESSION and LOGIC segments.

        Args:
            template: Template with imports expanded, before preprocessing.
                Source lines are computed against this text.
            intermediate: Already preprocessed text. Computed when omitted.

        Returns:
            Segments in source order.
        """
        if intermediate is None:
            intermediate = self.preprocess(template)

        self.normalizer.reset()
        template_lines = template.split("\n")

        segments: List[Segment] = []
        occurrences: Counter[str] = Counter()
        cursor = 0

        for start, end, syntax in self._scan(intermediate):
            segments.append(self._text_segment(intermediate[cursor:start]))

            matched = intermediate[start:end]
            occurrences[matched] += 1
            offset = nth_occurrence(template, matched, occurrences[matched])
            line = line_number_for_index(template, offset)

            segments.append(self._code_segment(syntax, matched, line, template_lines))
            cursor = end

        segments.append(self._text_segment(intermediate[cursor:]))

        log.debug("Tokenized template into %d segments", len(segments))
        return segments

    def _scan(self, text: str) -> Iterator[Tuple[int, int, DirectiveSyntax]]:
        """Yield (start, end, syntax) for every directive, left to right.

        A directive holds at least one character and never crosses a line
        break; an opener without a closer on its line is plain text.
        """
        position = 0

        while True:
            opener = DIRECTIVE_OPENER.search(text, position)
            if opener is None:
                return

            syntax = _BY_OPENER[opener.group(0)]
            inner_start = opener.end()

            line_end = _LINE_END.search(text, inner_start)
            limit = line_end.start() if line_end else len(text)
            closer = text.find(syntax.closer, inner_start + 1, limit)

            if closer < 0:
                position = opener.start() + 1
                continue

            end = closer + len(syntax.closer)
            yield opener.start(), end, syntax
            position = end

    def _text_segment(self, text: str) -> Segment:
        self.normalizer.check_code_modes(text)

        content = self.normalizer.normalize_text(text)
        content = self.normalizer.strip_mode_tags(content)
        content = content.replace("\\", "\\\\")

        return Segment(content=content, original_content=text, kind=SegmentKind.TEXT)

    def _code_segment(
        self,
        syntax: DirectiveSyntax,
        matched: str,
        line: int,
        template_lines: List[str],
    ) -> Segment:
        inner = matched[len(syntax.opener) : -len(syntax.closer)]

        if syntax.kind is SegmentKind.LOGIC:
            line_text = template_lines[line - 1] if 0 < line <= len(template_lines) else ""
            self.normalizer.observe_logic(classify_logic(inner), line_text)

        return Segment(
            content=inner,
            original_content=matched,
            kind=syntax.kind,
            source_line=line,
        )
