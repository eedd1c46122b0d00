"""Indentation normalizer for indent-back regions.

Inside a region opened by ``<* indent-back *>`` literal lines are dedented so
that they follow the column of the outermost block opened in the region
instead of the deeply nested column they were written at. Blocks are tracked
with an explicit frame stack, pushed and popped by logic fragment
classification.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from vemtl.spec import IndentationFrame
from vemtl.syntax import (
    INDENT_BACK_OFF,
    INDENT_BACK_ON,
    MODE_TAG,
    BlockRole,
    leading_width,
)

log = logging.getLogger(__name__)


class IndentationNormalizer:
    """Stateful pass run while segments are produced, in source order."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        """Drop all region and stack state before a new compile."""
        self.active = False
        self.frames: List[IndentationFrame] = []
        self.indent_back_spaces = 0
        self.is_inside_indent_container = False

    @property
    def current_frame(self) -> Optional[IndentationFrame]:
        return self.frames[-1] if self.frames else None

    def check_code_modes(self, text: str) -> None:
        """Toggle the region from the mode markers found in literal text."""
        if INDENT_BACK_OFF in text:
            self.active = False
            log.debug("indent-back region closed")
        if INDENT_BACK_ON in text:
            self.active = True
            log.debug("indent-back region opened")

    def observe_logic(self, role: BlockRole, source_line_text: str) -> None:
        """Push or pop a frame for a logic segment.

        Args:
            role: Classification of the logic fragment.
            source_line_text: The template line the directive sits on; its
                indentation is the frame baseline.
        """
        if not self.active:
            return

        if role is BlockRole.CLOSE:
            self._pop()
        elif role is BlockRole.OPEN:
            self._push(leading_width(source_line_text))

    def _push(self, spaces: int) -> None:
        if not self.frames:
            self.indent_back_spaces = spaces
            self.is_inside_indent_container = True

        self.frames.append(
            IndentationFrame(step_number=len(self.frames) + 1, baseline_spaces=spaces)
        )

    def _pop(self) -> None:
        if self.frames:
            self.frames.pop()

        if not self.frames:
            self.indent_back_spaces = 0
            self.is_inside_indent_container = False

    def normalize_text(self, content: str) -> str:
        """Dedent each line of a literal segment relative to the open blocks."""
        if not content or not (self.active and self.is_inside_indent_container):
            return content

        frame = self.current_frame
        baseline = frame.baseline_spaces if frame else 0

        lines = []
        for line in content.split("\n"):
            own_spaces = leading_width(line)
            extra_spaces = own_spaces - baseline
            diff_of_spaces = max(own_spaces - self.indent_back_spaces - extra_spaces, 0)

            if diff_of_spaces and line.startswith(" " * diff_of_spaces):
                line = line[diff_of_spaces:]
            lines.append(line)

        return "\n".join(lines)

    @staticmethod
    def strip_mode_tags(content: str) -> str:
        return MODE_TAG.sub("", content)
