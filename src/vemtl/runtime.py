"""Helpers imported by every generated program."""

from __future__ import annotations

import re
from types import SimpleNamespace
from typing import Any, List

_TRAILING_LINE_BREAK = re.compile(r"(?:\r\n|\n|\r|\u2028|\u2029)[\t ]*\Z")


class TemplateParams(SimpleNamespace):
    """Parameter bag of an imported template.

    Reading a parameter the importer did not pass gives None.
    """

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return None


def to_text(value: Any) -> str:
    return "" if value is None else str(value)


def remove_last_line_break(blocks: List[str]) -> None:
    """Drop one trailing line break from the second-to-last output chunk."""
    if len(blocks) < 2:
        return
    blocks[-2] = _TRAILING_LINE_BREAK.sub("", blocks[-2])
