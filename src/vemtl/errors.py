"""Error position mapping and the error log sink."""

from __future__ import annotations

import logging
import traceback
from typing import Callable, List, Optional

from uuid_extensions import uuid7str

from vemtl.spec import ErrorRecord, GeneratedProgram

log = logging.getLogger(__name__)


def describe_error(error: BaseException) -> str:
    return f"{type(error).__name__}: {error}"


class TemplateErrorLogger:
    """Append-only store of error records, shareable between templates.

    A parent template and the child templates it renders can log to the same
    instance; records keep the order in which the failures were caught.
    """

    def __init__(self) -> None:
        self.errors: List[ErrorRecord] = []
        self.latest_error: Optional[ErrorRecord] = None
        self.identifier = uuid7str()
        self._on_log: Optional[Callable[[ErrorRecord], None]] = None

    def on_log(self, callback: Callable[[ErrorRecord], None]) -> None:
        """Register a callback invoked with every new record."""
        self._on_log = callback

    def log(self, record: ErrorRecord) -> None:
        self.errors.append(record)
        self.latest_error = record
        log.debug(
            "Logged error %s from %s (template line %d)",
            record.id,
            record.template_name,
            record.template_line,
        )

        if self._on_log is not None:
            self._on_log(record)

    def get(self) -> List[ErrorRecord]:
        return list(self.errors)

    def get_latest(self) -> Optional[ErrorRecord]:
        return self.latest_error

    def get_identifier(self) -> str:
        return self.identifier

    def clear(self) -> None:
        self.errors = []
        self.latest_error = None


class ErrorPositionMapper:
    """Maps a failure inside a generated program to its template line."""

    def __init__(
        self,
        template_name: str,
        is_child_execution: bool = False,
        error_logger: Optional[TemplateErrorLogger] = None,
    ):
        self.template_name = template_name
        self.is_child_execution = is_child_execution
        self.error_logger = error_logger

    @staticmethod
    def code_line(error: BaseException, program: Optional[GeneratedProgram]) -> int:
        """Line of the generated program where the failure happened, or 0.

        The outermost frame of the program is used: deeper frames with the
        same filename belong to helpers defined inside it.
        """
        if program is None:
            return 0

        if isinstance(error, SyntaxError) and error.filename == program.filename:
            return error.lineno or 0

        for frame in traceback.extract_tb(error.__traceback__):
            if frame.filename == program.filename:
                return frame.lineno or 0

        return 0

    def record(self, error: BaseException, program: Optional[GeneratedProgram]) -> ErrorRecord:
        """Build the ErrorRecord for a failure and forward it to the sink.

        The caller re-raises the original exception.
        """
        code_line = self.code_line(error, program)
        template_line = program.template_line_for(code_line) if program else 0

        record = ErrorRecord(
            template_name=self.template_name,
            code_line=code_line,
            template_line=template_line,
            is_child_execution=self.is_child_execution,
            error=describe_error(error),
        )
        log.debug(
            "%s failed at code line %d, template line %d: %s",
            self.template_name,
            code_line,
            template_line,
            record.error,
        )

        if self.error_logger is not None:
            self.error_logger.log(record)

        return record
