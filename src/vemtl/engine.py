"""Execution engine - runs a generated program against a data context.

The program runs as module-level code whose globals are a fresh namespace
built from the data context, so unqualified names inside logic and
expressions resolve to data fields. The caller's data object is never
modified.
"""

from __future__ import annotations

import builtins
import inspect
import logging
import types
from collections.abc import Mapping
from types import CodeType
from typing import Any, Dict, Optional

from vemtl.codegen import OUTPUT_NAME, RESERVED_NAMES, compile_program
from vemtl.spec import GeneratedProgram

log = logging.getLogger(__name__)


def context_as_dict(data: Any) -> Dict[str, Any]:
    """Expose a data context as a name -> value mapping."""
    if data is None:
        return {}
    if isinstance(data, Mapping):
        return dict(data)
    if hasattr(data, "__dict__"):
        return dict(vars(data))
    raise TypeError(
        f"Template data must be a mapping or an object with attributes, got {type(data).__name__}"
    )


class ExecutionEngine:
    """Compiles and runs generated programs, sync or async."""

    def __init__(self, modules: Optional[Mapping[str, Any]] = None):
        """Initialize the engine.

        Args:
            modules: Values returned by ``require(name)`` inside templates.
        """
        self.modules: Dict[str, Any] = dict(modules or {})
        self._code_cache: Dict[bool, CodeType] = {}
        self._cached_filename: Optional[str] = None

    def require(self, name: str) -> Any:
        return self.modules.get(name)

    def helpers(self) -> Dict[str, Any]:
        return {"require": self.require}

    def build_namespace(self, data: Any) -> Dict[str, Any]:
        """Merge helper bindings and the data context.

        A data field named like a helper wins over the helper. Fields named
        like program internals are overwritten when the program starts.
        """
        context = context_as_dict(data)
        helpers = self.helpers()

        for name in helpers.keys() & context.keys():
            log.warning("Data field %r shadows the %r template helper", name, name)
        for name in sorted(RESERVED_NAMES & context.keys()):
            log.warning("Data field %r is reserved and will be overwritten", name)

        namespace: Dict[str, Any] = {"__builtins__": builtins}
        namespace.update(helpers)
        namespace.update(context)
        return namespace

    def code_for(self, program: GeneratedProgram, allow_await: bool) -> CodeType:
        """Compiled code for a program, cached until another program runs."""
        if program.filename != self._cached_filename:
            self._code_cache.clear()
            self._cached_filename = program.filename

        code = self._code_cache.get(allow_await)
        if code is None:
            code = compile_program(program, allow_await=allow_await)
            self._code_cache[allow_await] = code
        return code

    def execute(self, program: GeneratedProgram, data: Any = None) -> str:
        """Run the program synchronously and return the rendered text."""
        code = self.code_for(program, allow_await=False)
        namespace = self.build_namespace(data)

        exec(code, namespace)
        return namespace[OUTPUT_NAME]

    async def execute_async(self, program: GeneratedProgram, data: Any = None) -> str:
        """Run the program, awaiting any top-level ``await`` it contains."""
        code = self.code_for(program, allow_await=True)
        namespace = self.build_namespace(data)

        # Module code with top-level await evaluates to a coroutine.
        result = types.FunctionType(code, namespace)()
        if inspect.isawaitable(result):
            await result
        return namespace[OUTPUT_NAME]
