"""Template - the public compiler object.

Wires the pipeline together:

    source --ImportResolver--> template --Tokenizer--> segments
           --CodeGenerator--> program --ExecutionEngine--> output

Generation is lazy and memoized: the program is built on the first render
(or inspection) and reused until ``set_template`` is called, so rendering
again with different data does not regenerate it.
"""

from __future__ import annotations

import ast
import logging
from typing import Any, Dict, List, Optional

from vemtl.codegen import CodeGenerator
from vemtl.engine import ExecutionEngine
from vemtl.errors import ErrorPositionMapper, TemplateErrorLogger
from vemtl.indentation import IndentationNormalizer
from vemtl.options import TemplateOptions
from vemtl.resolver import ImportResolver
from vemtl.spec import (
    DataDeclaration,
    ErrorRecord,
    GeneratedProgram,
    Segment,
    ValidationResult,
)
from vemtl.syntax import DATA_DECLARATION
from vemtl.tokenizer import Tokenizer

log = logging.getLogger(__name__)


class Template:
    """Compiles a vemtl template and renders it against data.

    Example:
        >>> Template("Hi, <$ name $>!").compile({"name": "Ana"})
        'Hi, Ana!'
    """

    def __init__(
        self,
        template: str,
        options: TemplateOptions | Dict[str, Any] | None = None,
        error_logger: Optional[TemplateErrorLogger] = None,
    ):
        """Initialize the compiler and expand the template's imports.

        Args:
            template: Template source.
            options: Construction options, as a model or a plain dict.
            error_logger: Sink that receives every ErrorRecord this instance
                produces. May be shared with other (child) templates.

        Raises:
            UnresolvedImportError: An import names a template with no content.
            ImportCycleError: The imports form a cycle.
        """
        self.options = TemplateOptions.coerce(options)
        self.template_name = self.options.template_name
        self.is_child_execution = self.options.is_child_execution
        self.error_logger = error_logger

        self.resolver = ImportResolver(self.options.imports)
        self.normalizer = IndentationNormalizer()
        self.tokenizer = Tokenizer(self.normalizer)
        self.generator = CodeGenerator(self.template_name)
        self.engine = ExecutionEngine(self.options.modules)
        self.mapper = ErrorPositionMapper(
            self.template_name, self.is_child_execution, error_logger
        )

        self.data: Any = {}
        self.latest_error: Optional[ErrorRecord] = None
        self.segments: List[Segment] = []
        self.program: Optional[GeneratedProgram] = None

        self.set_template(template)

    # -- template and data -------------------------------------------------

    def set_template(self, template: str) -> "Template":
        """Replace the source, expanding imports unless disabled."""
        self.source = template

        complete = template
        if not self.options.disable_imports_processing:
            complete = self.resolver.resolve(template)

        self.template = complete
        self.intermediate_template = complete
        self.reset_template()
        return self

    def get_template(self) -> str:
        return self.template

    def set_data(self, data: Any) -> "Template":
        self.data = data
        return self

    def get_data(self) -> Any:
        return self.data

    def reset_template(self) -> None:
        """Forget segments, program and indentation state."""
        self.segments = []
        self.program = None
        self.latest_error = None
        self.normalizer.reset()

    # -- generation --------------------------------------------------------

    def generate_code(self) -> GeneratedProgram:
        """Run the full pipeline and keep the resulting program."""
        self.reset_template()

        self.intermediate_template = self.tokenizer.preprocess(self.template)
        self.segments = self.tokenizer.tokenize(self.template, self.intermediate_template)
        self.program = self.generator.generate(self.segments)

        log.debug("Generated program %s", self.program.filename)
        return self.program

    def get_program(self) -> GeneratedProgram:
        if self.program is None:
            return self.generate_code()
        return self.program

    def get_generated_code(self) -> str:
        """The generated Python program, without running it."""
        return self.get_program().source

    def get_pre_compiled_code(self) -> str:
        return self.get_generated_code()

    # -- rendering ---------------------------------------------------------

    def compile(self, data: Any = None) -> str:
        """Render the template.

        Args:
            data: Data context; replaces the stored one when given.

        Returns:
            The rendered text.
        """
        if data is not None:
            self.set_data(data)
        return self.engine.execute(self.get_program(), self.data)

    def compile_with_error_treatment(self, data: Any = None) -> str:
        """Render, recording the template position of any failure.

        The failure is re-raised unchanged after being recorded.
        """
        try:
            return self.compile(data)
        except Exception as error:
            self.set_latest_error(error)
            raise

    async def compile_async(self, data: Any = None) -> str:
        """Render a template whose expressions may ``await``."""
        if data is not None:
            self.set_data(data)
        return await self.engine.execute_async(self.get_program(), self.data)

    async def compile_async_with_error_treatment(self, data: Any = None) -> str:
        try:
            return await self.compile_async(data)
        except Exception as error:
            self.set_latest_error(error)
            raise

    # -- errors and validation ----------------------------------------------

    def set_latest_error(self, error: BaseException) -> ErrorRecord:
        self.latest_error = self.mapper.record(error, self.program)
        return self.latest_error

    def get_latest_error(self) -> Optional[ErrorRecord]:
        return self.latest_error

    def validate(self) -> ValidationResult:
        """Statically check the generated program. Never raises."""
        return self.generator.validate(self.get_program())

    def code_is_valid(self, show_errors: bool = True) -> bool:
        result = self.validate()
        if not result.valid and show_errors:
            log.error(
                "TEMPLATE SYNTAX - ERROR DETECTED in %s (template line %d): %s",
                self.template_name,
                result.template_line,
                result.message,
            )
        return result.valid

    # -- introspection -----------------------------------------------------

    def get_imported_templates(self) -> List[str]:
        """Names imported directly by the source, without expanding them."""
        return self.resolver.imported_names(self.source)

    def get_data_declarations(self) -> Dict[str, DataDeclaration]:
        """Parse <# DATA:TYPE [ name = literal ] #> comments.

        Values are Python literals; a value that is not a literal is kept as
        its raw text.
        """
        declarations: Dict[str, DataDeclaration] = {}

        for match in DATA_DECLARATION.finditer(self.template):
            raw = match.group("value")
            try:
                value = ast.literal_eval(raw)
            except (ValueError, SyntaxError):
                value = raw

            name = match.group("name")
            declarations[name] = DataDeclaration(name=name, type=match.group("type"), value=value)

        return declarations
