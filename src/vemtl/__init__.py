"""vemtl - compiles text templates with embedded Python into programs"""

from vemtl._version import __version__
from vemtl.errors import ErrorPositionMapper, TemplateErrorLogger
from vemtl.exceptions import (
    ConfigError,
    ImportCycleError,
    TemplateImportError,
    UnresolvedImportError,
    VemtlError,
)
from vemtl.options import TemplateOptions
from vemtl.spec import (
    DataDeclaration,
    ErrorRecord,
    GeneratedProgram,
    Segment,
    SegmentKind,
    ValidationResult,
)
from vemtl.template import Template

__all__ = [
    "__version__",
    # compiler
    "Template",
    "TemplateOptions",
    "TemplateErrorLogger",
    "ErrorPositionMapper",
    # IR
    "DataDeclaration",
    "ErrorRecord",
    "GeneratedProgram",
    "Segment",
    "SegmentKind",
    "ValidationResult",
    # exceptions
    "VemtlError",
    "TemplateImportError",
    "UnresolvedImportError",
    "ImportCycleError",
    "ConfigError",
]
