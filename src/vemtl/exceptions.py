"""vemtl Exceptions

Custom exceptions raised by the template compiler. Failures raised by the
template's own logic and expressions are never wrapped: they propagate to
the caller unchanged.
"""

from __future__ import annotations


class VemtlError(Exception):
    """Base exception for all vemtl errors."""

    pass


class TemplateImportError(VemtlError):
    """Base exception for import resolution failures."""

    pass


class UnresolvedImportError(TemplateImportError):
    """Raised when an import directive names a template with no content."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Please provide the import {name} content on the options.imports settings"
        )


class ImportCycleError(TemplateImportError):
    """Raised when a template imports itself, directly or through others."""

    def __init__(self, chain: list[str]):
        self.chain = list(chain)
        super().__init__(f"Import cycle detected: {' -> '.join(self.chain)}")


class ConfigError(VemtlError):
    """Raised when a vemtl.yaml project file cannot be used."""

    pass
