"""Construction options for a Template."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class TemplateOptions(BaseModel):
    """Immutable per-instance compiler settings."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # import name -> template content
    imports: dict[str, str] = {}
    # module name -> value, returned by require() inside templates
    modules: dict[str, Any] = {}
    template_name: str = "(anonymous template)"
    is_child_execution: bool = False
    # keep <import> directives as they are (introspection only)
    disable_imports_processing: bool = False

    @classmethod
    def coerce(cls, options: "TemplateOptions | dict[str, Any] | None") -> "TemplateOptions":
        """Accept options as a model, a plain dict or None."""
        if options is None:
            return cls()
        if isinstance(options, TemplateOptions):
            return options
        return cls.model_validate(options)
