"""Configuration parsing for vemtl.yaml"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from vemtl.exceptions import ConfigError
from vemtl.options import TemplateOptions

log = logging.getLogger(__name__)

CONFIG_FILENAME = "vemtl.yaml"


class ProjectConfig(BaseModel):
    """Full vemtl.yaml configuration.

    Example:
        template_name: model.vemtl
        imports:
          Greetings.vemtl: partials/greetings.vemtl
        modules:
          textwrap: textwrap
    """

    template_name: str | None = None
    # import name -> path of the template file, relative to the config file
    imports: dict[str, str] = {}
    # name exposed to require() -> dotted module path
    modules: dict[str, str] = {}

    # directory the config was loaded from; import paths resolve against it
    base_dir: Path = Path(".")

    @classmethod
    def load(cls, path: Path) -> "ProjectConfig":
        """Load config from yaml file"""
        if not path.exists():
            return cls(base_dir=path.parent)

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping")

        try:
            return cls.model_validate({**data, "base_dir": path.parent})
        except ValidationError as exc:
            raise ConfigError(f"Invalid {path}: {exc}") from exc

    def load_imports(self) -> dict[str, str]:
        """Read every import file into a name -> content table."""
        contents: dict[str, str] = {}
        for name, relative in self.imports.items():
            path = self.base_dir / relative
            try:
                contents[name] = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ConfigError(f"Cannot read import {name} from {path}: {exc}") from exc
            log.debug("Loaded import %s from %s", name, path)
        return contents

    def load_modules(self) -> dict[str, Any]:
        modules: dict[str, Any] = {}
        for name, dotted in self.modules.items():
            try:
                modules[name] = importlib.import_module(dotted)
            except ImportError as exc:
                raise ConfigError(f"Cannot import module {dotted} for {name}: {exc}") from exc
        return modules

    def to_options(self, template_name: str | None = None) -> TemplateOptions:
        """Build the TemplateOptions for a template of this project."""
        return TemplateOptions(
            imports=self.load_imports(),
            modules=self.load_modules(),
            template_name=template_name or self.template_name or "(anonymous template)",
        )


def find_config_file(start: Path | None = None) -> Path | None:
    """Find vemtl.yaml in the given directory or its parents."""
    cwd = start or Path.cwd()
    for parent in [cwd] + list(cwd.parents):
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None
