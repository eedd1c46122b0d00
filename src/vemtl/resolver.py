"""Resolver - expands <import> directives before tokenization.

Import expansion is purely textual:
- every directive is indexed in occurrence order, so repeated imports of the
  same template are spliced independently
- the imported content is resolved first (pre-order), then receives its
  parameter preamble and the restore of the caller's parameters, then the
  indentation of the directive's line
- the whole pass aborts on the first unknown import or import cycle
"""

from __future__ import annotations

import itertools
import logging
import re
from typing import List, Mapping, Optional, Sequence

from vemtl.exceptions import ImportCycleError, UnresolvedImportError
from vemtl.spec import ImportDirective
from vemtl.syntax import IMPORT_DIRECTIVE, IMPORT_PARAM

log = logging.getLogger(__name__)

_LINE_INDENTATION = re.compile(r"[\t ]*")


class ImportResolver:
    """Resolves <import template="..."> directives against an import table."""

    def __init__(self, imports: Optional[Mapping[str, str]] = None):
        """Initialize resolver with the import name -> template content table.

        Args:
            imports: Template contents keyed by the name used in directives.
        """
        self.imports: Mapping[str, str] = imports or {}
        self._expansion_ids = itertools.count(1)

    def parse_directives(self, text: str) -> List[ImportDirective]:
        """Find the import directives of a text, without substituting them.

        Args:
            text: Template text to scan.

        Returns:
            Directives in occurrence order.
        """
        directives: List[ImportDirective] = []

        for index, match in enumerate(IMPORT_DIRECTIVE.finditer(text)):
            line_start = text.rfind("\n", 0, match.start()) + 1
            indentation = _LINE_INDENTATION.match(text, line_start).group(0)

            directives.append(
                ImportDirective(
                    index=index,
                    target_name=match.group("name"),
                    params=IMPORT_PARAM.findall(match.group("params")),
                    start=match.start(),
                    end=match.end(),
                    indentation=indentation,
                )
            )

        return directives

    def imported_names(self, text: str) -> List[str]:
        """Top-level import targets of a text, in order, without duplicates."""
        names: List[str] = []
        for directive in self.parse_directives(text):
            if directive.target_name not in names:
                names.append(directive.target_name)
        return names

    def resolve(self, text: str, chain: Sequence[str] = ()) -> str:
        """Replace every import directive with its fully resolved content.

        Args:
            text: Template text containing import directives.
            chain: Names of the templates currently being expanded, outermost
                first. Used to detect import cycles.

        Returns:
            Text with no import directives left.

        Raises:
            UnresolvedImportError: A directive names a template with no content.
            ImportCycleError: A template imports itself through the chain.
        """
        directives = self.parse_directives(text)
        if not directives:
            return text

        parts: List[str] = []
        cursor = 0

        for directive in directives:
            parts.append(text[cursor : directive.start])
            parts.append(self._expand(directive, chain))
            cursor = directive.end

        parts.append(text[cursor:])
        return "".join(parts)

    def _expand(self, directive: ImportDirective, chain: Sequence[str]) -> str:
        name = directive.target_name

        if name in chain:
            raise ImportCycleError([*chain, name])

        content = self.imports.get(name)
        if content is None:
            raise UnresolvedImportError(name)

        log.debug(
            "Expanding import %s (#%d, %d params)",
            name,
            directive.index,
            len(directive.params),
        )

        saved = f"_template_params_{next(self._expansion_ids)}"
        content = self.resolve(content, (*chain, name))
        content = self._add_params(directive, content, saved)
        return self._add_indentation(directive, content)

    def _add_params(self, directive: ImportDirective, content: str, saved: str) -> str:
        """Wrap the content with its own parameter bag.

        The caller's bag is kept under ``saved`` while the content runs and
        put back after it. The parameter expressions are evaluated before the
        new bag is bound, so they run in the importing template's context and
        may read the importer's own ``template_params``.
        """
        arguments = ", ".join(f"{key}=({expression})" for key, expression in directive.params)

        return "\n".join(
            [
                f"<% {saved} = template_params %>",
                f"<% template_params = TemplateParams({arguments}) %>",
                content,
                f"<% template_params = {saved} %>",
            ]
        )

    def _add_indentation(self, directive: ImportDirective, content: str) -> str:
        lines = content.split("\n")
        return "\n".join(
            [lines[0]] + [f"{directive.indentation}{line}" for line in lines[1:]]
        )
