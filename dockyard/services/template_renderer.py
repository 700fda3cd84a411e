"""Template renderer - Jinja2 rendering of service templates.

A template reference is resolved in this order:

1. the template-override catalog (original reference -> replacement path)
2. an absolute path to a template file
3. the search path: the core templates directory, then the ``templates/``
   directory of every registered plugin, most recently registered first

Rendering is a pure function of (template, context): undefined variables
are errors, nothing is escaped.
"""

import logging
import re
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
    UndefinedError,
)

from dockyard.constants import CORE_TEMPLATES_DIR
from dockyard.errors import TemplateRenderError
from dockyard.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)

_UNDEFINED_PATTERNS = (
    re.compile(r"'([^']+)' is undefined"),
    re.compile(r"has no attribute '([^']+)'"),
)


def _missing_key(error: UndefinedError) -> Optional[str]:
    message = str(error)
    for pattern in _UNDEFINED_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(1)
    return None


class TemplateRenderer:
    """Renders template references with a strict Jinja2 environment."""

    def __init__(
        self,
        search_paths: Sequence[Path] = (),
        overrides: Optional[Mapping[str, str]] = None,
        core_dir: Path = CORE_TEMPLATES_DIR,
    ):
        self.search_paths = [core_dir, *search_paths]
        self.overrides = dict(overrides or {})
        self.env = Environment(
            loader=FileSystemLoader([str(p) for p in self.search_paths]),
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    @classmethod
    def from_registry(cls, registry: PluginRegistry) -> "TemplateRenderer":
        """Renderer over the registry's plugin template directories and override catalog."""
        search_paths = list(reversed(registry.template_search_paths()))
        return cls(search_paths=search_paths, overrides=registry.catalog().template_overrides)

    def resolve(self, template: str) -> str:
        """Apply the override catalog to a template reference."""
        replacement = self.overrides.get(template)
        if replacement is not None:
            logger.debug(f"Template {template} overridden by {replacement}")
            return replacement
        return template

    def render(self, template: str, context: Mapping[str, Any]) -> str:
        """Render a template reference.

        Args:
            template: Template reference (logical name or path)
            context: Template variables

        Returns:
            Rendered text

        Raises:
            TemplateRenderError: template missing, invalid, or a variable is undefined
        """
        resolved = self.resolve(template)
        try:
            path = Path(resolved)
            if path.is_absolute():
                if not path.is_file():
                    raise TemplateRenderError(resolved, "template file not found")
                compiled = self.env.from_string(path.read_text(encoding="utf-8"))
            else:
                compiled = self.env.get_template(resolved)
            rendered = compiled.render(**context)
        except TemplateRenderError:
            raise
        except TemplateNotFound as e:
            raise TemplateRenderError(resolved, f"template not found: {e.name}") from e
        except UndefinedError as e:
            raise TemplateRenderError(resolved, str(e), missing_key=_missing_key(e)) from e
        except TemplateSyntaxError as e:
            raise TemplateRenderError(resolved, f"syntax error at line {e.lineno}: {e.message}") from e
        except TemplateError as e:
            raise TemplateRenderError(resolved, str(e)) from e

        logger.debug(f"Rendered template {resolved} ({len(rendered)} bytes)")
        return rendered
