"""
Template Renderer

Compiles and renders stored template bodies with Jinja2. Text bodies are
rendered verbatim; HTML bodies are autoescaped.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from jinja2 import Environment, StrictUndefined, TemplateError

from squishy_mailer.db import schemas

logger = logging.getLogger(__name__)


class TemplateRenderError(Exception):
    """Raised when a template body fails to compile or render."""

    def __init__(self, kind: str, message: str):
        super().__init__(f"{kind} template: {message}")
        self.kind = kind


def concatenate_files(paths: Iterable[Union[str, Path]]) -> str:
    """Join the contents of ``paths`` in the order given."""
    return "".join(Path(p).read_text(encoding="utf-8") for p in paths)


class TemplateRenderer:
    """Jinja2 environments for the text and HTML parts of an email."""

    def __init__(self):
        self.text_env = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=True)
        self.html_env = Environment(autoescape=True, undefined=StrictUndefined, keep_trailing_newline=True)

    def _compile(self, env: Environment, kind: str, source: str):
        try:
            return env.from_string(source)
        except TemplateError as e:
            raise TemplateRenderError(kind, str(e)) from e

    def validate(self, text_source: str, html_source: str) -> None:
        self._compile(self.text_env, "text", text_source)
        self._compile(self.html_env, "html", html_source)

    def render(self, template: schemas.Template, params: Optional[Dict[str, Any]] = None) -> Tuple[str, str]:
        """
        Render a stored template with ``params``.

        Returns:
            Tuple of (text_content, html_content)
        """
        params = params or {}
        rendered = []
        for env, kind, source in (
            (self.text_env, "text", template.text_body),
            (self.html_env, "html", template.html_body),
        ):
            compiled = self._compile(env, kind, source)
            try:
                rendered.append(compiled.render(**params))
            except TemplateError as e:
                logger.warning("template_render_failed: template=%s kind=%s error=%s", template.template_id, kind, e)
                raise TemplateRenderError(kind, str(e)) from e
        return rendered[0], rendered[1]
