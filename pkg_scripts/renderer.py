"""
renderer.py

Responsibility: Wrap the markdown renderer's HTML fragment in a complete docs page.

The fragment is inserted verbatim; only the title is escaped. The page template ships
with the package under `templates/`.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
DOCS_TEMPLATE = "docs.html"


class RenderError(RuntimeError):
    pass


def _environment(templates_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def render_docs_page(*, body: str, title: str, templates_dir: Path = TEMPLATES_DIR) -> str:
    try:
        template = _environment(templates_dir).get_template(DOCS_TEMPLATE)
        return template.render(title=title, body=body)
    except TemplateError as e:
        raise RenderError(f"Failed rendering docs page from {templates_dir / DOCS_TEMPLATE}") from e
