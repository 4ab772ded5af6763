"""Jinja2 rendering of outbound email bodies."""

from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from portal.core.config import constants, settings


_environment = Environment(
    loader=FileSystemLoader(str(constants.TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_email(template_name: str, **context: Any) -> str:
    """Render an email template with the portal's shared context."""
    template = _environment.get_template(f"email/{template_name}")
    return template.render(portal_base_url=settings.portal_base_url, **context)
