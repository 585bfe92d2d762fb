"""
Redirect Form Rendering

The bank expects the signed fields as a browser POST, so the request phase
answers with a small HTML page holding one hidden-field form that submits
itself on load. Values are escaped by the template engine's autoescaping.
"""
from pathlib import Path
from typing import Mapping

from fastapi import Request
from fastapi.templating import Jinja2Templates
from jinja2 import select_autoescape


TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
REDIRECT_FORM_TEMPLATE = "redirect_form.html"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.autoescape = select_autoescape(["html", "xml"])


def _context(fields: Mapping[str, str], action_url: str, title: str, button_label: str) -> dict:
    return {
        "fields": dict(fields),
        "action_url": action_url,
        "title": title,
        "button_label": button_label,
    }


def render_redirect_form(
    fields: Mapping[str, str],
    action_url: str,
    title: str = "Please wait...",
    button_label: str = "Click here if you are not redirected automatically",
) -> str:
    """
    Render the auto-submitting form to a string.

    IB_CRC keeps its line breaks, which browsers submit unchanged inside a
    value attribute.
    """
    template = templates.get_template(REDIRECT_FORM_TEMPLATE)
    return template.render(**_context(fields, action_url, title, button_label))


def redirect_form_response(
    request: Request,
    fields: Mapping[str, str],
    action_url: str,
    title: str,
    button_label: str,
):
    """TemplateResponse carrying the auto-submitting form."""
    return templates.TemplateResponse(
        request=request,
        name=REDIRECT_FORM_TEMPLATE,
        context=_context(fields, action_url, title, button_label),
    )
