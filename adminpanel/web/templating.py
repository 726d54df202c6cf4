"""Shared Jinja2 environment and response helpers for the HTML routes."""
from __future__ import annotations

import os
from typing import Any

from fastapi import Request
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from adminpanel.core.config import settings
from adminpanel.core.cookies import SESSION_COOKIE_NAME
from adminpanel.core.csrf import CSRF_FORM_FIELD, csrf_token_for
from adminpanel.core.logging_config import anonymise
from adminpanel.domain.audit.services import shorten_id

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "templates")

templates = Jinja2Templates(directory=TEMPLATES_DIR)
templates.env.globals.setdefault("SESSION_COOKIE_NAME", SESSION_COOKIE_NAME)
templates.env.globals.setdefault("APP_NAME", settings.APP_NAME)
templates.env.globals.setdefault("CSRF_FORM_FIELD", CSRF_FORM_FIELD)
templates.env.globals.setdefault("csrf_token", csrf_token_for)
templates.env.filters.setdefault("shorten_id", shorten_id)


def _apply_token_store(request: Request, response: Response) -> Response:
    store = getattr(request.state, "token_store", None)
    if store is not None:
        store.apply(response)
    return response


def render(request: Request, name: str, context: dict[str, Any] | None = None, status_code: int = 200) -> Response:
    """Render a template and persist any session change made during the request."""
    payload = {"request": request}
    payload.update(context or {})
    response = templates.TemplateResponse(request, name, payload, status_code=status_code)
    return _apply_token_store(request, response)


def redirect(request: Request, url: str) -> Response:
    return _apply_token_store(request, RedirectResponse(url=url, status_code=303))


def form_key(request: Request, form_name: str) -> str:
    """Identify one form for one browser session, for the in-flight guard."""
    store = getattr(request.state, "token_store", None)
    owner = store.get() if store is not None else ""
    if not owner:
        owner = request.client.host if request.client else "unknown"
    return f"{form_name}:{anonymise(owner)}"


__all__ = ["form_key", "redirect", "render", "templates"]
