"""CSRF protection for HTML form posts (double-submit cookie)."""
from __future__ import annotations

import logging
import secrets

from fastapi import HTTPException, Request, status
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from adminpanel.core.config import settings

logger = logging.getLogger(__name__)

CSRF_COOKIE_NAME = "csrf_seed"
CSRF_FORM_FIELD = "csrf_token"
SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}


class CsrfManager:
    """Issue form tokens derived from a random per-browser seed."""

    def __init__(self) -> None:
        self._serializer = URLSafeTimedSerializer(settings.SECRET_KEY, salt="csrf-form")

    @staticmethod
    def new_seed() -> str:
        return secrets.token_urlsafe(16)

    def generate(self, seed: str) -> str:
        return self._serializer.dumps({"seed": seed})

    def validate(self, token: str, seed: str, max_age: int = 4 * 3600) -> bool:
        try:
            data = self._serializer.loads(token, max_age=max_age)
        except (BadSignature, SignatureExpired):
            return False
        return isinstance(data, dict) and bool(seed) and data.get("seed") == seed


csrf_manager = CsrfManager()


def csrf_seed_for(request: Request) -> str:
    return getattr(request.state, "csrf_seed", None) or request.cookies.get(CSRF_COOKIE_NAME) or ""


def csrf_token_for(request: Request) -> str:
    """Template helper returning a token for the current browser."""
    return csrf_manager.generate(csrf_seed_for(request))


async def csrf_protect(request: Request) -> None:
    """Dependency rejecting state-changing form posts without a valid token."""
    if not settings.ENABLE_CSRF or request.method.upper() in SAFE_METHODS:
        return

    form = await request.form()
    token = form.get(CSRF_FORM_FIELD) or request.headers.get("X-CSRF-Token")
    seed = request.cookies.get(CSRF_COOKIE_NAME) or ""
    if not token or not csrf_manager.validate(str(token), seed):
        logger.warning("Rejected form post with invalid CSRF token on %s", request.url.path)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or missing CSRF token.")


__all__ = [
    "CSRF_COOKIE_NAME",
    "CSRF_FORM_FIELD",
    "SAFE_METHODS",
    "csrf_manager",
    "csrf_protect",
    "csrf_seed_for",
    "csrf_token_for",
]
