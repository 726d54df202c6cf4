"""Signed cookies carrying the backend credential and the pending login step."""
from __future__ import annotations

from typing import Any

from fastapi import Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeSerializer, URLSafeTimedSerializer

from adminpanel.core.config import settings

SESSION_COOKIE_NAME = "admin_session"
LOGIN_FLOW_COOKIE_NAME = "login_flow"

_session_serializer = URLSafeSerializer(settings.SECRET_KEY, salt="admin-session")
_flow_serializer = URLSafeTimedSerializer(settings.SECRET_KEY, salt="login-flow")


def _secure() -> bool:
    return settings.ENV.lower() == "production"


def read_session_credential(raw_value: str | None) -> str:
    """Return the credential stored in the session cookie, or '' when absent or tampered."""
    if not raw_value:
        return ""
    try:
        data = _session_serializer.loads(raw_value)
    except BadSignature:
        return ""
    if not isinstance(data, dict):
        return ""
    return str(data.get("token") or "")


def encode_session_value(credential: str) -> str:
    return _session_serializer.dumps({"token": credential})


def set_session_cookie(response: Response, credential: str) -> None:
    """Set the session cookie with secure defaults."""
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=encode_session_value(credential),
        httponly=True,
        samesite="lax",
        secure=_secure(),
    )


def clear_session_cookie(response: Response) -> None:
    """Remove the session cookie using the same security options."""
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=_secure(),
    )


def read_login_flow(raw_value: str | None) -> dict[str, Any]:
    """Decode the pending login step; expired or forged values read as empty."""
    if not raw_value:
        return {}
    try:
        data = _flow_serializer.loads(raw_value, max_age=settings.LOGIN_FLOW_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired):
        return {}
    return data if isinstance(data, dict) else {}


def set_login_flow_cookie(response: Response, state: str, email: str | None) -> None:
    response.set_cookie(
        key=LOGIN_FLOW_COOKIE_NAME,
        value=_flow_serializer.dumps({"state": state, "email": email}),
        max_age=settings.LOGIN_FLOW_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
        secure=_secure(),
    )


def clear_login_flow_cookie(response: Response) -> None:
    response.delete_cookie(
        key=LOGIN_FLOW_COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=_secure(),
    )


__all__ = [
    "LOGIN_FLOW_COOKIE_NAME",
    "SESSION_COOKIE_NAME",
    "clear_login_flow_cookie",
    "clear_session_cookie",
    "encode_session_value",
    "read_login_flow",
    "read_session_credential",
    "set_login_flow_cookie",
    "set_session_cookie",
]
