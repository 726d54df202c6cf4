"""Token store and session dependencies."""
from __future__ import annotations

from fastapi import Depends, HTTPException, Request, Response, status

from adminpanel.core.cookies import (
    SESSION_COOKIE_NAME,
    clear_session_cookie,
    read_session_credential,
    set_session_cookie,
)


class TokenStore:
    """Hold the backend bearer credential for one browser session.

    The store is a plain value holder; ``apply`` writes any change made during
    the request back onto the outgoing response as the signed session cookie.
    """

    def __init__(self, credential: str = "") -> None:
        self._credential = credential or ""
        self._changed = False

    @classmethod
    def from_request(cls, request: Request) -> "TokenStore":
        return cls(read_session_credential(request.cookies.get(SESSION_COOKIE_NAME)))

    def get(self) -> str:
        return self._credential

    def set(self, credential: str) -> None:
        self._credential = credential
        self._changed = True

    def clear(self) -> None:
        self._credential = ""
        self._changed = True

    @property
    def changed(self) -> bool:
        return self._changed

    def apply(self, response: Response) -> Response:
        """Persist pending changes onto the response cookie jar."""
        if self._changed:
            if self._credential:
                set_session_cookie(response, self._credential)
            else:
                clear_session_cookie(response)
        return response


def get_token_store(request: Request) -> TokenStore:
    """Return the request-scoped token store, creating it on first use."""
    store = getattr(request.state, "token_store", None)
    if store is None:
        store = TokenStore.from_request(request)
        request.state.token_store = store
    return store


def require_credential(token_store: TokenStore = Depends(get_token_store)) -> str:
    """Reject requests that carry no credential at all."""
    credential = token_store.get()
    if not credential:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return credential


__all__ = ["TokenStore", "get_token_store", "require_credential"]
