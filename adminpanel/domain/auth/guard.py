"""Validate a stored credential against the backend on entry."""
from __future__ import annotations

import logging
from typing import Any, Optional

from adminpanel.core.errors import DashboardError
from adminpanel.core.logging_config import SECURITY_LOGGER_NAME
from adminpanel.core.session import TokenStore
from adminpanel.services import backend_api
from adminpanel.services.gateway import BackendClient

security_logger = logging.getLogger(SECURITY_LOGGER_NAME)


class SessionGuard:
    """Ask the backend whether the stored credential is still good.

    Validity is decided server-side only; any failure clears the store.
    """

    def __init__(self, client: BackendClient, token_store: TokenStore) -> None:
        self.client = client
        self.token_store = token_store

    async def check(self) -> Optional[Any]:
        """Return the profile for a valid session, or ``None`` to start the login flow."""
        if not self.token_store.get():
            return None

        try:
            profile = await backend_api.get_profile(self.client)
        except DashboardError as exc:
            security_logger.info("Stored session rejected: %s", exc.message)
            self.token_store.clear()
            return None

        return profile if profile is not None else {}


__all__ = ["SessionGuard"]
