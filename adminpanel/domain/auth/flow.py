"""Two-step login: password first, then a one-time passcode."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from adminpanel.core.errors import DashboardError, RequestError, ValidationError
from adminpanel.core.logging_config import SECURITY_LOGGER_NAME, anonymise
from adminpanel.core.session import TokenStore
from adminpanel.services import backend_api
from adminpanel.services.gateway import BackendClient

security_logger = logging.getLogger(SECURITY_LOGGER_NAME)

DEFAULT_OTP_ERROR = "Invalid or expired OTP"
AUTHENTICATED_HOME = "/dashboard"


class AuthState(str, Enum):
    AWAITING_CREDENTIALS = "awaiting_credentials"
    AWAITING_OTP = "awaiting_otp"
    AUTHENTICATED = "authenticated"


@dataclass
class AuthStepResult:
    """Outcome of one submission: the new state plus an error or a redirect target."""

    state: AuthState
    error: Optional[str] = None
    navigate_to: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AuthFlow:
    """Login state machine.

    Each submission is a single backend call; failures leave the state where
    it was so the user can correct the input and submit again.
    """

    def __init__(
        self,
        client: BackendClient,
        token_store: TokenStore,
        state: AuthState = AuthState.AWAITING_CREDENTIALS,
        email: Optional[str] = None,
    ) -> None:
        self.client = client
        self.token_store = token_store
        self.state = state
        self.email = email

    def _result(self, error: Optional[str] = None, navigate_to: Optional[str] = None) -> AuthStepResult:
        return AuthStepResult(state=self.state, error=error, navigate_to=navigate_to)

    async def submit_credentials(self, email: str, password: str) -> AuthStepResult:
        email = (email or "").strip()
        if not email or not password:
            return self._result(error="Email and password are required.")

        try:
            await backend_api.login(self.client, email, password)
        except DashboardError as exc:
            security_logger.info("Password step rejected [email_hash=%s]", anonymise(email))
            return self._result(error=exc.message)

        self.state = AuthState.AWAITING_OTP
        self.email = email
        return self._result()

    async def submit_otp(self, email: Optional[str], code: str) -> AuthStepResult:
        if self.state is not AuthState.AWAITING_OTP:
            return self._result(error="Sign in with your password first.")

        email = (email or self.email or "").strip()
        code = (code or "").strip()
        if not code:
            return self._result(error="Enter the code sent to your email.")

        try:
            data = await backend_api.verify_login(self.client, email, code)
        except RequestError as exc:
            security_logger.info("OTP step rejected [email_hash=%s]", anonymise(email))
            return self._result(error=exc.detail or DEFAULT_OTP_ERROR)
        except DashboardError as exc:
            return self._result(error=exc.message)

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            security_logger.warning("OTP accepted without a token [email_hash=%s]", anonymise(email))
            return self._result(error=DEFAULT_OTP_ERROR)

        self.token_store.set(str(token))
        self.state = AuthState.AUTHENTICATED
        security_logger.info("Admin signed in [email_hash=%s]", anonymise(email))
        return self._result(navigate_to=AUTHENTICATED_HOME)

    def back_to_credentials(self) -> AuthStepResult:
        if self.state is AuthState.AWAITING_OTP:
            self.state = AuthState.AWAITING_CREDENTIALS
        return self._result()

    async def resend_otp(self) -> AuthStepResult:
        if self.state is not AuthState.AWAITING_OTP or not self.email:
            raise ValidationError("There is no pending sign-in to resend a code for.")
        try:
            await backend_api.resend_otp(self.client, self.email)
        except DashboardError as exc:
            return self._result(error=exc.message)
        return self._result()


__all__ = ["AuthFlow", "AuthState", "AuthStepResult", "DEFAULT_OTP_ERROR"]
