import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse

from adminpanel.core.config import settings
from adminpanel.core.cookies import (
    LOGIN_FLOW_COOKIE_NAME,
    clear_login_flow_cookie,
    read_login_flow,
    set_login_flow_cookie,
)
from adminpanel.core.csrf import csrf_protect
from adminpanel.core.errors import DashboardError, ValidationError
from adminpanel.core.logging_config import anonymise
from adminpanel.core.rate_limit import rate_limiter, submission_guard
from adminpanel.core.session import TokenStore, get_token_store
from adminpanel.domain.auth.flow import AuthFlow, AuthState
from adminpanel.domain.auth.guard import SessionGuard
from adminpanel.services import backend_api
from adminpanel.services.gateway import BackendClient, get_backend_client
from adminpanel.web.templating import form_key, redirect, render

router = APIRouter()
logger = logging.getLogger(__name__)


def _flow_from_request(request: Request, client: BackendClient, token_store: TokenStore) -> AuthFlow:
    saved = read_login_flow(request.cookies.get(LOGIN_FLOW_COOKIE_NAME))
    try:
        state = AuthState(saved.get("state") or AuthState.AWAITING_CREDENTIALS)
    except ValueError:
        state = AuthState.AWAITING_CREDENTIALS
    if state is AuthState.AUTHENTICATED:
        state = AuthState.AWAITING_CREDENTIALS
    return AuthFlow(client, token_store, state=state, email=saved.get("email"))


def _render_flow(request: Request, flow: AuthFlow, error: str | None = None, notice: str | None = None):
    template = "auth/otp.html" if flow.state is AuthState.AWAITING_OTP else "auth/login.html"
    response = render(
        request,
        template,
        {"email": flow.email or "", "error": error, "notice": notice},
        status_code=status.HTTP_400_BAD_REQUEST if error else status.HTTP_200_OK,
    )
    _persist_flow(response, flow)
    return response


def _persist_flow(response, flow: AuthFlow) -> None:
    if flow.state is AuthState.AWAITING_OTP:
        set_login_flow_cookie(response, flow.state.value, flow.email)
    else:
        clear_login_flow_cookie(response)


@router.get("/", response_class=HTMLResponse)
@router.get("/login", response_class=HTMLResponse, name="login_page")
async def login_page(
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    token_store: TokenStore = Depends(get_token_store),
):
    """Validate any stored session, otherwise show the current login step."""
    profile = await SessionGuard(client, token_store).check()
    if profile is not None:
        return redirect(request, "/dashboard")

    flow = _flow_from_request(request, client, token_store)
    return _render_flow(request, flow)


@router.post("/login", dependencies=[Depends(csrf_protect)])
async def submit_credentials(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    client: BackendClient = Depends(get_backend_client),
    token_store: TokenStore = Depends(get_token_store),
):
    """Password step: ask the backend to send a one-time passcode."""
    client_host = request.client.host if request.client else "unknown"
    rate_key = f"{client_host}:{email.strip().lower()}"
    allowed = await rate_limiter.is_allowed(
        rate_key,
        settings.LOGIN_RATE_LIMIT_MAX,
        settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    )
    if not allowed:
        logger.warning("Login rate limit exceeded for identifier %s", anonymise(rate_key))
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Please try again later.",
        )

    flow = AuthFlow(client, token_store)
    async with submission_guard.hold(form_key(request, f"login:{email.strip().lower()}")):
        result = await flow.submit_credentials(email, password)

    if not result.ok:
        flow.email = email.strip()
        return _render_flow(request, flow, error=result.error)

    response = redirect(request, "/login")
    _persist_flow(response, flow)
    return response


@router.post("/login/otp", dependencies=[Depends(csrf_protect)])
async def submit_otp(
    request: Request,
    code: str = Form(""),
    client: BackendClient = Depends(get_backend_client),
    token_store: TokenStore = Depends(get_token_store),
):
    """OTP step: exchange the code for a session credential."""
    flow = _flow_from_request(request, client, token_store)
    if flow.state is not AuthState.AWAITING_OTP:
        return redirect(request, "/login")

    async with submission_guard.hold(form_key(request, f"otp:{flow.email}")):
        result = await flow.submit_otp(flow.email, code)

    if result.navigate_to:
        response = redirect(request, result.navigate_to)
        clear_login_flow_cookie(response)
        return response

    return _render_flow(request, flow, error=result.error)


@router.post("/login/back", dependencies=[Depends(csrf_protect)])
async def back_to_credentials(
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    token_store: TokenStore = Depends(get_token_store),
):
    flow = _flow_from_request(request, client, token_store)
    flow.back_to_credentials()
    response = redirect(request, "/login")
    _persist_flow(response, flow)
    return response


@router.post("/login/resend", dependencies=[Depends(csrf_protect)])
async def resend_otp(
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    token_store: TokenStore = Depends(get_token_store),
):
    flow = _flow_from_request(request, client, token_store)
    try:
        result = await flow.resend_otp()
    except ValidationError:
        return redirect(request, "/login")

    if not result.ok:
        return _render_flow(request, flow, error=result.error)
    return _render_flow(request, flow, notice="A new code has been sent.")


@router.get("/forgot-password", response_class=HTMLResponse)
async def forgot_password_page(request: Request):
    return render(request, "auth/forgot_password.html", {"email": "", "error": None})


@router.post("/forgot-password", dependencies=[Depends(csrf_protect)])
async def forgot_password(
    request: Request,
    email: str = Form(""),
    client: BackendClient = Depends(get_backend_client),
):
    """Ask the backend to email a reset code, then move on to the reset form."""
    email = email.strip()
    if not email:
        return render(
            request, "auth/forgot_password.html", {"email": email, "error": "Email is required."}, status_code=400
        )
    try:
        await backend_api.forgot_password(client, email)
    except DashboardError as exc:
        return render(
            request,
            "auth/forgot_password.html",
            {"email": email, "error": exc.message or "Failed to send reset code."},
            status_code=400,
        )
    url = request.url_for("reset_password_page").include_query_params(email=email)
    return redirect(request, str(url))


@router.get("/reset-password", response_class=HTMLResponse, name="reset_password_page")
async def reset_password_page(request: Request, email: str = ""):
    return render(request, "auth/reset_password.html", {"email": email, "error": None})


@router.post("/reset-password", dependencies=[Depends(csrf_protect)])
async def reset_password(
    request: Request,
    email: str = Form(""),
    code: str = Form(""),
    new_password: str = Form(""),
    client: BackendClient = Depends(get_backend_client),
):
    context = {"email": email.strip(), "error": None}
    if not email.strip() or not code.strip() or not new_password:
        context["error"] = "Email, code and new password are required."
        return render(request, "auth/reset_password.html", context, status_code=400)
    try:
        await backend_api.reset_password(client, email.strip(), code.strip(), new_password)
    except DashboardError as exc:
        context["error"] = exc.message or "Failed to reset password."
        return render(request, "auth/reset_password.html", context, status_code=400)
    return redirect(request, "/login")


@router.get("/logout")
async def logout(request: Request, token_store: TokenStore = Depends(get_token_store)):
    """Forget the session credential."""
    token_store.clear()
    response = redirect(request, "/login")
    clear_login_flow_cookie(response)
    return response
