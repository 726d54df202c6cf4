"""End-user management: listing, editing, premium flag, scans and activity logs."""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse

from adminpanel.core.config import settings
from adminpanel.core.csrf import csrf_protect
from adminpanel.core.errors import RequestError, SessionExpiredError
from adminpanel.core.logging_config import SECURITY_LOGGER_NAME
from adminpanel.core.rate_limit import submission_guard
from adminpanel.core.session import require_credential
from adminpanel.services import backend_api
from adminpanel.services.gateway import BackendClient, get_backend_client
from adminpanel.web.templating import form_key, redirect, render

logger = logging.getLogger(__name__)
security_logger = logging.getLogger(SECURITY_LOGGER_NAME)

router = APIRouter(dependencies=[Depends(require_credential)])


@router.get("/users", response_class=HTMLResponse)
async def list_users(
    request: Request,
    page: int = 1,
    search: str = "",
    client: BackendClient = Depends(get_backend_client),
):
    page = max(page, 1)
    error = None
    users: list = []
    total_pages = 1
    try:
        data = await backend_api.list_users(client, page, settings.USERS_PAGE_SIZE, search)
        users = backend_api.unwrap_list(data, "users", "data")
        if isinstance(data, dict):
            total_pages = int(data.get("totalPages") or data.get("total_pages") or 1)
    except SessionExpiredError:
        raise
    except RequestError as exc:
        error = exc.message

    context = {"users": users, "page": page, "total_pages": total_pages, "search": search, "error": error}
    return render(request, "users/list.html", context)


@router.get("/users/{user_id}/edit", response_class=HTMLResponse)
async def edit_user_form(
    request: Request,
    user_id: str,
    client: BackendClient = Depends(get_backend_client),
):
    user, guardians, bound = await asyncio.gather(
        backend_api.get_user(client, user_id),
        backend_api.list_guardians(client),
        backend_api.get_user_guardians(client, user_id),
    )
    if isinstance(user, dict):
        user = user.get("user", user)
    context = {
        "user": user,
        "user_id": user_id,
        "guardians": backend_api.unwrap_list(guardians, "guardians", "data"),
        "bound_guardians": backend_api.unwrap_list(bound, "guardians", "data"),
        "error": None,
    }
    return render(request, "users/edit.html", context)


@router.post("/users/{user_id}/edit", dependencies=[Depends(csrf_protect)])
async def update_user(
    request: Request,
    user_id: str,
    email: str = Form(""),
    account_type: str = Form(""),
    client: BackendClient = Depends(get_backend_client),
):
    payload = {"email": email.strip(), "accountType": account_type.strip()}
    try:
        async with submission_guard.hold(form_key(request, f"user-edit:{user_id}")):
            await backend_api.update_user(client, user_id, payload)
    except SessionExpiredError:
        raise
    except RequestError as exc:
        context = {
            "user": {"user_id": user_id, **payload},
            "user_id": user_id,
            "guardians": [],
            "bound_guardians": [],
            "error": exc.message or "Failed to update user.",
        }
        return render(request, "users/edit.html", context, status_code=400)

    security_logger.info("User updated by admin [user_id=%s]", user_id)
    return redirect(request, "/users")


@router.post("/users/{user_id}/delete", dependencies=[Depends(csrf_protect)])
async def delete_user(
    request: Request,
    user_id: str,
    client: BackendClient = Depends(get_backend_client),
):
    async with submission_guard.hold(form_key(request, f"user-delete:{user_id}")):
        await backend_api.delete_user(client, user_id)
    security_logger.info("User deleted by admin [user_id=%s]", user_id)
    return redirect(request, "/users")


@router.post("/users/{user_id}/premium", dependencies=[Depends(csrf_protect)])
async def set_premium(
    request: Request,
    user_id: str,
    enabled: bool = Form(...),
    client: BackendClient = Depends(get_backend_client),
):
    if enabled:
        await backend_api.make_user_premium(client, user_id)
    else:
        await backend_api.remove_user_premium(client, user_id)
    return redirect(request, "/users")


@router.get("/users/{user_id}/scans", response_class=HTMLResponse)
async def user_scans(
    request: Request,
    user_id: str,
    email: str = "",
    client: BackendClient = Depends(get_backend_client),
):
    data = await backend_api.get_user_scans(client, user_id)
    scans = backend_api.unwrap_list(data, "data", "scans")
    return render(request, "users/scans.html", {"scans": scans, "user_id": user_id, "email": email})


@router.post("/scans/{scan_id}/delete", dependencies=[Depends(csrf_protect)])
async def delete_scan(
    request: Request,
    scan_id: str,
    user_id: str = Form(""),
    client: BackendClient = Depends(get_backend_client),
):
    await backend_api.delete_scan(client, scan_id)
    security_logger.info("Scan deleted by admin [scan_id=%s]", scan_id)
    return redirect(request, f"/users/{user_id}/scans" if user_id else "/users")


@router.get("/users/{user_id}/logs", response_class=HTMLResponse)
async def user_logs(
    request: Request,
    user_id: str,
    client: BackendClient = Depends(get_backend_client),
):
    data = await backend_api.get_user_logs(client, user_id)
    logs = backend_api.unwrap_list(data, "logs", "data")
    return render(request, "users/logs.html", {"logs": logs, "user_id": user_id})


@router.get("/users/{user_id}/activity", response_class=HTMLResponse)
async def user_activity(
    request: Request,
    user_id: str,
    client: BackendClient = Depends(get_backend_client),
):
    data = await backend_api.get_user_activity(client, user_id)
    logs = backend_api.unwrap_list(data, "activity", "logs", "data")
    return render(request, "users/logs.html", {"logs": logs, "user_id": user_id, "title": "Recent activity"})


@router.get("/users/{user_id}/transactions", response_class=HTMLResponse)
async def user_transactions(
    request: Request,
    user_id: str,
    client: BackendClient = Depends(get_backend_client),
):
    data = await backend_api.get_user_transactions(client, user_id)
    transactions = backend_api.unwrap_list(data, "transactions", "data")
    return render(request, "users/transactions.html", {"transactions": transactions, "user_id": user_id})


@router.post("/users/{user_id}/password", dependencies=[Depends(csrf_protect)])
async def reset_user_password(
    request: Request,
    user_id: str,
    password: str = Form(""),
    confirm_password: str = Form(""),
    client: BackendClient = Depends(get_backend_client),
):
    """Set a new password for an end user; the backend hashes and stores it."""
    error = None
    if not password:
        error = "Password is required."
    elif password != confirm_password:
        error = "Passwords do not match."
    else:
        try:
            async with submission_guard.hold(form_key(request, f"user-password:{user_id}")):
                await backend_api.update_user_password(client, user_id, password)
        except SessionExpiredError:
            raise
        except RequestError as exc:
            error = exc.message or "Failed to update password."

    if error:
        context = {
            "user": {"user_id": user_id},
            "user_id": user_id,
            "guardians": [],
            "bound_guardians": [],
            "error": error,
        }
        return render(request, "users/edit.html", context, status_code=400)

    security_logger.info("User password reset by admin [user_id=%s]", user_id)
    return redirect(request, f"/users/{user_id}/edit")
