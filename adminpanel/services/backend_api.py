"""One coroutine per API backend endpoint used by the dashboard."""
from __future__ import annotations

from typing import Any

from adminpanel.services.gateway import BackendClient


def unwrap_list(data: Any, *keys: str) -> list:
    """List endpoints answer either a bare list or an object wrapping one."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


# Auth

async def login(client: BackendClient, email: str, password: str) -> Any:
    return await client.post("/api/auth/login", {"email": email, "password": password}, requires_auth=False)


async def verify_login(client: BackendClient, email: str, code: str) -> Any:
    return await client.post("/api/auth/verify-login", {"email": email, "codeValue": code}, requires_auth=False)


async def resend_otp(client: BackendClient, email: str) -> Any:
    return await client.post("/api/auth/resend-otp", {"email": email}, requires_auth=False)


async def forgot_password(client: BackendClient, email: str) -> Any:
    return await client.post("/api/auth/forgot-password", {"email": email}, requires_auth=False)


async def reset_password(client: BackendClient, email: str, code: str, new_password: str) -> Any:
    return await client.post(
        "/api/auth/reset-password",
        {"email": email, "codeValue": code, "newPassword": new_password},
        requires_auth=False,
    )


# Current user

async def get_profile(client: BackendClient) -> Any:
    return await client.get("/api/user/profile")


# Admin: dashboard and users

async def get_dashboard(client: BackendClient) -> Any:
    return await client.get("/api/admin/dashboard")


async def list_users(client: BackendClient, page: int = 1, limit: int = 10, search: str = "") -> Any:
    params: dict[str, Any] = {"page": page, "limit": limit}
    if search and search.strip():
        params["search"] = search.strip()
    return await client.get("/api/admin/users", params=params)


async def get_user(client: BackendClient, user_id: int | str) -> Any:
    return await client.get(f"/api/admin/users/{user_id}")


async def create_user(
    client: BackendClient,
    email: str,
    password: str,
    account_type: str,
    is_premium_user: bool = False,
    scan_count: int = 0,
    **extra: Any,
) -> Any:
    payload = {
        "email": email,
        "password": password,
        "accountType": account_type,
        "isPremiumUser": is_premium_user,
        "scanCount": scan_count,
    }
    payload.update(extra)
    return await client.post("/api/admin/users", payload)


async def update_user(client: BackendClient, user_id: int | str, data: dict[str, Any]) -> Any:
    return await client.put(f"/api/admin/users/{user_id}", data)


async def update_user_password(client: BackendClient, user_id: int | str, password: str) -> Any:
    return await client.put(f"/api/admin/users/{user_id}/password", {"password": password})


async def delete_user(client: BackendClient, user_id: int | str) -> Any:
    return await client.delete(f"/api/admin/users/{user_id}")


async def make_user_premium(client: BackendClient, user_id: int | str) -> Any:
    return await client.put(f"/api/admin/users/{user_id}/make-premium")


async def remove_user_premium(client: BackendClient, user_id: int | str) -> Any:
    return await client.put(f"/api/admin/users/{user_id}/remove-premium")


# Admin: scans and activity

async def get_user_scans(client: BackendClient, user_id: int | str) -> Any:
    return await client.get(f"/api/admin/users/{user_id}/scans")


async def delete_scan(client: BackendClient, scan_id: int | str) -> Any:
    return await client.delete(f"/api/admin/scans/{scan_id}")


async def get_user_logs(client: BackendClient, user_id: int | str) -> Any:
    return await client.get(f"/api/admin/users/{user_id}/logs")


async def get_user_activity(client: BackendClient, user_id: int | str) -> Any:
    return await client.get(f"/api/admin/users/{user_id}/activity")


async def get_user_transactions(client: BackendClient, user_id: int | str) -> Any:
    return await client.get(f"/api/admin/users/{user_id}/transactions")


# Admin: guardians

async def list_guardians(client: BackendClient) -> Any:
    return await client.get("/api/admin/guardians")


async def get_guardian_bound_users(client: BackendClient, guardian_id: int | str) -> Any:
    return await client.get(f"/api/admin/guardians/{guardian_id}/bound-users")


async def get_user_guardians(client: BackendClient, user_id: int | str) -> Any:
    return await client.get(f"/api/admin/users/{user_id}/guardians")


async def bind_guardian(client: BackendClient, user_id: int | str, guardian_id: int | str) -> Any:
    return await client.post(f"/api/admin/users/{user_id}/guardians", {"guardianId": guardian_id})


async def unbind_guardian(client: BackendClient, user_id: int | str, guardian_id: int | str) -> Any:
    return await client.delete(f"/api/admin/users/{user_id}/guardians/{guardian_id}")


# Admin: audit trail

async def get_audit_trail(client: BackendClient, start_date: str, end_date: str, search: str | None = None) -> Any:
    params = {"startDate": start_date, "endDate": end_date}
    if search:
        params["search"] = search
    return await client.get("/api/admin/audit-trail", params=params)
