import httpx
import pytest

from adminpanel.core.errors import NetworkError, RequestError, SessionExpiredError
from adminpanel.services import backend_api


async def test_bearer_attached_only_for_authenticated_calls(backend, make_client):
    backend.on("GET", "/api/user/profile", {"email": "a@example.com"})
    backend.on("POST", "/api/auth/login", {"message": "OTP sent"})
    client = make_client("tok-123")

    await client.get("/api/user/profile")
    await client.post("/api/auth/login", {"email": "a@example.com", "password": "x"}, requires_auth=False)

    profile_call, login_call = backend.calls
    assert profile_call.headers["Authorization"] == "Bearer tok-123"
    assert "Authorization" not in login_call.headers
    assert backend.body(login_call) == {"email": "a@example.com", "password": "x"}


async def test_no_bearer_when_store_is_empty(backend, make_client):
    backend.on("GET", "/api/admin/guardians", [])
    client = make_client("")

    await client.get("/api/admin/guardians")

    assert "Authorization" not in backend.calls[0].headers


async def test_success_returns_parsed_body(backend, make_client):
    backend.on("GET", "/api/admin/users/7", {"user_id": 7, "email": "u@example.com"})

    data = await backend_api.get_user(make_client("t"), 7)

    assert data == {"user_id": 7, "email": "u@example.com"}


async def test_empty_success_body_is_empty_object(backend, make_client):
    backend.on("DELETE", "/api/admin/scans/5", httpx.Response(204))

    assert await backend_api.delete_scan(make_client("t"), 5) == {}


@pytest.mark.parametrize(
    "body, expected, detail",
    [
        ({"error": "Email taken", "message": "ignored"}, "Email taken", "Email taken"),
        ({"message": "Bad input"}, "Bad input", "Bad input"),
        ({}, "HTTP 422", None),
    ],
)
async def test_error_message_precedence(backend, make_client, body, expected, detail):
    backend.on("POST", "/api/auth/login", body, status=422)

    with pytest.raises(RequestError) as excinfo:
        await backend_api.login(make_client(), "a@example.com", "pw")

    assert excinfo.value.message == expected
    assert excinfo.value.detail == detail
    assert excinfo.value.status_code == 422


async def test_non_json_error_body_falls_back_to_status(backend, make_client):
    backend.on("GET", "/api/admin/dashboard", httpx.Response(500, text="<html>boom</html>"))

    with pytest.raises(RequestError) as excinfo:
        await backend_api.get_dashboard(make_client("t"))

    assert excinfo.value.message == "HTTP 500"
    assert excinfo.value.detail is None


async def test_unauthorized_authenticated_call_signals_expired_session(backend, make_client):
    backend.on("GET", "/api/user/profile", {"error": "jwt expired"}, status=401)

    with pytest.raises(SessionExpiredError):
        await backend_api.get_profile(make_client("stale"))


async def test_unauthorized_public_call_is_plain_request_error(backend, make_client):
    backend.on("POST", "/api/auth/login", {"error": "Invalid credentials"}, status=401)

    with pytest.raises(RequestError) as excinfo:
        await backend_api.login(make_client(), "a@example.com", "wrong")

    assert not isinstance(excinfo.value, SessionExpiredError)
    assert excinfo.value.message == "Invalid credentials"


async def test_timeout_becomes_network_error(backend, make_client):
    def hang(request):
        raise httpx.ReadTimeout("timed out", request=request)

    backend.on("GET", "/api/admin/dashboard", hang)

    with pytest.raises(NetworkError):
        await backend_api.get_dashboard(make_client("t"))


async def test_connection_failure_becomes_network_error(backend, make_client):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    backend.on("GET", "/api/admin/guardians", refuse)

    with pytest.raises(NetworkError):
        await backend_api.list_guardians(make_client("t"))


async def test_list_users_passes_paging_and_trimmed_search(backend, make_client):
    backend.on("GET", "/api/admin/users", {"users": []})

    await backend_api.list_users(make_client("t"), 2, 25, "  jane ")
    await backend_api.list_users(make_client("t"), 1, 10, "   ")

    first, second = backend.calls
    assert dict(first.url.params) == {"page": "2", "limit": "25", "search": "jane"}
    assert dict(second.url.params) == {"page": "1", "limit": "10"}


def test_unwrap_list_accepts_bare_and_wrapped_lists():
    assert backend_api.unwrap_list([1, 2], "users") == [1, 2]
    assert backend_api.unwrap_list({"data": [3]}, "users", "data") == [3]
    assert backend_api.unwrap_list({"users": None}, "users") == []
    assert backend_api.unwrap_list("nope", "users") == []
