import pytest

from adminpanel.core.config import settings
from adminpanel.core.cookies import LOGIN_FLOW_COOKIE_NAME, SESSION_COOKIE_NAME, read_session_credential


def test_login_page_without_session_shows_password_form(web, backend):
    response = web.get("/login")

    assert response.status_code == 200
    assert 'name="password"' in response.text
    assert backend.calls == []


def test_login_page_with_valid_session_goes_to_dashboard(signed_in, backend):
    backend.on("GET", "/api/user/profile", {"email": "admin@example.com"})

    response = signed_in.get("/")

    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"


def test_login_page_with_rejected_session_clears_cookie(signed_in, backend):
    backend.on("GET", "/api/user/profile", {"error": "jwt expired"}, status=401)

    response = signed_in.get("/login")

    assert response.status_code == 200
    assert 'name="password"' in response.text
    assert f'{SESSION_COOKIE_NAME}=""' in response.headers["set-cookie"]


def test_two_step_login_stores_credential(web, backend):
    backend.on("POST", "/api/auth/login", {"message": "OTP sent"})
    backend.on("POST", "/api/auth/verify-login", {"token": "jwt-xyz"})

    step_one = web.post("/login", data={"email": "admin@example.com", "password": "pw"})
    assert step_one.status_code == 303
    assert step_one.headers["location"] == "/login"
    assert web.cookies.get(LOGIN_FLOW_COOKIE_NAME)
    assert not web.cookies.get(SESSION_COOKIE_NAME)

    otp_page = web.get("/login")
    assert 'name="code"' in otp_page.text
    assert "admin@example.com" in otp_page.text

    step_two = web.post("/login/otp", data={"code": "123456"})
    assert step_two.status_code == 303
    assert step_two.headers["location"] == "/dashboard"
    assert read_session_credential(web.cookies.get(SESSION_COOKIE_NAME)) == "jwt-xyz"
    assert backend.body(backend.calls[-1]) == {"email": "admin@example.com", "codeValue": "123456"}


def test_bad_password_shows_backend_error(web, backend):
    backend.on("POST", "/api/auth/login", {"error": "Invalid email or password"}, status=401)

    response = web.post("/login", data={"email": "admin@example.com", "password": "nope"})

    assert response.status_code == 400
    assert "Invalid email or password" in response.text
    assert not web.cookies.get(LOGIN_FLOW_COOKIE_NAME)


def test_wrong_otp_stays_on_code_form(web, backend):
    backend.on("POST", "/api/auth/login", {"message": "OTP sent"})
    backend.on("POST", "/api/auth/verify-login", {}, status=400)
    web.post("/login", data={"email": "admin@example.com", "password": "pw"})

    response = web.post("/login/otp", data={"code": "000000"})

    assert response.status_code == 400
    assert "Invalid or expired OTP" in response.text
    assert 'name="code"' in response.text
    assert not web.cookies.get(SESSION_COOKIE_NAME)


def test_otp_without_password_step_redirects_to_login(web, backend):
    response = web.post("/login/otp", data={"code": "123456"})

    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert backend.calls == []


def test_back_returns_to_password_form(web, backend):
    backend.on("POST", "/api/auth/login", {"message": "OTP sent"})
    web.post("/login", data={"email": "admin@example.com", "password": "pw"})

    web.post("/login/back")

    assert 'name="password"' in web.get("/login").text


def test_login_is_rate_limited(web, backend, monkeypatch):
    monkeypatch.setattr(settings, "LOGIN_RATE_LIMIT_MAX", 2)
    backend.on("POST", "/api/auth/login", {"error": "Invalid email or password"}, status=401)

    for _ in range(2):
        assert web.post("/login", data={"email": "a@example.com", "password": "x"}).status_code == 400
    response = web.post("/login", data={"email": "a@example.com", "password": "x"})

    assert response.status_code == 429
    assert len(backend.paths("POST")) == 2


def test_forgot_and_reset_password(web, backend):
    backend.on("POST", "/api/auth/forgot-password", {"message": "sent"})
    backend.on("POST", "/api/auth/reset-password", {"message": "reset"})

    response = web.post("/forgot-password", data={"email": "admin@example.com"})
    assert response.status_code == 303
    assert "/reset-password?email=admin%40example.com" in response.headers["location"]

    response = web.post(
        "/reset-password",
        data={"email": "admin@example.com", "code": "4242", "new_password": "n3w"},
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert backend.body(backend.calls[-1]) == {"email": "admin@example.com", "codeValue": "4242", "newPassword": "n3w"}


def test_logout_clears_session(signed_in):
    response = signed_in.get("/logout")

    assert response.status_code == 303
    assert f'{SESSION_COOKIE_NAME}=""' in response.headers["set-cookie"]


def test_protected_page_without_session_redirects(web, backend):
    response = web.get("/dashboard")

    assert response.status_code == 302
    assert response.headers["location"].startswith("/login")
    assert backend.calls == []


def test_expired_session_mid_use_redirects_and_clears(signed_in, backend):
    backend.on("GET", "/api/admin/dashboard", {"error": "jwt expired"}, status=401)

    response = signed_in.get("/dashboard")

    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert f'{SESSION_COOKIE_NAME}=""' in response.headers["set-cookie"]


@pytest.fixture
def csrf_on(web, monkeypatch):
    monkeypatch.setattr(settings, "ENABLE_CSRF", True)
    return web


def test_form_post_without_csrf_token_is_rejected(csrf_on, backend):
    csrf_on.get("/login")

    response = csrf_on.post("/login", data={"email": "admin@example.com", "password": "pw"})

    assert response.status_code == 403
    assert backend.calls == []


def test_form_post_with_csrf_token_is_accepted(csrf_on, backend):
    backend.on("POST", "/api/auth/login", {"message": "OTP sent"})
    page = csrf_on.get("/login")
    token = page.text.split('name="csrf_token" value="', 1)[1].split('"', 1)[0]

    response = csrf_on.post("/login", data={"email": "admin@example.com", "password": "pw", "csrf_token": token})

    assert response.status_code == 303
