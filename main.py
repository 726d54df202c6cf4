from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from adminpanel.core.config import settings
from adminpanel.core.cookies import clear_login_flow_cookie, clear_session_cookie
from adminpanel.core.database import init_db
from adminpanel.core.errors import DashboardError, DuplicateSubmissionError, SessionExpiredError
from adminpanel.core.logging_config import setup_logging
from adminpanel.core.middleware import CsrfSeedMiddleware, RequestContextMiddleware
from adminpanel.web.routes import admins, audit, auth, dashboard, guardians, health, users
from adminpanel.web.templating import render

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize app on startup."""
    if settings.ADMIN_DIRECTORY_BACKEND == "database":
        await init_db()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Administration dashboard for the scanning service",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.ALLOWED_HOSTS,
)
app.add_middleware(CsrfSeedMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(auth.router, tags=["auth"])
app.include_router(dashboard.router, tags=["dashboard"])
app.include_router(admins.router, tags=["admins"])
app.include_router(audit.router, tags=["audit"])
app.include_router(users.router, tags=["users"])
app.include_router(guardians.router, tags=["guardians"])
app.include_router(health.router, tags=["health"])


def _wants_html(request: Request) -> bool:
    accept = request.headers.get("accept") or ""
    return "application/json" not in accept or "text/html" in accept


@app.exception_handler(SessionExpiredError)
async def session_expired_handler(request: Request, exc: SessionExpiredError):
    """The backend no longer accepts the credential: forget it and start over."""
    response = RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)
    clear_session_cookie(response)
    clear_login_flow_cookie(response)
    return response


@app.exception_handler(DuplicateSubmissionError)
async def duplicate_submission_handler(request: Request, exc: DuplicateSubmissionError):
    if not _wants_html(request):
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": exc.message})
    return render(request, "errors/banner.html", {"error": exc.message}, status_code=status.HTTP_409_CONFLICT)


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    """Backend failures that a page did not handle itself become an error banner."""
    status_code = getattr(exc, "status_code", None) or status.HTTP_502_BAD_GATEWAY
    if status_code < 400:
        status_code = status.HTTP_502_BAD_GATEWAY
    message = exc.message if getattr(exc, "status_code", None) else "Could not load data from the server."
    if not _wants_html(request):
        return JSONResponse(status_code=status_code, content={"detail": message})
    return render(request, "errors/banner.html", {"error": message}, status_code=status_code)


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    if exc.status_code == status.HTTP_401_UNAUTHORIZED and _wants_html(request):
        next_url = request.url.path
        return RedirectResponse(url=f"/login?next={next_url}", status_code=status.HTTP_302_FOUND)

    if _wants_html(request) and exc.status_code >= 400:
        return render(request, "errors/banner.html", {"error": exc.detail}, status_code=exc.status_code)

    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
