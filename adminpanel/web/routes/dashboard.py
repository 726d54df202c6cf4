import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from adminpanel.core.errors import RequestError, SessionExpiredError
from adminpanel.core.session import require_credential
from adminpanel.services import backend_api
from adminpanel.services.gateway import BackendClient, get_backend_client
from adminpanel.web.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_credential)])


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request, client: BackendClient = Depends(get_backend_client)):
    """Landing page after sign-in: backend summary counters."""
    error = None
    summary: dict = {}
    try:
        data = await backend_api.get_dashboard(client)
        summary = data if isinstance(data, dict) else {"data": data}
    except SessionExpiredError:
        raise
    except RequestError as exc:
        logger.warning("Dashboard summary unavailable: %s", exc.message)
        error = exc.message

    return render(request, "dashboard.html", {"summary": summary, "error": error})
