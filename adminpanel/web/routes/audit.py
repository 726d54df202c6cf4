from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse

from adminpanel.core.config import settings
from adminpanel.core.errors import ValidationError
from adminpanel.core.session import require_credential
from adminpanel.domain.audit.services import AuditTrailQuery, AuditTrailResult, DATE_FORMAT, default_range
from adminpanel.services.gateway import BackendClient, get_backend_client
from adminpanel.web.templating import render

router = APIRouter(dependencies=[Depends(require_credential)])


@router.get("/audit-trail", response_class=HTMLResponse)
async def audit_trail(
    request: Request,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    search: str = "",
    client: BackendClient = Depends(get_backend_client),
):
    """Change log for a date range; defaults to the last few days on first load."""
    if start_date is None and end_date is None:
        start, end = default_range(settings.AUDIT_TRAIL_DEFAULT_DAYS)
        start_date, end_date = start.strftime(DATE_FORMAT), end.strftime(DATE_FORMAT)

    status_code = status.HTTP_200_OK
    try:
        result = await AuditTrailQuery(client).fetch(start_date, end_date, search)
    except ValidationError as exc:
        result = AuditTrailResult(error=exc.message)
        status_code = status.HTTP_400_BAD_REQUEST

    context = {
        "entries": result.entries,
        "error": result.error,
        "start_date": start_date or "",
        "end_date": end_date or "",
        "search": search,
    }
    return render(request, "audit/list.html", context, status_code=status_code)
