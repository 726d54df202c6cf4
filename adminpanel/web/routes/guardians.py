import asyncio
import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse

from adminpanel.core.csrf import csrf_protect
from adminpanel.core.logging_config import SECURITY_LOGGER_NAME
from adminpanel.core.session import require_credential
from adminpanel.services import backend_api
from adminpanel.services.gateway import BackendClient, get_backend_client
from adminpanel.web.templating import redirect, render

security_logger = logging.getLogger(SECURITY_LOGGER_NAME)

router = APIRouter(dependencies=[Depends(require_credential)])


@router.get("/guardians", response_class=HTMLResponse)
async def list_guardians(request: Request, client: BackendClient = Depends(get_backend_client)):
    """Guardians with the users bound to each of them."""
    guardians = backend_api.unwrap_list(await backend_api.list_guardians(client), "guardians", "data")
    bound = await asyncio.gather(
        *(backend_api.get_guardian_bound_users(client, guardian.get("user_id")) for guardian in guardians)
    )
    rows = [
        {**guardian, "bound_users": backend_api.unwrap_list(users, "users", "data")}
        for guardian, users in zip(guardians, bound)
    ]
    return render(request, "guardians/list.html", {"guardians": rows})


@router.post("/users/{user_id}/guardians", dependencies=[Depends(csrf_protect)])
async def bind_guardian(
    request: Request,
    user_id: str,
    guardian_id: str = Form(...),
    client: BackendClient = Depends(get_backend_client),
):
    await backend_api.bind_guardian(client, user_id, guardian_id)
    security_logger.info("Guardian bound [user_id=%s, guardian_id=%s]", user_id, guardian_id)
    return redirect(request, f"/users/{user_id}/edit")


@router.post("/users/{user_id}/guardians/{guardian_id}/delete", dependencies=[Depends(csrf_protect)])
async def unbind_guardian(
    request: Request,
    user_id: str,
    guardian_id: str,
    client: BackendClient = Depends(get_backend_client),
):
    await backend_api.unbind_guardian(client, user_id, guardian_id)
    security_logger.info("Guardian unbound [user_id=%s, guardian_id=%s]", user_id, guardian_id)
    return redirect(request, f"/users/{user_id}/edit")
