"""Admin account management pages."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse

from adminpanel.core.admin import get_admin_directory
from adminpanel.core.csrf import csrf_protect
from adminpanel.core.errors import ValidationError
from adminpanel.core.rate_limit import submission_guard
from adminpanel.core.session import require_credential
from adminpanel.domain.admins.schemas import AdminCreate, AdminOut, AdminUpdate
from adminpanel.domain.admins.services import AdminDirectoryService
from adminpanel.web.templating import form_key, redirect, render

router = APIRouter(prefix="/admins", dependencies=[Depends(require_credential)])


async def _get_admin_or_404(admin_id: int, directory: AdminDirectoryService) -> AdminOut:
    admin = await directory.get(admin_id)
    if admin is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    return admin


@router.get("", response_class=HTMLResponse)
async def list_admins(
    request: Request,
    q: str = "",
    directory: AdminDirectoryService = Depends(get_admin_directory),
):
    admins = await directory.search(q) if q.strip() else await directory.list()
    return render(request, "admins/list.html", {"admins": admins, "query": q})


@router.get("/new", response_class=HTMLResponse)
async def new_admin_form(request: Request):
    return render(request, "admins/form.html", {"admin": None, "form": {}, "error": None})


@router.post("/new", dependencies=[Depends(csrf_protect)])
async def create_admin(
    request: Request,
    email: str = Form(""),
    first_name: str = Form(""),
    last_name: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    directory: AdminDirectoryService = Depends(get_admin_directory),
):
    form = {"email": email, "first_name": first_name, "last_name": last_name}
    try:
        async with submission_guard.hold(form_key(request, "admin-create")):
            await directory.create(
                AdminCreate(
                    email=email,
                    first_name=first_name,
                    last_name=last_name,
                    password=password,
                    confirm_password=confirm_password,
                )
            )
    except ValidationError as exc:
        return render(
            request,
            "admins/form.html",
            {"admin": None, "form": form, "error": exc.message},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    return redirect(request, "/admins")


@router.get("/{admin_id}/edit", response_class=HTMLResponse)
async def edit_admin_form(
    request: Request,
    admin_id: int,
    directory: AdminDirectoryService = Depends(get_admin_directory),
):
    admin = await _get_admin_or_404(admin_id, directory)
    return render(request, "admins/form.html", {"admin": admin, "form": admin.model_dump(), "error": None})


@router.post("/{admin_id}/edit", dependencies=[Depends(csrf_protect)])
async def update_admin(
    request: Request,
    admin_id: int,
    email: str = Form(""),
    first_name: str = Form(""),
    last_name: str = Form(""),
    directory: AdminDirectoryService = Depends(get_admin_directory),
):
    form = {"id": admin_id, "email": email, "first_name": first_name, "last_name": last_name}
    try:
        async with submission_guard.hold(form_key(request, f"admin-edit:{admin_id}")):
            admin = await directory.update(
                admin_id, AdminUpdate(email=email, first_name=first_name, last_name=last_name)
            )
    except ValidationError as exc:
        return render(
            request,
            "admins/form.html",
            {"admin": form, "form": form, "error": exc.message},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    if admin is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    return redirect(request, "/admins")


@router.post("/{admin_id}/delete", dependencies=[Depends(csrf_protect)])
async def delete_admin(
    request: Request,
    admin_id: int,
    directory: AdminDirectoryService = Depends(get_admin_directory),
):
    await directory.delete(admin_id)
    return redirect(request, "/admins")
