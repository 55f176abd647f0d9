"""
Router: Usuarios
================
- Listado (búsqueda + rol) para gerencia
- Alta (sólo SUPER_MANAGER), detalle, edición y borrado
Un MANAGER no edita SUPER_MANAGERs ni asigna ese rol; nadie se borra a sí mismo.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response

from backoffice.api.client import ApiClient
from backoffice.api.errors import ApiError
from backoffice.forms.base import read_form, validate_form
from backoffice.forms.users import UserCreateForm, UserUpdateForm
from backoffice.middleware.authorization import (
    Action, Resource, capabilities, ensure, get_api_client, get_current_user, require,
)
from backoffice.models import User, UserRole
from backoffice.services.users import UserService
from backoffice.templating import render, render_form
from backoffice.utils.listing import ListState
from backoffice.utils.pages import delete_row, fetch_entity, fetch_list, form_error
from backoffice.utils.responses import is_htmx, redirect, trigger_toast

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

FILTERS = ("search", "role")
CHECKBOXES = ("is_active",)
ROLE_NOT_ALLOWED = "You cannot assign this role"


def _roles_for(user: User) -> list:
    """Roles que el usuario actual puede asignar."""
    if user.role == UserRole.SUPER_MANAGER:
        return UserRole.choices()
    return [(valor, label) for valor, label in UserRole.choices() if valor != UserRole.SUPER_MANAGER.value]


def _role_error(user: User, form) -> dict:
    if form is not None and form.role.value not in dict(_roles_for(user)):
        return {"role": ROLE_NOT_ALLOWED}
    return {}


def _context(user: User, values: dict, errors: dict = None, **extra) -> dict:
    return {
        "values": values,
        "errors": errors or {},
        "roles": _roles_for(user),
        **extra,
    }


async def _get_user(api: ApiClient, user_id: str) -> User:
    return await fetch_entity(UserService(api).get_by_id(user_id), "user")


# ============================================================
# LISTADO
# ============================================================
@router.get("", response_class=HTMLResponse)
async def list_users(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.USERS)),
):
    state = ListState.from_request(request, FILTERS)
    page, error = await fetch_list(UserService(api).get_all(**state.params()), "Failed to load users")
    return render(request, "pages/users/list.html", {
        "state": state,
        "page": page,
        "error": error,
        "roles": UserRole.choices(),
        "caps": capabilities(user, Resource.USERS),
        "row_caps": lambda u: capabilities(user, Resource.USERS, u),
    })


# ============================================================
# ALTA
# ============================================================
@router.get("/new", response_class=HTMLResponse)
async def new_user_page(
    request: Request,
    user: User = Depends(require(Resource.USERS, Action.CREATE)),
):
    values = {"role": UserRole.COLLECTION_OFFICER.value, "is_active": True}
    ctx = _context(user, values, action="/users/new", title="New User", form_key="user_create")
    return render_form(request, "users/form.html", ctx)


@router.post("/new")
async def create_user(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.USERS, Action.CREATE)),
):
    data = await read_form(request, CHECKBOXES)
    form, errors = validate_form(UserCreateForm, data)
    errors = errors or _role_error(user, form)
    data["password"] = ""
    extra = {"action": "/users/new", "title": "New User", "form_key": "user_create"}

    if errors:
        return render_form(request, "users/form.html", _context(user, data, errors, **extra), invalid=True)

    try:
        created = await UserService(api).create(form.to_payload())
    except ApiError as e:
        ctx = _context(user, data, e.errors, form_error=form_error(e, "Failed to create user"), **extra)
        return render_form(request, "users/form.html", ctx, invalid=True)

    return redirect(request, f"/users/{created.id}", "User created successfully")


# ============================================================
# DETALLE
# ============================================================
@router.get("/{user_id}", response_class=HTMLResponse)
async def user_detail(
    user_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(get_current_user),
):
    target = await _get_user(api, user_id)
    ensure(user, Resource.USERS, Action.VIEW, target)
    return render(request, "pages/users/detail.html", {
        "target": target,
        "caps": capabilities(user, Resource.USERS, target),
    })


# ============================================================
# EDICIÓN
# ============================================================
@router.get("/{user_id}/edit", response_class=HTMLResponse)
async def edit_user_page(
    user_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(get_current_user),
):
    target = await _get_user(api, user_id)
    ensure(user, Resource.USERS, Action.EDIT, target)
    ctx = _context(user, UserUpdateForm.initial(target), action=f"/users/{user_id}/edit",
                   title=f"Edit {target.full_name}", form_key="user_update", target=target)
    return render_form(request, "users/form.html", ctx)


@router.post("/{user_id}/edit")
async def update_user(
    user_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(get_current_user),
):
    target = await _get_user(api, user_id)
    ensure(user, Resource.USERS, Action.EDIT, target)

    data = await read_form(request, CHECKBOXES)
    form, errors = validate_form(UserUpdateForm, data)
    errors = errors or _role_error(user, form)
    data["password"] = ""
    extra = {"action": f"/users/{user_id}/edit", "title": f"Edit {target.full_name}",
             "form_key": "user_update", "target": target}

    if errors:
        return render_form(request, "users/form.html", _context(user, data, errors, **extra), invalid=True)

    try:
        await UserService(api).update(user_id, form.to_payload())
    except ApiError as e:
        ctx = _context(user, data, e.errors, form_error=form_error(e, "Failed to update user"), **extra)
        return render_form(request, "users/form.html", ctx, invalid=True)

    return redirect(request, f"/users/{user_id}", "User updated successfully")


# ============================================================
# BORRADO
# ============================================================
@router.post("/{user_id}/delete")
async def delete_user(
    user_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.USERS, Action.DELETE)),
):
    if user_id == user.id:
        mensaje = "You cannot delete your own account"
        if is_htmx(request):
            return trigger_toast(Response(status_code=204), mensaje, "error")
        return redirect(request, "/users", mensaje, "error")

    return await delete_row(
        request,
        UserService(api).delete(user_id),
        "/users",
        "User deleted successfully",
        "Failed to delete user",
    )
