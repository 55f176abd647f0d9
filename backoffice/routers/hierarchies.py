"""
Router: Jerarquías (Manager → Collection Officer)
=================================================
Listado con alta en la misma página, edición y borrado.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from backoffice.api.client import ApiClient
from backoffice.api.errors import ApiError
from backoffice.forms.base import read_form, validate_form
from backoffice.forms.users import HierarchyForm
from backoffice.middleware.authorization import (
    Action, Resource, capabilities, get_api_client, require,
)
from backoffice.models import User, UserRole
from backoffice.services.hierarchies import HierarchyService
from backoffice.services.users import UserService
from backoffice.templating import render, render_form
from backoffice.utils.listing import ListState
from backoffice.utils.pages import delete_row, fetch_entity, fetch_list, form_error, safe_options
from backoffice.utils.responses import redirect

router = APIRouter(prefix="/hierarchies", tags=["Hierarchies"])


async def _options(api: ApiClient) -> dict:
    service = UserService(api)
    return {
        "managers": await safe_options(service.get_all(role=UserRole.MANAGER.value, page_size=100)),
        "officers": await safe_options(
            service.get_all(role=UserRole.COLLECTION_OFFICER.value, page_size=100)
        ),
    }


async def _list_context(request: Request, api: ApiClient, user: User) -> dict:
    state = ListState.from_request(request, ("search",))
    page, error = await fetch_list(
        HierarchyService(api).get_all(**state.params()), "Failed to load hierarchies"
    )
    return {
        "state": state,
        "page": page,
        "error": error,
        "caps": capabilities(user, Resource.HIERARCHIES),
        "form_key": "hierarchy",
        "action": "/hierarchies",
        **await _options(api),
    }


@router.get("", response_class=HTMLResponse)
async def list_hierarchies(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.HIERARCHIES)),
):
    ctx = await _list_context(request, api, user)
    ctx.update(values={}, errors={})
    return render(request, "pages/hierarchies/list.html", ctx)


@router.post("")
async def create_hierarchy(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.HIERARCHIES, Action.CREATE)),
):
    data = await read_form(request)
    form, errors = validate_form(HierarchyForm, data)

    if form is not None:
        try:
            await HierarchyService(api).create(form.to_payload())
            return redirect(request, "/hierarchies", "Hierarchy created successfully")
        except ApiError as e:
            errors = e.errors
            form_message = form_error(e, "Failed to create hierarchy")
    else:
        form_message = None

    ctx = {"values": data, "errors": errors, "form_error": form_message,
           "form_key": "hierarchy", "action": "/hierarchies", **await _options(api)}
    return render_form(request, "hierarchies/form.html", ctx, invalid=True)


@router.get("/{hierarchy_id}/edit", response_class=HTMLResponse)
async def edit_hierarchy_page(
    hierarchy_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.HIERARCHIES, Action.EDIT)),
):
    hierarchy = await fetch_entity(HierarchyService(api).get_by_id(hierarchy_id), "hierarchy")
    ctx = {"values": HierarchyForm.initial(hierarchy), "errors": {}, "hierarchy": hierarchy,
           "form_key": "hierarchy", "action": f"/hierarchies/{hierarchy_id}/edit", **await _options(api)}
    return render_form(request, "hierarchies/form.html", ctx)


@router.post("/{hierarchy_id}/edit")
async def update_hierarchy(
    hierarchy_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.HIERARCHIES, Action.EDIT)),
):
    data = await read_form(request)
    form, errors = validate_form(HierarchyForm, data)
    form_message = None

    if form is not None:
        try:
            await HierarchyService(api).update(hierarchy_id, form.to_payload())
            return redirect(request, "/hierarchies", "Hierarchy updated successfully")
        except ApiError as e:
            errors = e.errors
            form_message = form_error(e, "Failed to update hierarchy")

    ctx = {"values": data, "errors": errors, "form_error": form_message,
           "form_key": "hierarchy", "action": f"/hierarchies/{hierarchy_id}/edit", **await _options(api)}
    return render_form(request, "hierarchies/form.html", ctx, invalid=True)


@router.post("/{hierarchy_id}/delete")
async def delete_hierarchy(
    hierarchy_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.HIERARCHIES, Action.DELETE)),
):
    return await delete_row(
        request,
        HierarchyService(api).delete(hierarchy_id),
        "/hierarchies",
        "Hierarchy deleted successfully",
        "Failed to delete hierarchy",
    )
