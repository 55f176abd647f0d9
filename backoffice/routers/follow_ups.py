"""
Router: Seguimientos
====================
- Listado (estado + prioridad)
- Programar, completar, reprogramar y eliminar
Completar/reprogramar sólo mientras el seguimiento está PENDING.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from backoffice.config import REPORT_PAGE_SIZE
from backoffice.api.client import ApiClient
from backoffice.api.errors import ApiError
from backoffice.forms.base import read_form, validate_form
from backoffice.forms.follow_ups import CompleteFollowUpForm, FollowUpForm, RescheduleFollowUpForm
from backoffice.middleware.authorization import (
    Action, Resource, capabilities, ensure, get_api_client, require,
)
from backoffice.models import FollowUpPriority, FollowUpStatus, FollowUpType, User
from backoffice.services.customers import CustomerService
from backoffice.services.follow_ups import FollowUpService
from backoffice.services.users import UserService
from backoffice.templating import render, render_form
from backoffice.utils.listing import ListState
from backoffice.utils.pages import delete_row, fetch_entity, fetch_list, form_error, safe_options
from backoffice.utils.responses import redirect

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/follow-ups", tags=["Follow-ups"])

FILTERS = ("search", "status", "priority")
NOT_PENDING = "Only pending follow-ups can be completed or rescheduled."


async def _get_follow_up(api: ApiClient, follow_up_id: str):
    return await fetch_entity(FollowUpService(api).get_by_id(follow_up_id), "follow-up")


# ============================================================
# LISTADO
# ============================================================
@router.get("", response_class=HTMLResponse)
async def list_follow_ups(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.FOLLOW_UPS)),
):
    state = ListState.from_request(request, FILTERS, defaults={"status": FollowUpStatus.PENDING.value})
    page, error = await fetch_list(
        FollowUpService(api).get_all(**state.params()), "Failed to load follow-ups"
    )
    return render(request, "pages/follow_ups/list.html", {
        "state": state,
        "page": page,
        "error": error,
        "statuses": FollowUpStatus.choices(),
        "priorities": FollowUpPriority.choices(),
        "caps": capabilities(user, Resource.FOLLOW_UPS),
        "row_caps": lambda f: capabilities(user, Resource.FOLLOW_UPS, f),
    })


# ============================================================
# PROGRAMAR
# ============================================================
async def _new_context(api: ApiClient, values: dict, errors: dict = None, **extra) -> dict:
    customers = await safe_options(CustomerService(api).get_all(page_size=REPORT_PAGE_SIZE))
    users = await safe_options(UserService(api).get_all(is_active=True, page_size=100))
    return {
        "values": values,
        "errors": errors or {},
        "form_key": "follow_up",
        "customers": customers,
        "users": users,
        "types": FollowUpType.choices(),
        "priorities": FollowUpPriority.choices(),
        "action": "/follow-ups/new",
        **extra,
    }


@router.get("/new", response_class=HTMLResponse)
async def new_follow_up_page(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.FOLLOW_UPS, Action.CREATE)),
):
    values = {
        "customer": request.query_params.get("customer", ""),
        "follow_up_type": FollowUpType.CALL.value,
        "priority": FollowUpPriority.MEDIUM.value,
        "assigned_to": user.id,
    }
    return render_form(request, "follow_ups/form.html", await _new_context(api, values))


@router.post("/new")
async def create_follow_up(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.FOLLOW_UPS, Action.CREATE)),
):
    data = await read_form(request)
    form, errors = validate_form(FollowUpForm, data)
    if form is None:
        return render_form(request, "follow_ups/form.html", await _new_context(api, data, errors), invalid=True)

    try:
        await FollowUpService(api).create(form.to_payload())
    except ApiError as e:
        ctx = await _new_context(api, data, e.errors, form_error=form_error(e, "Failed to schedule follow-up"))
        return render_form(request, "follow_ups/form.html", ctx, invalid=True)

    return redirect(request, "/follow-ups", "Follow-up scheduled successfully")


# ============================================================
# COMPLETAR / REPROGRAMAR
# ============================================================
# accion → (form, método del servicio, template, mensaje de éxito, mensaje de error)
_ACCIONES = {
    Action.COMPLETE: (CompleteFollowUpForm, "complete", "follow_ups/complete.html",
                      "Follow-up completed successfully", "Failed to complete follow-up"),
    Action.RESCHEDULE: (RescheduleFollowUpForm, "reschedule", "follow_ups/reschedule.html",
                        "Follow-up rescheduled successfully", "Failed to reschedule follow-up"),
}


async def _action_page(action: Action, follow_up_id: str, request: Request, api: ApiClient, user: User):
    template = _ACCIONES[action][2]
    follow_up = await _get_follow_up(api, follow_up_id)
    ensure(user, Resource.FOLLOW_UPS, action, follow_up, NOT_PENDING)

    values = {}
    if action == Action.RESCHEDULE:
        values = {"scheduled_time": follow_up.scheduled_time or ""}
    ctx = {"follow_up": follow_up, "values": values, "errors": {}, "action": request.url.path}
    return render_form(request, template, ctx)


async def _action_submit(action: Action, follow_up_id: str, request: Request, api: ApiClient, user: User):
    form_cls, metodo, template, ok_message, error_message = _ACCIONES[action]
    follow_up = await _get_follow_up(api, follow_up_id)
    ensure(user, Resource.FOLLOW_UPS, action, follow_up, NOT_PENDING)

    data = await read_form(request)
    form, errors = validate_form(form_cls, data)
    ctx = {"follow_up": follow_up, "values": data, "errors": errors, "action": request.url.path}
    if form is None:
        return render_form(request, template, ctx, invalid=True)

    try:
        await getattr(FollowUpService(api), metodo)(follow_up_id, form.to_payload())
    except ApiError as e:
        ctx.update(errors=e.errors, form_error=form_error(e, error_message))
        return render_form(request, template, ctx, invalid=True)

    return redirect(request, "/follow-ups", ok_message)


@router.get("/{follow_up_id}/complete", response_class=HTMLResponse)
async def complete_page(
    follow_up_id: str, request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.FOLLOW_UPS)),
):
    return await _action_page(Action.COMPLETE, follow_up_id, request, api, user)


@router.post("/{follow_up_id}/complete")
async def complete_follow_up(
    follow_up_id: str, request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.FOLLOW_UPS)),
):
    return await _action_submit(Action.COMPLETE, follow_up_id, request, api, user)


@router.get("/{follow_up_id}/reschedule", response_class=HTMLResponse)
async def reschedule_page(
    follow_up_id: str, request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.FOLLOW_UPS)),
):
    return await _action_page(Action.RESCHEDULE, follow_up_id, request, api, user)


@router.post("/{follow_up_id}/reschedule")
async def reschedule_follow_up(
    follow_up_id: str, request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.FOLLOW_UPS)),
):
    return await _action_submit(Action.RESCHEDULE, follow_up_id, request, api, user)


@router.post("/{follow_up_id}/delete")
async def delete_follow_up(
    follow_up_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.FOLLOW_UPS, Action.DELETE)),
):
    return await delete_row(
        request,
        FollowUpService(api).delete(follow_up_id),
        "/follow-ups",
        "Follow-up deleted successfully",
        "Failed to delete follow-up",
    )
