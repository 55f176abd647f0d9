"""
Router: Interacciones
=====================
- Listado (búsqueda, tipo, resultado)
- Registro de una interacción abierta
- Detalle con sus seguimientos
- Cierre (una sola vez): outcome + hora de fin + notas de cierre
- Programar un seguimiento desde la interacción
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from backoffice.config import REPORT_PAGE_SIZE
from backoffice.api.client import ApiClient
from backoffice.api.errors import ApiError
from backoffice.forms.base import read_form, validate_form
from backoffice.forms.follow_ups import InteractionFollowUpForm
from backoffice.forms.interactions import CompleteInteractionForm, InteractionForm
from backoffice.middleware.authorization import (
    Action, Resource, capabilities, get_api_client, require,
)
from backoffice.models import (
    FollowUpPriority, FollowUpType, InteractionOutcome, InteractionType, User,
)
from backoffice.services.customers import CustomerService
from backoffice.services.follow_ups import FollowUpService
from backoffice.services.interactions import InteractionService
from backoffice.services.users import UserService
from backoffice.templating import render, render_form
from backoffice.utils.formatting import format_api_datetime
from backoffice.utils.listing import ListState
from backoffice.utils.pages import fetch_entity, fetch_list, form_error, safe_options
from backoffice.utils.responses import redirect

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interactions", tags=["Interactions"])

FILTERS = ("search", "interaction_type", "outcome")
ALREADY_COMPLETED = "This interaction is already completed"


def _ahora() -> str:
    return format_api_datetime(datetime.now())


async def _get_interaction(api: ApiClient, interaction_id: str):
    return await fetch_entity(InteractionService(api).get_by_id(interaction_id), "interaction")


# ============================================================
# LISTADO
# ============================================================
@router.get("", response_class=HTMLResponse)
async def list_interactions(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.INTERACTIONS)),
):
    state = ListState.from_request(request, FILTERS)
    page, error = await fetch_list(
        InteractionService(api).get_all(**state.params()), "Failed to load interactions"
    )
    return render(request, "pages/interactions/list.html", {
        "state": state,
        "page": page,
        "error": error,
        "types": InteractionType.choices(),
        "outcomes": InteractionOutcome.choices(),
        "caps": capabilities(user, Resource.INTERACTIONS),
        "row_caps": lambda i: capabilities(user, Resource.INTERACTIONS, i),
    })


# ============================================================
# REGISTRO
# ============================================================
async def _new_context(api: ApiClient, values: dict, errors: dict = None, **extra) -> dict:
    customers = await safe_options(CustomerService(api).get_all(page_size=REPORT_PAGE_SIZE))
    loans = []
    if values.get("customer"):
        loans = await safe_options(CustomerService(api).get_loans(values["customer"]))
    return {
        "values": values,
        "errors": errors or {},
        "form_key": "interaction",
        "customers": customers,
        "loans": loans,
        "types": InteractionType.choices(),
        "action": "/interactions/new",
        **extra,
    }


@router.get("/new", response_class=HTMLResponse)
async def new_interaction_page(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.INTERACTIONS, Action.CREATE)),
):
    values = {
        "customer": request.query_params.get("customer", ""),
        "loan": request.query_params.get("loan", ""),
        "interaction_type": InteractionType.CALL.value,
        "start_time": _ahora(),
    }
    return render_form(request, "interactions/form.html", await _new_context(api, values))


@router.post("/new")
async def create_interaction(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.INTERACTIONS, Action.CREATE)),
):
    data = await read_form(request)
    form, errors = validate_form(InteractionForm, data)
    if form is None:
        return render_form(request, "interactions/form.html", await _new_context(api, data, errors), invalid=True)

    try:
        interaction = await InteractionService(api).create(form.to_payload())
    except ApiError as e:
        ctx = await _new_context(api, data, e.errors, form_error=form_error(e, "Failed to log interaction"))
        return render_form(request, "interactions/form.html", ctx, invalid=True)

    return redirect(request, f"/interactions/{interaction.id}", "Interaction logged successfully")


# ============================================================
# DETALLE
# ============================================================
@router.get("/{interaction_id}", response_class=HTMLResponse)
async def interaction_detail(
    interaction_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.INTERACTIONS)),
):
    interaction = await _get_interaction(api, interaction_id)
    follow_ups, error = await fetch_list(
        FollowUpService(api).get_all(interaction=interaction_id), "Failed to load follow-ups"
    )
    return render(request, "pages/interactions/detail.html", {
        "interaction": interaction,
        "follow_ups": follow_ups.results if follow_ups else [],
        "error": error,
        "caps": capabilities(user, Resource.INTERACTIONS, interaction),
    })


# ============================================================
# CIERRE
# ============================================================
def _complete_context(interaction, values: dict, errors: dict = None, **extra) -> dict:
    return {
        "interaction": interaction,
        "values": values,
        "errors": errors or {},
        "form_key": "complete_interaction",
        "outcomes": InteractionOutcome.choices(),
        "action": f"/interactions/{interaction.id}/complete",
        **extra,
    }


@router.get("/{interaction_id}/complete", response_class=HTMLResponse)
async def complete_interaction_page(
    interaction_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.INTERACTIONS)),
):
    interaction = await _get_interaction(api, interaction_id)
    if interaction.is_completed:
        return redirect(request, f"/interactions/{interaction_id}", ALREADY_COMPLETED, "info")

    values = {"end_time": _ahora()}
    return render_form(request, "interactions/complete.html", _complete_context(interaction, values))


@router.post("/{interaction_id}/complete")
async def complete_interaction(
    interaction_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.INTERACTIONS)),
):
    interaction = await _get_interaction(api, interaction_id)
    if interaction.is_completed:
        return redirect(request, f"/interactions/{interaction_id}", ALREADY_COMPLETED, "info")

    data = await read_form(request)
    form, errors = validate_form(CompleteInteractionForm, data)
    if form is None:
        ctx = _complete_context(interaction, data, errors)
        return render_form(request, "interactions/complete.html", ctx, invalid=True)

    try:
        await InteractionService(api).complete(interaction_id, form.to_completion_payload(interaction.notes))
    except ApiError as e:
        ctx = _complete_context(interaction, data, e.errors,
                                form_error=form_error(e, "Failed to complete interaction"))
        return render_form(request, "interactions/complete.html", ctx, invalid=True)

    return redirect(request, f"/interactions/{interaction_id}", "Interaction completed successfully")


# ============================================================
# SEGUIMIENTO DESDE LA INTERACCIÓN
# ============================================================
async def _follow_up_context(api: ApiClient, interaction, values: dict, errors: dict = None, **extra) -> dict:
    users = await safe_options(UserService(api).get_all(is_active=True, page_size=100))
    return {
        "interaction": interaction,
        "values": values,
        "errors": errors or {},
        "form_key": "interaction_follow_up",
        "users": users,
        "types": FollowUpType.choices(),
        "priorities": FollowUpPriority.choices(),
        "action": f"/interactions/{interaction.id}/follow-up",
        **extra,
    }


@router.get("/{interaction_id}/follow-up", response_class=HTMLResponse)
async def follow_up_page(
    interaction_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.INTERACTIONS, Action.CREATE_FOLLOW_UP)),
):
    interaction = await _get_interaction(api, interaction_id)
    values = {
        "follow_up_type": FollowUpType.CALL.value,
        "priority": FollowUpPriority.MEDIUM.value,
        "assigned_to": user.id,
    }
    ctx = await _follow_up_context(api, interaction, values)
    return render_form(request, "interactions/follow_up.html", ctx)


@router.post("/{interaction_id}/follow-up")
async def create_follow_up(
    interaction_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.INTERACTIONS, Action.CREATE_FOLLOW_UP)),
):
    interaction = await _get_interaction(api, interaction_id)
    data = await read_form(request)
    form, errors = validate_form(InteractionFollowUpForm, data)
    if form is None:
        ctx = await _follow_up_context(api, interaction, data, errors)
        return render_form(request, "interactions/follow_up.html", ctx, invalid=True)

    try:
        await InteractionService(api).create_follow_up(interaction_id, form.to_payload())
    except ApiError as e:
        ctx = await _follow_up_context(api, interaction, data, e.errors,
                                       form_error=form_error(e, "Failed to schedule follow-up"))
        return render_form(request, "interactions/follow_up.html", ctx, invalid=True)

    return redirect(request, f"/interactions/{interaction_id}", "Follow-up scheduled successfully")
