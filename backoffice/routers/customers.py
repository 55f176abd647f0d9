"""
Router: Clientes
================
- Listado con búsqueda y filtro activo/inactivo
- Alta, detalle (préstamos + interacciones), edición y borrado
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from backoffice.api.client import ApiClient
from backoffice.api.errors import ApiError
from backoffice.forms.base import read_form, validate_form
from backoffice.forms.customers import CustomerForm
from backoffice.middleware.authorization import (
    Action, Resource, capabilities, get_api_client, require,
)
from backoffice.models import Gender, User, UserRole
from backoffice.services.customers import CustomerService
from backoffice.services.users import UserService
from backoffice.templating import render, render_form
from backoffice.utils.listing import ListState
from backoffice.utils.pages import delete_row, fetch_entity, fetch_list, form_error, safe_options
from backoffice.utils.responses import redirect

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Customers"])

FILTERS = ("search", "is_active")
CHECKBOXES = ("is_active",)


async def _form_context(api: ApiClient, values: dict, errors: dict = None, **extra) -> dict:
    officers = await safe_options(
        UserService(api).get_all(role=UserRole.COLLECTION_OFFICER.value, page_size=100)
    )
    return {
        "values": values,
        "errors": errors or {},
        "form_key": "customer",
        "genders": Gender.choices(),
        "officers": officers,
        **extra,
    }


# ============================================================
# LISTADO
# ============================================================
@router.get("", response_class=HTMLResponse)
async def list_customers(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.CUSTOMERS)),
):
    state = ListState.from_request(request, FILTERS)
    page, error = await fetch_list(
        CustomerService(api).get_all(**state.params()), "Failed to load customers"
    )
    return render(request, "pages/customers/list.html", {
        "state": state,
        "page": page,
        "error": error,
        "caps": capabilities(user, Resource.CUSTOMERS),
    })


# ============================================================
# ALTA
# ============================================================
@router.get("/new", response_class=HTMLResponse)
async def new_customer_page(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.CUSTOMERS, Action.CREATE)),
):
    values = {"gender": Gender.OTHER.value, "is_active": True}
    ctx = await _form_context(api, values, action="/customers/new", title="New Customer")
    return render_form(request, "customers/form.html", ctx)


@router.post("/new")
async def create_customer(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.CUSTOMERS, Action.CREATE)),
):
    data = await read_form(request, CHECKBOXES)
    form, errors = validate_form(CustomerForm, data)

    if form is not None:
        try:
            await CustomerService(api).create(form.to_payload())
            return redirect(request, "/customers", "Customer created successfully")
        except ApiError as e:
            ctx = await _form_context(
                api, data, e.errors, action="/customers/new", title="New Customer",
                form_error=form_error(e, "Failed to create customer"),
            )
            return render_form(request, "customers/form.html", ctx, invalid=True)

    ctx = await _form_context(api, data, errors, action="/customers/new", title="New Customer")
    return render_form(request, "customers/form.html", ctx, invalid=True)


# ============================================================
# DETALLE
# ============================================================
@router.get("/{customer_id}", response_class=HTMLResponse)
async def customer_detail(
    customer_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.CUSTOMERS)),
):
    service = CustomerService(api)
    customer = await fetch_entity(service.get_by_id(customer_id), "customer")
    loans, loans_error = await fetch_list(service.get_loans(customer_id), "Failed to load loans")
    interactions, interactions_error = await fetch_list(
        service.get_interactions(customer_id), "Failed to load interactions"
    )

    return render(request, "pages/customers/detail.html", {
        "customer": customer,
        "loans": loans.results if loans else [],
        "interactions": interactions.results if interactions else [],
        "error": loans_error or interactions_error,
        "caps": capabilities(user, Resource.CUSTOMERS, customer),
        "loan_caps": capabilities(user, Resource.LOANS),
    })


# ============================================================
# EDICIÓN
# ============================================================
@router.get("/{customer_id}/edit", response_class=HTMLResponse)
async def edit_customer_page(
    customer_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.CUSTOMERS, Action.EDIT)),
):
    customer = await fetch_entity(CustomerService(api).get_by_id(customer_id), "customer")
    ctx = await _form_context(
        api, CustomerForm.initial(customer), action=f"/customers/{customer_id}/edit",
        title=f"Edit {customer.full_name}", customer=customer,
    )
    return render_form(request, "customers/form.html", ctx)


@router.post("/{customer_id}/edit")
async def update_customer(
    customer_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.CUSTOMERS, Action.EDIT)),
):
    data = await read_form(request, CHECKBOXES)
    form, errors = validate_form(CustomerForm, data)
    action = f"/customers/{customer_id}/edit"

    if form is not None:
        try:
            await CustomerService(api).update(customer_id, form.to_payload())
            return redirect(request, f"/customers/{customer_id}", "Customer updated successfully")
        except ApiError as e:
            ctx = await _form_context(
                api, data, e.errors, action=action, title="Edit Customer",
                form_error=form_error(e, "Failed to update customer"),
            )
            return render_form(request, "customers/form.html", ctx, invalid=True)

    ctx = await _form_context(api, data, errors, action=action, title="Edit Customer")
    return render_form(request, "customers/form.html", ctx, invalid=True)


# ============================================================
# BORRADO
# ============================================================
@router.post("/{customer_id}/delete")
async def delete_customer(
    customer_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.CUSTOMERS, Action.DELETE)),
):
    return await delete_row(
        request,
        CustomerService(api).delete(customer_id),
        "/customers",
        "Customer deleted successfully",
        "Failed to delete customer",
    )
