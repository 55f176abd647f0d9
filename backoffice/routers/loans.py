"""
Router: Préstamos
=================
- Listado con búsqueda y filtro por estado
- Alta, detalle, edición y borrado
- Pagos del préstamo (listado + registrar pago)
- Acciones de estado: aprobar, reestructurar, castigar (write-off)

Los botones de cada acción se muestran según capabilities(user, LOANS, loan):
rol + estado del préstamo. El API vuelve a validar todo.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from backoffice.config import REPORT_PAGE_SIZE
from backoffice.api.client import ApiClient
from backoffice.api.errors import ApiError
from backoffice.forms.base import read_form, validate_form
from backoffice.forms.loans import ApproveLoanForm, LoanForm, RestructureLoanForm, WriteOffLoanForm
from backoffice.forms.payments import PaymentForm
from backoffice.middleware.authorization import (
    Action, Resource, capabilities, ensure, get_api_client, require,
)
from backoffice.models import LoanStatus, PaymentFrequency, PaymentMethod, User, UserRole
from backoffice.services.customers import CustomerService
from backoffice.services.loans import LoanService
from backoffice.services.users import UserService
from backoffice.templating import render, render_form
from backoffice.utils.listing import ListState
from backoffice.utils.formatting import format_api_date
from backoffice.utils.pages import delete_row, fetch_entity, fetch_list, form_error, safe_options
from backoffice.utils.responses import redirect

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/loans", tags=["Loans"])

FILTERS = ("search", "status")
STATUS_FORBIDDEN = "This action is not available for the loan's current status."


async def _get_loan(api: ApiClient, loan_id: str):
    return await fetch_entity(LoanService(api).get_by_id(loan_id), "loan")


async def _loan_form_context(api: ApiClient, values: dict, errors: dict = None, **extra) -> dict:
    customers = await safe_options(CustomerService(api).get_all(page_size=REPORT_PAGE_SIZE))
    officers = await safe_options(
        UserService(api).get_all(role=UserRole.COLLECTION_OFFICER.value, page_size=100)
    )
    return {
        "values": values,
        "errors": errors or {},
        "form_key": "loan",
        "customers": customers,
        "officers": officers,
        "frequencies": PaymentFrequency.choices(),
        **extra,
    }


# ============================================================
# LISTADO
# ============================================================
@router.get("", response_class=HTMLResponse)
async def list_loans(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS)),
):
    state = ListState.from_request(request, FILTERS)
    page, error = await fetch_list(LoanService(api).get_all(**state.params()), "Failed to load loans")
    return render(request, "pages/loans/list.html", {
        "state": state,
        "page": page,
        "error": error,
        "statuses": LoanStatus.choices(),
        "caps": capabilities(user, Resource.LOANS),
    })


# ============================================================
# ALTA
# ============================================================
@router.get("/new", response_class=HTMLResponse)
async def new_loan_page(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS, Action.CREATE)),
):
    values = {
        "customer": request.query_params.get("customer", ""),
        "payment_frequency": PaymentFrequency.MONTHLY.value,
        "application_date": format_api_date(date.today()),
    }
    ctx = await _loan_form_context(api, values, action="/loans/new", title="New Loan")
    return render_form(request, "loans/form.html", ctx)


@router.post("/new")
async def create_loan(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS, Action.CREATE)),
):
    data = await read_form(request)
    form, errors = validate_form(LoanForm, data)

    if form is not None:
        try:
            loan = await LoanService(api).create(form.to_payload())
            return redirect(request, f"/loans/{loan.id}", "Loan created successfully")
        except ApiError as e:
            ctx = await _loan_form_context(
                api, data, e.errors, action="/loans/new", title="New Loan",
                form_error=form_error(e, "Failed to create loan"),
            )
            return render_form(request, "loans/form.html", ctx, invalid=True)

    ctx = await _loan_form_context(api, data, errors, action="/loans/new", title="New Loan")
    return render_form(request, "loans/form.html", ctx, invalid=True)


# ============================================================
# DETALLE
# ============================================================
@router.get("/{loan_id}", response_class=HTMLResponse)
async def loan_detail(
    loan_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS)),
):
    loan = await _get_loan(api, loan_id)
    payments, error = await fetch_list(
        LoanService(api).get_payments(loan_id, page_size=5), "Failed to load payments"
    )
    return render(request, "pages/loans/detail.html", {
        "loan": loan,
        "payments": payments.results if payments else [],
        "payments_count": payments.count if payments else 0,
        "error": error,
        "caps": capabilities(user, Resource.LOANS, loan),
    })


# ============================================================
# EDICIÓN
# ============================================================
@router.get("/{loan_id}/edit", response_class=HTMLResponse)
async def edit_loan_page(
    loan_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS, Action.EDIT)),
):
    loan = await _get_loan(api, loan_id)
    ctx = await _loan_form_context(
        api, LoanForm.initial(loan), action=f"/loans/{loan_id}/edit",
        title=f"Edit {loan.label}", loan=loan,
    )
    return render_form(request, "loans/form.html", ctx)


@router.post("/{loan_id}/edit")
async def update_loan(
    loan_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS, Action.EDIT)),
):
    data = await read_form(request)
    form, errors = validate_form(LoanForm, data)
    action = f"/loans/{loan_id}/edit"

    if form is not None:
        try:
            await LoanService(api).update(loan_id, form.to_payload())
            return redirect(request, f"/loans/{loan_id}", "Loan updated successfully")
        except ApiError as e:
            ctx = await _loan_form_context(
                api, data, e.errors, action=action, title="Edit Loan",
                form_error=form_error(e, "Failed to update loan"),
            )
            return render_form(request, "loans/form.html", ctx, invalid=True)

    ctx = await _loan_form_context(api, data, errors, action=action, title="Edit Loan")
    return render_form(request, "loans/form.html", ctx, invalid=True)


@router.post("/{loan_id}/delete")
async def delete_loan(
    loan_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS, Action.DELETE)),
):
    return await delete_row(
        request,
        LoanService(api).delete(loan_id),
        "/loans",
        "Loan deleted successfully",
        "Failed to delete loan",
    )


# ============================================================
# PAGOS DEL PRÉSTAMO
# ============================================================
@router.get("/{loan_id}/payments", response_class=HTMLResponse)
async def loan_payments(
    loan_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS, Action.VIEW_PAYMENTS)),
):
    loan = await _get_loan(api, loan_id)
    state = ListState.from_request(request, ())
    page, error = await fetch_list(
        LoanService(api).get_payments(loan_id, **state.params()), "Failed to load payments"
    )
    return render(request, "pages/loans/payments.html", {
        "loan": loan,
        "state": state,
        "page": page,
        "error": error,
        "caps": capabilities(user, Resource.LOANS, loan),
        "payment_caps": capabilities(user, Resource.PAYMENTS),
    })


def _payment_context(loan, values: dict, errors: dict = None, **extra) -> dict:
    return {
        "loan": loan,
        "values": values,
        "errors": errors or {},
        "form_key": "payment",
        "methods": PaymentMethod.choices(),
        "action": f"/loans/{loan.id}/payments/new",
        **extra,
    }


@router.get("/{loan_id}/payments/new", response_class=HTMLResponse)
async def new_payment_page(
    loan_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS)),
):
    loan = await _get_loan(api, loan_id)
    ensure(user, Resource.LOANS, Action.RECORD_PAYMENT, loan,
           "Payments cannot be recorded for this loan.")
    values = {
        "payment_date": format_api_date(date.today()),
        "payment_method": PaymentMethod.CASH.value,
        "received_by": user.id,
    }
    return render_form(request, "loans/payment_form.html", _payment_context(loan, values))


@router.post("/{loan_id}/payments/new")
async def record_payment(
    loan_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS)),
):
    loan = await _get_loan(api, loan_id)
    ensure(user, Resource.LOANS, Action.RECORD_PAYMENT, loan,
           "Payments cannot be recorded for this loan.")

    data = await read_form(request)
    if not data.get("received_by"):
        data["received_by"] = user.id
    form, errors = validate_form(PaymentForm, data)
    if form is None:
        return render_form(request, "loans/payment_form.html", _payment_context(loan, data, errors), invalid=True)

    try:
        await LoanService(api).record_payment(loan_id, form.to_payload())
    except ApiError as e:
        ctx = _payment_context(loan, data, e.errors, form_error=form_error(e, "Failed to record payment"))
        return render_form(request, "loans/payment_form.html", ctx, invalid=True)

    return redirect(request, f"/loans/{loan_id}", "Payment recorded successfully")


# ============================================================
# ACCIONES DE ESTADO
# ============================================================
# accion → (form, método del servicio, template, mensaje de éxito, mensaje de error)
_ACCIONES = {
    Action.APPROVE: (ApproveLoanForm, "approve", "loans/approve.html",
                     "Loan approved successfully", "Failed to approve loan"),
    Action.RESTRUCTURE: (RestructureLoanForm, "restructure", "loans/restructure.html",
                         "Loan restructured successfully", "Failed to restructure loan"),
    Action.WRITE_OFF: (WriteOffLoanForm, "write_off", "loans/write_off.html",
                       "Loan written off successfully", "Failed to write off loan"),
}


def _action_values(action: Action, loan) -> dict:
    hoy = format_api_date(date.today())
    if action == Action.APPROVE:
        return {"approval_date": hoy, "disbursement_date": hoy}
    if action == Action.RESTRUCTURE:
        return {
            "new_maturity_date": format_api_date(loan.maturity_date) if loan.maturity_date else "",
            "new_interest_rate": loan.interest_rate,
        }
    return {}


async def _action_page(action: Action, loan_id: str, request: Request, api: ApiClient, user: User):
    template = _ACCIONES[action][2]
    loan = await _get_loan(api, loan_id)
    ensure(user, Resource.LOANS, action, loan, STATUS_FORBIDDEN)
    ctx = {
        "loan": loan,
        "values": _action_values(action, loan),
        "errors": {},
        "action": request.url.path,
    }
    return render_form(request, template, ctx)


async def _action_submit(action: Action, loan_id: str, request: Request, api: ApiClient, user: User):
    form_cls, metodo, template, ok_message, error_message = _ACCIONES[action]
    loan = await _get_loan(api, loan_id)
    ensure(user, Resource.LOANS, action, loan, STATUS_FORBIDDEN)

    data = await read_form(request)
    form, errors = validate_form(form_cls, data)
    ctx = {"loan": loan, "values": data, "errors": errors, "action": request.url.path}
    if form is None:
        return render_form(request, template, ctx, invalid=True)

    try:
        await getattr(LoanService(api), metodo)(loan_id, form.to_payload())
    except ApiError as e:
        ctx.update(errors=e.errors, form_error=form_error(e, error_message))
        return render_form(request, template, ctx, invalid=True)

    return redirect(request, f"/loans/{loan_id}", ok_message)


@router.get("/{loan_id}/approve", response_class=HTMLResponse)
async def approve_page(
    loan_id: str, request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS)),
):
    return await _action_page(Action.APPROVE, loan_id, request, api, user)


@router.post("/{loan_id}/approve")
async def approve_loan(
    loan_id: str, request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS)),
):
    return await _action_submit(Action.APPROVE, loan_id, request, api, user)


@router.get("/{loan_id}/restructure", response_class=HTMLResponse)
async def restructure_page(
    loan_id: str, request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS)),
):
    return await _action_page(Action.RESTRUCTURE, loan_id, request, api, user)


@router.post("/{loan_id}/restructure")
async def restructure_loan(
    loan_id: str, request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS)),
):
    return await _action_submit(Action.RESTRUCTURE, loan_id, request, api, user)


@router.get("/{loan_id}/write-off", response_class=HTMLResponse)
async def write_off_page(
    loan_id: str, request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS)),
):
    return await _action_page(Action.WRITE_OFF, loan_id, request, api, user)


@router.post("/{loan_id}/write-off")
async def write_off_loan(
    loan_id: str, request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.LOANS)),
):
    return await _action_submit(Action.WRITE_OFF, loan_id, request, api, user)
