"""
Router: Pagos
=============
Listado general de pagos (búsqueda + método) y anulación por gerencia.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from backoffice.api.client import ApiClient
from backoffice.middleware.authorization import (
    Action, Resource, capabilities, get_api_client, require,
)
from backoffice.models import PaymentMethod, User
from backoffice.services.payments import PaymentService
from backoffice.templating import render
from backoffice.utils.listing import ListState
from backoffice.utils.pages import delete_row, fetch_list

router = APIRouter(prefix="/payments", tags=["Payments"])

FILTERS = ("search", "payment_method")


@router.get("", response_class=HTMLResponse)
async def list_payments(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.PAYMENTS)),
):
    state = ListState.from_request(request, FILTERS)
    page, error = await fetch_list(
        PaymentService(api).get_all(**state.params()), "Failed to load payments"
    )
    return render(request, "pages/payments/list.html", {
        "state": state,
        "page": page,
        "error": error,
        "methods": PaymentMethod.choices(),
        "caps": capabilities(user, Resource.PAYMENTS),
    })


@router.post("/{payment_id}/delete")
async def delete_payment(
    payment_id: str,
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.PAYMENTS, Action.DELETE)),
):
    return await delete_row(
        request,
        PaymentService(api).delete(payment_id),
        "/payments",
        "Payment deleted successfully",
        "Failed to delete payment",
    )
