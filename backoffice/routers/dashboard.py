"""
Router: Dashboard
=================
Resumen de cartera y clientes + próximos seguimientos pendientes.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from backoffice.config import REPORT_PAGE_SIZE
from backoffice.api.client import ApiClient
from backoffice.middleware.authorization import get_api_client, get_current_user
from backoffice.models import FollowUpStatus, User
from backoffice.services.customers import CustomerService
from backoffice.services.follow_ups import FollowUpService
from backoffice.services.loans import LoanService
from backoffice.services.reports import customer_stats, loan_stats
from backoffice.templating import render
from backoffice.utils.pages import fetch_list

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(get_current_user),
):
    loans, error_loans = await fetch_list(
        LoanService(api).get_all(page_size=REPORT_PAGE_SIZE), "Failed to load loan statistics"
    )
    customers, error_customers = await fetch_list(
        CustomerService(api).get_all(page_size=REPORT_PAGE_SIZE), "Failed to load customer statistics"
    )
    follow_ups, _ = await fetch_list(
        FollowUpService(api).get_all(
            status=FollowUpStatus.PENDING.value, ordering="scheduled_date", page_size=5
        ),
        "Failed to load follow-ups",
    )

    return render(request, "pages/dashboard.html", {
        "loan_stats": loan_stats(loans.results) if loans else None,
        "customer_stats": customer_stats(customers.results) if customers else None,
        "follow_ups": follow_ups.results if follow_ups else [],
        "error": error_loans or error_customers,
    })
