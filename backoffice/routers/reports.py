"""
Router: Reportes
================
Reporte de cartera por periodo (fecha de solicitud) y export a Excel.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, StreamingResponse

from backoffice.config import REPORT_PAGE_SIZE
from backoffice.api.client import ApiClient
from backoffice.middleware.authorization import (
    Action, Resource, capabilities, get_api_client, require,
)
from backoffice.models import User
from backoffice.services.loans import LoanService
from backoffice.services.reports import TIMEFRAMES, build_workbook, loan_report
from backoffice.templating import render
from backoffice.utils.pages import fetch_list

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


def _timeframe(request: Request) -> str:
    timeframe = request.query_params.get("timeframe", "all")
    return timeframe if timeframe in TIMEFRAMES else "all"


@router.get("/loans", response_class=HTMLResponse)
async def loans_report(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.REPORTS)),
):
    timeframe = _timeframe(request)
    page, error = await fetch_list(
        LoanService(api).get_all(page_size=REPORT_PAGE_SIZE), "Failed to load loan data"
    )
    report = loan_report(page.results, timeframe) if page else None
    return render(request, "pages/reports/loans.html", {
        "report": report,
        "error": error,
        "timeframe": timeframe,
        "timeframes": TIMEFRAMES,
        "caps": capabilities(user, Resource.REPORTS),
    })


@router.get("/loans/export")
async def export_loans_report(
    request: Request,
    api: ApiClient = Depends(get_api_client),
    user: User = Depends(require(Resource.REPORTS, Action.EXPORT)),
):
    timeframe = _timeframe(request)
    page = await LoanService(api).get_all(page_size=REPORT_PAGE_SIZE)
    buf = build_workbook(loan_report(page.results, timeframe))
    filename = f"loan_report_{timeframe}_{date.today().isoformat()}.xlsx"
    logger.info(f"Reporte de cartera exportado por {user.username}: {len(page.results)} préstamos")

    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
