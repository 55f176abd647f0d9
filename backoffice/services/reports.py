"""
Servicio: Dashboard y Reporte de Cartera
backoffice/services/reports.py

Agrega sobre los préstamos/clientes ya calculados por el servidor
(montos, saldos, días de mora). No recalcula intereses ni cuotas.
Incluye export a Excel.
"""

from datetime import date
from io import BytesIO
from typing import Dict, Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from backoffice.models import Customer, Loan, LoanStatus

TIMEFRAMES = {
    "all": "All time",
    "month": "Last month",
    "quarter": "Last 3 months",
    "year": "Last 12 months",
}


def _inicio_timeframe(timeframe: str, hoy: date) -> Optional[date]:
    if timeframe == "month":
        return hoy - relativedelta(months=1)
    if timeframe == "quarter":
        return hoy - relativedelta(months=3)
    if timeframe == "year":
        return hoy - relativedelta(years=1)
    return None


def filter_by_timeframe(loans: Iterable[Loan], timeframe: str, hoy: Optional[date] = None) -> List[Loan]:
    """Préstamos cuya fecha de solicitud cae dentro del periodo."""
    hoy = hoy or date.today()
    inicio = _inicio_timeframe(timeframe, hoy)
    if inicio is None:
        return list(loans)
    return [l for l in loans if inicio <= l.application_date <= hoy]


# ============================================================
# DASHBOARD
# ============================================================
def loan_stats(loans: Iterable[Loan]) -> Dict[str, float]:
    loans = list(loans)
    activos = [l for l in loans if l.status == LoanStatus.ACTIVE]
    pagados = [l for l in loans if l.status == LoanStatus.PAID]
    pendientes = [l for l in loans if l.status == LoanStatus.PENDING]
    vencidos = [l for l in loans if l.is_overdue]

    return {
        "active_loans": len(activos),
        "active_amount": sum(l.principal_amount for l in activos),
        "overdue_loans": len(vencidos),
        "overdue_amount": sum(l.remaining_balance for l in vencidos),
        "pending_loans": len(pendientes),
        "pending_amount": sum(l.principal_amount for l in pendientes),
        "paid_loans": len(pagados),
        "paid_amount": sum(l.principal_amount for l in pagados),
        "total_loans": len(loans),
        "total_amount": sum(l.principal_amount for l in loans),
    }


def customer_stats(customers: Iterable[Customer], hoy: Optional[date] = None) -> Dict[str, int]:
    customers = list(customers)
    hoy = hoy or date.today()
    primero_mes = hoy.replace(day=1)
    activos = sum(1 for c in customers if c.is_active)
    nuevos = sum(
        1 for c in customers
        if c.created_at is not None and c.created_at.date() >= primero_mes
    )
    return {
        "total_customers": len(customers),
        "active_customers": activos,
        "inactive_customers": len(customers) - activos,
        "new_customers_this_month": nuevos,
    }


# ============================================================
# REPORTE DE CARTERA
# ============================================================
def status_breakdown(loans: Iterable[Loan]) -> List[dict]:
    por_estado = {s: {"status": s, "count": 0, "principal": 0.0, "balance": 0.0} for s in LoanStatus}
    for l in loans:
        fila = por_estado[l.status]
        fila["count"] += 1
        fila["principal"] += l.principal_amount
        fila["balance"] += l.remaining_balance
    return list(por_estado.values())


def collection_rate(loans: Iterable[Loan]) -> float:
    """Porcentaje cobrado sobre el total adeudado (0-100)."""
    loans = list(loans)
    total_due = sum(l.total_amount_due for l in loans)
    if total_due <= 0:
        return 0.0
    return round(sum(l.amount_paid for l in loans) / total_due * 100, 1)


def top_overdue(loans: Iterable[Loan], limite: int = 10) -> List[Loan]:
    vencidos = [l for l in loans if l.is_overdue]
    vencidos.sort(key=lambda l: (l.days_past_due, l.remaining_balance), reverse=True)
    return vencidos[:limite]


def loan_report(loans: Iterable[Loan], timeframe: str = "all", hoy: Optional[date] = None) -> dict:
    seleccion = filter_by_timeframe(loans, timeframe, hoy)
    return {
        "timeframe": timeframe,
        "timeframe_label": TIMEFRAMES.get(timeframe, TIMEFRAMES["all"]),
        "loans": seleccion,
        "stats": loan_stats(seleccion),
        "breakdown": status_breakdown(seleccion),
        "collection_rate": collection_rate(seleccion),
        "total_due": sum(l.total_amount_due for l in seleccion),
        "total_paid": sum(l.amount_paid for l in seleccion),
        "total_balance": sum(l.remaining_balance for l in seleccion),
        "top_overdue": top_overdue(seleccion),
    }


def build_workbook(report: dict) -> BytesIO:
    """Reporte de cartera en .xlsx: hoja de detalle + hoja de resumen por estado."""
    from openpyxl import Workbook
    from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

    wb = Workbook()
    ws = wb.active
    ws.title = "Loans"

    ws.merge_cells("A1:J1")
    ws["A1"] = f"LOAN PORTFOLIO REPORT - {report['timeframe_label'].upper()}"
    ws["A1"].font = Font(bold=True, size=13, name="Arial")
    ws["A1"].alignment = Alignment(horizontal="center")

    headers = ["Reference", "Customer", "Status", "Application", "Principal",
               "Rate %", "Total Due", "Paid", "Balance", "Days Past Due"]
    header_fill = PatternFill("solid", fgColor="1F4E79")
    header_font = Font(bold=True, color="FFFFFF", size=10, name="Arial")
    thin = Border(left=Side("thin"), right=Side("thin"), top=Side("thin"), bottom=Side("thin"))

    for c, h in enumerate(headers, 1):
        cell = ws.cell(row=3, column=c, value=h)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")
        cell.border = thin

    for i, l in enumerate(report["loans"], 1):
        row = i + 3
        vals = [l.loan_reference, l.customer_name, l.status.label, l.application_date,
                l.principal_amount, l.interest_rate, l.total_amount_due, l.amount_paid,
                l.remaining_balance, l.days_past_due]
        for c, v in enumerate(vals, 1):
            cell = ws.cell(row=row, column=c, value=v)
            cell.border = thin
            if c == 4:
                cell.number_format = "yyyy-mm-dd"
            if c in (5, 7, 8, 9):
                cell.number_format = "#,##0.00"
                cell.alignment = Alignment(horizontal="right")
            if l.is_overdue:
                cell.font = Font(color="C00000", name="Arial", size=10)

    # Totales
    if report["loans"]:
        tot_row = len(report["loans"]) + 4
        ws.cell(row=tot_row, column=4, value="TOTAL").font = Font(bold=True, name="Arial")
        totales = {5: report["stats"]["total_amount"], 7: report["total_due"],
                   8: report["total_paid"], 9: report["total_balance"]}
        for c, v in totales.items():
            cell = ws.cell(row=tot_row, column=c, value=v)
            cell.number_format = "#,##0.00"
            cell.font = Font(bold=True, name="Arial")
            cell.border = Border(top=Side(style="double"))

    widths = [16, 28, 14, 13, 14, 9, 14, 14, 14, 14]
    for i, w in enumerate(widths):
        ws.column_dimensions[chr(65 + i)].width = w

    # Resumen por estado
    resumen = wb.create_sheet("Summary")
    for c, h in enumerate(["Status", "Loans", "Principal", "Balance"], 1):
        cell = resumen.cell(row=1, column=c, value=h)
        cell.font = header_font
        cell.fill = header_fill
        cell.border = thin
    for i, fila in enumerate(report["breakdown"], 2):
        resumen.cell(row=i, column=1, value=fila["status"].label)
        resumen.cell(row=i, column=2, value=fila["count"])
        resumen.cell(row=i, column=3, value=fila["principal"]).number_format = "#,##0.00"
        resumen.cell(row=i, column=4, value=fila["balance"]).number_format = "#,##0.00"
    fila_tasa = len(report["breakdown"]) + 3
    resumen.cell(row=fila_tasa, column=1, value="Collection rate %").font = Font(bold=True, name="Arial")
    resumen.cell(row=fila_tasa, column=2, value=report["collection_rate"])
    for col, w in zip("ABCD", (18, 10, 16, 16)):
        resumen.column_dimensions[col].width = w

    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf
