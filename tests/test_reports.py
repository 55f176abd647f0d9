from datetime import date

from openpyxl import load_workbook

from backoffice.models import Customer, Loan, LoanStatus
from backoffice.services.reports import (
    build_workbook, collection_rate, customer_stats, filter_by_timeframe, loan_report, loan_stats,
    top_overdue,
)

from conftest import customer_json, loan_json

HOY = date(2024, 6, 15)


def _loans():
    return [
        Loan.model_validate(loan_json(1, "ACTIVE", application_date="2024-06-01", days_past_due=12,
                                      remaining_balance=400)),
        Loan.model_validate(loan_json(2, "ACTIVE", application_date="2024-04-01", days_past_due=40,
                                      remaining_balance=900)),
        Loan.model_validate(loan_json(3, "PAID", application_date="2023-01-10", amount_paid=1100,
                                      remaining_balance=0)),
        Loan.model_validate(loan_json(4, "PENDING", application_date="2024-06-10", principal_amount=500,
                                      amount_paid=0, total_amount_due=0, remaining_balance=0)),
    ]


def test_loan_stats():
    stats = loan_stats(_loans())
    assert stats["total_loans"] == 4
    assert stats["active_loans"] == 2
    assert stats["active_amount"] == 2000
    assert stats["overdue_loans"] == 2
    assert stats["overdue_amount"] == 1300
    assert stats["pending_loans"] == 1
    assert stats["pending_amount"] == 500
    assert stats["paid_loans"] == 1


def test_customer_stats_counts_new_this_month():
    customers = [
        Customer.model_validate(customer_json(1, created_at="2024-06-02T09:00:00Z")),
        Customer.model_validate(customer_json(2, is_active=False, created_at="2024-01-02T09:00:00Z")),
    ]
    stats = customer_stats(customers, HOY)
    assert stats == {
        "total_customers": 2,
        "active_customers": 1,
        "inactive_customers": 1,
        "new_customers_this_month": 1,
    }


def test_timeframe_filters_by_application_date():
    loans = _loans()
    assert [l.id for l in filter_by_timeframe(loans, "month", HOY)] == ["1", "4"]
    assert [l.id for l in filter_by_timeframe(loans, "quarter", HOY)] == ["1", "2", "4"]
    assert len(filter_by_timeframe(loans, "all", HOY)) == 4


def test_collection_rate_and_top_overdue():
    loans = _loans()
    # (250 + 250 + 1100 + 0) / (1100 * 3)
    assert collection_rate(loans) == 48.5
    assert collection_rate([]) == 0.0
    assert [l.id for l in top_overdue(loans)] == ["2", "1"]


def test_report_breakdown_covers_every_status():
    report = loan_report(_loans(), "all", HOY)
    estados = [fila["status"] for fila in report["breakdown"]]
    assert estados == list(LoanStatus)
    activos = next(f for f in report["breakdown"] if f["status"] == LoanStatus.ACTIVE)
    assert activos["count"] == 2
    assert activos["balance"] == 1300


def test_workbook_has_detail_and_summary():
    report = loan_report(_loans(), "all", HOY)
    wb = load_workbook(build_workbook(report))

    assert wb.sheetnames == ["Loans", "Summary"]
    ws = wb["Loans"]
    assert ws["A3"].value == "Reference"
    assert ws["A4"].value == "LN-0001"
    assert ws.cell(row=8, column=4).value == "TOTAL"
    assert wb["Summary"]["A2"].value == "Pending"
