"""
Formularios: Préstamo y sus acciones (aprobar, reestructurar, castigar)
backoffice/forms/loans.py
"""

from datetime import date
from typing import ClassVar, Dict, Optional

from pydantic import Field

from backoffice.forms.base import FormBase, NonNegative, PositiveAmount
from backoffice.models import PaymentFrequency


class LoanForm(FormBase):
    customer: str
    principal_amount: PositiveAmount
    interest_rate: NonNegative
    term_months: int = Field(ge=1)
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    application_date: date
    approval_date: Optional[date] = None
    disbursement_date: Optional[date] = None
    first_payment_date: Optional[date] = None
    maturity_date: Optional[date] = None
    assigned_officer: Optional[str] = None
    notes: Optional[str] = None

    required_messages: ClassVar[Dict[str, str]] = {
        "customer": "Customer is required",
        "principal_amount": "Principal amount is required",
        "interest_rate": "Interest rate is required",
        "term_months": "Loan term is required",
        "application_date": "Application date is required",
    }

    def refine(self) -> Dict[str, str]:
        errores = {}
        if self.maturity_date and self.maturity_date < self.application_date:
            errores["maturity_date"] = "Maturity date cannot be before the application date"
        if self.first_payment_date and self.first_payment_date < self.application_date:
            errores["first_payment_date"] = "First payment date cannot be before the application date"
        return errores


class ApproveLoanForm(FormBase):
    approval_date: date
    disbursement_date: date
    notes: Optional[str] = None

    required_messages: ClassVar[Dict[str, str]] = {
        "approval_date": "Approval date is required",
        "disbursement_date": "Disbursement date is required",
    }

    def refine(self) -> Dict[str, str]:
        if self.disbursement_date < self.approval_date:
            return {"disbursement_date": "Disbursement date cannot be before the approval date"}
        return {}


class RestructureLoanForm(FormBase):
    new_maturity_date: date
    new_interest_rate: Optional[NonNegative] = None
    notes: Optional[str] = None

    required_messages: ClassVar[Dict[str, str]] = {
        "new_maturity_date": "New maturity date is required",
    }


class WriteOffLoanForm(FormBase):
    reason: str
    notes: Optional[str] = None

    required_messages: ClassVar[Dict[str, str]] = {
        "reason": "Please provide a reason for writing off this loan",
    }
