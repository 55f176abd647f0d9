"""
Formulario: Registrar pago
backoffice/forms/payments.py
"""

from typing import ClassVar, Dict, Optional

from backoffice.forms.base import FormBase, PastOrToday, PositiveAmount
from backoffice.models import PaymentMethod


class PaymentForm(FormBase):
    amount: PositiveAmount
    payment_date: PastOrToday
    payment_method: PaymentMethod
    receipt_number: Optional[str] = None
    received_by: Optional[str] = None
    notes: Optional[str] = None

    required_messages: ClassVar[Dict[str, str]] = {
        "amount": "Payment amount is required",
        "payment_date": "Payment date is required",
        "payment_method": "Payment method is required",
    }
