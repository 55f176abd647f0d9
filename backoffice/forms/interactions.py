"""
Formularios: Interacción (registro y cierre)
backoffice/forms/interactions.py

Cierre: cuando outcome = PAYMENT_PROMISED el monto y la fecha de la
promesa pasan a ser obligatorios.
"""

from datetime import date, datetime
from typing import ClassVar, Dict, Optional

from pydantic import Field

from backoffice.forms.base import FormBase, PositiveAmount
from backoffice.models import InteractionOutcome, InteractionType


class InteractionForm(FormBase):
    customer: str
    loan: Optional[str] = None
    interaction_type: InteractionType
    contact_number: Optional[str] = None
    contact_person: Optional[str] = None
    start_time: datetime
    notes: str = Field(min_length=3)

    required_messages: ClassVar[Dict[str, str]] = {
        "customer": "Customer is required",
        "interaction_type": "Interaction type is required",
        "start_time": "Start time is required",
        "notes": "Notes are required",
    }


class CompleteInteractionForm(FormBase):
    outcome: InteractionOutcome
    end_time: datetime = Field(default_factory=lambda: datetime.now().replace(second=0, microsecond=0))
    payment_promise_amount: Optional[PositiveAmount] = None
    payment_promise_date: Optional[date] = None
    notes: Optional[str] = None

    required_messages: ClassVar[Dict[str, str]] = {
        "outcome": "Outcome is required",
    }

    def refine(self) -> Dict[str, str]:
        errores = {}
        if self.outcome == InteractionOutcome.PAYMENT_PROMISED:
            if self.payment_promise_amount is None:
                errores["payment_promise_amount"] = (
                    "Payment amount is required when outcome is 'Payment Promised'"
                )
            if self.payment_promise_date is None:
                errores["payment_promise_date"] = (
                    "Payment date is required when outcome is 'Payment Promised'"
                )
        return errores

    def to_completion_payload(self, existing_notes: str) -> dict:
        """Las notas de cierre se agregan a las notas originales."""
        payload = self.to_payload()
        notas = existing_notes or ""
        if self.notes:
            notas = f"{notas}\n\nCompletion Notes: {self.notes}" if notas else f"Completion Notes: {self.notes}"
        payload["notes"] = notas
        if self.outcome != InteractionOutcome.PAYMENT_PROMISED:
            payload.pop("payment_promise_amount", None)
            payload.pop("payment_promise_date", None)
        return payload
