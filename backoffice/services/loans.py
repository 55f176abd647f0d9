"""
Servicio: Préstamos
backoffice/services/loans.py

Los cambios de estado son acciones del servidor (approve, restructure,
write_off); nunca se edita `status` directamente.
"""

from backoffice.api.client import Page
from backoffice.models import Loan, Payment
from backoffice.services.base import ResourceService


class LoanService(ResourceService[Loan]):
    path = "loans/"
    model = Loan

    async def get_payments(self, loan_id: str, **filters) -> Page[Payment]:
        return await self._sub_list(loan_id, "payments", Payment, **filters)

    async def approve(self, loan_id: str, payload: dict) -> Loan:
        return await self._action(loan_id, "approve", payload)

    async def restructure(self, loan_id: str, payload: dict) -> Loan:
        return await self._action(loan_id, "restructure", payload)

    async def write_off(self, loan_id: str, payload: dict) -> Loan:
        return await self._action(loan_id, "write_off", payload)

    async def record_payment(self, loan_id: str, payload: dict) -> Payment:
        data = await self.api.post("payments/", json={**payload, "loan": loan_id})
        return Payment.model_validate(data)
