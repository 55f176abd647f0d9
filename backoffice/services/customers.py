"""
Servicio: Clientes
backoffice/services/customers.py
"""

from backoffice.api.client import Page
from backoffice.models import Customer, Interaction, Loan
from backoffice.services.base import ResourceService


class CustomerService(ResourceService[Customer]):
    path = "customers/"
    model = Customer

    async def get_loans(self, customer_id: str, **filters) -> Page[Loan]:
        return await self._sub_list(customer_id, "loans", Loan, **filters)

    async def get_interactions(self, customer_id: str, **filters) -> Page[Interaction]:
        return await self._sub_list(customer_id, "interactions", Interaction, **filters)
