"""
Servicio: Pagos
backoffice/services/payments.py
"""

from backoffice.models import Payment
from backoffice.services.base import ResourceService


class PaymentService(ResourceService[Payment]):
    path = "payments/"
    model = Payment
