"""
Formulario: Cliente
backoffice/forms/customers.py
"""

import re
from typing import Annotated, ClassVar, Dict, Optional

from pydantic import AfterValidator

from backoffice.forms.base import Email, FormBase, NonNegative, PastOrToday
from backoffice.models import Gender

# +12125551234 / 987654321 (9 a 15 dígitos, "+" opcional)
PHONE_REGEX = re.compile(r"^\+?[0-9]{9,15}$")


def _telefono(valor: str) -> str:
    if not PHONE_REGEX.match(valor):
        raise ValueError("Invalid phone number format")
    return valor


Phone = Annotated[str, AfterValidator(_telefono)]


class CustomerForm(FormBase):
    first_name: str
    last_name: str
    gender: Gender = Gender.OTHER
    date_of_birth: Optional[PastOrToday] = None
    national_id: Optional[str] = None
    primary_phone: Phone
    secondary_phone: Optional[Phone] = None
    email: Optional[Email] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    branch: Optional[str] = None
    employer: Optional[str] = None
    job_title: Optional[str] = None
    monthly_income: Optional[NonNegative] = None
    assigned_officer: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True

    required_messages: ClassVar[Dict[str, str]] = {
        "first_name": "First name is required",
        "last_name": "Last name is required",
        "primary_phone": "Primary phone is required",
    }
