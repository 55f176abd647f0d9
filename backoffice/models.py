"""
Modelos del dominio (copias de lectura de lo que devuelve el API)
backoffice/models.py

Todos los datos pertenecen al servidor; aquí sólo se validan al llegar.
- Los IDs son siempre str (el API a veces los manda numéricos)
- Los estados/resultados son enums cerrados: un valor desconocido se
  normaliza explícitamente o se rechaza al deserializar
- Los campos calculados (saldo, días de mora, total) son de solo lectura
"""

import enum
from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict

from backoffice.utils.formatting import parse_api_date


def _to_str(valor):
    if valor is None or isinstance(valor, str):
        return valor
    if isinstance(valor, (int, float)):
        return str(int(valor))
    return valor


EntityId = Annotated[str, BeforeValidator(_to_str)]
ApiDate = Annotated[date, BeforeValidator(parse_api_date)]


class ApiEnum(str, enum.Enum):
    """
    Enum cerrado en la frontera del API.
    'payment promised', 'Payment-Promised' → PAYMENT_PROMISED.
    Cualquier otro valor desconocido lanza ValueError.
    """

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            clave = value.strip().upper().replace("-", "_").replace(" ", "_")
            for miembro in cls:
                if miembro.value == clave:
                    return miembro
        return None

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @classmethod
    def choices(cls):
        return [(m.value, m.label) for m in cls]


# ============================================================
# ENUMS
# ============================================================
class UserRole(ApiEnum):
    SUPER_MANAGER = "SUPER_MANAGER"
    MANAGER = "MANAGER"
    COLLECTION_OFFICER = "COLLECTION_OFFICER"
    CALLING_AGENT = "CALLING_AGENT"


class Gender(ApiEnum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class LoanStatus(ApiEnum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    PAID = "PAID"
    DEFAULTED = "DEFAULTED"
    RESTRUCTURED = "RESTRUCTURED"
    WRITTEN_OFF = "WRITTEN_OFF"


class PaymentFrequency(ApiEnum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"


class PaymentMethod(ApiEnum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    MOBILE_MONEY = "MOBILE_MONEY"
    CHEQUE = "CHEQUE"
    OTHER = "OTHER"


class InteractionType(ApiEnum):
    CALL = "CALL"
    MEETING = "MEETING"
    EMAIL = "EMAIL"
    SMS = "SMS"
    VISIT = "VISIT"
    OTHER = "OTHER"


class InteractionOutcome(ApiEnum):
    PAYMENT_PROMISED = "PAYMENT_PROMISED"
    PAYMENT_MADE = "PAYMENT_MADE"
    NO_ANSWER = "NO_ANSWER"
    WRONG_NUMBER = "WRONG_NUMBER"
    NUMBER_DISCONNECTED = "NUMBER_DISCONNECTED"
    CUSTOMER_UNAVAILABLE = "CUSTOMER_UNAVAILABLE"
    DISPUTED = "DISPUTED"
    REFUSED_TO_PAY = "REFUSED_TO_PAY"
    OTHER = "OTHER"


class FollowUpType(ApiEnum):
    CALL = "CALL"
    VISIT = "VISIT"
    SMS = "SMS"
    EMAIL = "EMAIL"
    OTHER = "OTHER"


class FollowUpStatus(ApiEnum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    RESCHEDULED = "RESCHEDULED"
    CANCELED = "CANCELED"


class FollowUpPriority(ApiEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


# ============================================================
# ENTIDADES
# ============================================================
class ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class User(ApiModel):
    id: EntityId
    username: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: Optional[str] = None
    role: UserRole
    is_active: bool = True
    date_joined: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        nombre = f"{self.first_name} {self.last_name}".strip()
        return nombre or self.username


class Hierarchy(ApiModel):
    id: EntityId
    manager: EntityId
    manager_name: str = ""
    collection_officer: EntityId
    collection_officer_name: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Customer(ApiModel):
    id: EntityId
    first_name: str
    last_name: str
    gender: Optional[Gender] = None
    date_of_birth: Optional[ApiDate] = None
    national_id: Optional[str] = None
    primary_phone: str = ""
    secondary_phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    branch: Optional[str] = None
    employer: Optional[str] = None
    job_title: Optional[str] = None
    monthly_income: Optional[float] = None
    assigned_officer: Optional[EntityId] = None
    assigned_officer_name: Optional[str] = None
    is_active: bool = True
    paid_status: bool = False
    notes: Optional[str] = None
    risk_score: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Loan(ApiModel):
    id: EntityId
    customer: EntityId
    customer_name: str = ""
    loan_reference: str = ""
    status: LoanStatus
    principal_amount: float
    interest_rate: float
    application_date: ApiDate
    approval_date: Optional[ApiDate] = None
    disbursement_date: Optional[ApiDate] = None
    first_payment_date: Optional[ApiDate] = None
    maturity_date: Optional[ApiDate] = None
    term_months: int
    payment_frequency: PaymentFrequency
    assigned_officer: Optional[EntityId] = None
    assigned_officer_name: Optional[str] = None
    notes: Optional[str] = None
    # Calculados por el servidor
    amount_paid: float = 0
    last_payment_date: Optional[ApiDate] = None
    days_past_due: int = 0
    total_amount_due: float = 0
    remaining_balance: float = 0
    payment_status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def label(self) -> str:
        return self.loan_reference or f"Loan {self.id}"

    @property
    def is_overdue(self) -> bool:
        return self.days_past_due > 0


class Payment(ApiModel):
    id: EntityId
    loan: EntityId
    loan_reference: str = ""
    customer_name: str = ""
    payment_reference: Optional[str] = None
    receipt_number: Optional[str] = None
    amount: float
    payment_date: ApiDate
    payment_method: PaymentMethod
    received_by: Optional[EntityId] = None
    received_by_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class Interaction(ApiModel):
    id: EntityId
    customer: EntityId
    customer_name: str = ""
    loan: Optional[EntityId] = None
    loan_reference: Optional[str] = None
    interaction_type: InteractionType
    initiated_by: Optional[EntityId] = None
    initiated_by_name: Optional[str] = None
    contact_number: Optional[str] = None
    contact_person: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    outcome: Optional[InteractionOutcome] = None
    notes: str = ""
    payment_promise_amount: Optional[float] = None
    payment_promise_date: Optional[ApiDate] = None
    created_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.outcome is not None


class FollowUp(ApiModel):
    id: EntityId
    interaction: Optional[EntityId] = None
    customer: EntityId
    customer_name: str = ""
    follow_up_type: FollowUpType
    scheduled_date: ApiDate
    scheduled_time: Optional[str] = None
    assigned_to: Optional[EntityId] = None
    assigned_to_name: Optional[str] = None
    notes: Optional[str] = None
    priority: FollowUpPriority = FollowUpPriority.MEDIUM
    status: FollowUpStatus = FollowUpStatus.PENDING
    result: Optional[str] = None
    completed_at: Optional[datetime] = None
    completed_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by_name: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == FollowUpStatus.PENDING
