"""
Middleware de Autorización
backoffice/middleware/authorization.py

Dependencies de FastAPI para sesión y permisos por rol, y la única función
que compara roles: capabilities(user, recurso, entidad) → acciones permitidas.
Las páginas sólo consultan ese conjunto para mostrar u ocultar botones;
la autorización real la hace el API.

Uso:
    @router.get("/loans/{loan_id}/approve")
    async def approve_page(
        user: User = Depends(require(Resource.LOANS, Action.VIEW))
    ):
        ...
"""

import enum
from typing import Callable, Optional, Set

from fastapi import Depends, Request

from backoffice.api.client import ApiClient
from backoffice.api.errors import SessionExpired
from backoffice.api.session import ApiSession
from backoffice.models import FollowUpStatus, LoanStatus, User, UserRole
from backoffice.services.auth import AuthService


class Resource(str, enum.Enum):
    USERS = "users"
    HIERARCHIES = "hierarchies"
    CUSTOMERS = "customers"
    LOANS = "loans"
    PAYMENTS = "payments"
    INTERACTIONS = "interactions"
    FOLLOW_UPS = "follow_ups"
    REPORTS = "reports"


class Action(str, enum.Enum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    VIEW_PAYMENTS = "view_payments"
    RECORD_PAYMENT = "record_payment"
    APPROVE = "approve"
    RESTRUCTURE = "restructure"
    WRITE_OFF = "write_off"
    COMPLETE = "complete"
    RESCHEDULE = "reschedule"
    CREATE_FOLLOW_UP = "create_follow_up"
    EXPORT = "export"


class Forbidden(Exception):
    """El rol (o el estado de la entidad) no permite la acción."""

    def __init__(self, message: str = "You don't have permission to access this page."):
        self.message = message
        super().__init__(message)


MANAGERS = {UserRole.SUPER_MANAGER, UserRole.MANAGER}
STAFF = MANAGERS | {UserRole.COLLECTION_OFFICER}
EVERYONE = set(UserRole)

PAYABLE_STATUSES = {LoanStatus.ACTIVE, LoanStatus.DEFAULTED, LoanStatus.RESTRUCTURED}
WRITE_OFF_STATUSES = {LoanStatus.ACTIVE, LoanStatus.DEFAULTED}


# ============================================================
# SESIÓN Y USUARIO ACTUAL
# ============================================================
def get_api_client(request: Request) -> ApiClient:
    """Cliente API ligado a la sesión de este request."""
    session = getattr(request.state, "api_session", None)
    if session is None:
        session = ApiSession.from_cookies(request.cookies)
        request.state.api_session = session
    transport = getattr(request.app.state, "api_transport", None)
    return ApiClient(session, transport=transport)


async def get_current_user(
    request: Request,
    api: ApiClient = Depends(get_api_client),
) -> User:
    """Usuario autenticado (GET users/me/). Sin sesión → login."""
    if not api.session.is_authenticated:
        raise SessionExpired()

    user = await AuthService(api).current_user()
    request.state.user = user
    return user


def require(resource: Resource, action: Action = Action.VIEW) -> Callable:
    """Verifica capacidad sobre el recurso: require(Resource.USERS, Action.CREATE)"""
    async def verificar(user: User = Depends(get_current_user)) -> User:
        if action not in capabilities(user, resource):
            raise Forbidden()
        return user
    return verificar


# ============================================================
# CAPACIDADES
# ============================================================
def capabilities(user: Optional[User], resource: Resource, obj=None) -> Set[Action]:
    """
    Acciones que `user` puede ver ofrecidas sobre `resource`.
    Con `obj` se incluyen las acciones que dependen del estado de la entidad.
    """
    if user is None or not user.is_active:
        return set()

    role = user.role
    caps: Set[Action] = set()

    if resource == Resource.USERS:
        if role in MANAGERS:
            caps.add(Action.VIEW)
        if role == UserRole.SUPER_MANAGER:
            caps.add(Action.CREATE)
            if obj is None:
                caps.add(Action.DELETE)
        if obj is not None:
            if obj.id == user.id:
                caps.add(Action.VIEW)
            if role == UserRole.SUPER_MANAGER:
                caps.add(Action.EDIT)
                if obj.id != user.id:
                    caps.add(Action.DELETE)
            elif role == UserRole.MANAGER and obj.role != UserRole.SUPER_MANAGER:
                caps.add(Action.EDIT)

    elif resource == Resource.HIERARCHIES:
        if role in MANAGERS:
            caps |= {Action.VIEW, Action.CREATE, Action.EDIT, Action.DELETE}

    elif resource == Resource.CUSTOMERS:
        caps.add(Action.VIEW)
        if role in STAFF:
            caps |= {Action.CREATE, Action.EDIT, Action.DELETE}

    elif resource == Resource.LOANS:
        caps |= {Action.VIEW, Action.VIEW_PAYMENTS}
        if role in STAFF:
            caps |= {Action.CREATE, Action.EDIT, Action.DELETE}
        if obj is not None:
            if role in STAFF and obj.status in PAYABLE_STATUSES:
                caps.add(Action.RECORD_PAYMENT)
            if role in MANAGERS:
                if obj.status == LoanStatus.PENDING:
                    caps.add(Action.APPROVE)
                if obj.status == LoanStatus.ACTIVE:
                    caps.add(Action.RESTRUCTURE)
                if obj.status in WRITE_OFF_STATUSES:
                    caps.add(Action.WRITE_OFF)

    elif resource == Resource.PAYMENTS:
        caps.add(Action.VIEW)
        if role in STAFF:
            caps.add(Action.CREATE)
        if role in MANAGERS:
            caps.add(Action.DELETE)

    elif resource == Resource.INTERACTIONS:
        caps |= {Action.VIEW, Action.CREATE}
        if role in STAFF:
            caps.add(Action.CREATE_FOLLOW_UP)
        if obj is not None and not obj.is_completed:
            caps.add(Action.COMPLETE)

    elif resource == Resource.FOLLOW_UPS:
        caps.add(Action.VIEW)
        if role in STAFF:
            caps |= {Action.CREATE, Action.EDIT, Action.DELETE}
            if obj is not None and obj.status == FollowUpStatus.PENDING:
                caps |= {Action.COMPLETE, Action.RESCHEDULE}

    elif resource == Resource.REPORTS:
        if role in MANAGERS:
            caps |= {Action.VIEW, Action.EXPORT}

    return caps


def can(user: Optional[User], resource: Resource, action: Action, obj=None) -> bool:
    return action in capabilities(user, resource, obj)


def ensure(user: User, resource: Resource, action: Action, obj=None, message: Optional[str] = None):
    """Como require() pero con la entidad ya cargada (acciones según estado)."""
    if not can(user, resource, action, obj):
        raise Forbidden(message) if message else Forbidden()


def menu_for(user: Optional[User]) -> list:
    """Items del menú lateral según capacidades del usuario"""
    menu = [
        {"icono": "layout-dashboard", "label": "Dashboard", "url": "/dashboard",
         "resource": None, "action": None},
        {"icono": "users", "label": "Users", "url": "/users",
         "resource": Resource.USERS, "action": Action.VIEW},
        {"icono": "network", "label": "Hierarchies", "url": "/hierarchies",
         "resource": Resource.HIERARCHIES, "action": Action.VIEW},
        {"icono": "user-check", "label": "Customers", "url": "/customers",
         "resource": Resource.CUSTOMERS, "action": Action.VIEW},
        {"icono": "file-spreadsheet", "label": "Loans", "url": "/loans",
         "resource": Resource.LOANS, "action": Action.VIEW},
        {"icono": "plus", "label": "New Loan", "url": "/loans/new",
         "resource": Resource.LOANS, "action": Action.CREATE},
        {"icono": "chart-bar", "label": "Loan Reports", "url": "/reports/loans",
         "resource": Resource.REPORTS, "action": Action.VIEW},
        {"icono": "credit-card", "label": "Payments", "url": "/payments",
         "resource": Resource.PAYMENTS, "action": Action.VIEW},
        {"icono": "phone", "label": "Interactions", "url": "/interactions",
         "resource": Resource.INTERACTIONS, "action": Action.VIEW},
        {"icono": "calendar-clock", "label": "Follow-ups", "url": "/follow-ups",
         "resource": Resource.FOLLOW_UPS, "action": Action.VIEW},
    ]

    if user is None:
        return []

    return [
        item for item in menu
        if item["resource"] is None or can(user, item["resource"], item["action"])
    ]
