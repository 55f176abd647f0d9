"""
Módulo: Fragments (validación por campo)
backoffice/routers/fragments.py

Los inputs llaman a POST /fragments/validate/{form}/{field} al perder el
foco (hx-trigger="blur") con el resto del formulario incluido, y reciben
el mensaje de ese campo como HTML parcial. Sólo formularios de la whitelist.
"""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from markupsafe import escape

from backoffice.api.errors import SessionExpired
from backoffice.forms.base import read_form, validate_field
from backoffice.forms.customers import CustomerForm
from backoffice.forms.follow_ups import (
    CompleteFollowUpForm, FollowUpForm, InteractionFollowUpForm, RescheduleFollowUpForm,
)
from backoffice.forms.interactions import CompleteInteractionForm, InteractionForm
from backoffice.forms.loans import ApproveLoanForm, LoanForm, RestructureLoanForm, WriteOffLoanForm
from backoffice.forms.payments import PaymentForm
from backoffice.forms.users import HierarchyForm, UserCreateForm, UserUpdateForm

router = APIRouter(prefix="/fragments", tags=["Fragments"])

# Formularios permitidos (whitelist)
FORMS = {
    "customer": CustomerForm,
    "loan": LoanForm,
    "approve_loan": ApproveLoanForm,
    "restructure_loan": RestructureLoanForm,
    "write_off_loan": WriteOffLoanForm,
    "payment": PaymentForm,
    "interaction": InteractionForm,
    "complete_interaction": CompleteInteractionForm,
    "interaction_follow_up": InteractionFollowUpForm,
    "follow_up": FollowUpForm,
    "complete_follow_up": CompleteFollowUpForm,
    "reschedule_follow_up": RescheduleFollowUpForm,
    "user_create": UserCreateForm,
    "user_update": UserUpdateForm,
    "hierarchy": HierarchyForm,
}

CHECKBOXES = ("is_active",)


@router.post("/validate/{form_name}/{field}", response_class=HTMLResponse)
async def validate(form_name: str, field: str, request: Request):
    if not request.state.api_session.is_authenticated:
        raise SessionExpired()

    form_cls = FORMS.get(form_name)
    if form_cls is None or field not in form_cls.model_fields:
        return HTMLResponse("", status_code=404)

    data = await read_form(request, [c for c in CHECKBOXES if c in form_cls.model_fields])
    mensaje = validate_field(form_cls, data, field)
    if not mensaje:
        return HTMLResponse("")
    return HTMLResponse(f'<span class="field-error">{escape(mensaje)}</span>')
