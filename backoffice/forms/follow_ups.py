"""
Formularios: Seguimiento (programar, completar, reprogramar)
backoffice/forms/follow_ups.py
"""

from datetime import date
from typing import ClassVar, Dict, Optional

from backoffice.forms.base import FormBase, TimeHHMM, TodayOrLater
from backoffice.models import FollowUpPriority, FollowUpType


class InteractionFollowUpForm(FormBase):
    """Seguimiento creado desde una interacción (el cliente viene de ella)."""
    follow_up_type: FollowUpType
    scheduled_date: date
    scheduled_time: Optional[TimeHHMM] = None
    assigned_to: str
    notes: Optional[str] = None
    priority: FollowUpPriority = FollowUpPriority.MEDIUM

    required_messages: ClassVar[Dict[str, str]] = {
        "follow_up_type": "Follow-up type is required",
        "scheduled_date": "Scheduled date is required",
        "assigned_to": "Assigned user is required",
    }


class FollowUpForm(InteractionFollowUpForm):
    customer: str

    required_messages: ClassVar[Dict[str, str]] = {
        **InteractionFollowUpForm.required_messages,
        "customer": "Customer is required",
    }


class CompleteFollowUpForm(FormBase):
    result: str
    notes: Optional[str] = None

    required_messages: ClassVar[Dict[str, str]] = {"result": "Result is required"}


class RescheduleFollowUpForm(FormBase):
    scheduled_date: TodayOrLater
    scheduled_time: Optional[TimeHHMM] = None
    notes: Optional[str] = None

    required_messages: ClassVar[Dict[str, str]] = {
        "scheduled_date": "Reschedule date is required",
    }
