"""
Servicio: Seguimientos
backoffice/services/follow_ups.py
"""

from backoffice.models import FollowUp
from backoffice.services.base import ResourceService


class FollowUpService(ResourceService[FollowUp]):
    path = "follow-ups/"
    model = FollowUp

    async def complete(self, follow_up_id: str, payload: dict) -> FollowUp:
        return await self._action(follow_up_id, "complete", payload)

    async def reschedule(self, follow_up_id: str, payload: dict) -> FollowUp:
        return await self._action(follow_up_id, "reschedule", payload)
