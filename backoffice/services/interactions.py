"""
Servicio: Interacciones
backoffice/services/interactions.py

Ciclo de vida en dos fases: se crea abierta (sin outcome) y se completa
una sola vez con outcome + end_time.
"""

from backoffice.models import FollowUp, Interaction
from backoffice.services.base import ResourceService


class InteractionService(ResourceService[Interaction]):
    path = "interactions/"
    model = Interaction

    async def complete(self, interaction_id: str, payload: dict) -> Interaction:
        return await self.update(interaction_id, payload)

    async def create_follow_up(self, interaction_id: str, payload: dict) -> FollowUp:
        return await self._action(interaction_id, "create_follow_up", payload, model=FollowUp)
