"""
Servicio base: envoltura CRUD de un recurso REST
backoffice/services/base.py
"""

import logging
from typing import Generic, Optional, Type, TypeVar

from pydantic import BaseModel

from backoffice.api.client import ApiClient, Page

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class ResourceService(Generic[M]):
    """
    getAll / getById / create / update / delete sobre `path`.
    Sin caché: cada llamada va a la red.
    """
    path: str = ""
    model: Type[M]

    def __init__(self, api: ApiClient):
        self.api = api

    def _url(self, entity_id: Optional[str] = None, action: Optional[str] = None) -> str:
        url = self.path
        if entity_id is not None:
            url += f"{entity_id}/"
        if action:
            url += f"{action}/"
        return url

    async def get_all(self, **filters) -> Page[M]:
        return await self.api.get_page(self._url(), self.model, params=filters)

    async def get_by_id(self, entity_id: str) -> M:
        data = await self.api.get(self._url(entity_id))
        return self.model.model_validate(data)

    async def create(self, payload: dict) -> M:
        data = await self.api.post(self._url(), json=payload)
        entity = self.model.model_validate(data)
        logger.info(f"{self.path} creado: {entity.id}")
        return entity

    async def update(self, entity_id: str, payload: dict) -> M:
        data = await self.api.patch(self._url(entity_id), json=payload)
        logger.info(f"{self.path} actualizado: {entity_id}")
        return self.model.model_validate(data)

    async def delete(self, entity_id: str) -> None:
        await self.api.delete(self._url(entity_id))
        logger.info(f"{self.path} eliminado: {entity_id}")

    async def _action(self, entity_id: str, action: str, payload: Optional[dict] = None, model=None):
        """POST {path}/{id}/{action}/ → entidad resultante."""
        data = await self.api.post(self._url(entity_id, action), json=payload or {})
        logger.info(f"{self.path}{entity_id}/{action} ejecutado")
        return (model or self.model).model_validate(data)

    async def _sub_list(self, entity_id: str, sub: str, model, **filters) -> Page:
        return await self.api.get_page(self._url(entity_id, sub), model, params=filters)
