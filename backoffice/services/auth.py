"""
Servicio: Autenticación
backoffice/services/auth.py
"""

import logging

from backoffice.api.client import ApiClient, TOKEN_PATH, VERIFY_PATH
from backoffice.models import User

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def login(self, username: str, password: str) -> None:
        """Pide el par access/refresh e inicia la sesión."""
        data = await self.api.post(TOKEN_PATH, json={"username": username, "password": password})
        self.api.session.init(data["access"], data["refresh"])
        logger.info(f"Login correcto: {username}")

    async def current_user(self) -> User:
        data = await self.api.get("users/me/")
        return User.model_validate(data)

    async def verify(self, token: str) -> None:
        await self.api.post(VERIFY_PATH, json={"token": token})

    def logout(self) -> None:
        self.api.session.clear()
