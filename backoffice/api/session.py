"""
Sesión del usuario (tokens del API)
backoffice/api/session.py

Contexto explícito de sesión: se construye por request desde las cookies,
se inyecta al cliente API y el middleware de main.py escribe los cambios
(login, refresh, logout) en la respuesta.

Ciclo de vida:
    init(access, refresh)  → después del login
    refresh(access)        → después de renovar el token
    clear()                → logout o refresh fallido
"""

import time
import logging
from typing import Optional

from jose import jwt, JWTError
from starlette.responses import Response

from backoffice.config import SESSION_COOKIE_SECURE, SESSION_MAX_AGE, REFRESH_MAX_AGE

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def token_max_age(token: str, default: int = SESSION_MAX_AGE) -> int:
    """Segundos hasta el 'exp' del JWT (sin verificar firma)."""
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return default
    exp = claims.get("exp")
    if not exp:
        return default
    restante = int(exp - time.time())
    return restante if restante > 0 else default


def token_user_id(token: Optional[str]) -> Optional[str]:
    """user_id del JWT de acceso (SimpleJWT lo incluye en los claims)."""
    if not token:
        return None
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    user_id = claims.get("user_id")
    return str(user_id) if user_id is not None else None


class ApiSession:
    def __init__(self, access_token: Optional[str] = None, refresh_token: Optional[str] = None):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.changed = False

    @classmethod
    def from_cookies(cls, cookies) -> "ApiSession":
        raw = cookies.get(ACCESS_COOKIE) or ""
        parts = raw.split()
        access = None
        if len(parts) == 2 and parts[0].lower() == "bearer":
            access = parts[1]
        elif len(parts) == 1:
            access = parts[0]
        return cls(access, cookies.get(REFRESH_COOKIE) or None)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token or self.refresh_token)

    def init(self, access_token: str, refresh_token: str):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.changed = True

    def refresh(self, access_token: str):
        self.access_token = access_token
        self.changed = True

    def clear(self):
        self.access_token = None
        self.refresh_token = None
        self.changed = True

    def apply(self, response: Response):
        """Escribe (o borra) las cookies si la sesión cambió en este request."""
        if not self.changed:
            return

        if not self.access_token:
            response.delete_cookie(ACCESS_COOKIE, path="/")
            response.delete_cookie(REFRESH_COOKIE, path="/")
            return

        # La cookie de acceso vive lo que el refresh: un access vencido
        # todavía sirve para disparar el 401 → refresh
        if self.refresh_token:
            max_age = token_max_age(self.refresh_token, REFRESH_MAX_AGE)
        else:
            max_age = token_max_age(self.access_token)

        response.set_cookie(
            key=ACCESS_COOKIE,
            value=f"Bearer {self.access_token}",
            httponly=True,
            max_age=max_age,
            samesite="lax",
            secure=SESSION_COOKIE_SECURE,
        )
        if self.refresh_token:
            response.set_cookie(
                key=REFRESH_COOKIE,
                value=self.refresh_token,
                httponly=True,
                max_age=max_age,
                samesite="lax",
                secure=SESSION_COOKIE_SECURE,
            )
