"""
Cliente HTTP del API REST
backoffice/api/client.py

- URL base configurable (API_URL)
- Adjunta "Authorization: Bearer <token>" desde la sesión
- 401 → un solo intento de refresh (POST token/refresh/) y reintento.
  Si el refresh falla: se limpia la sesión y se lanza SessionExpired.
- Errores HTTP → ApiError con el detalle del servidor cuando existe
- Errores de red (timeout incluido) → ApiError(503)
"""

import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from backoffice.config import API_URL
from backoffice.api.errors import ApiError, SessionExpired
from backoffice.api.session import ApiSession

logger = logging.getLogger(__name__)

T = TypeVar("T")

TOKEN_PATH = "token/"
REFRESH_PATH = "token/refresh/"
VERIFY_PATH = "token/verify/"

# Endpoints de autenticación: nunca disparan el refresh
_AUTH_PATHS = {TOKEN_PATH, REFRESH_PATH, VERIFY_PATH}

# Valor "todos" de los selects de filtro
ALL = "all"


class Page(BaseModel, Generic[T]):
    """Sobre paginado: {count, next, previous, results}"""
    count: int = 0
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[T] = []

    def num_pages(self, page_size: int) -> int:
        if page_size <= 0 or self.count <= 0:
            return 1
        return (self.count + page_size - 1) // page_size


def clean_params(params: Optional[dict]) -> dict:
    """Quita filtros vacíos y el centinela 'all'."""
    if not params:
        return {}
    limpio = {}
    for clave, valor in params.items():
        if valor is None or valor == "" or valor == ALL:
            continue
        if isinstance(valor, bool):
            valor = "true" if valor else "false"
        limpio[clave] = valor
    return limpio


class ApiClient:
    def __init__(
        self,
        session: ApiSession,
        base_url: str = API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self.base_url = base_url
        self.transport = transport

    # ============================================================
    # VERBOS
    # ============================================================
    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Optional[dict] = None) -> Any:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Optional[dict] = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> None:
        await self.request("DELETE", path)

    async def get_page(self, path: str, model: Type[T], params: Optional[dict] = None) -> Page[T]:
        data = await self.get(path, params=params)
        # Algunos sub-recursos responden una lista sin paginar
        if isinstance(data, list):
            data = {"count": len(data), "next": None, "previous": None, "results": data}
        return Page[model].model_validate(data or {})

    # ============================================================
    # REQUEST CON REFRESH
    # ============================================================
    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        params = clean_params(params)
        response = await self._send(method, path, params, json)

        if response.status_code == 401 and path not in _AUTH_PATHS:
            if self.session.refresh_token and await self._refresh_token():
                # Un único reintento por request
                response = await self._send(method, path, params, json)

            if response.status_code == 401:
                logger.warning(f"Sesión expirada en {method} {path}")
                self.session.clear()
                raise SessionExpired()

        if response.is_error:
            error = ApiError.from_response(response)
            logger.warning(f"API {method} {path} → {response.status_code}: {error.detail}")
            raise error

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _refresh_token(self) -> bool:
        try:
            response = await self._send(
                "POST", REFRESH_PATH, None, {"refresh": self.session.refresh_token}, auth=False
            )
        except ApiError as e:
            logger.warning(f"Refresh de token falló: {e.detail}")
            return False

        if response.status_code != 200:
            logger.warning(f"Refresh de token rechazado ({response.status_code})")
            return False

        try:
            access = response.json().get("access")
        except ValueError:
            access = None
        if not access:
            return False

        self.session.refresh(access)
        logger.info("Token de acceso renovado")
        return True

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict],
        json: Optional[dict],
        auth: bool = True,
    ) -> httpx.Response:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if auth and self.session.access_token:
            headers["Authorization"] = f"Bearer {self.session.access_token}"

        try:
            async with httpx.AsyncClient(base_url=self.base_url, transport=self.transport) as client:
                return await client.request(method, path, params=params, json=json, headers=headers)
        except httpx.TimeoutException:
            logger.error(f"Timeout en {method} {path}")
            raise ApiError(503)
        except httpx.RequestError as e:
            logger.error(f"Error de conexión en {method} {path}: {e}", exc_info=True)
            raise ApiError(503)
