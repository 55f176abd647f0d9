"""
Helpers compartidos por las páginas
backoffice/utils/pages.py

Detalle:  loading → notFound | forbidden | ready
Listado:  loading → success | error
Borrado:  la fila sólo desaparece si el DELETE respondió bien
"""

import logging
from typing import Awaitable, Optional, TypeVar

from fastapi import Request
from fastapi.responses import Response

from backoffice.api.errors import ApiError
from backoffice.middleware.authorization import Forbidden
from backoffice.utils.responses import is_htmx, redirect, trigger_toast

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityNotFound(Exception):
    def __init__(self, message: str = "The requested record was not found."):
        self.message = message
        super().__init__(message)


async def fetch_entity(coro: Awaitable[T], label: str = "record") -> T:
    """Carga una entidad; 404 → EntityNotFound, 403 → Forbidden."""
    try:
        return await coro
    except ApiError as e:
        if e.not_found:
            raise EntityNotFound(f"The requested {label} was not found.")
        if e.forbidden:
            raise Forbidden()
        raise


async def fetch_list(coro: Awaitable[T], error_message: str):
    """
    Carga un listado sin tumbar la página.
    Retorna: (pagina | None, mensaje_error | None)
    """
    try:
        return await coro, None
    except ApiError as e:
        logger.warning(f"{error_message}: {e.detail}")
        return None, e.message_or(error_message)


async def delete_row(
    request: Request,
    coro: Awaitable[None],
    list_url: str,
    success_message: str,
    error_message: str,
) -> Response:
    """
    Borrado confirmado desde una fila del listado (hx-confirm en el botón).

    htmx:
      éxito → 200 vacío: htmx reemplaza la fila por nada
      error → 204: htmx no toca la fila; el toast muestra el error
    sin htmx: redirect al listado con mensaje flash
    """
    try:
        await coro
    except ApiError as e:
        mensaje = e.message_or(error_message)
        if is_htmx(request):
            return trigger_toast(Response(status_code=204), mensaje, "error")
        return redirect(request, list_url, mensaje, "error")

    if is_htmx(request):
        return trigger_toast(Response(status_code=200, content=""), success_message)
    return redirect(request, list_url, success_message)


async def safe_options(coro: Awaitable, default=None):
    """Opciones de selects (oficiales, clientes): si fallan el form sigue usable."""
    try:
        page = await coro
    except ApiError as e:
        logger.warning(f"No se pudieron cargar opciones: {e.detail}")
        return default if default is not None else []
    return page.results


def form_error(e: ApiError, fallback: str) -> Optional[str]:
    """Mensaje para la alerta del formulario (detalle del servidor o genérico)."""
    return e.message_or(fallback)
