"""
Respuestas para formularios htmx
backoffice/utils/responses.py

- Éxito → HX-Redirect (o 303 si el request no vino de htmx)
- Mensajes (toast) → cookie "flash" que lee la siguiente página, o
  header HX-Trigger cuando la respuesta es un fragmento
"""

import json
from typing import Optional
from urllib.parse import quote, unquote

from fastapi import Request
from fastapi.responses import RedirectResponse, Response

FLASH_COOKIE = "flash"


def is_htmx(request: Request) -> bool:
    return request.headers.get("HX-Request", "").lower() == "true"


def redirect(request: Request, url: str, message: Optional[str] = None, level: str = "success") -> Response:
    if is_htmx(request):
        response = Response(status_code=200)
        response.headers["HX-Redirect"] = url
    else:
        response = RedirectResponse(url=url, status_code=303)
    if message:
        set_flash(response, message, level)
    return response


def set_flash(response: Response, message: str, level: str = "success"):
    response.set_cookie(FLASH_COOKIE, quote(f"{level}|{message}"), max_age=60, httponly=True, samesite="lax")


def pop_flash(request: Request) -> Optional[dict]:
    raw = request.cookies.get(FLASH_COOKIE)
    if not raw:
        return None
    level, _, message = unquote(raw).partition("|")
    return {"level": level or "info", "message": message}


def trigger_toast(response: Response, message: str, level: str = "success") -> Response:
    """Toast para respuestas parciales (htmx dispara el evento showToast)."""
    response.headers["HX-Trigger"] = json.dumps({"showToast": {"message": message, "level": level}})
    return response
