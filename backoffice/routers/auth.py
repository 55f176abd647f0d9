"""
Router: Autenticación
=====================
- Login con usuario y clave (par access/refresh del API)
- Logout
"""

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse

from backoffice.api.client import ApiClient
from backoffice.api.errors import ApiError
from backoffice.middleware.authorization import get_api_client
from backoffice.services.auth import AuthService
from backoffice.templating import render
from backoffice.utils.responses import is_htmx, redirect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

INVALID_CREDENTIALS = "Invalid username or password"


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    if request.state.api_session.is_authenticated:
        return redirect(request, "/dashboard")
    return render(request, "pages/login.html", {"username": ""})


@router.post("/auth/login")
async def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    api: ApiClient = Depends(get_api_client),
):
    """
    Credenciales → POST token/ → cookies de sesión → /dashboard.
    Error: se vuelve a mostrar el formulario con el usuario ingresado.
    """
    username = username.strip()

    if not username or not password:
        return _login_error(request, username, "Username and password are required")

    try:
        await AuthService(api).login(username, password)
    except ApiError as e:
        if e.status_code in (400, 401):
            logger.warning(f"Login fallido: {username}")
            return _login_error(request, username, INVALID_CREDENTIALS)
        return _login_error(request, username, e.message)

    return redirect(request, "/dashboard")


@router.get("/auth/logout")
async def logout(request: Request, api: ApiClient = Depends(get_api_client)):
    AuthService(api).logout()
    return redirect(request, "/login", "You have been logged out", "info")


def _login_error(request: Request, username: str, message: str):
    context = {"username": username, "error": message}
    if is_htmx(request):
        return render(request, "partials/login_form.html", context)
    return render(request, "pages/login.html", context, status_code=401)
