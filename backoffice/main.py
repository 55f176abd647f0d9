import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse, Response
from fastapi.staticfiles import StaticFiles

from backoffice.config import SITE_NAME, configure_logging
from backoffice.api.errors import ApiError, SessionExpired
from backoffice.api.session import ApiSession
from backoffice.middleware.authorization import Forbidden
from backoffice.templating import render
from backoffice.utils.pages import EntityNotFound
from backoffice.utils.responses import is_htmx

# Importamos todos los routers
from backoffice.routers import (
    auth, dashboard, users, hierarchies, customers, loans, payments,
    interactions, follow_ups, reports, fragments,
)

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=SITE_NAME)

app.mount("/static", StaticFiles(directory=str(Path(__file__).parent / "static")), name="static")

# Transporte httpx del cliente API (None = red real; los tests inyectan uno)
app.state.api_transport = None


# --- MIDDLEWARE DE SESIÓN ---
@app.middleware("http")
async def session_middleware(request: Request, call_next):
    # 1. Tokens desde las cookies → contexto de sesión del request
    session = ApiSession.from_cookies(request.cookies)
    request.state.api_session = session

    response = await call_next(request)

    # 2. Login / refresh / logout ocurridos durante el request → cookies
    session.apply(response)
    return response


# --- MANEJO DE ERRORES ---
@app.exception_handler(SessionExpired)
async def session_expired_handler(request: Request, exc: SessionExpired):
    session = getattr(request.state, "api_session", None)
    if session is not None and session.is_authenticated:
        session.clear()

    if is_htmx(request):
        response = Response(status_code=200)
        response.headers["HX-Redirect"] = "/login"
        return response
    return RedirectResponse(url="/login", status_code=303)


@app.exception_handler(Forbidden)
async def forbidden_handler(request: Request, exc: Forbidden):
    return render(request, "pages/errors/forbidden.html", {"message": exc.message}, status_code=403)


@app.exception_handler(EntityNotFound)
async def not_found_handler(request: Request, exc: EntityNotFound):
    return render(request, "pages/errors/not_found.html", {"message": exc.message}, status_code=404)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    logger.warning(f"Error del API no manejado en {request.url.path}: {exc}")
    status_code = exc.status_code if exc.status_code >= 400 else 502
    return render(request, "pages/errors/api_error.html", {"message": exc.detail}, status_code=status_code)


# --- RUTAS ---
app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(users.router)
app.include_router(hierarchies.router)
app.include_router(customers.router)
app.include_router(loans.router)
app.include_router(payments.router)
app.include_router(interactions.router)
app.include_router(follow_ups.router)
app.include_router(reports.router)
app.include_router(fragments.router)


# --- RUTAS BASE ---
@app.get("/")
async def home(request: Request):
    if request.state.api_session.is_authenticated:
        return RedirectResponse(url="/dashboard")
    return RedirectResponse(url="/login")
