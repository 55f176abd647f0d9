"""
Templates Jinja2 y contexto común
backoffice/templating.py
"""

from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

from backoffice.config import CURRENCY_SYMBOL, SITE_NAME
from backoffice.middleware.authorization import Action, menu_for
from backoffice.utils import formatting
from backoffice.utils.responses import FLASH_COOKIE, is_htmx, pop_flash

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

templates.env.filters["date"] = formatting.format_date
templates.env.filters["datetime"] = formatting.format_datetime
templates.env.filters["currency"] = formatting.format_currency
templates.env.filters["phone"] = formatting.format_phone
templates.env.filters["truncate_text"] = formatting.truncate_text
templates.env.filters["initials"] = formatting.initials
templates.env.globals["site_name"] = SITE_NAME
templates.env.globals["currency_symbol"] = CURRENCY_SYMBOL
templates.env.globals["Action"] = Action

# Clases de badge por estado
BADGES = {
    "PENDING": "badge-secondary",
    "ACTIVE": "badge-primary",
    "PAID": "badge-success",
    "DEFAULTED": "badge-danger",
    "RESTRUCTURED": "badge-warning",
    "WRITTEN_OFF": "badge-outline",
    "COMPLETED": "badge-success",
    "RESCHEDULED": "badge-warning",
    "CANCELED": "badge-secondary",
    "LOW": "badge-outline",
    "MEDIUM": "badge-secondary",
    "HIGH": "badge-primary",
    "URGENT": "badge-danger",
    "SUPER_MANAGER": "badge-danger",
    "MANAGER": "badge-warning",
    "COLLECTION_OFFICER": "badge-primary",
    "CALLING_AGENT": "badge-success",
}


def badge_class(valor) -> str:
    clave = getattr(valor, "value", valor)
    return BADGES.get(clave, "badge-outline")


templates.env.globals["badge_class"] = badge_class


def render(request: Request, template: str, context: Optional[dict] = None, status_code: int = 200):
    """TemplateResponse con usuario, menú y mensaje flash pendiente."""
    user = getattr(request.state, "user", None)
    flash = pop_flash(request)
    ctx = {
        "user": user,
        "menu": menu_for(user),
        "flash": flash,
        "current_path": request.url.path,
    }
    ctx.update(context or {})
    response = templates.TemplateResponse(request, template, ctx, status_code=status_code)
    if flash:
        response.delete_cookie(FLASH_COOKIE)
    return response


def render_form(request: Request, name: str, context: dict, invalid: bool = False):
    """
    Formularios: la página completa incluye partials/<name>.
    Con htmx sólo se devuelve el parcial (reemplaza al <form>).
    """
    if is_htmx(request):
        return render(request, f"partials/{name}", context)
    return render(request, f"pages/{name}", context, status_code=422 if invalid else 200)
