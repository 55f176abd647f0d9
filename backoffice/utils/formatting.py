"""
Formateo para pantalla y para el API
backoffice/utils/formatting.py

Fechas del API: "yyyy-MM-dd" (o ISO con hora). Se toma la fecha calendario
tal cual viene, sin convertir zona horaria, para que ida y vuelta
(formulario → API → formulario) no corra el día.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

from backoffice.config import CURRENCY_SYMBOL

API_DATE_FORMAT = "%Y-%m-%d"
API_DATETIME_FORMAT = "%Y-%m-%dT%H:%M"

_RE_NO_DIGITOS = re.compile(r"\D")


# ============================================================
# API ↔ FORMULARIO
# ============================================================
def parse_api_date(valor) -> Optional[date]:
    """'2024-01-31' / '2024-01-31T23:30:00Z' / date → date (mismo día)."""
    if valor is None or valor == "":
        return None
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor
    if isinstance(valor, str):
        return datetime.strptime(valor.strip()[:10], API_DATE_FORMAT).date()
    return valor


def format_api_date(valor: Union[date, datetime, str, None]) -> Optional[str]:
    """date → 'yyyy-MM-dd' para enviar al API o llenar un <input type=date>."""
    if valor is None or valor == "":
        return None
    if isinstance(valor, str):
        valor = parse_api_date(valor)
    if isinstance(valor, datetime):
        valor = valor.date()
    return valor.strftime(API_DATE_FORMAT)


def parse_api_datetime(valor) -> Optional[datetime]:
    if valor is None or valor == "":
        return None
    if isinstance(valor, datetime):
        return valor
    texto = str(valor).strip().replace("Z", "+00:00")
    return datetime.fromisoformat(texto)


def format_api_datetime(valor: Union[datetime, str, None]) -> Optional[str]:
    """datetime → 'yyyy-MM-ddTHH:MM' (formato de <input type=datetime-local>)."""
    if valor is None or valor == "":
        return None
    if isinstance(valor, str):
        valor = parse_api_datetime(valor)
    return valor.strftime(API_DATETIME_FORMAT)


def format_number_input(valor) -> str:
    """Números → texto para inputs (1500.0 → '1500', 12.5 → '12.5')."""
    if valor is None:
        return ""
    if isinstance(valor, float) and valor.is_integer():
        return str(int(valor))
    return str(valor)


# ============================================================
# PANTALLA (filtros Jinja)
# ============================================================
def format_date(valor) -> str:
    """Jan 31, 2024"""
    if not valor:
        return "-"
    if isinstance(valor, str):
        valor = parse_api_date(valor)
    if isinstance(valor, datetime):
        valor = valor.date()
    return f"{valor.strftime('%b')} {valor.day}, {valor.year}"


def format_datetime(valor) -> str:
    """Jan 31, 2024, 3:05 PM"""
    if not valor:
        return "-"
    if isinstance(valor, str):
        valor = parse_api_datetime(valor)
    hora = valor.strftime("%I:%M %p").lstrip("0")
    return f"{format_date(valor)}, {hora}"


def format_currency(monto) -> str:
    if monto is None or monto == "":
        return "-"
    try:
        monto = float(monto)
    except (TypeError, ValueError):
        return "-"
    signo = "-" if monto < 0 else ""
    return f"{signo}{CURRENCY_SYMBOL}{abs(monto):,.2f}"


def format_phone(numero: Optional[str]) -> str:
    if not numero:
        return "-"
    limpio = _RE_NO_DIGITOS.sub("", numero)
    if len(limpio) == 10:
        return f"({limpio[:3]}) {limpio[3:6]}-{limpio[6:]}"
    if len(limpio) > 10:
        return f"+{limpio[:-10]} {limpio[-10:-7]} {limpio[-7:-4]} {limpio[-4:]}"
    return numero


def truncate_text(texto: Optional[str], max_len: int) -> str:
    if not texto:
        return ""
    return texto[:max_len] + "..." if len(texto) > max_len else texto


def initials(nombre: Optional[str]) -> str:
    """Iniciales para el avatar: 'Juan Pérez' → 'JP'."""
    partes = (nombre or "").split()
    return "".join(p[0] for p in partes[:2]).upper()
