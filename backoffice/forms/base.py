"""
Formularios: base de validación
backoffice/forms/base.py

Cada formulario es un modelo pydantic:
  1. Validación por campo (requeridos, formatos, conversiones texto → número)
  2. refine(): reglas entre campos (p.ej. campos requeridos según el outcome)
  3. to_payload(): formato inverso para el API (fechas 'yyyy-MM-dd')
  4. initial(entidad): valores del servidor → valores del formulario

La validación corre antes de enviar; si falla no hay llamada de red.
"""

import re
from datetime import date, datetime
from enum import Enum
from typing import Annotated, ClassVar, Dict, Iterable, Optional, Tuple, Type, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, FiniteFloat, TypeAdapter, ValidationError, model_validator

from backoffice.utils.formatting import format_api_date, format_api_datetime, format_number_input

F = TypeVar("F", bound="FormBase")

EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
TIME_REGEX = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")

# Mensajes por tipo de error de pydantic
_MENSAJES = {
    "missing": "This field is required",
    "float_parsing": "Enter a valid number",
    "float_type": "Enter a valid number",
    "finite_number": "Enter a valid number",
    "int_parsing": "Enter a whole number",
    "int_from_float": "Enter a whole number",
    "date_from_datetime_parsing": "Enter a valid date",
    "date_parsing": "Enter a valid date",
    "datetime_from_date_parsing": "Enter a valid date and time",
    "datetime_parsing": "Enter a valid date and time",
    "enum": "Select a valid option",
    "bool_parsing": "Select yes or no",
}


# ============================================================
# VALIDADORES REUTILIZABLES
# ============================================================
def _email(valor: str) -> str:
    if not EMAIL_REGEX.match(valor):
        raise ValueError("Invalid email address")
    return valor


def _hora(valor: str) -> str:
    if not TIME_REGEX.match(valor):
        raise ValueError("Invalid time format (HH:MM)")
    return valor


def _no_futura(valor: date) -> date:
    if valor > date.today():
        raise ValueError("Date cannot be in the future")
    return valor


def _no_pasada(valor: date) -> date:
    if valor < date.today():
        raise ValueError("Date cannot be in the past")
    return valor


def _positivo(valor: float) -> float:
    if valor <= 0:
        raise ValueError("Amount must be greater than zero")
    return valor


def _no_negativo(valor: float) -> float:
    if valor < 0:
        raise ValueError("Value cannot be negative")
    return valor


Email = Annotated[str, AfterValidator(_email)]
TimeHHMM = Annotated[str, AfterValidator(_hora)]
PastOrToday = Annotated[date, AfterValidator(_no_futura)]
TodayOrLater = Annotated[date, AfterValidator(_no_pasada)]
# FiniteFloat: "nan", "inf" y "1e400" no son montos
PositiveAmount = Annotated[FiniteFloat, AfterValidator(_positivo)]
NonNegative = Annotated[FiniteFloat, AfterValidator(_no_negativo)]


# ============================================================
# FORMULARIO BASE
# ============================================================
class FormBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    # Mensaje específico cuando falta un campo requerido
    required_messages: ClassVar[Dict[str, str]] = {}
    # Campos que no viajan al API
    payload_exclude: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _blancos_a_ausentes(cls, data):
        """Un input vacío equivale a un campo no enviado."""
        if isinstance(data, dict):
            return _sin_blancos(data)
        return data

    def refine(self) -> Dict[str, str]:
        """Reglas entre campos. Devuelve {campo: mensaje}."""
        return {}

    def to_payload(self) -> dict:
        payload = {}
        for nombre in type(self).model_fields:
            if nombre in self.payload_exclude:
                continue
            valor = getattr(self, nombre)
            if valor is None:
                continue
            payload[nombre] = _a_api(valor)
        return payload

    @classmethod
    def initial(cls, entity) -> dict:
        """Entidad del servidor → valores para los inputs."""
        valores = {}
        for nombre in cls.model_fields:
            valor = getattr(entity, nombre, None)
            valores[nombre] = _a_input(valor)
        return valores


def _sin_blancos(data: dict) -> dict:
    return {
        k: v for k, v in data.items()
        if not (v is None or (isinstance(v, str) and v.strip() == ""))
    }


def _a_api(valor):
    if isinstance(valor, Enum):
        return valor.value
    if isinstance(valor, datetime):
        return format_api_datetime(valor)
    if isinstance(valor, date):
        return format_api_date(valor)
    return valor


def _a_input(valor):
    if valor is None:
        return ""
    if isinstance(valor, Enum):
        return valor.value
    if isinstance(valor, bool):
        return valor
    if isinstance(valor, datetime):
        return format_api_datetime(valor)
    if isinstance(valor, date):
        return format_api_date(valor)
    if isinstance(valor, (int, float)):
        return format_number_input(valor)
    return valor


# ============================================================
# HELPERS
# ============================================================
def errors_by_field(exc: ValidationError, form_cls: Type[FormBase]) -> Dict[str, str]:
    """ValidationError → {campo: primer mensaje}."""
    errores = {}
    for err in exc.errors():
        campo = str(err["loc"][0]) if err.get("loc") else "__all__"
        if campo in errores:
            continue
        tipo = err.get("type", "")
        if tipo == "missing" and campo in form_cls.required_messages:
            mensaje = form_cls.required_messages[campo]
        elif tipo == "value_error":
            mensaje = str(err.get("ctx", {}).get("error", err["msg"]))
        elif tipo == "string_too_short":
            mensaje = f"Must be at least {err['ctx']['min_length']} characters"
        elif tipo == "greater_than_equal":
            mensaje = f"Must be at least {err['ctx']['ge']}"
        else:
            mensaje = _MENSAJES.get(tipo, err["msg"])
        errores[campo] = mensaje
    return errores


def validate_form(form_cls: Type[F], data: dict) -> Tuple[Optional[F], Dict[str, str]]:
    """
    Valida datos de formulario.
    Retorna: (formulario, {}) si es válido, (None, errores) si no.
    """
    try:
        form = form_cls.model_validate(data)
    except ValidationError as e:
        return None, errors_by_field(e, form_cls)

    errores = form.refine()
    if errores:
        return None, errores
    return form, {}


def validate_field(form_cls: Type[FormBase], data: dict, campo: str) -> Optional[str]:
    """
    Validación de un solo campo (on blur).
    Las reglas entre campos corren aunque otro campo siga inválido:
    se evalúan sobre los campos que sí validan.
    """
    try:
        form = form_cls.model_validate(data)
    except ValidationError as e:
        errores = errors_by_field(e, form_cls)
        if campo in errores:
            return errores[campo]
        form = _formulario_parcial(form_cls, data)
        if form is None:
            return None
    return form.refine().get(campo)


def _formulario_parcial(form_cls: Type[F], data: dict) -> Optional[F]:
    """Formulario con solo los campos válidos (sin validar el resto)."""
    limpios = _sin_blancos(data)
    validos = {}
    for nombre, info in form_cls.model_fields.items():
        if nombre not in limpios:
            continue
        adapter = TypeAdapter(info.rebuild_annotation(), config=ConfigDict(str_strip_whitespace=True))
        try:
            validos[nombre] = adapter.validate_python(limpios[nombre])
        except ValidationError:
            continue
    form = form_cls.model_construct(**validos)
    # Sin los campos que refine() necesita no hay regla que evaluar
    try:
        form.refine()
    except (AttributeError, TypeError):
        return None
    return form


async def read_form(request, checkboxes: Iterable[str] = ()) -> dict:
    """
    Form data del request → dict.
    Un checkbox desmarcado no llega en el POST: se interpreta como False.
    """
    form = await request.form()
    data = {k: v for k, v in form.items()}
    for campo in checkboxes:
        data[campo] = campo in form and form.get(campo) not in ("false", "off", "0")
    return data
