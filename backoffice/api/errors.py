"""
Errores del cliente API
backoffice/api/errors.py
"""

from typing import Optional

import httpx

GENERIC_ERROR = "Something went wrong. Please try again."

_MENSAJES_POR_STATUS = {
    400: "The request was rejected by the server.",
    403: "You don't have permission to perform this action.",
    404: "The requested record was not found.",
    500: "The server encountered an error.",
    502: "The server is unavailable.",
    503: "Could not reach the server.",
    504: "The server took too long to respond.",
}


class ApiError(Exception):
    """Error HTTP o de red devuelto por el API."""

    def __init__(self, status_code: int, detail: Optional[str] = None, errors: Optional[dict] = None):
        self.status_code = status_code
        self.from_server = bool(detail)
        self.detail = detail or _MENSAJES_POR_STATUS.get(status_code, GENERIC_ERROR)
        self.errors = errors or {}
        super().__init__(f"{status_code}: {self.detail}")

    @property
    def message(self) -> str:
        return self.detail

    def message_or(self, fallback: str) -> str:
        """Detalle del servidor si lo mandó; si no, el mensaje de la pantalla."""
        return self.detail if self.from_server else fallback

    @property
    def not_found(self) -> bool:
        return self.status_code == 404

    @property
    def forbidden(self) -> bool:
        return self.status_code == 403

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        """
        Extrae el mensaje del servidor cuando lo hay.

        Formatos soportados:
          {"detail": "..."}
          {"campo": ["mensaje", ...], "non_field_errors": [...]}
          ["mensaje", ...]
        """
        try:
            data = response.json()
        except ValueError:
            return cls(response.status_code)

        detail = None
        errors = {}

        if isinstance(data, dict):
            if isinstance(data.get("detail"), str):
                detail = data["detail"]
            for campo, valor in data.items():
                if campo == "detail":
                    continue
                mensaje = _primer_mensaje(valor)
                if mensaje:
                    errors[campo] = mensaje
            if not detail:
                if "non_field_errors" in errors:
                    detail = errors.pop("non_field_errors")
                elif errors:
                    campo, mensaje = next(iter(errors.items()))
                    detail = f"{campo}: {mensaje}"
        elif isinstance(data, list):
            detail = _primer_mensaje(data)
        elif isinstance(data, str) and data:
            detail = data

        return cls(response.status_code, detail, errors)


class SessionExpired(Exception):
    """Sin credenciales válidas: hay que volver a iniciar sesión."""


def _primer_mensaje(valor) -> Optional[str]:
    if isinstance(valor, str):
        return valor
    if isinstance(valor, list) and valor:
        return _primer_mensaje(valor[0])
    return None
