"""
Configuración
backoffice/config.py

Todas las variables se leen del entorno (Railway / .env).
"""

import os
import logging

# URL base del API REST (termina en "/")
API_URL = os.getenv("API_URL", "http://localhost:8000/api/")
if not API_URL.endswith("/"):
    API_URL += "/"

# Paginación de las tablas
PAGE_SIZE = int(os.getenv("PAGE_SIZE", "10"))

# Dashboard y reportes agregan sobre una sola página grande
REPORT_PAGE_SIZE = int(os.getenv("REPORT_PAGE_SIZE", "1000"))

# Cookies de sesión
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() in ("1", "true", "yes")
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", str(8 * 3600)))
REFRESH_MAX_AGE = int(os.getenv("REFRESH_MAX_AGE", str(7 * 24 * 3600)))

CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "$")
SITE_NAME = os.getenv("SITE_NAME", "Loan Collection Back-Office")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging():
    """Handler raíz único; llamado una vez desde main."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # httpx loguea cada request en INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
