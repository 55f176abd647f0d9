"""
Estado de las páginas de listado
backoffice/utils/listing.py

Paginación por número de página con tamaño fijo. Cualquier cambio de
filtro vuelve a la página 1.
"""

from typing import Dict, Iterable, Optional
from urllib.parse import urlencode

from backoffice.config import PAGE_SIZE


def _parse_page(valor) -> int:
    try:
        page = int(valor)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


class ListState:
    def __init__(
        self,
        base_url: str,
        page: int = 1,
        filters: Optional[Dict[str, str]] = None,
        page_size: int = PAGE_SIZE,
    ):
        self.base_url = base_url
        self.page = page
        self.page_size = page_size
        self.filters = {k: v for k, v in (filters or {}).items() if v not in (None, "")}

    @classmethod
    def from_request(cls, request, filter_names: Iterable[str], defaults: Optional[dict] = None) -> "ListState":
        query = request.query_params
        filters = dict(defaults or {})
        for nombre in filter_names:
            if nombre in query:
                filters[nombre] = query.get(nombre, "").strip()
        return cls(request.url.path, _parse_page(query.get("page")), filters)

    def get(self, nombre: str, default: str = "") -> str:
        return self.filters.get(nombre, default)

    def params(self) -> dict:
        """Bolsa de filtros para el servicio: {page, page_size, ...filtros}."""
        return {**self.filters, "page": self.page, "page_size": self.page_size}

    def with_filters(self, **changes) -> "ListState":
        filters = {**self.filters, **changes}
        return ListState(self.base_url, 1, filters, self.page_size)

    def with_page(self, page: int) -> "ListState":
        return ListState(self.base_url, max(page, 1), self.filters, self.page_size)

    def url(self) -> str:
        query = dict(self.filters)
        if self.page > 1:
            query["page"] = self.page
        return f"{self.base_url}?{urlencode(query)}" if query else self.base_url

    def page_url(self, page: int) -> str:
        return self.with_page(page).url()

    def num_pages(self, count: int) -> int:
        if count <= 0:
            return 1
        return (count + self.page_size - 1) // self.page_size
