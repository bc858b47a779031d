"""
Interfaz de la base de datos remota ("Remote Document API").

Implementaciones:
- NotionClient (requests).
- Fake en memoria para tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol


class RemoteApiError(RuntimeError):
    """Fallo de la API remota: respuesta no-2xx, cuerpo invalido o transporte."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, code: Optional[str] = None):
        self.status_code = status_code
        self.code = code
        super().__init__(message)


@dataclass(frozen=True)
class QueryPage:
    """Una pagina de resultados de una consulta a la base remota."""

    results: list[dict[str, Any]]
    has_more: bool
    next_cursor: Optional[str]


class RemoteDocumentApi(Protocol):
    def get_schema(self, database_id: str) -> dict[str, str]:
        """{nombre_propiedad: tipo}"""

    def patch_schema(self, database_id: str, fields: dict[str, str]) -> None:
        """Agrega propiedades {nombre: tipo}."""

    def create_page(self, database_id: str, properties: dict[str, Any]) -> str:
        """Crea una pagina y retorna su id (remote id)."""

    def update_page(self, page_id: str, properties: dict[str, Any]) -> None:
        """Actualiza propiedades de una pagina existente."""

    def query_database(
        self,
        database_id: str,
        *,
        page_size: int = 100,
        start_cursor: Optional[str] = None,
    ) -> QueryPage:
        """Una pagina de resultados."""
