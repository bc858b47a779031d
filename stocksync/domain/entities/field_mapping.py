"""
Mapeo declarativo columna local <-> propiedad remota (Notion).

El mapeo es configuracion estatica: se carga una vez por corrida y es la
unica fuente de verdad para la coercion de tipos en ambas direcciones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional


class FieldType(str, Enum):
    """Tipos soportados por el mapeo."""

    TITLE = "title"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"

    @property
    def remote_type(self) -> str:
        """Nombre del tipo de propiedad equivalente en Notion."""
        return _REMOTE_TYPES[self]


_REMOTE_TYPES = {
    FieldType.TITLE: "title",
    FieldType.TEXT: "rich_text",
    FieldType.NUMBER: "number",
    FieldType.BOOLEAN: "checkbox",
    FieldType.SINGLE_CHOICE: "select",
    FieldType.MULTI_CHOICE: "multi_select",
}


@dataclass(frozen=True)
class FieldMapping:
    """
    Define el mapeo de una columna de la hoja a una propiedad Notion.

    - local_name: encabezado de la columna en la hoja
    - remote_name: nombre de la propiedad en la base de datos Notion
    - type: tipo declarado (decide la coercion)
    """

    local_name: str
    remote_name: str
    type: FieldType = FieldType.TEXT


@dataclass(frozen=True)
class MetaColumns:
    """Columnas reservadas para metadatos de sync en la hoja."""

    remote_id: str = "__page_id"
    last_pulled_at: str = "__last_pulled_at"
    last_pushed_at: str = "__last_pushed_at"
    status: str = "__status"

    def names(self) -> tuple[str, ...]:
        return (self.remote_id, self.last_pulled_at, self.last_pushed_at, self.status)


class FieldMapError(ValueError):
    """Mapeo de campos invalido (configuracion)."""


@dataclass(frozen=True)
class FieldMap:
    """
    Lista ordenada e inmutable de FieldMapping para una tabla.

    Invariante: exactamente una entrada de tipo title.
    identity_field es la columna que identifica una fila para el selector
    de cambios; por defecto es la columna mapeada al title.
    """

    table_name: str
    mappings: tuple[FieldMapping, ...]
    identity_field: Optional[str] = None
    meta: MetaColumns = field(default_factory=MetaColumns)

    def __post_init__(self) -> None:
        titles = [m for m in self.mappings if m.type is FieldType.TITLE]
        if len(titles) != 1:
            raise FieldMapError(
                f"La tabla '{self.table_name}' debe tener exactamente un campo title "
                f"(encontrados: {len(titles)})"
            )
        local_names = [m.local_name for m in self.mappings]
        if len(set(local_names)) != len(local_names):
            raise FieldMapError(f"La tabla '{self.table_name}' tiene columnas locales duplicadas")
        if self.identity_field is not None and self.identity_field not in local_names:
            raise FieldMapError(
                f"identity_field '{self.identity_field}' no existe en el mapeo de '{self.table_name}'"
            )

    def __iter__(self) -> Iterator[FieldMapping]:
        return iter(self.mappings)

    @property
    def title(self) -> FieldMapping:
        return next(m for m in self.mappings if m.type is FieldType.TITLE)

    @property
    def identity(self) -> str:
        return self.identity_field or self.title.local_name

    def by_local_name(self, local_name: str) -> Optional[FieldMapping]:
        for m in self.mappings:
            if m.local_name == local_name:
                return m
        return None

    def local_names(self) -> list[str]:
        return [m.local_name for m in self.mappings]

    def sheet_headers(self) -> list[str]:
        """Encabezados esperados en la hoja: columnas mapeadas + metadatos."""
        return self.local_names() + list(self.meta.names())
