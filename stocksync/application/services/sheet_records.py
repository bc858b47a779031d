"""
Lectura de filas de la hoja como Records tipados.
"""

from __future__ import annotations

from stocksync.application.interfaces.tabular_store import TabularStore
from stocksync.domain.entities import FieldMap, Record


class SheetRecords:
    def __init__(self, store: TabularStore, field_map: FieldMap) -> None:
        self._store = store
        self._field_map = field_map

    def ensure_headers(self) -> list[str]:
        """Asegura columnas mapeadas + columnas de metadatos en la hoja."""
        return self._store.ensure_headers(self._field_map.sheet_headers())

    def read_all(self) -> list[Record]:
        meta = self._field_map.meta
        return [
            Record.from_row(idx, row, meta)
            for idx, row in enumerate(self._store.read_rows(), start=1)
        ]

    def read(self, position: int) -> Record:
        return Record.from_row(position, self._store.read_row(position), self._field_map.meta)

    def data_columns(self) -> list[str]:
        """Encabezados de datos (sin vacios ni columnas de metadatos)."""
        meta_names = set(self._field_map.meta.names())
        return [h for h in self._store.headers() if h and h not in meta_names]
