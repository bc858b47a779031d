"""
Hoja en memoria con el mismo contrato que WorkbookTabularStore.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence


class InMemoryTabularStore:
    """Encabezados + filas como listas; util para tests y dry-runs."""

    def __init__(
        self,
        headers: Optional[Sequence[str]] = None,
        rows: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> None:
        self._headers: list[str] = [str(h) for h in (headers or [])]
        self._rows: list[dict[str, Any]] = []
        for row in rows or []:
            self.append_row(row)

    def headers(self) -> list[str]:
        return list(self._headers)

    def ensure_headers(self, names: Sequence[str]) -> list[str]:
        for name in names:
            if name not in self._headers:
                self._headers.append(name)
                for row in self._rows:
                    row.setdefault(name, "")
        return self.headers()

    def row_count(self) -> int:
        return len(self._rows)

    def read_rows(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self._rows]

    def read_row(self, position: int) -> dict[str, Any]:
        if position < 1 or position > len(self._rows):
            raise IndexError(f"Fila {position} fuera de rango (1..{len(self._rows)})")
        return dict(self._rows[position - 1])

    def write_cells(self, position: int, values: Mapping[str, Any]) -> None:
        if position < 1 or position > len(self._rows):
            raise IndexError(f"Fila {position} fuera de rango (1..{len(self._rows)})")
        self.ensure_headers(list(values.keys()))
        self._rows[position - 1].update(values)

    def replace_data(self, rows: Sequence[Mapping[str, Any]]) -> None:
        self._rows = []
        for row in rows:
            self.append_row(row)

    def append_row(self, values: Mapping[str, Any]) -> int:
        self.ensure_headers(list(values.keys()))
        self._rows.append({h: values.get(h, "") for h in self._headers})
        return len(self._rows)
