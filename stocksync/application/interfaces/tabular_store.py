"""
Interfaz de la hoja de calculo ("Tabular Store").

Este contrato existe para:
- Que el motor de sync no dependa de openpyxl ni de Google Sheets.
- Facilitar tests unitarios con una hoja en memoria.

Convenciones:
- La fila 1 es el encabezado; las columnas se direccionan por nombre.
- position es 1-based sobre la region de datos (position 1 = fila 2).
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence


class TabularStore(Protocol):
    """Hoja con encabezados y filas direccionables por posicion."""

    def headers(self) -> list[str]:
        """Encabezados actuales (fila 1)."""

    def ensure_headers(self, names: Sequence[str]) -> list[str]:
        """
        Agrega al final los encabezados que falten (no destructivo).

        Returns:
            Encabezados resultantes.
        """

    def row_count(self) -> int:
        """Cantidad de filas de datos."""

    def read_rows(self) -> list[dict[str, Any]]:
        """Todas las filas de datos como dicts encabezado -> valor."""

    def read_row(self, position: int) -> dict[str, Any]:
        """Una fila de datos. Lanza IndexError si no existe."""

    def write_cells(self, position: int, values: Mapping[str, Any]) -> None:
        """Escribe celdas de una fila por nombre de columna."""

    def replace_data(self, rows: Sequence[Mapping[str, Any]]) -> None:
        """
        Reemplaza toda la region de datos de una vez (encabezado preservado).
        """

    def append_row(self, values: Mapping[str, Any]) -> int:
        """Agrega una fila al final y retorna su position."""
