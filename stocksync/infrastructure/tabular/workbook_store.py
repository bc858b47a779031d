"""Hoja de calculo respaldada por un libro .xlsx (openpyxl)."""
from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any, Mapping, Sequence

from loguru import logger
from openpyxl import Workbook, load_workbook


class WorkbookTabularStore:
    """
    Una hoja de un libro Excel como Tabular Store.

    - La fila 1 es el encabezado; position 1 es la fila 2 del libro.
    - Cada escritura se guarda en disco inmediatamente: si el proceso muere
      a mitad de lote, lo ya escrito (p.ej. un remote id) no se pierde.
    - Si el libro o la hoja no existen, se crean vacios.
    """

    def __init__(self, workbook_path: str | Path, sheet_name: str):
        self.workbook_path = Path(workbook_path)
        self.sheet_name = sheet_name
        if self.workbook_path.exists():
            self._workbook = load_workbook(self.workbook_path)
        else:
            logger.info(f"Libro {self.workbook_path} no existe; se crea uno vacio")
            self._workbook = Workbook()
            self._workbook.active.title = sheet_name
        if sheet_name not in self._workbook.sheetnames:
            self._workbook.create_sheet(sheet_name)
        self._ws = self._workbook[sheet_name]

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    def headers(self) -> list[str]:
        first = next(self._ws.iter_rows(min_row=1, max_row=1, values_only=True), ())
        headers = [str(cell).strip() if cell is not None else "" for cell in first]
        while headers and headers[-1] == "":
            headers.pop()
        return headers

    def row_count(self) -> int:
        # max_row puede incluir filas vacias al final (celdas formateadas).
        last = 1
        for idx, raw in enumerate(self._ws.iter_rows(min_row=2, values_only=True), start=2):
            if any(value not in (None, "") for value in raw):
                last = idx
        return last - 1

    def read_rows(self) -> list[dict[str, Any]]:
        headers = self.headers()
        count = self.row_count()
        if count == 0:
            return []
        return [
            self._to_dict(headers, raw)
            for raw in self._ws.iter_rows(
                min_row=2, max_row=count + 1, max_col=len(headers) or 1, values_only=True
            )
        ]

    def read_row(self, position: int) -> dict[str, Any]:
        count = self.row_count()
        if position < 1 or position > count:
            raise IndexError(f"Fila {position} fuera de rango (1..{count})")
        headers = self.headers()
        raw = next(
            self._ws.iter_rows(
                min_row=position + 1,
                max_row=position + 1,
                max_col=len(headers) or 1,
                values_only=True,
            )
        )
        return self._to_dict(headers, raw)

    # ------------------------------------------------------------------
    # Escritura
    # ------------------------------------------------------------------

    def ensure_headers(self, names: Sequence[str]) -> list[str]:
        headers = self.headers()
        missing = [name for name in names if name not in headers]
        for offset, name in enumerate(missing, start=len(headers) + 1):
            self._ws.cell(row=1, column=offset, value=name)
        if missing:
            logger.info(f"Encabezados agregados en '{self.sheet_name}': {', '.join(missing)}")
            self._save()
        return headers + missing

    def write_cells(self, position: int, values: Mapping[str, Any]) -> None:
        count = self.row_count()
        if position < 1 or position > count:
            raise IndexError(f"Fila {position} fuera de rango (1..{count})")
        headers = self.ensure_headers(list(values.keys()))
        for name, value in values.items():
            self._ws.cell(row=position + 1, column=headers.index(name) + 1, value=_to_cell(value))
        self._save()

    def replace_data(self, rows: Sequence[Mapping[str, Any]]) -> None:
        keys: list[str] = []
        for row in rows:
            keys.extend(k for k in row.keys() if k not in keys)
        headers = self.ensure_headers(keys)

        if self._ws.max_row > 1:
            self._ws.delete_rows(2, self._ws.max_row - 1)
        for idx, row in enumerate(rows, start=2):
            for col, name in enumerate(headers, start=1):
                self._ws.cell(row=idx, column=col, value=_to_cell(row.get(name, "")))
        self._save()

    def append_row(self, values: Mapping[str, Any]) -> int:
        headers = self.ensure_headers(list(values.keys()))
        position = self.row_count() + 1
        for col, name in enumerate(headers, start=1):
            self._ws.cell(row=position + 1, column=col, value=_to_cell(values.get(name, "")))
        self._save()
        return position

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _save(self) -> None:
        self.workbook_path.parent.mkdir(parents=True, exist_ok=True)
        self._workbook.save(self.workbook_path)

    @staticmethod
    def _to_dict(headers: Sequence[str], raw: Sequence[Any]) -> dict[str, Any]:
        row: dict[str, Any] = {}
        for idx, name in enumerate(headers):
            if not name:
                continue
            value = raw[idx] if idx < len(raw) else None
            row[name] = _normalize_value(value)
        return row


def _normalize_value(value: Any) -> Any:
    """Celdas vacias como "" y fechas Excel como ISO."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def _to_cell(value: Any) -> Any:
    if value is None or value == "":
        return None
    return value


__all__ = ["WorkbookTabularStore"]
