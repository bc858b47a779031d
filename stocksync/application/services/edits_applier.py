"""
Aplica una cola de ediciones (SET columna = valor) sobre la hoja.

Cada edicion aplicada deja la fila en dirty y limpia last_pushed_at, de
modo que el siguiente push la incluya en el Change-Set.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from loguru import logger

from stocksync.application.interfaces.tabular_store import TabularStore
from stocksync.application.services.canonicalizer import Canonicalizer
from stocksync.application.services.status_tracker import StatusTracker
from stocksync.domain.entities import Edit, EditOutcome, EditResult, EditsReport, FieldMap


KEY_COLUMNS: tuple[str, ...] = ("SKU", "UPC")


class EditsApplier:
    def __init__(
        self,
        *,
        store: TabularStore,
        field_map: FieldMap,
        canonicalizer: Canonicalizer,
        canonical_columns: Sequence[str] = (),
        status_tracker: Optional[StatusTracker] = None,
    ) -> None:
        self._store = store
        self._field_map = field_map
        self._canonicalizer = canonicalizer
        self._canonical_columns = set(canonical_columns)
        self._tracker = status_tracker or StatusTracker(store, field_map.meta)

    def apply(self, edits: Iterable[Edit]) -> EditsReport:
        headers = set(self._store.headers())
        lookups = self._build_lookups(headers)
        report = EditsReport()

        for index, edit in enumerate(edits):
            if not edit.is_ready:
                report.ignored += 1
                continue
            result = self._apply_one(index, edit, headers, lookups)
            report.results.append(result)
            if result.outcome is EditOutcome.ERROR:
                logger.warning(f"Edicion {index} ({edit.key}/{edit.column}): {result.note}")

        logger.info(report.summary())
        return report

    def _apply_one(
        self,
        index: int,
        edit: Edit,
        headers: set[str],
        lookups: list[dict[str, int]],
    ) -> EditResult:
        key = str(edit.key or "").strip()
        column = str(edit.column or "").strip()
        action = str(edit.action or "set").strip().lower()

        if not key or not column:
            return EditResult(index, EditOutcome.ERROR, "Falta key o columna")
        if column not in headers or column in self._field_map.meta.names():
            return EditResult(index, EditOutcome.BAD_COLUMN, f"Columna no encontrada: {column}")

        position = _resolve(key, lookups)
        if position is None:
            return EditResult(
                index,
                EditOutcome.NO_MATCH,
                f"Key no encontrada (SKU, UPC, {self._field_map.title.local_name}): {key}",
            )
        if action != "set":
            return EditResult(index, EditOutcome.ERROR, f"Accion no soportada: {action}", position)

        new_value = edit.new_value
        if column in self._canonical_columns:
            new_value = self._canonicalizer(new_value)

        try:
            current = self._store.read_row(position).get(column, "")
            if str(current) == str(new_value):
                return EditResult(index, EditOutcome.NO_CHANGE, "Ya estaba actualizado", position)
            self._store.write_cells(position, {column: new_value})
            self._tracker.mark_dirty(position)
        except Exception as e:
            return EditResult(index, EditOutcome.ERROR, str(e), position)

        return EditResult(index, EditOutcome.APPLIED, f"Antes: {current} -> Ahora: {new_value}", position)

    def _build_lookups(self, headers: set[str]) -> list[dict[str, int]]:
        """Un mapa valor -> position por columna clave; gana la primera fila."""
        columns = [c for c in KEY_COLUMNS if c in headers]
        columns.append(self._field_map.title.local_name)
        lookups: list[dict[str, int]] = [{} for _ in columns]
        for position, row in enumerate(self._store.read_rows(), start=1):
            for lookup, column in zip(lookups, columns):
                value = str(row.get(column) or "").strip()
                if value and value not in lookup:
                    lookup[value] = position
        return lookups


def _resolve(key: str, lookups: list[dict[str, int]]) -> Optional[int]:
    for lookup in lookups:
        if key in lookup:
            return lookup[key]
    return None
