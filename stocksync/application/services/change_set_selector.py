"""
Seleccion de filas "sucias" para el proximo push.

Determinista: el mismo estado de la hoja produce el mismo Change-Set, en
el orden original de filas.
"""

from __future__ import annotations

from typing import Iterable

from stocksync.domain.entities import FieldMap, Record


class ChangeSetSelector:
    def __init__(self, field_map: FieldMap) -> None:
        self._field_map = field_map

    def qualifies(self, record: Record, *, only_changed: bool = True) -> bool:
        """
        Una fila califica si tiene identidad no vacia y ademas:
        - only_changed es False, o
        - aun no tiene remote id, o
        - su estado es dirty / *_error.
        """
        if not record.identity(self._field_map):
            return False
        if not only_changed:
            return True
        return not record.remote_id or record.status.needs_push

    def select(self, records: Iterable[Record], *, only_changed: bool = True) -> list[int]:
        return [r.position for r in records if self.qualifies(r, only_changed=only_changed)]
