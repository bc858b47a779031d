"""
Anotaciones de estado por fila escritas de vuelta en la hoja.

Sirven para observabilidad y para alimentar el ChangeSetSelector de la
siguiente corrida (reintento en la proxima corrida, no dentro de la misma).
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from loguru import logger

from stocksync.application.interfaces.tabular_store import TabularStore
from stocksync.domain.entities import MetaColumns, SyncStatus
from stocksync.shared.utils.datetime_utils import DateTimeUtils


class StatusTracker:
    def __init__(
        self,
        store: TabularStore,
        meta: MetaColumns,
        *,
        clock: Callable[[], datetime] = DateTimeUtils.now_utc,
    ) -> None:
        self._store = store
        self._meta = meta
        self._clock = clock

    def record_remote_id(self, position: int, remote_id: str) -> None:
        """
        Persiste el id remoto inmediatamente despues del create.

        Si el proceso muere a mitad de lote, el reintento vera el id y hara
        update en vez de crear un duplicado.
        """
        self._store.write_cells(position, {self._meta.remote_id: remote_id})

    def mark_pushed(self, position: int, status: SyncStatus) -> None:
        self._store.write_cells(
            position,
            {
                self._meta.status: status.value,
                self._meta.last_pushed_at: DateTimeUtils.to_cell(self._clock()),
            },
        )

    def mark_error(self, position: int, status: SyncStatus = SyncStatus.PUSH_ERROR) -> None:
        self._store.write_cells(position, {self._meta.status: status.value})

    def mark_dirty(self, position: int) -> None:
        """Edicion local detectada: dirty y se limpia last_pushed_at."""
        self._store.write_cells(
            position,
            {self._meta.status: SyncStatus.DIRTY.value, self._meta.last_pushed_at: ""},
        )
        logger.debug(f"Fila {position} marcada como dirty")
