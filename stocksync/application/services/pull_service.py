"""
Pull completo Notion -> Hoja (reemplazo total).

Destructivo: reemplaza toda la region de datos de una sola vez (el
encabezado se conserva), sin merge con ediciones locales no enviadas.
Last-write-wins en la direccion del pull.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

from loguru import logger

from stocksync.application.interfaces.remote_api import RemoteDocumentApi
from stocksync.application.interfaces.tabular_store import TabularStore
from stocksync.application.services.row_mapper import RowMapper
from stocksync.application.services.sheet_records import SheetRecords
from stocksync.domain.entities import FieldMap, SyncStatus
from stocksync.shared.utils.datetime_utils import DateTimeUtils


class PullService:
    def __init__(
        self,
        *,
        store: TabularStore,
        client: RemoteDocumentApi,
        database_id: str,
        field_map: FieldMap,
        page_size: int = 100,
        clock: Callable[[], datetime] = DateTimeUtils.now_utc,
    ) -> None:
        self._store = store
        self._client = client
        self._database_id = database_id
        self._field_map = field_map
        self._mapper = RowMapper(field_map)
        self._records = SheetRecords(store, field_map)
        self._page_size = page_size
        self._clock = clock

    def pull(self) -> int:
        """
        Trae todas las paginas y reemplaza la hoja.

        Si la API falla a mitad de paginacion, la hoja queda intacta.

        Returns:
            Cantidad de filas escritas.
        """
        meta = self._field_map.meta
        pulled_at = DateTimeUtils.to_cell(self._clock())

        rows: list[dict[str, Any]] = []
        cursor: Optional[str] = None
        pages = 0
        while True:
            page = self._client.query_database(
                self._database_id, page_size=self._page_size, start_cursor=cursor
            )
            pages += 1
            for result in page.results:
                row = self._mapper.from_remote(result.get("properties") or {})
                row[meta.remote_id] = str(result.get("id") or "")
                row[meta.last_pulled_at] = pulled_at
                row[meta.last_pushed_at] = ""
                row[meta.status] = SyncStatus.PULLED.value
                rows.append(row)
            if not page.has_more or not page.next_cursor:
                break
            cursor = page.next_cursor

        # Nada se escribe en la hoja hasta tener todas las paginas.
        self._records.ensure_headers()
        self._store.replace_data(rows)
        logger.success(
            f"Pull completado '{self._field_map.table_name}': {len(rows)} fila(s) en {pages} pagina(s)"
        )
        return len(rows)
