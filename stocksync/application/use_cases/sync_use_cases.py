"""
Casos de uso de sincronizacion hoja <-> Notion.

Puntos de entrada con nombre (API, script y continuaciones programadas):
push_fresh, push_resume, push_continue, pull, reconcile_schema, push_status,
stop_push, check_mapping y apply_edits.
"""
from __future__ import annotations

import threading
from typing import Iterable, Optional

from loguru import logger

from stocksync.application.interfaces.remote_api import RemoteDocumentApi
from stocksync.application.interfaces.scheduler import ContinuationScheduler
from stocksync.application.interfaces.tabular_store import TabularStore
from stocksync.application.services.canonicalizer import Canonicalizer
from stocksync.application.services.edits_applier import EditsApplier
from stocksync.application.services.pull_service import PullService
from stocksync.application.services.push_engine import BatchedPushEngine
from stocksync.application.services.schema_reconciler import MappingCheck, SchemaReconciler
from stocksync.application.services.sheet_records import SheetRecords
from stocksync.core.config import Settings
from stocksync.domain.entities import Edit, EditsReport, FieldMap, PushPhase, PushProgress, PushRunState
from stocksync.infrastructure.external.notion.notion_client import NotionClient, NotionCredentials
from stocksync.infrastructure.external.notion.table_mappings import (
    CANONICAL_COLUMNS,
    MANUFACTURER_ALIASES,
    get_field_map,
)
from stocksync.infrastructure.database import create_session_factory, create_state_engine
from stocksync.infrastructure.repositories.run_state_repository import PushRunStateRepository, SqlRunStateStore
from stocksync.infrastructure.tabular.workbook_store import WorkbookTabularStore
from stocksync.shared.exceptions.sync import ConfigurationError
from stocksync.shared.utils.throttle import RequestThrottle


class SyncUseCases:
    """
    Orquesta los servicios de sync sobre una hoja y una base Notion.

    Las operaciones se serializan con un lock: la API y el scheduler pueden
    llamarlas desde hilos distintos, pero el motor es secuencial.
    """

    def __init__(
        self,
        *,
        store: TabularStore,
        client: RemoteDocumentApi,
        database_id: str,
        field_map: FieldMap,
        run_state: PushRunStateRepository,
        scheduler: ContinuationScheduler,
        batch_size: int = 25,
        continuation_delay_s: float = 5.0,
        page_size: int = 100,
        only_changed: bool = True,
        reconcile_on_push: bool = True,
        guard_fresh_start: bool = False,
    ) -> None:
        self._records = SheetRecords(store, field_map)
        self._reconciler = SchemaReconciler(client=client, database_id=database_id, field_map=field_map)
        self._engine = BatchedPushEngine(
            store=store,
            client=client,
            database_id=database_id,
            field_map=field_map,
            run_state=run_state,
            scheduler=scheduler,
            batch_size=batch_size,
            continuation_delay_s=continuation_delay_s,
            guard_fresh_start=guard_fresh_start,
        )
        self._pull = PullService(
            store=store,
            client=client,
            database_id=database_id,
            field_map=field_map,
            page_size=page_size,
        )
        self._edits = EditsApplier(
            store=store,
            field_map=field_map,
            canonicalizer=Canonicalizer(MANUFACTURER_ALIASES),
            canonical_columns=CANONICAL_COLUMNS,
        )
        self._only_changed = only_changed
        self._reconcile_on_push = reconcile_on_push
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    def run_push(self, *, resume: bool) -> PushProgress:
        """Una invocacion del motor (un lote)."""
        with self._lock:
            if not resume and self._reconcile_on_push:
                self._records.ensure_headers()
                self._reconciler.reconcile(self._records.data_columns())
            return self._engine.run(resume=resume, only_changed=self._only_changed)

    def push_fresh(self) -> str:
        return push_summary(self.run_push(resume=False))

    def push_resume(self) -> str:
        return push_summary(self.run_push(resume=True))

    def continue_push(self) -> PushProgress:
        """Invocacion programada: nunca retoma una corrida detenida."""
        with self._lock:
            return self._engine.continue_run()

    def push_continue(self) -> str:
        return push_summary(self.continue_push())

    def current_run(self) -> Optional[PushRunState]:
        with self._lock:
            return self._engine.status()

    def push_status(self) -> str:
        state = self.current_run()
        if state is None:
            return "Sin corrida de push activa"
        c = state.counts
        stopped = " (detenida)" if state.stop_requested else ""
        return (
            f"Push pendiente{stopped}: {state.cursor}/{len(state.positions)} fila(s) procesadas; "
            f"created={c.created}, updated={c.updated}, errors={c.errors}, skipped={c.skipped}"
        )

    def stop_push(self) -> str:
        # Sin lock: el lote en curso debe poder ver el flag al terminar.
        stopped = self._engine.request_stop()
        if not stopped:
            return "Sin corrida de push activa"
        return "Stop solicitado: el lote en curso termina y no se reprograma"

    # ------------------------------------------------------------------
    # Pull / esquema / ediciones
    # ------------------------------------------------------------------

    def pull(self) -> str:
        with self._lock:
            # Las posiciones de una corrida pendiente dejan de ser validas.
            self._engine.discard()
            count = self._pull.pull()
        return f"Pull completado: {count} fila(s) escritas"

    def reconcile_schema(self) -> str:
        with self._lock:
            self._records.ensure_headers()
            added = self._reconciler.reconcile(self._records.data_columns())
        if not added:
            return "Esquema al dia: 0 propiedades agregadas"
        return f"Esquema reconciliado: {len(added)} propiedad(es) agregadas ({', '.join(added)})"

    def check_mapping(self) -> MappingCheck:
        with self._lock:
            return self._reconciler.check_mapping()

    def apply_edits(self, edits: Iterable[Edit]) -> EditsReport:
        with self._lock:
            return self._edits.apply(edits)


def push_summary(progress: PushProgress) -> str:
    c = progress.counts
    counts = f"created={c.created}, updated={c.updated}, errors={c.errors}, skipped={c.skipped}"
    if progress.phase is PushPhase.DONE:
        return f"Push completado ({progress.total} fila(s)): {counts}"
    if progress.phase is PushPhase.IDLE:
        return "Sin corrida de push pendiente"
    if progress.phase is PushPhase.STOPPED:
        return f"Push detenido en {progress.cursor}/{progress.total}: {counts}"
    return f"Push en progreso {progress.cursor}/{progress.total}, continuacion programada: {counts}"


def build_from_settings(settings: Settings, scheduler: ContinuationScheduler) -> SyncUseCases:
    """
    Construye los casos de uso con los adaptadores reales.

    Raises:
        ConfigurationError: falta token, base de datos, hoja o tabla de mapeo.
    """
    for name in ("NOTION_API_KEY", "NOTION_DATABASE_ID", "SHEET_PATH"):
        if not getattr(settings, name):
            raise ConfigurationError(f"Falta configurar {name}", setting=name)
    try:
        field_map = get_field_map(settings.SYNC_TABLE)
    except KeyError as e:
        raise ConfigurationError(str(e), setting="SYNC_TABLE") from e

    client = NotionClient(
        NotionCredentials(token=settings.NOTION_API_KEY, notion_version=settings.NOTION_VERSION),
        throttle=RequestThrottle(settings.REQUEST_INTERVAL_S),
        base_url=settings.NOTION_BASE_URL,
        timeout_s=settings.NOTION_TIMEOUT_S,
    )
    store = WorkbookTabularStore(settings.SHEET_PATH, settings.SHEET_NAME)
    state_store = SqlRunStateStore(create_session_factory(create_state_engine(settings.STATE_DATABASE_URL)))

    logger.info(
        f"Sync configurado: hoja '{settings.SHEET_NAME}' ({settings.SHEET_PATH}) -> "
        f"Notion {settings.NOTION_DATABASE_ID} [tabla {field_map.table_name}]"
    )
    return SyncUseCases(
        store=store,
        client=client,
        database_id=settings.NOTION_DATABASE_ID,
        field_map=field_map,
        run_state=PushRunStateRepository(state_store, settings.run_key),
        scheduler=scheduler,
        batch_size=settings.BATCH_SIZE,
        continuation_delay_s=settings.CONTINUATION_DELAY_S,
        page_size=settings.QUERY_PAGE_SIZE,
        only_changed=settings.PUSH_ONLY_CHANGED,
        reconcile_on_push=settings.PUSH_RECONCILE_SCHEMA,
        guard_fresh_start=settings.PUSH_GUARD_FRESH_START,
    )
