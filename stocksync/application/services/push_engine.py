"""
Motor de push por lotes, reanudable e idempotente: Hoja -> Notion.

Diseño (resumen):
- Al iniciar una corrida fresca se calcula UNA vez el Change-Set (filas a
  enviar) y se persiste junto con un cursor 0.
- Cada invocacion procesa un solo lote de BATCH_SIZE filas desde el cursor,
  secuencialmente; el cliente remoto espacia cada request.
- Si quedan filas, persiste el cursor y programa una unica continuacion;
  el entorno anfitrion tiene un presupuesto de tiempo por invocacion.
- Al vaciar el Change-Set borra todo el estado y reporta los totales.

Estrategia de idempotencia:
- Una fila con remote id siempre se actualiza (PATCH), nunca se crea.
- El remote id de un create se escribe en la hoja inmediatamente, antes de
  seguir con la siguiente fila.
- Un error de fila la marca push_error y el lote continua; la fila vuelve a
  ser elegible en la proxima corrida.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Collection, Optional

from loguru import logger

from stocksync.application.interfaces.remote_api import RemoteDocumentApi
from stocksync.application.interfaces.scheduler import ContinuationScheduler, PUSH_RESUME_OPERATION
from stocksync.application.interfaces.tabular_store import TabularStore
from stocksync.application.services.change_set_selector import ChangeSetSelector
from stocksync.application.services.row_mapper import RowMapper
from stocksync.application.services.schema_reconciler import SchemaReconciler
from stocksync.application.services.sheet_records import SheetRecords
from stocksync.application.services.status_tracker import StatusTracker
from stocksync.domain.entities import FieldMap, PushCounts, PushPhase, PushProgress, PushRunState, SyncStatus
from stocksync.infrastructure.repositories.run_state_repository import PushRunStateRepository
from stocksync.shared.exceptions.sync import RunInProgressError


class BatchedPushEngine:
    """
    Maquina de estados IDLE -> RUNNING -> (SUSPENDED <-> RUNNING) -> DONE.
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
        status_tracker: Optional[StatusTracker] = None,
        batch_size: int = 25,
        continuation_delay_s: float = 5.0,
        guard_fresh_start: bool = False,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size debe ser >= 1")
        self._client = client
        self._database_id = database_id
        self._field_map = field_map
        self._records = SheetRecords(store, field_map)
        self._mapper = RowMapper(field_map)
        self._selector = ChangeSetSelector(field_map)
        self._schema = SchemaReconciler(client=client, database_id=database_id, field_map=field_map)
        self._tracker = status_tracker or StatusTracker(store, field_map.meta)
        self._run_state = run_state
        self._scheduler = scheduler
        self._batch_size = batch_size
        self._continuation_delay_s = continuation_delay_s
        self._guard_fresh_start = guard_fresh_start

    # ------------------------------------------------------------------
    # API publica
    # ------------------------------------------------------------------

    def run(self, *, resume: bool, only_changed: bool = True) -> PushProgress:
        """
        Ejecuta una invocacion: (re)inicia la corrida y procesa un lote.

        Args:
            resume: reutiliza el Change-Set persistido si existe; si no existe,
                degrada a corrida fresca (nunca falla por falta de estado).
                Un resume explicito retira el stop de una corrida detenida.
            only_changed: solo filas nuevas/dirty/con error (corrida fresca).

        Raises:
            SchemaError: no se pudo leer el esquema remoto (nada se persiste).
            RunInProgressError: inicio fresco con guard activo y corrida suspendida.
        """
        state = self._run_state.load() if resume else None

        if state is None and not resume and self._guard_fresh_start:
            pending = self._run_state.load()
            if pending is not None and not pending.is_drained:
                raise RunInProgressError(self._run_state.run_key, pending.remaining)

        # Una lectura de esquema por invocacion, antes de persistir nada.
        remote_fields = set(self._schema.read_schema())

        if state is None:
            state = self._start_fresh(only_changed=only_changed)
        else:
            if state.stop_requested:
                state = replace(state, stop_requested=False)
                self._run_state.save(state)
            logger.info(
                f"Reanudando push '{self._run_state.run_key}': "
                f"cursor {state.cursor}/{len(state.positions)}"
            )

        return self._step(state, remote_fields)

    def continue_run(self) -> PushProgress:
        """
        Invocacion programada: un lote mas de la corrida persistida.

        A diferencia de run(resume=True) nunca inicia una corrida ni retira
        un stop: el stop pudo llegar cuando el job ya estaba despachado.
        """
        state = self._run_state.load()
        if state is None:
            logger.info(f"Sin corrida de push para '{self._run_state.run_key}'; continuacion descartada")
            return PushProgress(phase=PushPhase.IDLE, total=0, cursor=0, counts=PushCounts())
        if state.stop_requested:
            logger.info(
                f"Push '{self._run_state.run_key}' detenido en {state.cursor}/{len(state.positions)}; "
                f"continuacion descartada"
            )
            return PushProgress(
                phase=PushPhase.STOPPED,
                total=len(state.positions),
                cursor=state.cursor,
                counts=state.counts,
            )

        remote_fields = set(self._schema.read_schema())
        logger.info(
            f"Continuando push '{self._run_state.run_key}': "
            f"cursor {state.cursor}/{len(state.positions)}"
        )
        return self._step(state, remote_fields)

    def status(self) -> Optional[PushRunState]:
        """Estado persistido de la corrida activa (None si no hay)."""
        return self._run_state.load()

    def request_stop(self) -> bool:
        """
        Detiene la corrida: el lote en curso termina y no se reprograma.

        El estado queda persistido; un resume posterior continua donde quedo.
        """
        cancelled = self._scheduler.cancel(PUSH_RESUME_OPERATION)
        flagged = self._run_state.request_stop()
        if flagged or cancelled:
            logger.info(f"Stop solicitado para push '{self._run_state.run_key}'")
        return flagged or cancelled

    def discard(self) -> None:
        """Borra el estado de la corrida y cancela su continuacion."""
        self._scheduler.cancel(PUSH_RESUME_OPERATION)
        self._run_state.clear()

    # ------------------------------------------------------------------
    # Transiciones
    # ------------------------------------------------------------------

    def _start_fresh(self, *, only_changed: bool) -> PushRunState:
        """IDLE -> RUNNING: nuevo Change-Set, cursor 0, sin continuaciones viejas."""
        self._scheduler.cancel(PUSH_RESUME_OPERATION)
        # El cursor y los contadores de la corrida anterior nunca sobreviven a un inicio fresco.
        self._run_state.clear()
        records = self._records.read_all()
        positions = tuple(self._selector.select(records, only_changed=only_changed))
        state = PushRunState(positions=positions)
        self._run_state.save(state)
        logger.info(
            f"Nueva corrida de push '{self._run_state.run_key}': "
            f"{len(positions)} de {len(records)} fila(s) seleccionadas"
        )
        return state

    def _step(self, state: PushRunState, remote_fields: Collection[str]) -> PushProgress:
        batch = state.next_batch(self._batch_size)
        batch_counts = self._process_batch(batch, remote_fields)
        state = state.advance(len(batch), batch_counts)

        if state.is_drained:
            # RUNNING -> DONE
            self._run_state.clear()
            c = state.counts
            logger.success(
                f"Push completado '{self._run_state.run_key}': created={c.created}, "
                f"updated={c.updated}, errors={c.errors}, skipped={c.skipped}"
            )
            return PushProgress(
                phase=PushPhase.DONE,
                total=len(state.positions),
                cursor=state.cursor,
                counts=state.counts,
                batch_positions=batch,
            )

        # El stop pudo llegar mientras corria el lote: se relee el flag.
        persisted = self._run_state.load()
        stop_requested = bool(persisted and persisted.stop_requested)
        self._run_state.save(replace(state, stop_requested=stop_requested))

        if stop_requested:
            logger.info(
                f"Push '{self._run_state.run_key}' detenido en {state.cursor}/{len(state.positions)}; "
                f"usar resume para continuar"
            )
            phase = PushPhase.STOPPED
        else:
            # RUNNING -> SUSPENDED: exactamente una continuacion
            self._scheduler.schedule(self._continuation_delay_s, PUSH_RESUME_OPERATION)
            logger.info(
                f"Push '{self._run_state.run_key}' suspendido en {state.cursor}/{len(state.positions)}; "
                f"continuacion en {self._continuation_delay_s}s"
            )
            phase = PushPhase.SUSPENDED

        return PushProgress(
            phase=phase,
            total=len(state.positions),
            cursor=state.cursor,
            counts=state.counts,
            batch_positions=batch,
        )

    # ------------------------------------------------------------------
    # Filas
    # ------------------------------------------------------------------

    def _process_batch(self, positions: tuple[int, ...], remote_fields: Collection[str]) -> PushCounts:
        created = updated = errors = skipped = 0
        for position in positions:
            outcome = self._push_row(position, remote_fields)
            if outcome is SyncStatus.CREATED:
                created += 1
            elif outcome is SyncStatus.UPDATED:
                updated += 1
            elif outcome is SyncStatus.PUSH_ERROR:
                errors += 1
            else:
                skipped += 1
        return PushCounts(created=created, updated=updated, errors=errors, skipped=skipped)

    def _push_row(self, position: int, remote_fields: Collection[str]) -> Optional[SyncStatus]:
        """
        Envia una fila. Nunca lanza: cualquier error queda como push_error.

        Returns:
            CREATED, UPDATED, PUSH_ERROR o None si la fila se omitio.
        """
        try:
            record = self._records.read(position)
        except IndexError:
            logger.warning(f"Fila {position} ya no existe en la hoja; se omite")
            return None

        if not record.identity(self._field_map):
            # La fila se vacio despues de calcular el Change-Set.
            logger.warning(f"Fila {position} sin identidad; se omite")
            return None

        try:
            props = self._mapper.to_remote(record.values, remote_fields)
            if record.remote_id:
                self._client.update_page(record.remote_id, props)
                status = SyncStatus.UPDATED
            else:
                page_id = self._client.create_page(self._database_id, props)
                self._tracker.record_remote_id(position, page_id)
                status = SyncStatus.CREATED
            self._tracker.mark_pushed(position, status)
            return status
        except Exception as e:
            logger.warning(f"Error enviando fila {position} ('{record.identity(self._field_map)}'): {e}")
            try:
                self._tracker.mark_error(position, SyncStatus.PUSH_ERROR)
            except Exception as mark_error:
                logger.error(f"No se pudo marcar la fila {position} como push_error: {mark_error}")
            return SyncStatus.PUSH_ERROR
