"""
Repositorios para el estado persistido de corridas de push.

- SqlRunStateStore: key-value sobre la tabla sync_run_state (SQLAlchemy).
- InMemoryRunStateStore: mismo contrato, para tests y ejecuciones efimeras.
- PushRunStateRepository: serializa PushRunState sobre cualquiera de los dos.
"""
from __future__ import annotations

import json
from typing import Dict, Mapping, Optional

from loguru import logger
from sqlalchemy.orm import Session, sessionmaker

from stocksync.application.interfaces.run_state_store import RunStateStore
from stocksync.domain.entities import PushCounts, PushRunState
from stocksync.infrastructure.database.models import SyncRunStateModel


class SqlRunStateStore:
    """
    Gestiona la tabla sync_run_state.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            row = session.get(SyncRunStateModel, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def delete(self, key: str) -> None:
        self.set_many({key: None})

    def set_many(self, values: Mapping[str, Optional[str]]) -> None:
        """Una sesion y un commit: si algo falla, no se escribe ninguna clave."""
        with self._session_factory() as session:
            try:
                for key, value in values.items():
                    _apply(session, key, value)
                session.commit()
            except Exception:
                session.rollback()
                raise


def _apply(session: Session, key: str, value: Optional[str]) -> None:
    existing = session.get(SyncRunStateModel, key)
    if value is None:
        if existing:
            session.delete(existing)
    elif existing:
        existing.value = value
    else:
        session.add(SyncRunStateModel(key=key, value=value))


class InMemoryRunStateStore:
    """Estado en memoria del proceso."""

    def __init__(self) -> None:
        self.values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)

    def set_many(self, values: Mapping[str, Optional[str]]) -> None:
        updated = dict(self.values)
        for key, value in values.items():
            if value is None:
                updated.pop(key, None)
            else:
                updated[key] = value
        self.values = updated


CURSOR_KEY = "push_cursor_row"
TARGET_ROWS_KEY = "push_target_rows_json"
COUNTS_KEY = "push_counts_json"
STOP_KEY = "push_stop_requested"


class PushRunStateRepository:
    """
    Guarda/lee el Change-Set y el cursor de la corrida activa.

    Solo existe un par Change-Set/cursor por run key: guardar una corrida
    nueva sobreescribe la anterior.
    """

    def __init__(self, store: RunStateStore, run_key: str):
        self._store = store
        self._run_key = run_key

    @property
    def run_key(self) -> str:
        return self._run_key

    def _key(self, name: str) -> str:
        return f"{self._run_key}:{name}"

    def load(self) -> Optional[PushRunState]:
        raw_rows = self._store.get(self._key(TARGET_ROWS_KEY))
        if raw_rows is None:
            return None
        try:
            positions = tuple(int(p) for p in json.loads(raw_rows))
            cursor = int(self._store.get(self._key(CURSOR_KEY)) or 0)
            counts = PushCounts.from_dict(json.loads(self._store.get(self._key(COUNTS_KEY)) or "{}"))
        except (ValueError, TypeError) as e:
            # Estado corrupto: se descarta y el caller arranca una corrida fresca.
            logger.warning(f"Estado de push invalido para '{self._run_key}', se descarta: {e}")
            self.clear()
            return None
        return PushRunState(
            positions=positions,
            cursor=cursor,
            counts=counts,
            stop_requested=self._store.get(self._key(STOP_KEY)) == "1",
        )

    def save(self, state: PushRunState) -> None:
        """Change-Set, cursor, contadores y stop en una sola escritura atomica."""
        self._store.set_many(
            {
                self._key(TARGET_ROWS_KEY): json.dumps(list(state.positions)),
                self._key(CURSOR_KEY): str(state.cursor),
                self._key(COUNTS_KEY): json.dumps(state.counts.as_dict()),
                self._key(STOP_KEY): "1" if state.stop_requested else None,
            }
        )

    def request_stop(self) -> bool:
        """Marca la corrida para que no se reprograme. False si no hay corrida."""
        if self._store.get(self._key(TARGET_ROWS_KEY)) is None:
            return False
        self._store.set(self._key(STOP_KEY), "1")
        return True

    def clear(self) -> None:
        self._store.set_many(
            {self._key(name): None for name in (TARGET_ROWS_KEY, CURSOR_KEY, COUNTS_KEY, STOP_KEY)}
        )
