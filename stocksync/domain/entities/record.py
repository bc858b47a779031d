"""
Entidades de fila sincronizable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from .field_mapping import FieldMap, MetaColumns


class SyncStatus(str, Enum):
    """
    Estado de sync por fila (advisory, no transaccional).

    Transiciones:
    - none -> dirty (edicion local)
    - dirty | create_error | update_error -> created | updated (push exitoso)
    - dirty -> *_error (fallo de push)
    - cualquiera -> pulled (pull completo)
    """

    NONE = "none"
    PULLED = "pulled"
    DIRTY = "dirty"
    CREATED = "created"
    UPDATED = "updated"
    CREATE_ERROR = "create_error"
    UPDATE_ERROR = "update_error"
    PUSH_ERROR = "push_error"

    @classmethod
    def parse(cls, raw: Any) -> "SyncStatus":
        """Lee el valor de la celda de estado; vacio o desconocido -> none."""
        text = str(raw or "").strip().lower()
        try:
            return cls(text)
        except ValueError:
            return cls.NONE

    @property
    def needs_push(self) -> bool:
        return self in PENDING_STATUSES


PENDING_STATUSES = frozenset(
    {
        SyncStatus.DIRTY,
        SyncStatus.CREATE_ERROR,
        SyncStatus.UPDATE_ERROR,
        SyncStatus.PUSH_ERROR,
    }
)


@dataclass
class Record:
    """
    Fila local tipada.

    position es 1-based sobre la region de datos (la fila de encabezados
    no cuenta). values contiene solo columnas de datos, sin metadatos.
    """

    position: int
    values: dict[str, Any] = field(default_factory=dict)
    remote_id: str = ""
    last_pulled_at: Any = ""
    last_pushed_at: Any = ""
    status: SyncStatus = SyncStatus.NONE

    @classmethod
    def from_row(cls, position: int, row: Mapping[str, Any], meta: MetaColumns) -> "Record":
        meta_names = set(meta.names())
        return cls(
            position=position,
            values={k: v for k, v in row.items() if k not in meta_names},
            remote_id=str(row.get(meta.remote_id) or "").strip(),
            last_pulled_at=row.get(meta.last_pulled_at) or "",
            last_pushed_at=row.get(meta.last_pushed_at) or "",
            status=SyncStatus.parse(row.get(meta.status)),
        )

    def identity(self, field_map: FieldMap) -> str:
        return str(self.values.get(field_map.identity) or "").strip()

    def to_row(self, meta: MetaColumns) -> dict[str, Any]:
        row = dict(self.values)
        row[meta.remote_id] = self.remote_id
        row[meta.last_pulled_at] = self.last_pulled_at
        row[meta.last_pushed_at] = self.last_pushed_at
        row[meta.status] = self.status.value
        return row


@dataclass(frozen=True)
class PushCounts:
    """Contadores acumulados de una corrida de push."""

    created: int = 0
    updated: int = 0
    errors: int = 0
    skipped: int = 0

    def add(self, other: "PushCounts") -> "PushCounts":
        return PushCounts(
            created=self.created + other.created,
            updated=self.updated + other.updated,
            errors=self.errors + other.errors,
            skipped=self.skipped + other.skipped,
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "created": self.created,
            "updated": self.updated,
            "errors": self.errors,
            "skipped": self.skipped,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "PushCounts":
        data = data or {}
        return cls(
            created=int(data.get("created", 0)),
            updated=int(data.get("updated", 0)),
            errors=int(data.get("errors", 0)),
            skipped=int(data.get("skipped", 0)),
        )
