"""
Estado persistido de una corrida de push reanudable.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from .record import PushCounts


class PushPhase(str, Enum):
    """Maquina de estados del motor de push."""

    IDLE = "idle"
    RUNNING = "running"
    SUSPENDED = "suspended"
    STOPPED = "stopped"
    DONE = "done"


@dataclass(frozen=True)
class PushRunState:
    """
    Change-Set fijo + cursor.

    positions se calcula una sola vez al iniciar la corrida; las
    invocaciones reanudadas operan sobre la misma lista aunque la hoja
    haya cambiado entretanto.
    """

    positions: tuple[int, ...]
    cursor: int = 0
    counts: PushCounts = field(default_factory=PushCounts)
    stop_requested: bool = False

    @property
    def is_drained(self) -> bool:
        return self.cursor >= len(self.positions)

    @property
    def remaining(self) -> int:
        return max(0, len(self.positions) - self.cursor)

    def next_batch(self, batch_size: int) -> tuple[int, ...]:
        return self.positions[self.cursor : self.cursor + batch_size]

    def advance(self, processed: int, counts: PushCounts) -> "PushRunState":
        return replace(self, cursor=self.cursor + processed, counts=self.counts.add(counts))


@dataclass(frozen=True)
class PushProgress:
    """Resultado de una invocacion del motor."""

    phase: PushPhase
    total: int
    cursor: int
    counts: PushCounts
    batch_positions: tuple[int, ...] = ()

    @property
    def remaining(self) -> int:
        return max(0, self.total - self.cursor)
