"""
Cola de ediciones puntuales sobre la hoja de productos.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EditOutcome(str, Enum):
    APPLIED = "applied"
    NO_CHANGE = "no_change"
    NO_MATCH = "no_match"
    BAD_COLUMN = "bad_column"
    ERROR = "error"


READY_STATUSES = frozenset({"", "ready"})


@dataclass(frozen=True)
class Edit:
    """
    Una edicion: action sobre la fila identificada por key.

    key se busca por SKU, luego UPC y al final por la columna titulo.
    Solo se procesan ediciones con status vacio o "ready".
    """

    key: str
    column: str
    new_value: Any = ""
    action: str = "set"
    status: str = ""

    @property
    def is_ready(self) -> bool:
        return str(self.status or "").strip().lower() in READY_STATUSES


@dataclass(frozen=True)
class EditResult:
    index: int
    outcome: EditOutcome
    note: str = ""
    position: int | None = None


@dataclass
class EditsReport:
    results: list[EditResult] = field(default_factory=list)
    ignored: int = 0

    def count(self, outcome: EditOutcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    def summary(self) -> str:
        return (
            f"Edits: applied {self.count(EditOutcome.APPLIED)}, "
            f"no_change {self.count(EditOutcome.NO_CHANGE)}, "
            f"no_match {self.count(EditOutcome.NO_MATCH)}, "
            f"bad_column {self.count(EditOutcome.BAD_COLUMN)}, "
            f"errors {self.count(EditOutcome.ERROR)}"
        )
