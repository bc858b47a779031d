"""
DTOs de las operaciones de sync.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from stocksync.domain.entities import Edit, EditsReport, PushProgress, PushRunState


class SyncMessageDTO(BaseModel):
    """Respuesta de una operacion con resumen de una linea."""

    message: str


class PushProgressDTO(BaseModel):
    """Resultado de una invocacion del motor de push."""

    phase: str
    total: int
    cursor: int
    remaining: int
    counts: Dict[str, int]
    message: str

    @classmethod
    def from_progress(cls, progress: PushProgress, message: str) -> "PushProgressDTO":
        return cls(
            phase=progress.phase.value,
            total=progress.total,
            cursor=progress.cursor,
            remaining=progress.remaining,
            counts=progress.counts.as_dict(),
            message=message,
        )


class PushStatusDTO(BaseModel):
    """Estado persistido de la corrida de push."""

    active: bool
    total: int = 0
    cursor: int = 0
    remaining: int = 0
    stop_requested: bool = False
    counts: Dict[str, int] = Field(default_factory=dict)
    message: str

    @classmethod
    def from_state(cls, state: Optional[PushRunState], message: str) -> "PushStatusDTO":
        if state is None:
            return cls(active=False, message=message)
        return cls(
            active=True,
            total=len(state.positions),
            cursor=state.cursor,
            remaining=state.remaining,
            stop_requested=state.stop_requested,
            counts=state.counts.as_dict(),
            message=message,
        )


class MappingCheckDTO(BaseModel):
    ok: bool
    title_ok: bool
    found: List[str]
    missing: List[str]


class EditDTO(BaseModel):
    """Una edicion de la cola (SET columna = valor sobre la fila de key)."""

    action: str = Field(default="set", description="Solo 'set' esta soportado")
    key: str = Field(default="", description="SKU, UPC o valor de la columna titulo")
    column: str = Field(default="", description="Columna de la hoja a modificar")
    new_value: Any = Field(default="", description="Nuevo valor")
    status: str = Field(default="", description="Se procesa si esta vacio o 'ready'")

    def to_entity(self) -> Edit:
        return Edit(
            key=self.key,
            column=self.column,
            new_value=self.new_value,
            action=self.action,
            status=self.status,
        )


class EditsRequestDTO(BaseModel):
    edits: List[EditDTO] = Field(..., min_length=1)


class EditResultDTO(BaseModel):
    index: int
    status: str
    note: str
    position: Optional[int] = None


class EditsResponseDTO(BaseModel):
    results: List[EditResultDTO]
    ignored: int
    message: str

    @classmethod
    def from_report(cls, report: EditsReport) -> "EditsResponseDTO":
        return cls(
            results=[
                EditResultDTO(index=r.index, status=r.outcome.value, note=r.note, position=r.position)
                for r in report.results
            ],
            ignored=report.ignored,
            message=report.summary(),
        )
