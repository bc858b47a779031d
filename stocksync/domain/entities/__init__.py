"""
Entidades del dominio de sincronizacion.
"""
from .edit import Edit, EditOutcome, EditResult, EditsReport
from .field_mapping import FieldMap, FieldMapError, FieldMapping, FieldType, MetaColumns
from .push_run import PushPhase, PushProgress, PushRunState
from .record import PENDING_STATUSES, PushCounts, Record, SyncStatus

__all__ = [
    "Edit",
    "EditOutcome",
    "EditResult",
    "EditsReport",
    "FieldMap",
    "FieldMapError",
    "FieldMapping",
    "FieldType",
    "MetaColumns",
    "PENDING_STATUSES",
    "PushCounts",
    "PushPhase",
    "PushProgress",
    "PushRunState",
    "Record",
    "SyncStatus",
]
