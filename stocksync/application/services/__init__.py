"""
Servicios de aplicacion.

Contiene la logica del sync reutilizable por los casos de uso: mapeo de
filas, seleccion del Change-Set, reconciliacion de esquema, motor de push,
pull y cola de ediciones.
"""
from stocksync.application.services.canonicalizer import Canonicalizer
from stocksync.application.services.change_set_selector import ChangeSetSelector
from stocksync.application.services.edits_applier import EditsApplier
from stocksync.application.services.pull_service import PullService
from stocksync.application.services.push_engine import BatchedPushEngine
from stocksync.application.services.row_mapper import RowMapper
from stocksync.application.services.schema_reconciler import (
    MappingCheck,
    SchemaReconciler,
    plan_missing_fields,
)
from stocksync.application.services.sheet_records import SheetRecords
from stocksync.application.services.status_tracker import StatusTracker

__all__ = [
    # Conversion
    "Canonicalizer",
    "RowMapper",
    # Hoja
    "SheetRecords",
    "StatusTracker",
    "ChangeSetSelector",
    "EditsApplier",
    # Notion
    "MappingCheck",
    "SchemaReconciler",
    "plan_missing_fields",
    "BatchedPushEngine",
    "PullService",
]
