"""
Excepciones del pipeline de sincronizacion hoja <-> Notion.

Taxonomia:
- ConfigurationError: fatal, antes de cualquier llamada remota.
- SchemaError: fatal para la corrida, no se persiste estado parcial.
- MappingError: error de fila, se recupera marcando la fila.
- RunInProgressError: inicio fresco rechazado mientras hay una corrida suspendida.
"""
from typing import Any, Optional

from stocksync.shared.exceptions.base import AppException


class ConfigurationError(AppException):
    """Falta credencial, id de base de datos u hoja."""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=500,
            error_code="CONFIGURATION_ERROR",
            details={"setting": setting} if setting else None,
        )


class SchemaError(AppException):
    """Fallo leyendo o modificando el esquema remoto."""

    def __init__(self, message: str, database_id: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="SCHEMA_ERROR",
            details={"database_id": database_id} if database_id else None,
        )


class MappingError(AppException):
    """Un valor local no puede convertirse al tipo remoto declarado."""

    def __init__(self, field: str, value: Any, expected: str):
        super().__init__(
            message=f"Valor '{value}' no valido para '{field}' (se esperaba {expected})",
            status_code=400,
            error_code="MAPPING_ERROR",
            details={"field": field, "value": str(value), "expected": expected},
        )


class RunInProgressError(AppException):
    """Existe una corrida de push suspendida; usar resume."""

    def __init__(self, run_key: str, remaining: int):
        super().__init__(
            message=(
                f"Hay una corrida de push suspendida para '{run_key}' "
                f"({remaining} fila(s) pendientes). Usa resume o detenla primero."
            ),
            status_code=409,
            error_code="RUN_IN_PROGRESS",
            details={"run_key": run_key, "remaining": remaining},
        )
