"""
DTOs de la API de sincronizacion.
"""
from .sync_dto import (
    EditDTO,
    EditResultDTO,
    EditsRequestDTO,
    EditsResponseDTO,
    MappingCheckDTO,
    PushProgressDTO,
    PushStatusDTO,
    SyncMessageDTO,
)

__all__ = [
    "EditDTO",
    "EditResultDTO",
    "EditsRequestDTO",
    "EditsResponseDTO",
    "MappingCheckDTO",
    "PushProgressDTO",
    "PushStatusDTO",
    "SyncMessageDTO",
]
