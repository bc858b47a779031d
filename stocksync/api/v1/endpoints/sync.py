"""
Endpoints de sincronizacion hoja <-> Notion.

Las operaciones son bloqueantes (openpyxl, requests) y se ejecutan en un
thread con asyncio.to_thread.
"""
import asyncio

from fastapi import APIRouter, Depends, Query, Request

from stocksync.application.dto.sync_dto import (
    EditsRequestDTO,
    EditsResponseDTO,
    MappingCheckDTO,
    PushProgressDTO,
    PushStatusDTO,
    SyncMessageDTO,
)
from stocksync.application.use_cases.sync_use_cases import SyncUseCases, push_summary
from stocksync.shared.exceptions.sync import ConfigurationError

router = APIRouter(prefix="/sync", tags=["Sync"])


def get_sync_use_cases(request: Request) -> SyncUseCases:
    """Casos de uso construidos en el startup; falla si falta configuracion."""
    use_cases = getattr(request.app.state, "sync_use_cases", None)
    if use_cases is None:
        error = getattr(request.app.state, "sync_config_error", None)
        if isinstance(error, ConfigurationError):
            raise error
        raise ConfigurationError("El sync no esta configurado")
    return use_cases


@router.post("/push", response_model=PushProgressDTO)
async def push(
    resume: bool = Query(False, description="Continuar la corrida persistida en vez de iniciar una nueva"),
    use_cases: SyncUseCases = Depends(get_sync_use_cases),
):
    """
    Ejecuta un lote del push Hoja -> Notion.

    Si quedan filas, se programa una continuacion automatica.
    """
    progress = await asyncio.to_thread(use_cases.run_push, resume=resume)
    return PushProgressDTO.from_progress(progress, push_summary(progress))


@router.post("/push/stop", response_model=SyncMessageDTO)
async def stop_push(use_cases: SyncUseCases = Depends(get_sync_use_cases)):
    """Detiene la corrida activa despues del lote en curso."""
    message = await asyncio.to_thread(use_cases.stop_push)
    return SyncMessageDTO(message=message)


@router.get("/push/status", response_model=PushStatusDTO)
async def push_status(use_cases: SyncUseCases = Depends(get_sync_use_cases)):
    state = await asyncio.to_thread(use_cases.current_run)
    message = await asyncio.to_thread(use_cases.push_status)
    return PushStatusDTO.from_state(state, message)


@router.post("/pull", response_model=SyncMessageDTO)
async def pull(use_cases: SyncUseCases = Depends(get_sync_use_cases)):
    """
    Reemplaza la hoja con el contenido completo de Notion.

    Destructivo: descarta ediciones locales no enviadas.
    """
    message = await asyncio.to_thread(use_cases.pull)
    return SyncMessageDTO(message=message)


@router.post("/schema", response_model=SyncMessageDTO)
async def reconcile_schema(use_cases: SyncUseCases = Depends(get_sync_use_cases)):
    """Agrega en Notion las propiedades que faltan para las columnas de la hoja."""
    message = await asyncio.to_thread(use_cases.reconcile_schema)
    return SyncMessageDTO(message=message)


@router.get("/schema/check", response_model=MappingCheckDTO)
async def check_mapping(use_cases: SyncUseCases = Depends(get_sync_use_cases)):
    """Valida el mapeo contra el esquema remoto (solo lectura)."""
    check = await asyncio.to_thread(use_cases.check_mapping)
    return MappingCheckDTO(ok=check.ok, title_ok=check.title_ok, found=check.found, missing=check.missing)


@router.post("/edits", response_model=EditsResponseDTO)
async def apply_edits(
    payload: EditsRequestDTO,
    use_cases: SyncUseCases = Depends(get_sync_use_cases),
):
    """Aplica una cola de ediciones; las filas editadas quedan en dirty."""
    edits = [e.to_entity() for e in payload.edits]
    report = await asyncio.to_thread(use_cases.apply_edits, edits)
    return EditsResponseDTO.from_report(report)
