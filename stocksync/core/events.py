"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI
from loguru import logger

from stocksync.application.interfaces.scheduler import PUSH_RESUME_OPERATION
from stocksync.application.use_cases.sync_use_cases import SyncUseCases, build_from_settings
from stocksync.core.config import settings
from stocksync.infrastructure.scheduling import ApschedulerContinuationScheduler
from stocksync.shared.exceptions.sync import ConfigurationError


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa logging, scheduler y casos de uso de sync."""
        try:
            logger.add(
                settings.LOG_FILE,
                rotation="50 MB",
                retention="10 days",
                level=settings.LOG_LEVEL,
            )
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            _validate_config()

            scheduler = BackgroundScheduler(timezone="UTC")
            continuation = ApschedulerContinuationScheduler(scheduler, {})
            app.state.scheduler = scheduler
            app.state.sync_use_cases = None
            app.state.sync_config_error = None

            try:
                use_cases = build_from_settings(settings, continuation)
            except ConfigurationError as e:
                logger.warning(f"Sync deshabilitado: {e.message}")
                app.state.sync_config_error = e
            else:
                continuation.register(PUSH_RESUME_OPERATION, _resume_job(use_cases))
                app.state.sync_use_cases = use_cases
                _reschedule_pending_run(use_cases, continuation)

            scheduler.start()
            logger.info("Scheduler de continuaciones iniciado")
            logger.success("Aplicacion iniciada correctamente")

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuracion critica este presente."""
    warnings = []

    if not settings.NOTION_API_KEY:
        warnings.append("NOTION_API_KEY no configurada - el sync no funcionara")
    if not settings.NOTION_DATABASE_ID:
        warnings.append("NOTION_DATABASE_ID no configurado - el sync no funcionara")
    if not settings.SHEET_PATH:
        warnings.append("SHEET_PATH no configurado - el sync no funcionara")

    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def _resume_job(use_cases: SyncUseCases) -> Callable[[], None]:
    """Job de continuacion: un lote mas de la corrida persistida."""
    def resume() -> None:
        try:
            logger.info(use_cases.push_continue())
        except Exception as e:
            logger.error(f"Error en continuacion de push: {e}")

    return resume


def _reschedule_pending_run(use_cases: SyncUseCases, continuation: ApschedulerContinuationScheduler) -> None:
    """Las continuaciones viven en memoria: tras un reinicio se reprograma la corrida pendiente."""
    state = use_cases.current_run()
    if state is None or state.stop_requested:
        return
    logger.info(f"Corrida de push pendiente ({state.remaining} fila(s)); se reprograma su continuacion")
    continuation.schedule(settings.CONTINUATION_DELAY_S, PUSH_RESUME_OPERATION)


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicacion."""
        logger.info("Cerrando aplicacion...")

        scheduler = getattr(app.state, "scheduler", None)
        if scheduler is not None and scheduler.running:
            scheduler.shutdown(wait=False)
            logger.info("Scheduler detenido")

        logger.success("Aplicacion cerrada correctamente")

    return shutdown
