"""
Middleware para manejo centralizado de errores.

AppException se resuelve en el exception handler de main.py; aqui llegan
los errores de Notion no envueltos y cualquier otro error no manejado.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger

from stocksync.infrastructure.external.notion.notion_client import NotionApiError


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware para capturar y manejar errores de forma centralizada."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except NotionApiError as exc:
            error_msg = str(exc).replace("{", "{{").replace("}", "}}")
            logger.error(f"Error de Notion en {request.method} {request.url.path}: {error_msg}")
            return JSONResponse(
                status_code=status.HTTP_502_BAD_GATEWAY,
                content={
                    "error": "NOTION_API_ERROR",
                    "message": str(exc),
                    "details": {"status_code": exc.status_code, "code": exc.code},
                },
            )
        except Exception as exc:
            # Escapar llaves para evitar error de formato en loguru
            error_msg = str(exc).replace("{", "{{").replace("}", "}}")
            logger.opt(exception=exc).error(
                f"Error no manejado en {request.method} {request.url.path}: {error_msg}"
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "INTERNAL_SERVER_ERROR",
                    "message": "Ha ocurrido un error interno del servidor",
                    "details": {},
                },
            )
