"""
Casos de uso de la aplicacion.
"""
from .sync_use_cases import SyncUseCases, build_from_settings

__all__ = ["SyncUseCases", "build_from_settings"]
