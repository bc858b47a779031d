"""
Interfaz key-value para el estado persistido entre invocaciones.

Sobrevive a reinicios del proceso: el cursor y el change-set de un push
suspendido se guardan aqui.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol


class RunStateStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        """Valor guardado o None."""

    def set(self, key: str, value: str) -> None:
        """Crea o reemplaza el valor."""

    def delete(self, key: str) -> None:
        """Borra la clave (no falla si no existe)."""

    def set_many(self, values: Mapping[str, Optional[str]]) -> None:
        """
        Escribe varias claves de forma atomica: todas o ninguna.

        Un valor None borra la clave.
        """
