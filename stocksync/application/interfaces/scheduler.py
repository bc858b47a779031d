"""
Interfaz para programar la continuacion de una corrida.

El entorno anfitrion impone un presupuesto de tiempo por invocacion; el
motor procesa un lote, persiste el cursor y pide UNA invocacion futura de
la misma operacion.
"""

from __future__ import annotations

from typing import Protocol


PUSH_RESUME_OPERATION = "push_resume"


class ContinuationScheduler(Protocol):
    def schedule(self, delay_s: float, operation_id: str) -> None:
        """
        Programa una unica invocacion futura de operation_id.

        Si ya habia una pendiente para la misma operacion, se reemplaza.
        """

    def cancel(self, operation_id: str) -> bool:
        """Cancela la invocacion pendiente. Retorna True si existia."""
