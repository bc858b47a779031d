"""
Limitador de ritmo para llamadas a la API remota.

Notion acepta ~3 requests/segundo por integracion. NotionClient llama a
wait() antes de cada request HTTP (esquema, paginas, consultas y
reintentos) para respetar un intervalo minimo entre requests consecutivos.
"""

from __future__ import annotations

import time
from typing import Callable, Optional


class RequestThrottle:
    """Garantiza un intervalo minimo entre llamadas consecutivas."""

    def __init__(
        self,
        min_interval_s: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._min_interval_s = max(0.0, min_interval_s)
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None

    @property
    def min_interval_s(self) -> float:
        return self._min_interval_s

    def wait(self) -> float:
        """
        Bloquea lo necesario y registra la llamada.

        Returns:
            Segundos dormidos (0 si no hizo falta esperar).
        """
        slept = 0.0
        if self._last_call is not None:
            elapsed = self._clock() - self._last_call
            slept = self._min_interval_s - elapsed
            if slept > 0:
                self._sleep(slept)
            else:
                slept = 0.0
        self._last_call = self._clock()
        return slept
