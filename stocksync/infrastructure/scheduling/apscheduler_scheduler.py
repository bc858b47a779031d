"""
Continuaciones de push sobre APScheduler.

Cada operacion tiene un job id fijo (continuation:<operacion>) y se agrega
con replace_existing=True: como maximo existe una continuacion pendiente
por operacion.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Mapping

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger
from loguru import logger


def continuation_job_id(operation_id: str) -> str:
    return f"continuation:{operation_id}"


class ApschedulerContinuationScheduler:
    """
    Adaptador de ContinuationScheduler.

    Args:
        scheduler: Scheduler de APScheduler (BackgroundScheduler en la API).
        operations: {operation_id: callable sin argumentos} que se ejecuta
            cuando vence la continuacion.
    """

    def __init__(self, scheduler: BaseScheduler, operations: Mapping[str, Callable[[], object]]):
        self._scheduler = scheduler
        self._operations: Dict[str, Callable[[], object]] = dict(operations)

    def register(self, operation_id: str, func: Callable[[], object]) -> None:
        self._operations[operation_id] = func

    def schedule(self, delay_s: float, operation_id: str) -> None:
        func = self._operations.get(operation_id)
        if func is None:
            raise KeyError(f"Operacion de continuacion no registrada: '{operation_id}'")

        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay_s)
        self._scheduler.add_job(
            func,
            trigger=DateTrigger(run_date=run_date),
            id=continuation_job_id(operation_id),
            name=f"Continuacion {operation_id}",
            replace_existing=True,
        )
        logger.debug(f"Continuacion '{operation_id}' programada para {run_date.isoformat()}")

    def cancel(self, operation_id: str) -> bool:
        try:
            self._scheduler.remove_job(continuation_job_id(operation_id))
        except JobLookupError:
            return False
        logger.info(f"Continuacion '{operation_id}' cancelada")
        return True
