"""
Programacion de continuaciones (APScheduler).
"""
from .apscheduler_scheduler import ApschedulerContinuationScheduler, continuation_job_id

__all__ = ["ApschedulerContinuationScheduler", "continuation_job_id"]
