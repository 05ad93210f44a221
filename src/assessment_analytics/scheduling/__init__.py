"""
Scheduling Layer - Periodic background jobs.

This module provides:
    - Scheduler: Runs named jobs on independent async tasks
    - ScheduledJob: Job definition and run status

Guarantees:
    - Job failures are logged and isolated
    - A job run never overlaps a still-running run of the same job
    - stop() cancels every job and waits for it
"""

from .scheduler import ScheduledJob, Scheduler

__all__ = [
    "Scheduler",
    "ScheduledJob",
]
