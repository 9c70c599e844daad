"""定时任务."""

from newsdesk.scheduler.tasks import create_scheduler, run_ingestion, shutdown_scheduler

__all__ = ["create_scheduler", "run_ingestion", "shutdown_scheduler"]
