"""Celery configuration for background automation execution"""

from celery import Celery
from celery.schedules import crontab
from celery.signals import task_failure, task_postrun, task_prerun

from api.config import get_settings
from logger import get_logger

settings = get_settings()
logger = get_logger("api.celery")

celery_app = Celery(
    "haven_care",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["api.tasks.automation"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=3600,  # 1 hour hard limit per task
    task_soft_time_limit=3300,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=50,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    result_expires=86400,
)

celery_app.conf.task_routes = {
    "automation.*": {"queue": "automation"},
}

# Scheduler tick; each automation's own schedule decides whether it is due
celery_app.conf.beat_schedule = {
    "run-due-automations": {
        "task": "automation.run_due",
        "schedule": crontab(minute="*/5"),
    },
}


@task_prerun.connect
def task_prerun_handler(task_id, task, *args, **kwargs):
    logger.debug(f"Starting task {task.name} [{task_id}]")


@task_postrun.connect
def task_postrun_handler(task_id, task, *args, **kwargs):
    logger.debug(f"Completed task {task.name} [{task_id}]")


@task_failure.connect
def task_failure_handler(task_id, exception, *args, **kwargs):
    logger.error(f"Failed task [{task_id}]: {exception!r}")
