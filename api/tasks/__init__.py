"""Celery tasks."""

# Import all tasks so Celery can discover them
from .automation import run_due_automations_task, run_single_automation_task  # noqa: F401
