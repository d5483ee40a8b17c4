"""Base task class for automation tasks.

Provides common functionality for all Celery tasks:
- Organization tracking in task results
- Standardized result format
- Logging hooks
"""

from celery import Task

from logger import format_log, get_logger

logger = get_logger("api.tasks")


class BaseTask(Task):
    """
    Base class for all application tasks.

    Usage:
        @celery_app.task(bind=True, base=AutomationTask)
        def my_task(self, automation_id: int, organization_id: int):
            result = do_work()
            return self.build_result(organization_id, result=result)
    """

    def build_result(self, organization_id: int | None, status: str = "completed", **data) -> dict:
        """
        Build standardized task result.

        Args:
            organization_id: Organization the task worked for (None for cross-tenant tasks)
            status: Task status (completed, skipped, failed)
            **data: Additional result data

        Returns:
            Dictionary with task result
        """
        return {
            "task_id": self.request.id,
            "organization_id": organization_id,
            "status": status,
            **data,
        }

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(format_log("Task failed", task=self.name, task_id=task_id, error=repr(exc)))

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        logger.warning(format_log("Task retrying", task=self.name, task_id=task_id, error=exc))

    def on_success(self, retval, task_id, args, kwargs):
        logger.info(format_log("Task completed", task=self.name, task_id=task_id))


class AutomationTask(BaseTask):
    """Base class for tasks that execute automations."""

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        automation_id = args[0] if len(args) > 0 else kwargs.get("automation_id", "all")
        organization_id = args[1] if len(args) > 1 else kwargs.get("organization_id", "all")
        logger.error(
            format_log(
                "Automation task failed",
                task_id=task_id,
                automation_id=automation_id,
                organization_id=organization_id,
                error=repr(exc),
            )
        )
