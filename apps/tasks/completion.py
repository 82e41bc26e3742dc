"""Completion coordinator — auto-completes a project once no open tasks remain."""

import logging

from .models import Project, Task

logger = logging.getLogger(__name__)


def count_open_tasks(project):
    return Task.objects.filter(project=project, status__in=Task.OPEN_STATUSES).count()


def reconcile_project_status(project):
    """
    Re-count the project's open tasks and complete it when there are none.

    Run after every task mutation that can shrink the open-task count
    (completion, deletion, bulk deletion), inside the caller's transaction
    while it holds the project row lock.  The count is always re-queried.
    Cancelled projects are never touched; already-completed ones stay as
    they are.

    Returns True when the project was transitioned to completed.
    """
    if project.status != Project.Status.IN_PROGRESS:
        return False

    if count_open_tasks(project) > 0:
        return False

    project.status = Project.Status.COMPLETED
    project.save(update_fields=["status", "updated_at"])
    logger.info("No open tasks remaining. Marked project %s as completed", project.pk)
    return True
