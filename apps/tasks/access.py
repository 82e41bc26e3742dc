"""
Access guard — ownership check in front of every project-scoped operation.

A project that exists but belongs to another user is reported exactly
like a project that does not exist (``NotFoundError``), so the API never
reveals other users' data.  The same applies to tasks reached through a
project the caller does not own, and to malformed ids.
"""

from django.core.exceptions import ValidationError

from apps.core.exceptions import NotFoundError

from .models import Project, Task

PROJECT_NOT_FOUND = "Project not found."
TASK_NOT_FOUND = "Task not found in this project."


def get_owned_project(identity, project_id, *, for_update=False):
    """
    Return the project ``project_id`` if ``identity`` owns it.

    ``for_update=True`` takes a row lock on the project; callers must be
    inside ``transaction.atomic()``.  Every task mutation locks its parent
    project this way so sibling mutations serialize.
    """
    qs = Project.objects.filter(owner_id=identity.id)
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=project_id)
    except (Project.DoesNotExist, ValidationError, ValueError):
        raise NotFoundError(PROJECT_NOT_FOUND)


def get_project_task(identity, project_id, task_id, *, for_update=False):
    """Return task ``task_id`` of an owned project, with ``task.project`` populated."""
    project = get_owned_project(identity, project_id, for_update=for_update)
    try:
        task = Task.objects.select_related("assignee").get(pk=task_id, project=project)
    except (Task.DoesNotExist, ValidationError, ValueError):
        raise NotFoundError(TASK_NOT_FOUND)
    task.project = project
    return task
