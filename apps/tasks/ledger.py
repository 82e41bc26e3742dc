"""
Task ledger — task lifecycle inside a project.

Key rules:
  - Every call is scoped by the access guard (caller must own the project)
  - Every mutation runs in one transaction and locks the parent project
    row first, so mutations of sibling tasks in a project are serialized
    and the completion coordinator never sees a stale open-task count
  - New tasks always start ``pending``; only ``assign_task`` moves a
    pending task to ``in_progress`` (an assignee supplied at creation is
    stored but does not change the initial status)
  - Adding a task to a completed project reopens it
  - Completion and deletion re-evaluate the project's completion
  - Bulk delete is all-or-nothing
"""

import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.core.exceptions import ForbiddenError, NotFoundError, ValidationFailedError

from .access import get_owned_project, get_project_task
from .completion import reconcile_project_status
from .models import Project, Task

User = get_user_model()
logger = logging.getLogger(__name__)

TASK_ORDERING = (F("due_date").asc(nulls_last=True), "created_at")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _clean_title(title):
    title = (title or "").strip()
    if not title:
        raise ValidationFailedError("Title is required.")
    return title


def _resolve_user(user_id, message="User not found."):
    try:
        return User.objects.get(pk=user_id)
    except (User.DoesNotExist, ValidationError, ValueError):
        raise NotFoundError(message)


def _locked_task(identity, project_id, task_id):
    return get_project_task(identity, project_id, task_id, for_update=True)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def get_task(identity, project_id, task_id):
    return get_project_task(identity, project_id, task_id)


def list_project_tasks(identity, project_id):
    """Tasks of an owned project, soonest due date first (undated last)."""
    project = get_owned_project(identity, project_id)
    return (
        Task.objects.filter(project=project)
        .select_related("assignee")
        .order_by(*TASK_ORDERING)
    )


def list_assigned_tasks(identity):
    """Tasks assigned to the caller across every project, soonest due first."""
    return (
        Task.objects.filter(assignee_id=identity.id)
        .select_related("assignee", "project")
        .order_by(*TASK_ORDERING)
    )


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
@transaction.atomic
def create_task(
    identity,
    project_id,
    *,
    title,
    description="",
    due_date=None,
    assignee_id=None,
    now=None,
):
    now = now or timezone.now()
    project = get_owned_project(identity, project_id, for_update=True)
    title = _clean_title(title)
    if due_date is not None and due_date < now:
        raise ValidationFailedError("Due date cannot be in the past.")

    assignee = None
    if assignee_id is not None:
        assignee = _resolve_user(assignee_id, "Assignee not found.")

    task = Task.objects.create(
        project=project,
        title=title,
        description=description or "",
        due_date=due_date,
        assignee=assignee,
        status=Task.Status.PENDING,
    )

    # Adding a task to a closed project forces it back to in progress.
    if project.status == Project.Status.COMPLETED:
        project.status = Project.Status.IN_PROGRESS
        project.save(update_fields=["status", "updated_at"])
        logger.info("Project %s reopened by new task %s", project.pk, task.pk)

    logger.info("Task created: id=%s project=%s", task.pk, project.pk)
    return task


@transaction.atomic
def assign_task(identity, project_id, task_id, *, assignee_id):
    """Set the assignee; a pending task moves to in progress."""
    task = _locked_task(identity, project_id, task_id)
    assignee = _resolve_user(assignee_id)

    task.assignee = assignee
    if task.status == Task.Status.PENDING:
        task.status = Task.Status.IN_PROGRESS
    task.save(update_fields=["assignee", "status", "updated_at"])

    logger.info("Task %s assigned to user %s", task.pk, assignee.email)
    return task


@transaction.atomic
def update_task(identity, project_id, task_id, *, title, description="", due_date=None, now=None):
    """
    Replace title and description.

    ``due_date`` is only replaced when supplied; ``None`` leaves the
    existing value untouched (clearing a due date is not supported).
    A new due date that is not in the past clears the overdue flag.
    """
    now = now or timezone.now()
    task = _locked_task(identity, project_id, task_id)

    task.title = _clean_title(title)
    task.description = description or ""
    fields = ["title", "description", "updated_at"]
    if due_date is not None:
        task.due_date = due_date
        fields.append("due_date")
        if due_date >= now and task.is_overdue:
            task.is_overdue = False
            fields.append("is_overdue")

    task.save(update_fields=fields)
    return task


@transaction.atomic
def cancel_task(identity, project_id, task_id):
    """Cancel unconditionally, whatever the current status (idempotent)."""
    task = _locked_task(identity, project_id, task_id)
    task.status = Task.Status.CANCELLED
    task.save(update_fields=["status", "updated_at"])
    logger.info("Task %s cancelled", task.pk)
    return task


@transaction.atomic
def complete_task(identity, project_id, task_id):
    """Mark a task completed, then re-evaluate its project."""
    task = _locked_task(identity, project_id, task_id)
    if task.status == Task.Status.CANCELLED:
        raise ValidationFailedError("A cancelled task cannot be completed.")

    task.status = Task.Status.COMPLETED
    task.save(update_fields=["status", "updated_at"])
    logger.info("Task %s completed", task.pk)

    reconcile_project_status(task.project)
    return task


@transaction.atomic
def delete_task(identity, project_id, task_id):
    task = _locked_task(identity, project_id, task_id)
    project = task.project
    task.delete()
    logger.info("Deleted task %s from project %s", task_id, project.pk)

    reconcile_project_status(project)


@transaction.atomic
def bulk_delete_tasks(identity, project_id, task_ids):
    """
    Delete several tasks of one project, all or nothing.

    If any id does not belong to the project the whole call fails with
    ``ForbiddenError`` and nothing is deleted.
    """
    project = get_owned_project(identity, project_id, for_update=True)
    unique_ids = set(task_ids or ())
    if not unique_ids:
        raise ValidationFailedError("At least one task id is required.")

    try:
        tasks = Task.objects.filter(project=project, pk__in=unique_ids)
        valid_count = tasks.count()
    except (ValidationError, ValueError):
        valid_count = -1
    if valid_count != len(unique_ids):
        raise ForbiddenError("One or more tasks do not belong to the specified project.")

    deleted, _ = tasks.delete()
    logger.info("Deleted %d tasks from project %s", deleted, project.pk)

    reconcile_project_status(project)
    return deleted
