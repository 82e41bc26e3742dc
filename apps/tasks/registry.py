"""
Project registry — owner-scoped project lifecycle.

Every operation takes the caller's ``Identity`` explicitly and goes
through the access guard.  Project names are unique per owner,
case-insensitively; the pre-check gives a friendly error and the
``unique_project_name_per_owner`` constraint catches concurrent races.
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, Q

from apps.core.exceptions import ConflictError, ValidationFailedError

from .access import get_owned_project
from .models import Project, Task

logger = logging.getLogger(__name__)


def _clean_name(name):
    name = (name or "").strip()
    if not name:
        raise ValidationFailedError("Project name is required.")
    return name


def _name_taken(owner_id, name, exclude_pk=None):
    qs = Project.objects.filter(owner_id=owner_id, name__iexact=name)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.exists()


def _save_unique(project, duplicate_message, **save_kwargs):
    """Save inside a savepoint, translating a uniqueness race into ConflictError."""
    try:
        with transaction.atomic():
            project.save(**save_kwargs)
    except IntegrityError:
        raise ConflictError(duplicate_message)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def list_projects(identity):
    """The caller's projects, newest first, annotated with task counts."""
    return (
        Project.objects.filter(owner_id=identity.id)
        .annotate(
            task_count=Count("tasks"),
            open_task_count=Count("tasks", filter=Q(tasks__status__in=Task.OPEN_STATUSES)),
        )
        .order_by("-created_at")
    )


def get_project(identity, project_id):
    return get_owned_project(identity, project_id)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
def create_project(identity, *, name, description=""):
    name = _clean_name(name)
    message = f"You already have a project named '{name}'."
    if _name_taken(identity.id, name):
        raise ConflictError(message)

    project = Project(
        owner_id=identity.id,
        name=name,
        description=description or "",
        status=Project.Status.IN_PROGRESS,
    )
    _save_unique(project, message)
    logger.info(
        "Project created: id=%s name=%s owner=%s", project.pk, project.name, identity.email
    )
    return project


@transaction.atomic
def update_project(identity, project_id, *, name, description=""):
    """
    Rename / re-describe a project.

    Uniqueness is only re-checked when the name actually changes
    (ignoring case), and only against the owner's other projects.
    """
    project = get_owned_project(identity, project_id, for_update=True)
    name = _clean_name(name)
    message = f"Project name '{name}' is already taken."

    if name.lower() != project.name.lower() and _name_taken(
        identity.id, name, exclude_pk=project.pk
    ):
        raise ConflictError(message)

    project.name = name
    project.description = description or ""
    _save_unique(project, message, update_fields=["name", "description", "updated_at"])
    logger.info("Project updated: id=%s name=%s", project.pk, project.name)
    return project


@transaction.atomic
def cancel_project(identity, project_id):
    """Cancel a project.  Unlike task cancellation this is guarded."""
    project = get_owned_project(identity, project_id, for_update=True)
    if project.status == Project.Status.CANCELLED:
        raise ValidationFailedError("Project is already cancelled.")

    project.status = Project.Status.CANCELLED
    project.save(update_fields=["status", "updated_at"])
    logger.info("Project cancelled: id=%s name=%s", project.pk, project.name)
    return project


@transaction.atomic
def delete_project(identity, project_id):
    """Delete a project and all of its tasks in one transaction."""
    project = get_owned_project(identity, project_id, for_update=True)
    project_pk = project.pk
    # Children go in a single DELETE ... WHERE project_id = ? statement.
    deleted_tasks, _ = Task.objects.filter(project_id=project_pk).delete()
    project.delete()
    logger.info("Project deleted: id=%s (%d tasks removed)", project_pk, deleted_tasks)
