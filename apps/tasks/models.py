"""Project and Task models for the task tracking domain."""

import uuid

from django.conf import settings
from django.db import models
from django.db.models.functions import Lower


class Project(models.Model):
    """
    A named container of tasks owned by exactly one user.

    Names are unique per owner, compared case-insensitively.  Status
    lifecycle:

        in_progress → completed   (automatic, when no open tasks remain)
        in_progress → cancelled   (explicit)
        completed   → in_progress (automatic, when a task is added)
        cancelled   — terminal

    Deleting a project deletes all of its tasks.
    """

    class Status(models.TextChoices):
        IN_PROGRESS = "in_progress", "In Progress"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.IN_PROGRESS,
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="projects",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                Lower("name"),
                "owner",
                name="unique_project_name_per_owner",
            )
        ]

    def __str__(self):
        return self.name


class Task(models.Model):
    """
    A unit of work inside a project, optionally assigned to a user.

    Status lifecycle (completed and cancelled are terminal):

        pending → in_progress  (on assignment)
        open    → completed    (explicit)
        any     → cancelled    (explicit)

    ``is_overdue`` is a signal maintained by the overdue sweeper, not a
    status value; it is only ever raised while the task is still open.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        IN_PROGRESS = "in_progress", "In Progress"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    OPEN_STATUSES = (Status.PENDING, Status.IN_PROGRESS)
    TERMINAL_STATUSES = (Status.COMPLETED, Status.CANCELLED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    due_date = models.DateTimeField(null=True, blank=True)
    is_overdue = models.BooleanField(default=False)
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="tasks",
    )
    assignee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_tasks",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = [models.F("due_date").asc(nulls_last=True), "created_at"]
        indexes = [
            models.Index(fields=["project", "status"], name="task_project_status_idx"),
            models.Index(fields=["due_date", "is_overdue"], name="task_due_overdue_idx"),
        ]

    def __str__(self):
        return self.title

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES
