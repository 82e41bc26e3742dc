"""
Serializers for Project and Task.

Read serializers render model instances; input serializers only check
request *shape* (types, required keys).  Business rules such as name
uniqueness and due date checks are enforced by the registry and ledger
services.
"""

from rest_framework import serializers

from .models import Project, Task


# ---------------------------------------------------------------------------
# Task (read)
# ---------------------------------------------------------------------------
class TaskSerializer(serializers.ModelSerializer):
    """
    Read serializer for Task.

    ``assignee_name`` is a shortcut string from the related user.
    """

    assignee_id = serializers.UUIDField(read_only=True, allow_null=True)
    assignee_name = serializers.SerializerMethodField()

    class Meta:
        model = Task
        fields = [
            "id",
            "title",
            "description",
            "status",
            "due_date",
            "is_overdue",
            "assignee_id",
            "assignee_name",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_assignee_name(self, obj):
        if obj.assignee is None:
            return None
        return obj.assignee.get_full_name()


class AssignedTaskSerializer(TaskSerializer):
    """Task as seen from the assignee's side — carries its project context."""

    project_id = serializers.UUIDField(read_only=True)
    project_name = serializers.CharField(source="project.name", read_only=True)

    class Meta(TaskSerializer.Meta):
        fields = TaskSerializer.Meta.fields + ["project_id", "project_name"]
        read_only_fields = fields


# ---------------------------------------------------------------------------
# Task (input)
# ---------------------------------------------------------------------------
class CreateTaskSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    due_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    assignee_id = serializers.UUIDField(required=False, allow_null=True, default=None)


class UpdateTaskSerializer(serializers.Serializer):
    """Absent ``due_date`` leaves the stored value untouched."""

    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    due_date = serializers.DateTimeField(required=False)


class AssignTaskSerializer(serializers.Serializer):
    assignee_id = serializers.UUIDField()


class BulkDeleteTasksSerializer(serializers.Serializer):
    task_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------
class ProjectSerializer(serializers.ModelSerializer):
    """
    Project list/read serializer.

    ``task_count`` / ``open_task_count`` are read-only annotations added
    by the registry's list query; they default to 0 elsewhere.
    """

    task_count = serializers.IntegerField(read_only=True, default=0)
    open_task_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Project
        fields = [
            "id",
            "name",
            "description",
            "status",
            "task_count",
            "open_task_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProjectDetailSerializer(ProjectSerializer):
    """Single-project view including its tasks; counts come from the tasks."""

    task_count = serializers.SerializerMethodField()
    open_task_count = serializers.SerializerMethodField()
    tasks = TaskSerializer(many=True, read_only=True)

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + ["tasks"]
        read_only_fields = fields

    def get_task_count(self, obj):
        return len(obj.tasks.all())

    def get_open_task_count(self, obj):
        return sum(1 for task in obj.tasks.all() if task.is_open)


class ProjectInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
