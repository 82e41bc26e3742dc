"""
ViewSets for projects, project tasks and the caller's assigned tasks.

Views are transport glue only:
  - request.user is turned into an explicit ``Identity`` and handed to the
    registry / ledger services, which run the access guard and all rules
  - serializers validate request shape and render responses
  - domain errors propagate to ``apps.core.handlers`` for status mapping
"""

from django.db.models import prefetch_related_objects

from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from django_filters.rest_framework import DjangoFilterBackend

from apps.accounts.identity import Identity

from . import ledger, registry
from .filters import TaskFilter
from .serializers import (
    AssignedTaskSerializer,
    AssignTaskSerializer,
    BulkDeleteTasksSerializer,
    CreateTaskSerializer,
    ProjectDetailSerializer,
    ProjectInputSerializer,
    ProjectSerializer,
    TaskSerializer,
    UpdateTaskSerializer,
)

UUID_REGEX = "[0-9a-fA-F-]{32,36}"


class IdentityMixin:
    """Expose the authenticated caller as an ``Identity`` value."""

    @property
    def identity(self):
        return Identity.from_user(self.request.user)

    def validated(self, serializer_class):
        serializer = serializer_class(data=self.request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data


# ---------------------------------------------------------------------------
# Project ViewSet
# ---------------------------------------------------------------------------
class ProjectViewSet(IdentityMixin, viewsets.GenericViewSet):
    """
    Owner-scoped project management.

    list   → GET    /api/v1/projects/
    create → POST   /api/v1/projects/
    read   → GET    /api/v1/projects/{id}/
    update → PUT    /api/v1/projects/{id}/
    delete → DELETE /api/v1/projects/{id}/       (cascades to tasks)
    cancel → POST   /api/v1/projects/{id}/cancel/
    """

    serializer_class = ProjectSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = []
    lookup_value_regex = UUID_REGEX

    def list(self, request):
        page = self.paginate_queryset(registry.list_projects(self.identity))
        return self.get_paginated_response(ProjectSerializer(page, many=True).data)

    def create(self, request):
        data = self.validated(ProjectInputSerializer)
        project = registry.create_project(self.identity, **data)
        return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        project = registry.get_project(self.identity, pk)
        return Response(self._detail(project))

    def update(self, request, pk=None):
        data = self.validated(ProjectInputSerializer)
        project = registry.update_project(self.identity, pk, **data)
        return Response(self._detail(project))

    def destroy(self, request, pk=None):
        registry.delete_project(self.identity, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        project = registry.cancel_project(self.identity, pk)
        return Response(self._detail(project))

    def _detail(self, project):
        prefetch_related_objects([project], "tasks__assignee")
        return ProjectDetailSerializer(project).data


# ---------------------------------------------------------------------------
# Project Task ViewSet (nested under /projects/{project_pk}/tasks/)
# ---------------------------------------------------------------------------
class ProjectTaskViewSet(IdentityMixin, viewsets.GenericViewSet):
    """
    Tasks of one project.

    list        → GET    /api/v1/projects/{p}/tasks/        (filterable, paginated)
    create      → POST   /api/v1/projects/{p}/tasks/
    bulk delete → DELETE /api/v1/projects/{p}/tasks/        body: {"task_ids": [...]}
    read        → GET    /api/v1/projects/{p}/tasks/{t}/
    update      → PUT    /api/v1/projects/{p}/tasks/{t}/
    delete      → DELETE /api/v1/projects/{p}/tasks/{t}/
    assign      → POST   /api/v1/projects/{p}/tasks/{t}/assign/
    cancel      → POST   /api/v1/projects/{p}/tasks/{t}/cancel/
    complete    → POST   /api/v1/projects/{p}/tasks/{t}/complete/

    Query parameters (list):
      ?status=pending,in_progress  ?overdue=true  ?assignee=<uuid>
      ?due_date_min=...  ?due_date_max=...  ?page=1&page_size=10
    """

    serializer_class = TaskSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = TaskFilter

    def list(self, request, project_pk=None):
        queryset = self.filter_queryset(ledger.list_project_tasks(self.identity, project_pk))
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(TaskSerializer(page, many=True).data)

    def create(self, request, project_pk=None):
        data = self.validated(CreateTaskSerializer)
        task = ledger.create_task(self.identity, project_pk, **data)
        return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)

    def bulk_destroy(self, request, project_pk=None):
        data = self.validated(BulkDeleteTasksSerializer)
        ledger.bulk_delete_tasks(self.identity, project_pk, data["task_ids"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    def retrieve(self, request, project_pk=None, pk=None):
        task = ledger.get_task(self.identity, project_pk, pk)
        return Response(TaskSerializer(task).data)

    def update(self, request, project_pk=None, pk=None):
        data = self.validated(UpdateTaskSerializer)
        task = ledger.update_task(
            self.identity,
            project_pk,
            pk,
            title=data["title"],
            description=data.get("description", ""),
            due_date=data.get("due_date"),
        )
        return Response(TaskSerializer(task).data)

    def destroy(self, request, project_pk=None, pk=None):
        ledger.delete_task(self.identity, project_pk, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def assign(self, request, project_pk=None, pk=None):
        data = self.validated(AssignTaskSerializer)
        task = ledger.assign_task(self.identity, project_pk, pk, **data)
        return Response(TaskSerializer(task).data)

    def cancel(self, request, project_pk=None, pk=None):
        task = ledger.cancel_task(self.identity, project_pk, pk)
        return Response(TaskSerializer(task).data)

    def complete(self, request, project_pk=None, pk=None):
        task = ledger.complete_task(self.identity, project_pk, pk)
        return Response(TaskSerializer(task).data)


# ---------------------------------------------------------------------------
# Assigned tasks
# ---------------------------------------------------------------------------
class AssignedTaskListView(IdentityMixin, generics.ListAPIView):
    """
    GET /api/v1/tasks/assigned/

    Tasks assigned to the caller across all projects, soonest due first.
    Accepts the same filters as the project task list.
    """

    serializer_class = AssignedTaskSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_class = TaskFilter

    def get_queryset(self):
        return ledger.list_assigned_tasks(self.identity)
