"""
Tasks app URL configuration.

Projects use a DRF router; project tasks are nested by hand under
/projects/{project_pk}/tasks/.  All endpoints are mounted under /api/v1/
by the root URL config.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import AssignedTaskListView, ProjectTaskViewSet, ProjectViewSet

router = DefaultRouter()
router.register(r"projects", ProjectViewSet, basename="project")

task_list = ProjectTaskViewSet.as_view(
    {"get": "list", "post": "create", "delete": "bulk_destroy"}
)
task_detail = ProjectTaskViewSet.as_view(
    {"get": "retrieve", "put": "update", "delete": "destroy"}
)

urlpatterns = [
    path("tasks/assigned/", AssignedTaskListView.as_view(), name="task-assigned"),
    path("projects/<uuid:project_pk>/tasks/", task_list, name="project-task-list"),
    path(
        "projects/<uuid:project_pk>/tasks/<uuid:pk>/",
        task_detail,
        name="project-task-detail",
    ),
    path(
        "projects/<uuid:project_pk>/tasks/<uuid:pk>/assign/",
        ProjectTaskViewSet.as_view({"post": "assign"}),
        name="project-task-assign",
    ),
    path(
        "projects/<uuid:project_pk>/tasks/<uuid:pk>/cancel/",
        ProjectTaskViewSet.as_view({"post": "cancel"}),
        name="project-task-cancel",
    ),
    path(
        "projects/<uuid:project_pk>/tasks/<uuid:pk>/complete/",
        ProjectTaskViewSet.as_view({"post": "complete"}),
        name="project-task-complete",
    ),
    path("", include(router.urls)),
]
