"""Admin configuration for the tasks app."""

from django.contrib import admin

from .models import Project, Task


class TaskInline(admin.TabularInline):
    model = Task
    extra = 0
    fields = ("title", "status", "due_date", "is_overdue", "assignee")
    readonly_fields = ("is_overdue",)


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("name", "status", "owner", "created_at")
    list_filter = ("status",)
    search_fields = ("name", "owner__email")
    readonly_fields = ("created_at", "updated_at")
    inlines = [TaskInline]


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ("title", "status", "is_overdue", "due_date", "project", "assignee", "created_at")
    list_filter = ("status", "is_overdue")
    search_fields = ("title", "description")
    readonly_fields = ("created_at", "updated_at")
