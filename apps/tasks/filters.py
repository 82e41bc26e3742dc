"""
django-filter FilterSet for task list filtering.

Supports filtering by:
  - status (exact match or comma-separated list)
  - overdue flag (as maintained by the overdue sweeper)
  - assignee UUID
  - due_date range (min / max)
"""

from django_filters import rest_framework as filters

from .models import Task


class TaskFilter(filters.FilterSet):
    """
    Filterable fields exposed as query parameters on task listings.

    Examples:
        ?status=pending,in_progress
        ?overdue=true
        ?assignee=<uuid>
        ?due_date_min=2026-01-01T00:00:00Z&due_date_max=2026-12-31T23:59:59Z
    """

    status = filters.CharFilter(method="filter_csv_field")
    overdue = filters.BooleanFilter(field_name="is_overdue")
    assignee = filters.UUIDFilter(field_name="assignee__id")
    due_date_min = filters.IsoDateTimeFilter(field_name="due_date", lookup_expr="gte")
    due_date_max = filters.IsoDateTimeFilter(field_name="due_date", lookup_expr="lte")

    class Meta:
        model = Task
        fields = ["status", "overdue", "assignee", "due_date_min", "due_date_max"]

    # ----- helpers -----

    def filter_csv_field(self, queryset, name, value):
        """Allow comma-separated values, e.g. ?status=pending,in_progress."""
        values = [v.strip() for v in value.split(",") if v.strip()]
        if values:
            return queryset.filter(**{f"{name}__in": values})
        return queryset
