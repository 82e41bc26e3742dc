"""Default page-number pagination with a client-tunable page size."""

from rest_framework.pagination import PageNumberPagination


class StandardPagination(PageNumberPagination):
    """``?page=2&page_size=25`` — page size capped at 100."""

    page_size = 10
    page_size_query_param = "page_size"
    max_page_size = 100
