from asgiref.sync import async_to_sync
from rest_framework.response import Response


class PaginationMixin:
    """Shared helper to reduce pagination boilerplate."""

    def paginate_and_respond(self, rows, serializer_cls, many=True):
        page = self.paginate_queryset(rows)
        serializer = serializer_cls(page if page is not None else rows, many=many)
        if page is not None:
            return self.get_paginated_response(serializer.data)
        return Response(serializer.data)


class CallerMixin:
    """Resolve the caller identity and run async domain services from sync views."""

    def caller(self) -> tuple[str, int]:
        return self.request.user.role, self.request.user.id

    @staticmethod
    def run(service, *args, **kwargs):
        return async_to_sync(service)(*args, **kwargs)
