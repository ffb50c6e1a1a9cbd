"""DRF permission classes gating API actions by the caller's system role."""

from typing import Any

from rest_framework.permissions import BasePermission, SAFE_METHODS
from rest_framework.request import Request

from AcademicPortalApp.core.choices import UserRole


def _role(request: Request) -> str | None:
    user = request.user
    if not user or not user.is_authenticated:
        return None
    return getattr(user, "role", None)


class IsAdminRole(BasePermission):
    """Only admins (course approvals, dashboard)."""

    def has_permission(self, request: Request, view: Any) -> bool:
        return _role(request) == UserRole.ADMIN


class IsLecturerOrAdmin(BasePermission):
    """Lecturers and admins; ownership is checked by the services."""

    def has_permission(self, request: Request, view: Any) -> bool:
        return _role(request) in (UserRole.LECTURER, UserRole.ADMIN)


class IsStudentRole(BasePermission):
    """Only students (assignment submission)."""

    def has_permission(self, request: Request, view: Any) -> bool:
        return _role(request) == UserRole.STUDENT


class ReadOnlyOrLecturerOrAdmin(BasePermission):
    """Any authenticated role may read; writes need lecturer or admin."""

    def has_permission(self, request: Request, view: Any) -> bool:
        role = _role(request)
        if role is None:
            return False
        if request.method in SAFE_METHODS:
            return True
        return role in (UserRole.LECTURER, UserRole.ADMIN)
