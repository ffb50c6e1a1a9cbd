"""Role & ownership helpers shared by services and permission classes."""

from typing import Any

from AcademicPortalApp.core.choices import UserRole
from AcademicPortalApp.core.exceptions import Unauthorized


def is_admin(role: str) -> bool:
    return role == UserRole.ADMIN


def is_course_owner(user_id: Any, course: dict | None) -> bool:
    return bool(course and user_id is not None and course.get("lecturer_id") == user_id)


def can_manage_course(role: str, user_id: Any, course: dict | None) -> bool:
    """Admins manage every course; lecturers only the ones they teach."""
    if is_admin(role):
        return True
    return role == UserRole.LECTURER and is_course_owner(user_id, course)


def ensure_can_manage_course(role: str, user_id: Any, course: dict | None) -> None:
    """Raise Unauthorized unless the caller may manage the course."""
    if not can_manage_course(role, user_id, course):
        raise Unauthorized("Course owner or admin required")


def ensure_role(role: str, *allowed: str) -> None:
    if role not in allowed:
        raise Unauthorized(f"Role '{role}' may not perform this action")
