"""Role-scope resolution: which courses a (role, user) pair may act on.

- admin: every course (unbounded scope, no filter is applied)
- lecturer: courses whose ``lecturer_id`` is the user
- student: courses the user is enrolled in

The result depends only on the arguments and the rows read during the call.
"""

from dataclasses import dataclass
from typing import Any

from AcademicPortalApp.core.choices import UserRole
from AcademicPortalApp.core.exceptions import Unauthorized
from AcademicPortalApp.core.store import RecordStore, get_store


@dataclass(frozen=True)
class CourseScope:
    """Set of visible course ids, or the unbounded sentinel for admins."""
    course_ids: frozenset = frozenset()
    unbounded: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.unbounded and not self.course_ids

    def includes(self, course_id: Any) -> bool:
        return self.unbounded or course_id in self.course_ids

    def as_filter(self, field: str = "course_id") -> dict[str, Any]:
        """Store filter restricting ``field`` to the scope (empty when unbounded)."""
        if self.unbounded:
            return {}
        return {f"{field}__in": sorted(self.course_ids)}


ALL_COURSES = CourseScope(unbounded=True)


async def resolve_visible_course_ids(role: str, user_id: Any, *, store: RecordStore | None = None) -> CourseScope:
    """Compute the courses ``role``/``user_id`` may see.

    Raises:
        Unauthorized: Unknown role.
        StoreUnavailable: Propagated from the store; never read as "no courses".
    """
    store = store or get_store()
    if role == UserRole.ADMIN:
        return ALL_COURSES
    if role == UserRole.LECTURER:
        rows = await store.query("courses", {"lecturer_id": user_id}, fields=("id",))
        return CourseScope(frozenset(row["id"] for row in rows))
    if role == UserRole.STUDENT:
        rows = await store.query("enrollments", {"student_id": user_id}, fields=("course_id",))
        return CourseScope(frozenset(row["course_id"] for row in rows))
    raise Unauthorized(f"Unknown role: {role}")
