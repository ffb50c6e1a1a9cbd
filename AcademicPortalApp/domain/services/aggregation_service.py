"""Role-scoped listings enriched with related-entity fields.

Each listing runs one primary query restricted by the caller's course scope,
then joins display-only fields (course name, student name, lecturer name,
submission status) from related collections. Related lookups run concurrently
and a failed lookup leaves its field empty instead of failing the listing.
Primary query failures propagate.

Orderings:
    assignments  -- due_date ascending, undated last
    attendance   -- session_date descending
    courses      -- created_at descending
    materials / classes -- created_at descending
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Mapping

from AcademicPortalApp.core.access import can_manage_course, ensure_role
from AcademicPortalApp.core.choices import AttendanceStatus, CourseStatus, SubmissionStatus, UserRole
from AcademicPortalApp.core.config import portal_settings
from AcademicPortalApp.core.exceptions import ConstraintViolation, InvalidBatch, NotFound, StoreUnavailable
from AcademicPortalApp.core.store import RecordStore, Row, get_store
from AcademicPortalApp.domain.services.query_helpers import (
    distinct_values, gather_bounded, index_by_id, related_value,
)
from AcademicPortalApp.domain.services.scope_service import resolve_visible_course_ids

logger = logging.getLogger(__name__)

ASSIGNMENT_ORDER = ("due_date", "id")
ATTENDANCE_ORDER = ("-session_date", "course_id", "student_id")
COURSE_ORDER = ("-created_at", "-id")
RECENT_FIRST = ("-created_at", "-id")

COURSE_NAME_FIELDS = ("id", "name")
PROFILE_NAME_FIELDS = ("id", "full_name")

_LOOKUP_FAILED = object()


def derive_submission_status(submission: Mapping[str, Any] | None) -> tuple[str, Any]:
    """Return ``(submission_status, score)`` for a student's submission row.

    No submission -> pending; submitted but ungraded -> submitted;
    ``graded_at`` set -> graded.
    """
    if submission is None:
        return SubmissionStatus.PENDING.value, None
    if submission.get("graded_at"):
        return SubmissionStatus.GRADED.value, submission.get("score")
    return SubmissionStatus.SUBMITTED.value, submission.get("score")


async def _student_submission(store: RecordStore, assignment_id: Any, student_id: Any) -> Any:
    try:
        return await store.first(
            "submissions",
            {"assignment_id": assignment_id, "student_id": student_id},
            fields=("score", "graded_at"),
        )
    except StoreUnavailable:
        logger.warning("Submission lookup failed for assignment %s", assignment_id)
        return _LOOKUP_FAILED


async def list_assignments(role: str, user_id: Any, *, store: RecordStore | None = None) -> list[Row]:
    """Assignments in the caller's course scope with ``course_name``.

    Students additionally get ``submission_status`` and ``score``.
    """
    store = store or get_store()
    scope = await resolve_visible_course_ids(role, user_id, store=store)
    if scope.is_empty:
        return []
    assignments = await store.query("assignments", scope.as_filter(), order_by=ASSIGNMENT_ORDER)

    course_lookup = index_by_id(store, "courses", distinct_values(assignments, "course_id"), COURSE_NAME_FIELDS)
    if role == UserRole.STUDENT:
        courses, submissions = await asyncio.gather(
            course_lookup,
            gather_bounded(assignments, lambda a: _student_submission(store, a["id"], user_id)),
        )
    else:
        courses, submissions = await course_lookup, None

    result = []
    for position, assignment in enumerate(assignments):
        row = {**assignment, "course_name": related_value(courses, assignment["course_id"], "name")}
        if submissions is not None:
            submission = submissions[position]
            if submission is _LOOKUP_FAILED:
                row["submission_status"], row["score"] = None, None
            else:
                row["submission_status"], row["score"] = derive_submission_status(submission)
        result.append(row)
    return result


async def list_attendance(role: str, user_id: Any, *, store: RecordStore | None = None) -> list[Row]:
    """Attendance rows visible to the caller with ``course_name`` and ``student_name``.

    Students see their own rows, lecturers the rows of courses they teach,
    admins everything.
    """
    store = store or get_store()
    ensure_role(role, *UserRole.values)
    if role == UserRole.STUDENT:
        filters = {"student_id": user_id}
    else:
        scope = await resolve_visible_course_ids(role, user_id, store=store)
        if scope.is_empty:
            return []
        filters = scope.as_filter()
    records = await store.query("attendance", filters, order_by=ATTENDANCE_ORDER)

    courses, students = await asyncio.gather(
        index_by_id(store, "courses", distinct_values(records, "course_id"), COURSE_NAME_FIELDS),
        index_by_id(store, "profiles", distinct_values(records, "student_id"), PROFILE_NAME_FIELDS),
    )
    return [
        {
            **record,
            "course_name": related_value(courses, record["course_id"], "name"),
            "student_name": related_value(students, record["student_id"], "full_name"),
        }
        for record in records
    ]


async def list_course_materials(
    course_id: Any,
    material_type: str | None = None,
    *,
    store: RecordStore | None = None,
) -> list[Row]:
    """Materials of a course, optionally of one ``material_type``; newest first."""
    store = store or get_store()
    filters = {"course_id": course_id}
    if material_type:
        filters["material_type"] = material_type
    return await store.query("course_materials", filters, order_by=RECENT_FIRST)


async def list_course_classes(course_id: Any, *, store: RecordStore | None = None) -> list[Row]:
    store = store or get_store()
    return await store.query("course_classes", {"course_id": course_id}, order_by=RECENT_FIRST)


async def list_courses(
    role: str,
    user_id: Any,
    status: str | None = None,
    *,
    store: RecordStore | None = None,
) -> list[Row]:
    """Courses in the caller's scope, newest first, each with ``lecturer_name``."""
    store = store or get_store()
    scope = await resolve_visible_course_ids(role, user_id, store=store)
    if scope.is_empty:
        return []
    filters = scope.as_filter("id")
    if status:
        filters["status"] = status
    courses = await store.query("courses", filters, order_by=COURSE_ORDER)

    lecturers = await index_by_id(store, "profiles", distinct_values(courses, "lecturer_id"), PROFILE_NAME_FIELDS)
    placeholder = portal_settings().unspecified_label
    return [
        {**course, "lecturer_name": related_value(lecturers, course["lecturer_id"], "full_name", placeholder)}
        for course in courses
    ]


async def list_course_approvals(*, store: RecordStore | None = None) -> dict[str, Any]:
    """Every course grouped by approval status, plus the number awaiting review."""
    courses = await list_courses(UserRole.ADMIN, None, store=store)
    groups: dict[str, Any] = {value: [] for value in CourseStatus.values}
    for course in courses:
        groups[course["status"]].append(course)
    groups["pending_count"] = len(groups[CourseStatus.PENDING.value])
    return groups


async def get_course_detail(role: str, user_id: Any, course_id: Any, *, store: RecordStore | None = None) -> Row:
    """A course with its classes and materials.

    Courses outside the caller's scope are reported as missing.
    """
    store = store or get_store()
    scope = await resolve_visible_course_ids(role, user_id, store=store)
    if not scope.includes(course_id):
        raise NotFound(f"Course {course_id} not found")
    course, classes, materials = await asyncio.gather(
        store.first("courses", {"id": course_id}),
        list_course_classes(course_id, store=store),
        list_course_materials(course_id, store=store),
    )
    if course is None:
        raise NotFound(f"Course {course_id} not found")
    lecturers = await index_by_id(store, "profiles", [course["lecturer_id"]], PROFILE_NAME_FIELDS)
    return {
        **course,
        "lecturer_name": related_value(
            lecturers, course["lecturer_id"], "full_name", portal_settings().unspecified_label
        ),
        "can_manage": can_manage_course(role, user_id, course),
        "classes": classes,
        "materials": materials,
    }


async def list_pending_lecturer_roster(course_id: Any, *, store: RecordStore | None = None) -> list[Row]:
    """Enrolled students of a course, each defaulted to ``present``.

    This is the starting state of a new attendance session.
    """
    store = store or get_store()
    course, enrollments = await asyncio.gather(
        store.first("courses", {"id": course_id}, fields=("id",)),
        store.query("enrollments", {"course_id": course_id}, fields=("student_id",)),
    )
    if course is None:
        raise NotFound(f"Course {course_id} not found")
    student_ids = distinct_values(enrollments, "student_id")
    if not student_ids:
        return []
    profiles = await store.query(
        "profiles", {"id__in": student_ids}, order_by=("full_name", "id"), fields=("id", "full_name", "email")
    )
    return [
        {
            "student_id": profile["id"],
            "full_name": profile["full_name"],
            "email": profile["email"],
            "status": AttendanceStatus.PRESENT.value,
        }
        for profile in profiles
    ]


async def submit_attendance_batch(
    course_id: Any,
    session_date: date,
    status_by_student_id: Mapping[Any, str],
    *,
    store: RecordStore | None = None,
) -> list[Row]:
    """Write one attendance row per student for a session in a single insert.

    Raises:
        InvalidBatch: Empty map, a datetime instead of a date, an unknown
            status, a student not enrolled in the course, or a session that
            was already recorded for one of the students.
        NotFound: Course does not exist.
    """
    store = store or get_store()
    if isinstance(session_date, datetime) or not isinstance(session_date, date):
        raise InvalidBatch("session_date must be a calendar date without a time component")
    if not status_by_student_id:
        raise InvalidBatch("At least one student status is required")
    unknown = [sid for sid, value in status_by_student_id.items() if value not in AttendanceStatus.values]
    if unknown:
        raise InvalidBatch(f"Unknown attendance status for students {unknown}")

    course, enrollments = await asyncio.gather(
        store.first("courses", {"id": course_id}, fields=("id",)),
        store.query("enrollments", {"course_id": course_id}, fields=("student_id",)),
    )
    if course is None:
        raise NotFound(f"Course {course_id} not found")
    enrolled = {row["student_id"] for row in enrollments}
    strangers = [sid for sid in status_by_student_id if sid not in enrolled]
    if strangers:
        raise InvalidBatch(f"Students {strangers} are not enrolled in course {course_id}")

    rows = [
        {"course_id": course_id, "student_id": sid, "session_date": session_date, "status": str(value)}
        for sid, value in status_by_student_id.items()
    ]
    try:
        created = await store.insert("attendance", rows)
    except ConstraintViolation as exc:
        raise InvalidBatch(f"Attendance for {session_date} was already recorded") from exc
    logger.info("Recorded attendance for course %s on %s (%d students)", course_id, session_date, len(created))
    return created


async def dashboard_counts(*, store: RecordStore | None = None) -> dict[str, int]:
    """Totals shown on the admin dashboard."""
    store = store or get_store()
    courses, assignments, users, attendance = await asyncio.gather(
        store.count("courses"),
        store.count("assignments"),
        store.count("profiles"),
        store.count("attendance"),
    )
    return {"courses": courses, "assignments": assignments, "users": users, "attendance": attendance}
