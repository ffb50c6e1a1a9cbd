"""Domain service functions for assignments, submissions and grading.

Enforces role/ownership rules:
- Only admins or the course lecturer create, edit, delete or grade.
- Only students enrolled in the course submit.
A submission's displayed status (pending / submitted / graded) is derived at
read time from ``graded_at``; resubmitting clears the previous grade.
"""

import logging
from typing import Any

from django.utils import timezone
from rest_framework.exceptions import ValidationError

from AcademicPortalApp.core.exceptions import NotFound, Unauthorized
from AcademicPortalApp.core.store import RecordStore, Row, get_store
from AcademicPortalApp.domain.services.course_service import get_managed_course

logger = logging.getLogger(__name__)

ASSIGNMENT_EDITABLE_FIELDS = {"course_id", "title", "description", "due_date", "max_score"}


def _ensure_positive_max_score(max_score: Any) -> None:
    if max_score is not None and max_score <= 0:
        raise ValidationError({"max_score": "Must be greater than zero."})


async def _get_assignment(store: RecordStore, assignment_id: Any) -> Row:
    assignment = await store.first("assignments", {"id": assignment_id})
    if assignment is None:
        raise NotFound(f"Assignment {assignment_id} not found")
    return assignment


async def create_assignment(role: str, user_id: Any, data: dict[str, Any], *, store: RecordStore | None = None) -> Row:
    """Create an assignment in a course the caller manages."""
    store = store or get_store()
    _ensure_positive_max_score(data.get("max_score"))
    await get_managed_course(role, user_id, data["course_id"], store=store)
    payload = {key: value for key, value in data.items() if key in ASSIGNMENT_EDITABLE_FIELDS}
    [assignment] = await store.insert("assignments", [payload])
    return assignment


async def update_assignment(
    role: str, user_id: Any, assignment_id: Any, patch: dict[str, Any], *, store: RecordStore | None = None
) -> Row:
    """Update an assignment; moving it to another course requires managing both."""
    store = store or get_store()
    _ensure_positive_max_score(patch.get("max_score"))
    assignment = await _get_assignment(store, assignment_id)
    await get_managed_course(role, user_id, assignment["course_id"], store=store)
    target_course = patch.get("course_id")
    if target_course is not None and target_course != assignment["course_id"]:
        await get_managed_course(role, user_id, target_course, store=store)
    changes = {key: value for key, value in patch.items() if key in ASSIGNMENT_EDITABLE_FIELDS}
    if changes:
        await store.update("assignments", {"id": assignment_id}, changes)
    return await store.first("assignments", {"id": assignment_id})


async def delete_assignment(role: str, user_id: Any, assignment_id: Any, *, store: RecordStore | None = None) -> None:
    store = store or get_store()
    assignment = await _get_assignment(store, assignment_id)
    await get_managed_course(role, user_id, assignment["course_id"], store=store)
    await store.delete("assignments", {"id": assignment_id})


async def submit_assignment(
    student_id: Any, assignment_id: Any, content: str = "", *, store: RecordStore | None = None
) -> Row:
    """Create or replace the student's submission.

    Rules:
        - Student must be enrolled in the assignment's course.
        - On resubmission the previous score and grading time are cleared.
    """
    store = store or get_store()
    assignment = await _get_assignment(store, assignment_id)
    enrollment = await store.first(
        "enrollments", {"course_id": assignment["course_id"], "student_id": student_id}, fields=("id",)
    )
    if enrollment is None:
        raise Unauthorized("Not enrolled in course")

    key = {"assignment_id": assignment_id, "student_id": student_id}
    existing = await store.first("submissions", key, fields=("id",))
    if existing is None:
        [submission] = await store.insert("submissions", [{**key, "content": content}])
        return submission
    await store.update("submissions", {"id": existing["id"]}, {
        "content": content,
        "submitted_at": timezone.now(),
        "score": None,
        "graded_at": None,
    })
    logger.info("Submission %s replaced; previous grade cleared", existing["id"])
    return await store.first("submissions", {"id": existing["id"]})


async def grade_submission(
    role: str, user_id: Any, submission_id: Any, score: int, *, store: RecordStore | None = None
) -> Row:
    """Record a score for a submission (admin or course lecturer).

    Validates:
        0 <= score <= assignment.max_score
    """
    store = store or get_store()
    submission = await store.first("submissions", {"id": submission_id}, fields=("id", "assignment_id"))
    if submission is None:
        raise NotFound(f"Submission {submission_id} not found")
    assignment = await _get_assignment(store, submission["assignment_id"])
    await get_managed_course(role, user_id, assignment["course_id"], store=store)
    if not (0 <= score <= assignment["max_score"]):
        raise ValidationError({"score": f"Score must be between 0 and {assignment['max_score']}."})
    await store.update("submissions", {"id": submission_id}, {"score": score, "graded_at": timezone.now()})
    return await store.first("submissions", {"id": submission_id})
