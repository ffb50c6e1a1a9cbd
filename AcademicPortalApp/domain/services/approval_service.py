"""Course approval state machine.

States: pending, approved, rejected (courses start as pending).
Allowed transitions:
    pending  -> approved
    pending  -> rejected
    rejected -> approved   (re-approval)
    approved -> approved   (re-approval of an approved course, no-op in effect)
There is no way back to pending and no revoking an approval.

Only admins may trigger transitions. That is checked by the caller (API
permission / management command); functions here do not re-check the role.
"""

import logging
from typing import Any

from AcademicPortalApp.core.choices import ApprovalAction, CourseStatus
from AcademicPortalApp.core.exceptions import InvalidTransition, NotFound
from AcademicPortalApp.core.store import RecordStore, Row, get_store

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: frozenset[tuple[str, str]] = frozenset({
    (CourseStatus.PENDING.value, CourseStatus.APPROVED.value),
    (CourseStatus.PENDING.value, CourseStatus.REJECTED.value),
    (CourseStatus.REJECTED.value, CourseStatus.APPROVED.value),
    (CourseStatus.APPROVED.value, CourseStatus.APPROVED.value),
})

MAX_TRANSITION_ATTEMPTS = 3

ACTION_TARGETS: dict[str, str] = {
    ApprovalAction.APPROVE.value: CourseStatus.APPROVED.value,
    ApprovalAction.REJECT.value: CourseStatus.REJECTED.value,
}


def can_transition(current: str, target: str) -> bool:
    return (str(current), str(target)) in ALLOWED_TRANSITIONS


def next_status(current: str, action: str) -> str:
    """Target status for ``action`` from ``current``.

    Raises:
        InvalidTransition: Unknown action or a pair outside the table.
    """
    target = ACTION_TARGETS.get(str(action))
    if target is None or not can_transition(current, target):
        raise InvalidTransition(f"Cannot {action} a course that is {current}")
    return target


async def transition(course_id: Any, action: str, *, store: RecordStore | None = None) -> Row:
    """Apply ``action`` to a course and persist the new status.

    The write only lands if the status is still the one the transition was
    checked against; when another transition got there first the table is
    re-evaluated against the fresh status.

    Returns the updated course row. Callers re-list afterwards rather than
    patching what they already display.
    """
    store = store or get_store()
    for _ in range(MAX_TRANSITION_ATTEMPTS):
        course = await store.first("courses", {"id": course_id}, fields=("id", "status"))
        if course is None:
            raise NotFound(f"Course {course_id} not found")
        target = next_status(course["status"], action)
        updated = await store.update("courses", {"id": course_id, "status": course["status"]}, {"status": target})
        if updated:
            logger.info("Course %s: %s -> %s", course_id, course["status"], target)
            return await store.first("courses", {"id": course_id})
        logger.warning("Course %s changed status during %s; re-checking", course_id, action)
    raise InvalidTransition(f"Course {course_id} keeps changing status; {action} not applied")


async def approve(course_id: Any, *, store: RecordStore | None = None) -> Row:
    return await transition(course_id, ApprovalAction.APPROVE, store=store)


async def reject(course_id: Any, *, store: RecordStore | None = None) -> Row:
    return await transition(course_id, ApprovalAction.REJECT, store=store)


async def course_approval_history(course_id: Any, *, store: RecordStore | None = None) -> list[Row]:
    """Status changes recorded for a course, newest first.

    Consecutive history entries with an unchanged status (edits of other
    fields) are collapsed.
    """
    store = store or get_store()
    if await store.first("courses", {"id": course_id}, fields=("id",)) is None:
        raise NotFound(f"Course {course_id} not found")
    entries = await store.query(
        "course_history",
        {"id": course_id},
        order_by=("history_date", "history_id"),
        fields=("history_id", "status", "history_date", "history_type"),
    )
    changes: list[Row] = []
    for entry in entries:
        if changes and changes[-1]["status"] == entry["status"]:
            continue
        changes.append(entry)
    return changes[::-1]
