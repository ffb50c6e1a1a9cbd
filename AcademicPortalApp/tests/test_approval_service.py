import datetime

import pytest
from asgiref.sync import async_to_sync
from django.utils import timezone
from model_bakery import baker

from AcademicPortalApp.core.choices import CourseStatus, UserRole
from AcademicPortalApp.core.exceptions import InvalidTransition, NotFound
from AcademicPortalApp.core.store import DjangoRecordStore
from AcademicPortalApp.courses.models import Course
from AcademicPortalApp.domain.services import aggregation_service, approval_service
from AcademicPortalApp.domain.services.scope_service import resolve_visible_course_ids

pytestmark = pytest.mark.django_db


def run(service, *args, **kwargs):
    return async_to_sync(service)(*args, **kwargs)


@pytest.mark.parametrize("current,action,expected", [
    ("pending", "approve", "approved"),
    ("pending", "reject", "rejected"),
    ("rejected", "approve", "approved"),
    ("approved", "approve", "approved"),
])
def test_allowed_transitions(current, action, expected):
    assert approval_service.next_status(current, action) == expected


@pytest.mark.parametrize("current,action", [
    ("approved", "reject"),
    ("rejected", "reject"),
    ("pending", "reopen"),
])
def test_forbidden_transitions(current, action):
    with pytest.raises(InvalidTransition):
        approval_service.next_status(current, action)


def test_no_transition_back_to_pending():
    for current in CourseStatus.values:
        assert not approval_service.can_transition(current, CourseStatus.PENDING)


def test_approve_persists_status(course):
    row = run(approval_service.approve, course.id)
    assert row["status"] == "approved"
    course.refresh_from_db()
    assert course.status == CourseStatus.APPROVED


def test_reject_approved_course_leaves_it_unchanged(course):
    run(approval_service.approve, course.id)
    with pytest.raises(InvalidTransition):
        run(approval_service.reject, course.id)
    course.refresh_from_db()
    assert course.status == CourseStatus.APPROVED


def test_transition_missing_course():
    with pytest.raises(NotFound):
        run(approval_service.approve, 424242)


def test_history_lists_status_changes_newest_first(course):
    run(approval_service.reject, course.id)
    run(approval_service.approve, course.id)
    history = run(approval_service.course_approval_history, course.id)
    assert [h["status"] for h in history] == ["approved", "rejected", "pending"]
    assert history[-1]["history_type"] == "+"


def test_history_missing_course():
    with pytest.raises(NotFound):
        run(approval_service.course_approval_history, 424242)


def test_approved_course_stays_in_lecturer_scope_and_leaves_pending_list(lecturer, course):
    before = run(aggregation_service.list_course_approvals)
    assert [c["id"] for c in before["pending"]] == [course.id]

    run(approval_service.approve, course.id)

    after = run(aggregation_service.list_course_approvals)
    assert after["pending"] == []
    assert after["pending_count"] == 0
    assert [c["id"] for c in after["approved"]] == [course.id]
    scope = run(resolve_visible_course_ids, UserRole.LECTURER, lecturer.id)
    assert scope.includes(course.id)


def test_status_filter_on_course_listing(admin, lecturer, course):
    approved = baker.make("courses.Course", lecturer=lecturer, status=CourseStatus.APPROVED)
    rows = run(aggregation_service.list_courses, UserRole.ADMIN, admin.id, CourseStatus.APPROVED)
    assert [r["id"] for r in rows] == [approved.id]


class ApproveDuringReadStore(DjangoRecordStore):
    """Lets another admin approve the course right after the first status read."""

    def __init__(self):
        self.raced = False

    async def first(self, collection, filters=None, order_by=(), fields=()):
        row = await super().first(collection, filters, order_by, fields)
        if collection == "courses" and not self.raced:
            self.raced = True
            await approval_service.approve(filters["id"], store=DjangoRecordStore())
        return row


def test_reject_cannot_overwrite_concurrent_approval(course):
    with pytest.raises(InvalidTransition):
        run(approval_service.reject, course.id, store=ApproveDuringReadStore())
    course.refresh_from_db()
    assert course.status == CourseStatus.APPROVED
    history = run(approval_service.course_approval_history, course.id)
    assert [h["status"] for h in history] == ["approved", "pending"]


def test_approve_racing_approve_settles_on_approved(course):
    row = run(approval_service.approve, course.id, store=ApproveDuringReadStore())
    assert row["status"] == "approved"


def test_transition_refreshes_updated_at(course):
    stale = timezone.now() - datetime.timedelta(days=1)
    Course.objects.filter(id=course.id).update(updated_at=stale)
    row = run(approval_service.approve, course.id)
    assert row["updated_at"] > stale
