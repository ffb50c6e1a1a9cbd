import datetime

import pytest
from asgiref.sync import async_to_sync
from django.utils import timezone
from model_bakery import baker

from AcademicPortalApp.core.choices import UserRole
from AcademicPortalApp.core.exceptions import InvalidBatch, NotFound
from AcademicPortalApp.domain.services import aggregation_service
from AcademicPortalApp.learning.models import AttendanceRecord

pytestmark = pytest.mark.django_db

submit = async_to_sync(aggregation_service.submit_attendance_batch)
SESSION = datetime.date(2024, 5, 6)


@pytest.fixture
def three_students(course):
    students = [
        baker.make("users.User", role=UserRole.STUDENT, full_name=name)
        for name in ("Ana Absent", "Ben Absent", "Lia Late")
    ]
    for s in students:
        baker.make("courses.Enrollment", course=course, student=s)
    return students


def test_roster_then_batch_records_one_row_per_student(lecturer, course, three_students):
    roster = async_to_sync(aggregation_service.list_pending_lecturer_roster)(course.id)
    assert {row["status"] for row in roster} == {"present"}
    ana, ben, lia = three_students
    statuses = {row["student_id"]: row["status"] for row in roster}
    statuses.update({ana.id: "absent", ben.id: "absent", lia.id: "late"})

    created = submit(course.id, SESSION, statuses)

    assert len(created) == 3
    assert AttendanceRecord.objects.filter(course=course, session_date=SESSION).count() == 3
    attendance = async_to_sync(aggregation_service.list_attendance)(UserRole.LECTURER, lecturer.id)
    listed = {row["student_name"]: row for row in attendance}
    assert {name: row["status"] for name, row in listed.items()} == {
        "Ana Absent": "absent",
        "Ben Absent": "absent",
        "Lia Late": "late",
    }
    assert {row["course_name"] for row in attendance} == {"Algorithms"}
    assert {row["session_date"] for row in attendance} == {SESSION}


def test_empty_batch_rejected(course):
    with pytest.raises(InvalidBatch):
        submit(course.id, SESSION, {})
    assert not AttendanceRecord.objects.exists()


def test_datetime_session_rejected(course, enrolled):
    with pytest.raises(InvalidBatch):
        submit(course.id, timezone.now(), {enrolled.id: "present"})


def test_unknown_status_rejected(course, enrolled):
    with pytest.raises(InvalidBatch):
        submit(course.id, SESSION, {enrolled.id: "excused"})


def test_unenrolled_student_rejects_whole_batch(course, enrolled, other_lecturer):
    outsider = baker.make("users.User", role=UserRole.STUDENT)
    with pytest.raises(InvalidBatch):
        submit(course.id, SESSION, {enrolled.id: "present", outsider.id: "present"})
    assert not AttendanceRecord.objects.exists()


def test_missing_course():
    with pytest.raises(NotFound):
        submit(987654, SESSION, {1: "present"})


def test_recording_same_session_twice_rejected(course, enrolled):
    submit(course.id, SESSION, {enrolled.id: "present"})
    with pytest.raises(InvalidBatch):
        submit(course.id, SESSION, {enrolled.id: "late"})
    assert AttendanceRecord.objects.get(student=enrolled).status == "present"
