import datetime

import pytest
from asgiref.sync import async_to_sync
from django.utils import timezone
from model_bakery import baker
from rest_framework.exceptions import ValidationError

from AcademicPortalApp.core.choices import MaterialType, UserRole
from AcademicPortalApp.core.exceptions import ConstraintViolation, NotFound, Unauthorized
from AcademicPortalApp.courses.models import Course, Enrollment
from AcademicPortalApp.domain.services import course_service, learning_service
from AcademicPortalApp.learning.models import Assignment, Submission

pytestmark = pytest.mark.django_db


def run(service, *args, **kwargs):
    return async_to_sync(service)(*args, **kwargs)


COURSE_DATA = {"code": "MA101", "name": "Calculus", "description": "", "semester": "Fall", "year": 2024}


def test_lecturer_creates_pending_course_for_themselves(lecturer, other_lecturer):
    row = run(course_service.create_course, UserRole.LECTURER, lecturer.id, {**COURSE_DATA, "lecturer_id": other_lecturer.id})
    assert row["status"] == "pending"
    assert row["lecturer_id"] == lecturer.id


def test_admin_creates_course_for_lecturer(admin, lecturer):
    row = run(course_service.create_course, UserRole.ADMIN, admin.id, {**COURSE_DATA, "lecturer_id": lecturer.id})
    assert row["lecturer_id"] == lecturer.id


def test_admin_must_name_a_real_lecturer(admin, student):
    with pytest.raises(NotFound):
        run(course_service.create_course, UserRole.ADMIN, admin.id, {**COURSE_DATA, "lecturer_id": student.id})


def test_student_cannot_create_course(student):
    with pytest.raises(Unauthorized):
        run(course_service.create_course, UserRole.STUDENT, student.id, COURSE_DATA)


def test_update_course_by_owner_only(lecturer, other_lecturer, course):
    row = run(course_service.update_course, UserRole.LECTURER, lecturer.id, course.id, {"name": "Graphs"})
    assert row["name"] == "Graphs"
    with pytest.raises(Unauthorized):
        run(course_service.update_course, UserRole.LECTURER, other_lecturer.id, course.id, {"name": "Hack"})


def test_update_course_cannot_change_status(admin, course):
    with pytest.raises(Unauthorized):
        run(course_service.update_course, UserRole.ADMIN, admin.id, course.id, {"status": "approved"})


def test_delete_course(admin, course):
    run(course_service.delete_course, UserRole.ADMIN, admin.id, course.id)
    assert not Course.objects.filter(id=course.id).exists()


def test_enrollment_is_idempotent(lecturer, student, course):
    first = run(course_service.enroll_student, UserRole.LECTURER, lecturer.id, course.id, student.id)
    again = run(course_service.enroll_student, UserRole.LECTURER, lecturer.id, course.id, student.id)
    assert first["id"] == again["id"]
    assert Enrollment.objects.filter(course=course).count() == 1


def test_only_students_can_be_enrolled(lecturer, other_lecturer, course):
    with pytest.raises(NotFound):
        run(course_service.enroll_student, UserRole.LECTURER, lecturer.id, course.id, other_lecturer.id)


def test_unenroll(lecturer, enrolled, course):
    run(course_service.unenroll_student, UserRole.LECTURER, lecturer.id, course.id, enrolled.id)
    assert not Enrollment.objects.exists()
    with pytest.raises(NotFound):
        run(course_service.unenroll_student, UserRole.LECTURER, lecturer.id, course.id, enrolled.id)


def test_duplicate_class_code_conflicts(lecturer, course):
    data = {"class_code": "A1", "class_name": "Morning"}
    run(course_service.create_course_class, UserRole.LECTURER, lecturer.id, course.id, data)
    with pytest.raises(ConstraintViolation):
        run(course_service.create_course_class, UserRole.LECTURER, lecturer.id, course.id, data)


def test_material_class_must_belong_to_course(lecturer, course):
    foreign_class = baker.make("courses.CourseClass", course=baker.make("courses.Course", lecturer=lecturer))
    data = {"title": "Slides", "material_type": MaterialType.LINK, "link_url": "https://example.com/s", "class_id": foreign_class.id}
    with pytest.raises(NotFound):
        run(course_service.create_course_material, UserRole.LECTURER, lecturer.id, course.id, data)

    own_class = baker.make("courses.CourseClass", course=course)
    row = run(course_service.create_course_material, UserRole.LECTURER, lecturer.id, course.id, {**data, "class_id": own_class.id})
    assert row["course_class_id"] == own_class.id
    assert row["created_by_id"] == lecturer.id

    run(course_service.delete_course_material, UserRole.LECTURER, lecturer.id, row["id"])
    with pytest.raises(NotFound):
        run(course_service.delete_course_material, UserRole.LECTURER, lecturer.id, row["id"])


def test_assignment_requires_positive_max_score(lecturer, course):
    with pytest.raises(ValidationError):
        run(learning_service.create_assignment, UserRole.LECTURER, lecturer.id, {"course_id": course.id, "title": "HW", "max_score": 0})


def test_assignment_cannot_move_to_unmanaged_course(lecturer, other_lecturer, course):
    assignment = run(learning_service.create_assignment, UserRole.LECTURER, lecturer.id, {"course_id": course.id, "title": "HW"})
    foreign = baker.make("courses.Course", lecturer=other_lecturer)
    with pytest.raises(Unauthorized):
        run(learning_service.update_assignment, UserRole.LECTURER, lecturer.id, assignment["id"], {"course_id": foreign.id})


def test_submission_requires_enrollment(student, course):
    assignment = baker.make("learning.Assignment", course=course)
    with pytest.raises(Unauthorized):
        run(learning_service.submit_assignment, student.id, assignment.id, "answer")


def test_resubmission_clears_grade(lecturer, enrolled, course):
    assignment = baker.make("learning.Assignment", course=course, max_score=50)
    sub = run(learning_service.submit_assignment, enrolled.id, assignment.id, "v1")
    graded = run(learning_service.grade_submission, UserRole.LECTURER, lecturer.id, sub["id"], 45)
    assert graded["score"] == 45 and graded["graded_at"] is not None

    again = run(learning_service.submit_assignment, enrolled.id, assignment.id, "v2")
    assert again["id"] == sub["id"]
    assert again["score"] is None and again["graded_at"] is None
    assert Submission.objects.get(id=sub["id"]).content == "v2"


def test_grade_must_not_exceed_max_score(lecturer, enrolled, course):
    assignment = baker.make("learning.Assignment", course=course, max_score=10)
    sub = run(learning_service.submit_assignment, enrolled.id, assignment.id, "")
    with pytest.raises(ValidationError):
        run(learning_service.grade_submission, UserRole.LECTURER, lecturer.id, sub["id"], 11)


def test_other_lecturer_cannot_grade(other_lecturer, enrolled, course):
    assignment = baker.make("learning.Assignment", course=course)
    sub = run(learning_service.submit_assignment, enrolled.id, assignment.id, "")
    with pytest.raises(Unauthorized):
        run(learning_service.grade_submission, UserRole.LECTURER, other_lecturer.id, sub["id"], 5)


def test_edits_refresh_updated_at(lecturer, course):
    stale = timezone.now() - datetime.timedelta(days=1)
    assignment = baker.make("learning.Assignment", course=course)
    Course.objects.filter(id=course.id).update(updated_at=stale)
    Assignment.objects.filter(id=assignment.id).update(updated_at=stale)

    course_row = run(course_service.update_course, UserRole.LECTURER, lecturer.id, course.id, {"name": "Graphs"})
    assignment_row = run(
        learning_service.update_assignment, UserRole.LECTURER, lecturer.id, assignment.id, {"title": "Renamed"}
    )
    assert course_row["updated_at"] > stale
    assert assignment_row["updated_at"] > stale
