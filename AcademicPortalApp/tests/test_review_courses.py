from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from AcademicPortalApp.core.choices import CourseStatus

pytestmark = pytest.mark.django_db


def test_lists_courses_by_status(course):
    out = StringIO()
    call_command("review_courses", stdout=out)
    output = out.getvalue()
    assert "pending (1)" in output
    assert "CS201 Algorithms - Lena Lecturer" in output
    assert "approved (0)" in output


def test_approve_from_command(course):
    out = StringIO()
    call_command("review_courses", "--approve", str(course.id), stdout=out)
    course.refresh_from_db()
    assert course.status == CourseStatus.APPROVED
    assert f"Course #{course.id} is now approved" in out.getvalue()


def test_invalid_transition_reported(course):
    call_command("review_courses", "--approve", str(course.id), stdout=StringIO())
    with pytest.raises(CommandError):
        call_command("review_courses", "--reject", str(course.id), stdout=StringIO())
