"""Learning domain models: Assignment, Submission, AttendanceRecord."""

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator

from AcademicPortalApp.courses.models import Course
from AcademicPortalApp.core.choices import AttendanceStatus

from simple_history.models import HistoricalRecords

User = settings.AUTH_USER_MODEL

class Assignment(models.Model):
    """Graded work set for a course, with optional due date."""
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="assignments")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    due_date = models.DateTimeField(null=True, blank=True)
    max_score = models.PositiveIntegerField(default=100, validators=[MinValueValidator(1)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    def __str__(self) -> str:
        return f"{self.title} (#{self.pk})"


class Submission(models.Model):
    """A student's submission for an assignment (unique per assignment+student).

    ``graded_at`` set means graded; the submission status shown to students is
    derived from it, never stored.
    """
    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name="submissions")
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name="submissions")
    content = models.TextField(blank=True)
    submitted_at = models.DateTimeField(auto_now_add=True)
    score = models.PositiveIntegerField(null=True, blank=True)
    graded_at = models.DateTimeField(null=True, blank=True)
    history = HistoricalRecords()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["assignment", "student"], name="uq_submission_assignment_student"),
        ]


class AttendanceRecord(models.Model):
    """One student's mark for one session of a course. Immutable once written."""
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="attendance")
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name="attendance")
    session_date = models.DateField()
    status = models.CharField(max_length=16, choices=AttendanceStatus.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["course", "student", "session_date"],
                name="uq_attendance_course_student_session",
            ),
        ]
