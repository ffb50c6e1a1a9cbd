"""Course domain models: Course, Enrollment, CourseClass, CourseMaterial."""

from django.db import models
from django.conf import settings

from simple_history.models import HistoricalRecords

from AcademicPortalApp.core.choices import CourseStatus, MaterialType


User = settings.AUTH_USER_MODEL

class Course(models.Model):
    """A course taught by a lecturer, gated by admin approval.

    Fields:
        code / name / description: Catalogue identity.
        semester / year: Teaching period.
        lecturer: FK to the owning lecturer.
        status: CourseStatus; only the approval service changes it.
        created_at / updated_at: Timestamps.
        history: Audit history (django-simple-history), records every status change.
    """
    code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    semester = models.CharField(max_length=32)
    year = models.PositiveSmallIntegerField()
    lecturer = models.ForeignKey(User, on_delete=models.PROTECT, related_name="taught_courses")
    status = models.CharField(max_length=16, choices=CourseStatus.choices, default=CourseStatus.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    def __str__(self) -> str:
        return f"{self.code} - {self.name} (#{self.pk})"

class Enrollment(models.Model):
    """Membership of a student in a course.

    Constraints:
        uq_enrollment_course_student: Prevent duplicate enrollment rows.
    """
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="enrollments")
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name="enrollments")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["course", "student"], name="uq_enrollment_course_student"),
        ]

    def __str__(self) -> str:
        return f"{self.student} -> {self.course}"


class CourseClass(models.Model):
    """A teaching group (section) of a course."""
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="classes")
    class_code = models.CharField(max_length=32)
    class_name = models.CharField(max_length=200)
    max_students = models.PositiveIntegerField(default=50)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["course", "class_code"], name="uq_course_class_code"),
        ]

    def __str__(self) -> str:
        return f"{self.class_code} ({self.course_id})"


class CourseMaterial(models.Model):
    """A linked resource for a course; ``course_class`` null means every class sees it."""
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="materials")
    course_class = models.ForeignKey(
        CourseClass, on_delete=models.SET_NULL, null=True, blank=True, related_name="materials"
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    material_type = models.CharField(max_length=16, choices=MaterialType.choices, default=MaterialType.DOCUMENT)
    link_url = models.URLField(max_length=500)
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name="created_materials")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.title} [{self.material_type}]"
