"""Serializers for courses, approvals, classes, materials, assignments, submissions and attendance.

Write serializers validate request bodies; read serializers render the dict
rows produced by the domain services.
"""

from rest_framework import serializers

from AcademicPortalApp.courses.models import Course, CourseClass
from AcademicPortalApp.core.choices import AttendanceStatus, CourseStatus, MaterialType


class CourseWriteSerializer(serializers.ModelSerializer):
    """Serializer for creating/updating a course (status is not writable)."""
    lecturer_id = serializers.IntegerField(
        required=False,
        help_text="Admins only: lecturer who will own the course.",
    )

    class Meta:
        model = Course
        fields = ["code", "name", "description", "semester", "year", "lecturer_id"]


class CourseReadSerializer(serializers.Serializer):
    """Course row with the lecturer's display name."""
    id = serializers.IntegerField()
    code = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    semester = serializers.CharField()
    year = serializers.IntegerField()
    lecturer_id = serializers.IntegerField()
    lecturer_name = serializers.CharField(required=False)
    status = serializers.ChoiceField(choices=CourseStatus.choices)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class CourseClassWriteSerializer(serializers.ModelSerializer):
    """Serializer for adding a class to a course."""

    class Meta:
        model = CourseClass
        fields = ["class_code", "class_name", "max_students"]


class CourseClassReadSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    course_id = serializers.IntegerField()
    class_code = serializers.CharField()
    class_name = serializers.CharField()
    max_students = serializers.IntegerField()
    created_at = serializers.DateTimeField()


class CourseMaterialWriteSerializer(serializers.Serializer):
    """Serializer for attaching a linked material to a course."""
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    material_type = serializers.ChoiceField(choices=MaterialType.choices, default=MaterialType.DOCUMENT)
    link_url = serializers.URLField(max_length=500)
    class_id = serializers.IntegerField(
        required=False,
        allow_null=True,
        help_text="Restrict to one class of the course; omit for all classes.",
    )


class CourseMaterialReadSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    course_id = serializers.IntegerField()
    class_id = serializers.IntegerField(source="course_class_id", allow_null=True)
    title = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    material_type = serializers.ChoiceField(choices=MaterialType.choices)
    link_url = serializers.URLField()
    created_by_id = serializers.IntegerField()
    created_at = serializers.DateTimeField()


class MaterialFilterSerializer(serializers.Serializer):
    material_type = serializers.ChoiceField(choices=MaterialType.choices, required=False)


class CourseFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CourseStatus.choices, required=False)


class CourseDetailSerializer(CourseReadSerializer):
    """Course with its classes and materials, plus whether the caller may manage it."""
    can_manage = serializers.BooleanField()
    classes = CourseClassReadSerializer(many=True)
    materials = CourseMaterialReadSerializer(many=True)


class CourseApprovalsSerializer(serializers.Serializer):
    """Courses grouped by approval state."""
    pending = CourseReadSerializer(many=True)
    approved = CourseReadSerializer(many=True)
    rejected = CourseReadSerializer(many=True)
    pending_count = serializers.IntegerField()


class CourseHistoryEntrySerializer(serializers.Serializer):
    history_id = serializers.IntegerField()
    status = serializers.ChoiceField(choices=CourseStatus.choices)
    history_date = serializers.DateTimeField()
    history_type = serializers.CharField()


class EnrollmentWriteSerializer(serializers.Serializer):
    student_id = serializers.IntegerField()


class EnrollmentReadSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    course_id = serializers.IntegerField()
    student_id = serializers.IntegerField()
    created_at = serializers.DateTimeField()


class AssignmentWriteSerializer(serializers.Serializer):
    """Serializer for creating/updating an assignment."""
    course_id = serializers.IntegerField()
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    due_date = serializers.DateTimeField(required=False, allow_null=True)
    max_score = serializers.IntegerField(min_value=1, required=False, default=100)


class AssignmentReadSerializer(serializers.Serializer):
    """Assignment row; students also get their derived submission status and score."""
    id = serializers.IntegerField()
    course_id = serializers.IntegerField()
    course_name = serializers.CharField(required=False, allow_null=True)
    title = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    due_date = serializers.DateTimeField(allow_null=True)
    max_score = serializers.IntegerField()
    created_at = serializers.DateTimeField()
    submission_status = serializers.CharField(required=False)
    score = serializers.IntegerField(required=False)


class SubmissionWriteSerializer(serializers.Serializer):
    content = serializers.CharField(required=False, allow_blank=True, default="")


class SubmissionReadSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    assignment_id = serializers.IntegerField()
    student_id = serializers.IntegerField()
    content = serializers.CharField(allow_blank=True)
    submitted_at = serializers.DateTimeField()
    score = serializers.IntegerField(allow_null=True)
    graded_at = serializers.DateTimeField(allow_null=True)


class GradeWriteSerializer(serializers.Serializer):
    score = serializers.IntegerField(min_value=0)


class AttendanceReadSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    course_id = serializers.IntegerField()
    course_name = serializers.CharField(required=False, allow_null=True)
    student_id = serializers.IntegerField()
    student_name = serializers.CharField(required=False, allow_null=True)
    session_date = serializers.DateField()
    status = serializers.ChoiceField(choices=AttendanceStatus.choices)
    created_at = serializers.DateTimeField()


class RosterEntrySerializer(serializers.Serializer):
    """One enrolled student with the default mark for a new session."""
    student_id = serializers.IntegerField()
    full_name = serializers.CharField(allow_blank=True)
    email = serializers.EmailField()
    status = serializers.ChoiceField(choices=AttendanceStatus.choices)


class RosterQuerySerializer(serializers.Serializer):
    course = serializers.IntegerField()


class AttendanceEntrySerializer(serializers.Serializer):
    student_id = serializers.IntegerField()
    status = serializers.ChoiceField(choices=AttendanceStatus.choices)


class AttendanceSessionWriteSerializer(serializers.Serializer):
    """Body for recording a whole session: one entry per student."""
    course_id = serializers.IntegerField()
    session_date = serializers.DateField()
    entries = AttendanceEntrySerializer(many=True)

    def validate_entries(self, entries: list[dict]) -> list[dict]:
        student_ids = [entry["student_id"] for entry in entries]
        if len(student_ids) != len(set(student_ids)):
            raise serializers.ValidationError("Each student may appear only once per session.")
        return entries


class DashboardSerializer(serializers.Serializer):
    courses = serializers.IntegerField()
    assignments = serializers.IntegerField()
    users = serializers.IntegerField()
    attendance = serializers.IntegerField()
