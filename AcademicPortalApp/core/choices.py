"""Typed enumerations (TextChoices) for roles, course lifecycle, materials, attendance and submissions."""
from django.db import models

class UserRole(models.TextChoices):
    """System-level role assigned to a user account."""
    ADMIN = "admin", "Admin"
    LECTURER = "lecturer", "Lecturer"
    STUDENT = "student", "Student"

class CourseStatus(models.TextChoices):
    """Approval state of a course."""
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"

class ApprovalAction(models.TextChoices):
    """Actions an admin may apply to a course."""
    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"

class MaterialType(models.TextChoices):
    """Kind of resource a course material links to."""
    DOCUMENT = "document", "Document"
    VIDEO = "video", "Video"
    LINK = "link", "Link"
    OTHER = "other", "Other"

class AttendanceStatus(models.TextChoices):
    """Per-session attendance mark for a student."""
    PRESENT = "present", "Present"
    ABSENT = "absent", "Absent"
    LATE = "late", "Late"

class SubmissionStatus(models.TextChoices):
    """Derived (never stored) state of a student's work on an assignment."""
    PENDING = "pending", "Pending"
    SUBMITTED = "submitted", "Submitted"
    GRADED = "graded", "Graded"
