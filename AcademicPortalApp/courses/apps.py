"""Courses app configuration."""

from django.apps import AppConfig

class CoursesConfig(AppConfig):
    """AppConfig for courses, enrollments, classes and materials."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "AcademicPortalApp.courses"
    label = "courses"
