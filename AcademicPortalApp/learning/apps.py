"""Learning app configuration."""

from django.apps import AppConfig

class LearningConfig(AppConfig):
    """AppConfig for the learning domain (assignments, submissions, attendance)."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "AcademicPortalApp.learning"
    label = "learning"
