"""Core app configuration and startup checks (record store wiring)."""

from django.apps import AppConfig
from django.core.checks import register, Error

class CoreConfig(AppConfig):
    """AppConfig registering a system check for the configured record store."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "AcademicPortalApp.core"

    def ready(self):
        """Register a Django system check validating ACADEMIC_PORTAL settings."""
        @register()
        def record_store_check(app_configs, **kwargs):
            from django.utils.module_loading import import_string
            from AcademicPortalApp.core.config import portal_settings

            errors = []
            conf = portal_settings()
            try:
                import_string(conf.record_store)
            except ImportError as exc:
                errors.append(Error(f"Record store not importable: {exc}", id="core.E001"))
            if conf.enrichment_concurrency < 1:
                errors.append(Error("ENRICHMENT_CONCURRENCY must be at least 1", id="core.E002"))
            return errors
