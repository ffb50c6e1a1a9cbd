from dataclasses import dataclass, fields

from django.conf import settings


@dataclass(frozen=True)
class PortalSettings:
    record_store: str = "AcademicPortalApp.core.store.DjangoRecordStore"
    enrichment_concurrency: int = 8
    unspecified_label: str = "unspecified"


def portal_settings() -> PortalSettings:
    """Build PortalSettings from the ``ACADEMIC_PORTAL`` dict, ignoring unknown keys."""
    overrides = getattr(settings, "ACADEMIC_PORTAL", {}) or {}
    known = {f.name for f in fields(PortalSettings)}
    return PortalSettings(**{k.lower(): v for k, v in overrides.items() if k.lower() in known})
