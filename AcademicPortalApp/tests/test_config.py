from django.core.checks import run_checks

from AcademicPortalApp.core.config import portal_settings
from AcademicPortalApp.core.store import DjangoRecordStore, get_store


def test_defaults_from_settings():
    conf = portal_settings()
    assert conf.unspecified_label == "unspecified"
    assert conf.enrichment_concurrency >= 1
    assert isinstance(get_store(), DjangoRecordStore)


def test_unknown_keys_ignored(settings):
    settings.ACADEMIC_PORTAL = {"ENRICHMENT_CONCURRENCY": 3, "SOMETHING_ELSE": True}
    conf = portal_settings()
    assert conf.enrichment_concurrency == 3
    assert conf.record_store.endswith("DjangoRecordStore")


def test_bad_store_path_fails_system_check(settings):
    settings.ACADEMIC_PORTAL = {"RECORD_STORE": "AcademicPortalApp.core.store.Missing", "ENRICHMENT_CONCURRENCY": 0}
    ids = {error.id for error in run_checks()}
    assert {"core.E001", "core.E002"} <= ids
