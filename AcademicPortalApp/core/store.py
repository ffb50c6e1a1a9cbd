"""Record store gateway: async filtered reads and writes over named collections.

Services never touch the ORM directly; they go through a ``RecordStore`` so the
backing store can be swapped (or mocked) without changing the domain logic.
Rows travel as plain dicts keyed by column attribute names (``course_id``,
not ``course``).
"""

import functools
import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Sequence

from asgiref.sync import sync_to_async
from django.apps import apps
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import DateTimeField, F, Model, QuerySet
from django.utils import timezone
from django.utils.module_loading import import_string
from simple_history.utils import bulk_create_with_history, bulk_update_with_history

from AcademicPortalApp.core.config import portal_settings
from AcademicPortalApp.core.exceptions import ConstraintViolation, StoreUnavailable

logger = logging.getLogger(__name__)

Row = dict[str, Any]

COLLECTIONS: dict[str, str] = {
    "profiles": "users.User",
    "courses": "courses.Course",
    "course_history": "courses.HistoricalCourse",
    "enrollments": "courses.Enrollment",
    "course_classes": "courses.CourseClass",
    "course_materials": "courses.CourseMaterial",
    "assignments": "learning.Assignment",
    "submissions": "learning.Submission",
    "attendance": "learning.AttendanceRecord",
}


class RecordStore(ABC):
    """Async CRUD contract over named collections.

    ``filters`` are Django-style lookups (``{"course_id__in": [...]}``),
    ``order_by`` entries are field names with an optional ``-`` prefix for
    descending order. Null values always sort last.
    """

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: Sequence[str] = (),
        fields: Sequence[str] = (),
    ) -> list[Row]:
        pass

    async def first(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: Sequence[str] = (),
        fields: Sequence[str] = (),
    ) -> Row | None:
        rows = await self.query(collection, filters, order_by, fields)
        return rows[0] if rows else None

    @abstractmethod
    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        pass

    @abstractmethod
    async def insert(self, collection: str, rows: Iterable[Row]) -> list[Row]:
        pass

    @abstractmethod
    async def update(self, collection: str, filters: dict[str, Any], patch: Row) -> int:
        pass

    @abstractmethod
    async def delete(self, collection: str, filters: dict[str, Any]) -> int:
        pass


def _translate_errors(func):
    """Map database failures onto the domain error taxonomy."""
    @functools.wraps(func)
    async def wrapper(self, collection: str, *args, **kwargs):
        try:
            return await func(self, collection, *args, **kwargs)
        except IntegrityError as exc:
            logger.warning("Constraint violation on %s: %s", collection, exc)
            raise ConstraintViolation() from exc
        except DatabaseError as exc:
            logger.exception("Store operation on %s failed", collection)
            raise StoreUnavailable() from exc
    return wrapper


def _tracks_history(model: type[Model]) -> bool:
    return hasattr(model._meta, "simple_history_manager_attribute")


def _as_row(obj: Model) -> Row:
    return {f.attname: getattr(obj, f.attname) for f in obj._meta.concrete_fields}


def _with_auto_now(model: type[Model], patch: Row) -> Row:
    """Add ``auto_now`` columns to an update; queryset and bulk updates skip ``pre_save``."""
    now = timezone.now()
    stamped = {
        f.attname: now if isinstance(f, DateTimeField) else timezone.localdate(now)
        for f in model._meta.concrete_fields
        if getattr(f, "auto_now", False) and f.attname not in patch
    }
    return {**patch, **stamped}


class DjangoRecordStore(RecordStore):
    """RecordStore backed by the Django ORM's async queryset API."""

    def _model(self, collection: str) -> type[Model]:
        try:
            label = COLLECTIONS[collection]
        except KeyError:
            raise LookupError(f"Unknown collection: {collection}") from None
        return apps.get_model(label)

    @staticmethod
    def _ordering(order_by: Sequence[str]) -> list:
        exprs = []
        for key in order_by:
            if key.startswith("-"):
                exprs.append(F(key[1:]).desc(nulls_last=True))
            else:
                exprs.append(F(key).asc(nulls_last=True))
        return exprs

    def _queryset(self, collection: str, filters: dict[str, Any] | None, order_by: Sequence[str] = ()) -> QuerySet:
        qs = self._model(collection).objects.filter(**(filters or {}))
        if order_by:
            qs = qs.order_by(*self._ordering(order_by))
        return qs

    @_translate_errors
    async def query(self, collection, filters=None, order_by=(), fields=()):
        qs = self._queryset(collection, filters, order_by).values(*fields)
        return [row async for row in qs]

    @_translate_errors
    async def first(self, collection, filters=None, order_by=(), fields=()):
        qs = self._queryset(collection, filters, order_by).values(*fields)
        return await qs.afirst()

    @_translate_errors
    async def count(self, collection, filters=None):
        return await self._queryset(collection, filters).acount()

    @_translate_errors
    async def insert(self, collection, rows):
        return await sync_to_async(self._insert)(self._model(collection), list(rows))

    @_translate_errors
    async def update(self, collection, filters, patch):
        return await sync_to_async(self._update)(self._model(collection), filters, patch)

    @_translate_errors
    async def delete(self, collection, filters):
        deleted, _ = await self._queryset(collection, filters).adelete()
        return deleted

    @staticmethod
    def _insert(model: type[Model], rows: list[Row]) -> list[Row]:
        objs = [model(**row) for row in rows]
        with transaction.atomic():
            if _tracks_history(model):
                created = bulk_create_with_history(objs, model)
            else:
                created = model.objects.bulk_create(objs)
        return [_as_row(obj) for obj in created]

    @staticmethod
    def _update(model: type[Model], filters: dict[str, Any], patch: Row) -> int:
        patch = _with_auto_now(model, patch)
        with transaction.atomic():
            qs = model.objects.filter(**filters)
            if not _tracks_history(model):
                return qs.update(**patch)
            objs = list(qs.select_for_update())
            for obj in objs:
                for attr, value in patch.items():
                    setattr(obj, attr, value)
            if objs:
                bulk_update_with_history(objs, model, list(patch))
            return len(objs)


def get_store() -> RecordStore:
    """Instantiate the record store configured in ``ACADEMIC_PORTAL``."""
    return import_string(portal_settings().record_store)()
