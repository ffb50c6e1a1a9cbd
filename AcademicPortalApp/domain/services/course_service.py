"""Domain service functions for course lifecycle, enrollment, classes and materials.

These helpers encapsulate the ownership rules (admins manage every course,
lecturers only their own) and keep the view/serializer layers thin. Course
status is never written here; see ``approval_service``.
"""
import logging
from typing import Any

from AcademicPortalApp.core.access import ensure_can_manage_course, ensure_role, is_admin
from AcademicPortalApp.core.choices import CourseStatus, UserRole
from AcademicPortalApp.core.exceptions import ConstraintViolation, NotFound, Unauthorized
from AcademicPortalApp.core.store import RecordStore, Row, get_store

logger = logging.getLogger(__name__)

COURSE_EDITABLE_FIELDS = {"code", "name", "description", "semester", "year"}


async def get_managed_course(role: str, user_id: Any, course_id: Any, *, store: RecordStore | None = None) -> Row:
    """Load a course the caller may manage.

    Raises:
        NotFound: No such course.
        Unauthorized: Caller is neither admin nor the course lecturer.
    """
    store = store or get_store()
    course = await store.first("courses", {"id": course_id})
    if course is None:
        raise NotFound(f"Course {course_id} not found")
    ensure_can_manage_course(role, user_id, course)
    return course


async def create_course(role: str, user_id: Any, data: dict[str, Any], *, store: RecordStore | None = None) -> Row:
    """Create a course in ``pending`` state.

    Args:
        role / user_id: Caller; lecturers always own what they create.
        data: code, name, description, semester, year; admins may add
            ``lecturer_id`` to create on a lecturer's behalf.

    Returns:
        The inserted course row.
    """
    store = store or get_store()
    ensure_role(role, UserRole.ADMIN, UserRole.LECTURER)
    payload = {key: value for key, value in data.items() if key in COURSE_EDITABLE_FIELDS}
    lecturer_id = data.get("lecturer_id") if is_admin(role) and data.get("lecturer_id") else user_id
    lecturer = await store.first("profiles", {"id": lecturer_id, "role": UserRole.LECTURER}, fields=("id",))
    if lecturer is None:
        raise NotFound(f"Lecturer {lecturer_id} not found")
    [course] = await store.insert(
        "courses", [{**payload, "lecturer_id": lecturer_id, "status": CourseStatus.PENDING.value}]
    )
    logger.info("Course %s created for lecturer %s (pending approval)", course["id"], lecturer_id)
    return course


async def update_course(
    role: str, user_id: Any, course_id: Any, patch: dict[str, Any], *, store: RecordStore | None = None
) -> Row:
    """Update catalogue fields of a course (owner or admin).

    Raises:
        Unauthorized: ``status`` in the patch; approvals have their own path.
    """
    store = store or get_store()
    if "status" in patch:
        raise Unauthorized("Course status changes go through the approval workflow")
    await get_managed_course(role, user_id, course_id, store=store)
    changes = {key: value for key, value in patch.items() if key in COURSE_EDITABLE_FIELDS}
    if changes:
        await store.update("courses", {"id": course_id}, changes)
    return await store.first("courses", {"id": course_id})


async def delete_course(role: str, user_id: Any, course_id: Any, *, store: RecordStore | None = None) -> None:
    """Delete a course and (by cascade) its classes, materials, enrollments and records."""
    store = store or get_store()
    await get_managed_course(role, user_id, course_id, store=store)
    await store.delete("courses", {"id": course_id})
    logger.info("Course %s deleted by %s %s", course_id, role, user_id)


async def enroll_student(
    role: str, user_id: Any, course_id: Any, student_id: Any, *, store: RecordStore | None = None
) -> Row:
    """Enroll a student in the course (idempotent).

    Returns:
        The (possibly existing) enrollment row.
    """
    store = store or get_store()
    await get_managed_course(role, user_id, course_id, store=store)
    student = await store.first("profiles", {"id": student_id, "role": UserRole.STUDENT}, fields=("id",))
    if student is None:
        raise NotFound(f"Student {student_id} not found")
    key = {"course_id": course_id, "student_id": student_id}
    existing = await store.first("enrollments", key)
    if existing is not None:
        return existing
    try:
        [enrollment] = await store.insert("enrollments", [key])
    except ConstraintViolation:
        # Lost a race with a concurrent enrollment of the same pair.
        enrollment = await store.first("enrollments", key)
    return enrollment


async def unenroll_student(
    role: str, user_id: Any, course_id: Any, student_id: Any, *, store: RecordStore | None = None
) -> None:
    store = store or get_store()
    await get_managed_course(role, user_id, course_id, store=store)
    removed = await store.delete("enrollments", {"course_id": course_id, "student_id": student_id})
    if not removed:
        raise NotFound(f"Student {student_id} is not enrolled in course {course_id}")


async def create_course_class(
    role: str, user_id: Any, course_id: Any, data: dict[str, Any], *, store: RecordStore | None = None
) -> Row:
    """Add a class (section) to a course; ``class_code`` is unique per course."""
    store = store or get_store()
    await get_managed_course(role, user_id, course_id, store=store)
    [course_class] = await store.insert("course_classes", [{
        "course_id": course_id,
        "class_code": data["class_code"],
        "class_name": data["class_name"],
        "max_students": data.get("max_students", 50),
    }])
    return course_class


async def create_course_material(
    role: str, user_id: Any, course_id: Any, data: dict[str, Any], *, store: RecordStore | None = None
) -> Row:
    """Attach a material to a course, optionally restricted to one of its classes."""
    store = store or get_store()
    await get_managed_course(role, user_id, course_id, store=store)
    class_id = data.get("class_id")
    if class_id is not None:
        course_class = await store.first("course_classes", {"id": class_id, "course_id": course_id}, fields=("id",))
        if course_class is None:
            raise NotFound(f"Class {class_id} not found in course {course_id}")
    [material] = await store.insert("course_materials", [{
        "course_id": course_id,
        "course_class_id": class_id,
        "title": data["title"],
        "description": data.get("description", ""),
        "material_type": data["material_type"],
        "link_url": data["link_url"],
        "created_by_id": user_id,
    }])
    return material


async def delete_course_material(
    role: str, user_id: Any, material_id: Any, *, store: RecordStore | None = None
) -> None:
    store = store or get_store()
    material = await store.first("course_materials", {"id": material_id}, fields=("id", "course_id"))
    if material is None:
        raise NotFound(f"Material {material_id} not found")
    await get_managed_course(role, user_id, material["course_id"], store=store)
    await store.delete("course_materials", {"id": material_id})
