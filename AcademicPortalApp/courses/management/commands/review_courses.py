"""List courses by approval status and optionally approve or reject one."""

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from AcademicPortalApp.core.choices import CourseStatus
from AcademicPortalApp.core.exceptions import InvalidTransition, NotFound
from AcademicPortalApp.domain.services import aggregation_service, approval_service


class Command(BaseCommand):
    help = "Show courses grouped by approval status; --approve/--reject apply a transition first."

    def add_arguments(self, parser):
        group = parser.add_mutually_exclusive_group()
        group.add_argument("--approve", type=int, metavar="ID", help="Approve the course with this id.")
        group.add_argument("--reject", type=int, metavar="ID", help="Reject the course with this id.")

    def handle(self, *args, **options):
        if options["approve"] is not None:
            self._apply(approval_service.approve, options["approve"])
        elif options["reject"] is not None:
            self._apply(approval_service.reject, options["reject"])

        groups = async_to_sync(aggregation_service.list_course_approvals)()
        for status in CourseStatus.values:
            courses = groups[status]
            self.stdout.write(self.style.MIGRATE_HEADING(f"{status} ({len(courses)})"))
            for course in courses:
                self.stdout.write(f"  #{course['id']} {course['code']} {course['name']} - {course['lecturer_name']}")

    def _apply(self, service, course_id: int) -> None:
        try:
            course = async_to_sync(service)(course_id)
        except (NotFound, InvalidTransition) as exc:
            raise CommandError(str(exc.detail)) from exc
        self.stdout.write(self.style.SUCCESS(f"Course #{course['id']} is now {course['status']}"))
