"""REST API views for courses, approvals, classes, materials, assignments, attendance and the dashboard.

Views validate input, resolve the caller's (role, user id) and hand off to the
async domain services; they never query the ORM themselves. Every mutation
responds with the written row and clients re-list to refresh.
"""

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.request import Request
from rest_framework.views import APIView

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiResponse,
    OpenApiParameter,
)

from AcademicPortalApp.api.mixins import CallerMixin, PaginationMixin
from AcademicPortalApp.api.throttles import SubmissionRateThrottle
from AcademicPortalApp.core.exceptions import NotFound
from AcademicPortalApp.core.permissions import (
    IsAdminRole,
    IsLecturerOrAdmin,
    IsStudentRole,
    ReadOnlyOrLecturerOrAdmin,
)
from AcademicPortalApp.domain.services import (
    aggregation_service,
    approval_service,
    course_service,
    learning_service,
    scope_service,
)
from AcademicPortalApp.api.serializers import (
    AssignmentReadSerializer,
    AssignmentWriteSerializer,
    AttendanceReadSerializer,
    AttendanceSessionWriteSerializer,
    CourseApprovalsSerializer,
    CourseClassReadSerializer,
    CourseClassWriteSerializer,
    CourseDetailSerializer,
    CourseFilterSerializer,
    CourseHistoryEntrySerializer,
    CourseMaterialReadSerializer,
    CourseMaterialWriteSerializer,
    CourseReadSerializer,
    CourseWriteSerializer,
    DashboardSerializer,
    EnrollmentReadSerializer,
    EnrollmentWriteSerializer,
    GradeWriteSerializer,
    MaterialFilterSerializer,
    RosterEntrySerializer,
    RosterQuerySerializer,
    SubmissionReadSerializer,
    SubmissionWriteSerializer,
)

AUTH_RESPONSES = {
    401: OpenApiResponse(description="Authentication required."),
    403: OpenApiResponse(description="Forbidden"),
    404: OpenApiResponse(description="Not Found"),
}

STORE_RESPONSE = {
    503: OpenApiResponse(description="Record store unavailable."),
}

TRANSITION_RESPONSE = {
    409: OpenApiResponse(description="Transition not allowed from the current status."),
}


class CourseScopedMixin(CallerMixin):
    """Nested routes under ``courses/{course_pk}/``."""

    def course_id(self) -> int:
        return int(self.kwargs["course_pk"])

    def ensure_visible(self) -> int:
        """Hide courses outside the caller's scope behind a 404."""
        course_id = self.course_id()
        role, user_id = self.caller()
        scope = self.run(scope_service.resolve_visible_course_ids, role, user_id)
        if not scope.includes(course_id):
            raise NotFound(f"Course {course_id} not found")
        return course_id


# ---------- Courses ----------
@extend_schema_view(
    list=extend_schema(
        tags=["Courses"],
        parameters=[CourseFilterSerializer],
        responses={200: CourseReadSerializer(many=True), **AUTH_RESPONSES, **STORE_RESPONSE},
    ),
    retrieve=extend_schema(
        tags=["Courses"],
        responses={200: CourseDetailSerializer, **AUTH_RESPONSES, **STORE_RESPONSE},
    ),
    create=extend_schema(
        tags=["Courses"],
        request=CourseWriteSerializer,
        responses={201: CourseReadSerializer, **AUTH_RESPONSES},
        description="Create a course. New courses start as pending until an admin approves them.",
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "owner-on-create"}},
    ),
    partial_update=extend_schema(
        tags=["Courses"],
        request=CourseWriteSerializer,
        responses={200: CourseReadSerializer, **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
    destroy=extend_schema(
        tags=["Courses"],
        responses={204: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
    approvals=extend_schema(
        tags=["Approvals"],
        responses={200: CourseApprovalsSerializer, **AUTH_RESPONSES, **STORE_RESPONSE},
        extensions={"x-permissions": {"required_roles": ["admin"]}},
    ),
    approve=extend_schema(
        tags=["Approvals"],
        request=None,
        responses={200: CourseReadSerializer, **AUTH_RESPONSES, **TRANSITION_RESPONSE},
        extensions={"x-permissions": {"required_roles": ["admin"]}},
    ),
    reject=extend_schema(
        tags=["Approvals"],
        request=None,
        responses={200: CourseReadSerializer, **AUTH_RESPONSES, **TRANSITION_RESPONSE},
        extensions={"x-permissions": {"required_roles": ["admin"]}},
    ),
    history=extend_schema(
        tags=["Approvals"],
        responses={200: CourseHistoryEntrySerializer(many=True), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["admin"]}},
    ),
)
class CourseViewSet(CallerMixin, PaginationMixin, viewsets.GenericViewSet):
    """Role-scoped course listing, detail, CRUD and approval workflow."""
    serializer_class = CourseReadSerializer
    lookup_value_regex = r"\d+"

    def get_permissions(self) -> list:
        """Gate writes by role; extra actions keep the `permission_classes` given to `@action`."""
        if self.action in ("create", "partial_update", "destroy"):
            return [IsAuthenticated(), IsLecturerOrAdmin()]
        return super().get_permissions()

    def list(self, request: Request) -> Response:
        """List courses visible to the caller, newest first."""
        filters = CourseFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        role, user_id = self.caller()
        rows = self.run(aggregation_service.list_courses, role, user_id, filters.validated_data.get("status"))
        return self.paginate_and_respond(rows, CourseReadSerializer)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """Course detail with classes and materials."""
        role, user_id = self.caller()
        detail = self.run(aggregation_service.get_course_detail, role, user_id, int(pk))
        return Response(CourseDetailSerializer(detail).data)

    def create(self, request: Request) -> Response:
        ser = CourseWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        role, user_id = self.caller()
        course = self.run(course_service.create_course, role, user_id, ser.validated_data)
        return Response(CourseReadSerializer(course).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        if "status" in request.data:
            return Response(
                {"detail": "Course status changes go through the approval workflow."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        ser = CourseWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        role, user_id = self.caller()
        course = self.run(course_service.update_course, role, user_id, int(pk), ser.validated_data)
        return Response(CourseReadSerializer(course).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        role, user_id = self.caller()
        self.run(course_service.delete_course, role, user_id, int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], permission_classes=[IsAuthenticated, IsAdminRole])
    def approvals(self, request: Request) -> Response:
        """All courses grouped into pending / approved / rejected."""
        groups = self.run(aggregation_service.list_course_approvals)
        return Response(CourseApprovalsSerializer(groups).data)

    @action(detail=True, methods=["post"], permission_classes=[IsAuthenticated, IsAdminRole])
    def approve(self, request: Request, pk: str | None = None) -> Response:
        """Approve a pending course, or re-approve a rejected one."""
        course = self.run(approval_service.approve, int(pk))
        return Response(CourseReadSerializer(course).data)

    @action(detail=True, methods=["post"], permission_classes=[IsAuthenticated, IsAdminRole])
    def reject(self, request: Request, pk: str | None = None) -> Response:
        """Reject a pending course."""
        course = self.run(approval_service.reject, int(pk))
        return Response(CourseReadSerializer(course).data)

    @action(detail=True, methods=["get"], permission_classes=[IsAuthenticated, IsAdminRole])
    def history(self, request: Request, pk: str | None = None) -> Response:
        """Status audit trail, newest first."""
        entries = self.run(approval_service.course_approval_history, int(pk))
        return Response(CourseHistoryEntrySerializer(entries, many=True).data)


# ---------- Classes ----------
@extend_schema(parameters=[OpenApiParameter("course_pk", int, OpenApiParameter.PATH)])
@extend_schema_view(
    list=extend_schema(tags=["Classes"], responses={200: CourseClassReadSerializer(many=True), **AUTH_RESPONSES}),
    create=extend_schema(
        tags=["Classes"],
        request=CourseClassWriteSerializer,
        responses={201: CourseClassReadSerializer, 409: OpenApiResponse(description="Duplicate class code."), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
)
class CourseClassViewSet(CourseScopedMixin, PaginationMixin, viewsets.GenericViewSet):
    """Classes (sections) of a course."""
    serializer_class = CourseClassReadSerializer
    permission_classes = [ReadOnlyOrLecturerOrAdmin]

    def list(self, request: Request, course_pk: str | None = None) -> Response:
        course_id = self.ensure_visible()
        rows = self.run(aggregation_service.list_course_classes, course_id)
        return self.paginate_and_respond(rows, CourseClassReadSerializer)

    def create(self, request: Request, course_pk: str | None = None) -> Response:
        ser = CourseClassWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        role, user_id = self.caller()
        row = self.run(course_service.create_course_class, role, user_id, self.course_id(), ser.validated_data)
        return Response(CourseClassReadSerializer(row).data, status=status.HTTP_201_CREATED)


# ---------- Materials ----------
@extend_schema(parameters=[OpenApiParameter("course_pk", int, OpenApiParameter.PATH)])
@extend_schema_view(
    list=extend_schema(
        tags=["Materials"],
        parameters=[MaterialFilterSerializer],
        responses={200: CourseMaterialReadSerializer(many=True), **AUTH_RESPONSES},
    ),
    create=extend_schema(
        tags=["Materials"],
        request=CourseMaterialWriteSerializer,
        responses={201: CourseMaterialReadSerializer, **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
    destroy=extend_schema(
        tags=["Materials"],
        responses={204: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
)
class CourseMaterialViewSet(CourseScopedMixin, PaginationMixin, viewsets.GenericViewSet):
    """Documents, videos and links attached to a course."""
    serializer_class = CourseMaterialReadSerializer
    permission_classes = [ReadOnlyOrLecturerOrAdmin]
    lookup_value_regex = r"\d+"

    def list(self, request: Request, course_pk: str | None = None) -> Response:
        filters = MaterialFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        course_id = self.ensure_visible()
        rows = self.run(
            aggregation_service.list_course_materials, course_id, filters.validated_data.get("material_type")
        )
        return self.paginate_and_respond(rows, CourseMaterialReadSerializer)

    def create(self, request: Request, course_pk: str | None = None) -> Response:
        ser = CourseMaterialWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        role, user_id = self.caller()
        row = self.run(course_service.create_course_material, role, user_id, self.course_id(), ser.validated_data)
        return Response(CourseMaterialReadSerializer(row).data, status=status.HTTP_201_CREATED)

    def destroy(self, request: Request, course_pk: str | None = None, pk: str | None = None) -> Response:
        role, user_id = self.caller()
        self.run(course_service.delete_course_material, role, user_id, int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)


# ---------- Enrollments ----------
@extend_schema(parameters=[OpenApiParameter("course_pk", int, OpenApiParameter.PATH)])
@extend_schema_view(
    create=extend_schema(
        tags=["Enrollments"],
        request=EnrollmentWriteSerializer,
        responses={201: EnrollmentReadSerializer, **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
    destroy=extend_schema(
        tags=["Enrollments"],
        parameters=[OpenApiParameter("id", int, OpenApiParameter.PATH, description="Student id.")],
        responses={204: OpenApiResponse(description="Removed"), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
)
class EnrollmentViewSet(CourseScopedMixin, viewsets.GenericViewSet):
    """Enroll students into / remove them from a course (the detail id is the student id)."""
    serializer_class = EnrollmentReadSerializer
    permission_classes = [IsAuthenticated, IsLecturerOrAdmin]
    lookup_value_regex = r"\d+"

    def create(self, request: Request, course_pk: str | None = None) -> Response:
        ser = EnrollmentWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        role, user_id = self.caller()
        row = self.run(
            course_service.enroll_student, role, user_id, self.course_id(), ser.validated_data["student_id"]
        )
        return Response(EnrollmentReadSerializer(row).data, status=status.HTTP_201_CREATED)

    def destroy(self, request: Request, course_pk: str | None = None, pk: str | None = None) -> Response:
        role, user_id = self.caller()
        self.run(course_service.unenroll_student, role, user_id, self.course_id(), int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)


# ---------- Assignments ----------
@extend_schema_view(
    list=extend_schema(
        tags=["Assignments"],
        description="Assignments in the caller's courses, earliest due first (undated last). "
                    "Students also receive `submission_status` and `score`.",
        responses={200: AssignmentReadSerializer(many=True), **AUTH_RESPONSES, **STORE_RESPONSE},
    ),
    create=extend_schema(
        tags=["Assignments"],
        request=AssignmentWriteSerializer,
        responses={201: AssignmentReadSerializer, **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
    partial_update=extend_schema(
        tags=["Assignments"],
        request=AssignmentWriteSerializer,
        responses={200: AssignmentReadSerializer, **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
    destroy=extend_schema(
        tags=["Assignments"],
        responses={204: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
    submit=extend_schema(
        tags=["Submissions"],
        request=SubmissionWriteSerializer,
        description="Submit (or resubmit) work for an assignment. Resubmitting clears the previous grade.",
        responses={
            201: SubmissionReadSerializer,
            429: OpenApiResponse(description="Too many requests / throttled."),
            **AUTH_RESPONSES,
        },
        extensions={"x-permissions": {"required_roles": ["student"], "ownership": "self"}},
    ),
)
class AssignmentViewSet(CallerMixin, PaginationMixin, viewsets.GenericViewSet):
    """Assignment listing with per-student status, CRUD and submission."""
    serializer_class = AssignmentReadSerializer
    lookup_value_regex = r"\d+"

    def get_permissions(self) -> list:
        if self.action in ("create", "partial_update", "destroy"):
            return [IsAuthenticated(), IsLecturerOrAdmin()]
        if self.action == "submit":
            return [IsAuthenticated(), IsStudentRole()]
        return [IsAuthenticated()]

    def get_throttles(self):
        """Apply rate throttle only on submit."""
        if self.action == "submit":
            self.throttle_classes = [SubmissionRateThrottle]
        return super().get_throttles()

    def list(self, request: Request) -> Response:
        role, user_id = self.caller()
        rows = self.run(aggregation_service.list_assignments, role, user_id)
        return self.paginate_and_respond(rows, AssignmentReadSerializer)

    def create(self, request: Request) -> Response:
        ser = AssignmentWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        role, user_id = self.caller()
        row = self.run(learning_service.create_assignment, role, user_id, ser.validated_data)
        return Response(AssignmentReadSerializer(row).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        ser = AssignmentWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        role, user_id = self.caller()
        row = self.run(learning_service.update_assignment, role, user_id, int(pk), ser.validated_data)
        return Response(AssignmentReadSerializer(row).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        role, user_id = self.caller()
        self.run(learning_service.delete_assignment, role, user_id, int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def submit(self, request: Request, pk: str | None = None) -> Response:
        ser = SubmissionWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        _, user_id = self.caller()
        row = self.run(learning_service.submit_assignment, user_id, int(pk), ser.validated_data["content"])
        return Response(SubmissionReadSerializer(row).data, status=status.HTTP_201_CREATED)


# ---------- Submissions ----------
class SubmissionViewSet(CallerMixin, viewsets.GenericViewSet):
    """Grading of submissions."""
    serializer_class = SubmissionReadSerializer
    permission_classes = [IsAuthenticated, IsLecturerOrAdmin]
    lookup_value_regex = r"\d+"

    @extend_schema(
        tags=["Submissions"],
        request=GradeWriteSerializer,
        responses={200: SubmissionReadSerializer, 400: OpenApiResponse(description="Score out of range."), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    )
    @action(detail=True, methods=["post"])
    def grade(self, request: Request, pk: str | None = None) -> Response:
        """Grade a submission (course lecturer or admin)."""
        ser = GradeWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        role, user_id = self.caller()
        row = self.run(learning_service.grade_submission, role, user_id, int(pk), ser.validated_data["score"])
        return Response(SubmissionReadSerializer(row).data)


# ---------- Attendance ----------
@extend_schema_view(
    list=extend_schema(
        tags=["Attendance"],
        description="Attendance visible to the caller, most recent session first.",
        responses={200: AttendanceReadSerializer(many=True), **AUTH_RESPONSES, **STORE_RESPONSE},
    ),
    roster=extend_schema(
        tags=["Attendance"],
        parameters=[RosterQuerySerializer],
        responses={200: RosterEntrySerializer(many=True), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
    sessions=extend_schema(
        tags=["Attendance"],
        request=AttendanceSessionWriteSerializer,
        responses={
            201: AttendanceReadSerializer(many=True),
            400: OpenApiResponse(description="Invalid batch (empty, not enrolled, already recorded)."),
            **AUTH_RESPONSES,
        },
        extensions={"x-permissions": {"required_roles": ["lecturer", "admin"], "ownership": "course-lecturer"}},
    ),
)
class AttendanceViewSet(CallerMixin, PaginationMixin, viewsets.GenericViewSet):
    """Attendance listing, roster for a new session and batch session recording."""
    serializer_class = AttendanceReadSerializer

    def get_permissions(self) -> list:
        if self.action in ("roster", "sessions"):
            return [IsAuthenticated(), IsLecturerOrAdmin()]
        return [IsAuthenticated()]

    def list(self, request: Request) -> Response:
        role, user_id = self.caller()
        rows = self.run(aggregation_service.list_attendance, role, user_id)
        return self.paginate_and_respond(rows, AttendanceReadSerializer)

    @action(detail=False, methods=["get"])
    def roster(self, request: Request) -> Response:
        """Enrolled students of a course, each preset to present."""
        query = RosterQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        course_id = query.validated_data["course"]
        role, user_id = self.caller()
        self.run(course_service.get_managed_course, role, user_id, course_id)
        rows = self.run(aggregation_service.list_pending_lecturer_roster, course_id)
        return Response(RosterEntrySerializer(rows, many=True).data)

    @action(detail=False, methods=["post"])
    def sessions(self, request: Request) -> Response:
        """Record one session for a course in a single batch."""
        ser = AttendanceSessionWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        role, user_id = self.caller()
        self.run(course_service.get_managed_course, role, user_id, data["course_id"])
        statuses = {entry["student_id"]: entry["status"] for entry in data["entries"]}
        rows = self.run(aggregation_service.submit_attendance_batch, data["course_id"], data["session_date"], statuses)
        return Response(AttendanceReadSerializer(rows, many=True).data, status=status.HTTP_201_CREATED)


# ---------- Dashboard ----------
@extend_schema(
    tags=["Dashboard"],
    responses={200: DashboardSerializer, **AUTH_RESPONSES, **STORE_RESPONSE},
    extensions={"x-permissions": {"required_roles": ["admin"]}},
)
class DashboardView(CallerMixin, APIView):
    """Admin overview counters."""
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request: Request) -> Response:
        counts = self.run(aggregation_service.dashboard_counts)
        return Response(DashboardSerializer(counts).data)
