from django.urls import path, include
from rest_framework_nested import routers
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from AcademicPortalApp.api.views import (
    AssignmentViewSet,
    AttendanceViewSet,
    CourseClassViewSet,
    CourseMaterialViewSet,
    CourseViewSet,
    DashboardView,
    EnrollmentViewSet,
    SubmissionViewSet,
)

router = routers.SimpleRouter()
router.register(r"courses", CourseViewSet, basename="course")
router.register(r"assignments", AssignmentViewSet, basename="assignment")
router.register(r"submissions", SubmissionViewSet, basename="submission")
router.register(r"attendance", AttendanceViewSet, basename="attendance")

courses_router = routers.NestedSimpleRouter(router, r"courses", lookup="course")
courses_router.register(r"classes", CourseClassViewSet, basename="course-classes")
courses_router.register(r"materials", CourseMaterialViewSet, basename="course-materials")
courses_router.register(r"enrollments", EnrollmentViewSet, basename="course-enrollments")

urlpatterns = [
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="docs"),
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("dashboard/", DashboardView.as_view(), name="dashboard"),
    path("", include(router.urls)),
    path("", include(courses_router.urls)),
]
