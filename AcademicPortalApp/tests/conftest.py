import pytest
from rest_framework.test import APIClient
from model_bakery import baker

from AcademicPortalApp.core.choices import UserRole

PASSWORD = "pass1234"


def make_user(role, email, full_name=""):
    user = baker.make("users.User", email=email, role=role, full_name=full_name)
    user.set_password(PASSWORD); user.save()
    return user


def login(user):
    client = APIClient()
    token = client.post("/api/v1/auth/token/", {"email": user.email, "password": PASSWORD}, format="json").data["access"]
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


def items(resp):
    data = resp.data
    if isinstance(data, dict) and "results" in data:
        return data["results"]
    return data


@pytest.fixture
def admin():
    return make_user(UserRole.ADMIN, "admin@example.com", "Ada Admin")


@pytest.fixture
def lecturer():
    return make_user(UserRole.LECTURER, "lecturer@example.com", "Lena Lecturer")


@pytest.fixture
def other_lecturer():
    return make_user(UserRole.LECTURER, "other@example.com", "Otto Other")


@pytest.fixture
def student():
    return make_user(UserRole.STUDENT, "student@example.com", "Sam Student")


@pytest.fixture
def course(lecturer):
    return baker.make("courses.Course", lecturer=lecturer, name="Algorithms", code="CS201")


@pytest.fixture
def enrolled(course, student):
    baker.make("courses.Enrollment", course=course, student=student)
    return student


@pytest.fixture(autouse=True)
def clear_throttle_history():
    from django.core.cache import cache
    cache.clear()
