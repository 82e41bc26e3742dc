"""
Root conftest — shared pytest fixtures and factory-boy factories.

All fixtures use the ``db`` marker implicitly via ``@pytest.mark.django_db``
on individual tests, or via the ``db`` fixture where noted.
"""

import pytest
from rest_framework.test import APIClient

import factory
from django.contrib.auth import get_user_model

from apps.accounts.identity import Identity
from apps.tasks.models import Project, Task

User = get_user_model()

DEFAULT_PASSWORD = "TestPass123!"


# ===================================================================
# Factories
# ===================================================================

class UserFactory(factory.django.DjangoModelFactory):
    """Create a User with a hashed password and unique email."""

    class Meta:
        model = User
        skip_postgeneration_save = True

    first_name = factory.Sequence(lambda n: f"First{n}")
    last_name = factory.Sequence(lambda n: f"Last{n}")
    email = factory.Sequence(lambda n: f"testuser{n}@example.com")
    password = factory.PostGeneration(
        lambda obj, create, extracted, **kw: obj.set_password(extracted or DEFAULT_PASSWORD)
        or obj.save()
    )


class ProjectFactory(factory.django.DjangoModelFactory):
    """Create a Project owned by a given user."""

    class Meta:
        model = Project

    name = factory.Sequence(lambda n: f"Project {n}")
    description = "A test project"
    status = Project.Status.IN_PROGRESS
    owner = factory.SubFactory(UserFactory)


class TaskFactory(factory.django.DjangoModelFactory):
    """Create a Task inside a given project."""

    class Meta:
        model = Task

    title = factory.Sequence(lambda n: f"Task {n}")
    description = "A test task"
    status = Task.Status.PENDING
    project = factory.SubFactory(ProjectFactory)


# ===================================================================
# Fixtures
# ===================================================================

@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def user(db):
    """A persisted User instance (password: TestPass123!)."""
    return UserFactory()


@pytest.fixture
def other_user(db):
    """A second user for cross-user isolation tests."""
    return UserFactory()


@pytest.fixture
def identity(user):
    """The ``Identity`` of ``user`` as passed to the domain services."""
    return Identity.from_user(user)


@pytest.fixture
def other_identity(other_user):
    return Identity.from_user(other_user)


@pytest.fixture
def auth_client(user):
    """Authenticated DRF client for ``user``."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def other_auth_client(other_user):
    """Authenticated DRF client for ``other_user``."""
    client = APIClient()
    client.force_authenticate(user=other_user)
    return client


@pytest.fixture
def project(user):
    """A Project owned by ``user``."""
    return ProjectFactory(owner=user)


@pytest.fixture
def task(project):
    """A pending Task in ``project``."""
    return TaskFactory(project=project)
