"""Tests for the project registry service."""

import uuid

import pytest

from apps.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from apps.tasks import registry
from apps.tasks.models import Project, Task
from conftest import ProjectFactory, TaskFactory


@pytest.mark.django_db
class TestCreateProject:

    def test_creates_in_progress_project_owned_by_caller(self, identity, user):
        p = registry.create_project(identity, name="  Apollo  ", description="Moon")
        assert p.name == "Apollo"
        assert p.description == "Moon"
        assert p.owner_id == user.pk
        assert p.status == Project.Status.IN_PROGRESS

    def test_blank_name_rejected(self, identity):
        with pytest.raises(ValidationFailedError):
            registry.create_project(identity, name="   ")

    def test_duplicate_name_case_insensitive(self, identity):
        registry.create_project(identity, name="Apollo")
        with pytest.raises(ConflictError):
            registry.create_project(identity, name="aPoLLo")
        assert Project.objects.count() == 1

    def test_same_name_for_different_owner_allowed(self, identity, other_identity):
        registry.create_project(identity, name="Shared")
        p = registry.create_project(other_identity, name="Shared")
        assert p.pk is not None


@pytest.mark.django_db
class TestUpdateProject:

    def test_rename(self, identity, project):
        p = registry.update_project(identity, project.pk, name="Renamed", description="New")
        assert p.name == "Renamed"
        project.refresh_from_db()
        assert project.description == "New"

    def test_case_only_change_allowed(self, identity, user):
        p = ProjectFactory(owner=user, name="apollo")
        updated = registry.update_project(identity, p.pk, name="Apollo")
        assert updated.name == "Apollo"

    def test_rename_to_existing_name_conflicts(self, identity, user):
        ProjectFactory(owner=user, name="Taken")
        p = ProjectFactory(owner=user, name="Mine")
        with pytest.raises(ConflictError):
            registry.update_project(identity, p.pk, name="TAKEN")
        p.refresh_from_db()
        assert p.name == "Mine"

    def test_name_taken_by_other_owner_is_fine(self, identity, project, other_user):
        ProjectFactory(owner=other_user, name="Theirs")
        p = registry.update_project(identity, project.pk, name="Theirs")
        assert p.name == "Theirs"

    def test_non_owner_not_found(self, other_identity, project):
        with pytest.raises(NotFoundError):
            registry.update_project(other_identity, project.pk, name="Hacked")

    def test_unique_names_hold_after_sequence(self, identity, user):
        a = registry.create_project(identity, name="Alpha")
        b = registry.create_project(identity, name="Beta")
        registry.update_project(identity, a.pk, name="Gamma")
        registry.create_project(identity, name="alpha")
        with pytest.raises(ConflictError):
            registry.update_project(identity, b.pk, name="GAMMA")
        names = [n.lower() for n in Project.objects.filter(owner=user).values_list("name", flat=True)]
        assert len(names) == len(set(names))


@pytest.mark.django_db
class TestCancelProject:

    def test_cancel(self, identity, project):
        p = registry.cancel_project(identity, project.pk)
        assert p.status == Project.Status.CANCELLED

    def test_cancel_twice_rejected(self, identity, project):
        registry.cancel_project(identity, project.pk)
        with pytest.raises(ValidationFailedError):
            registry.cancel_project(identity, project.pk)

    def test_cancel_completed_project(self, identity, user):
        p = ProjectFactory(owner=user, status=Project.Status.COMPLETED)
        assert registry.cancel_project(identity, p.pk).status == Project.Status.CANCELLED

    def test_non_owner_not_found(self, other_identity, project):
        with pytest.raises(NotFoundError):
            registry.cancel_project(other_identity, project.pk)


@pytest.mark.django_db
class TestQueriesAndDelete:

    def test_list_is_owner_scoped_with_counts(self, identity, user, other_user):
        mine = ProjectFactory(owner=user)
        TaskFactory(project=mine, status=Task.Status.PENDING)
        TaskFactory(project=mine, status=Task.Status.COMPLETED)
        ProjectFactory(owner=other_user)

        projects = list(registry.list_projects(identity))
        assert projects == [mine]
        assert projects[0].task_count == 2
        assert projects[0].open_task_count == 1

    def test_get_other_users_project_not_found(self, other_identity, project):
        with pytest.raises(NotFoundError):
            registry.get_project(other_identity, project.pk)

    def test_get_missing_project_not_found(self, identity):
        with pytest.raises(NotFoundError):
            registry.get_project(identity, uuid.uuid4())

    def test_delete_cascades_to_tasks(self, identity, project):
        TaskFactory.create_batch(2, project=project)
        registry.delete_project(identity, project.pk)
        assert not Project.objects.filter(pk=project.pk).exists()
        assert Task.objects.count() == 0

    def test_delete_by_non_owner_leaves_everything(self, other_identity, project, task):
        with pytest.raises(NotFoundError):
            registry.delete_project(other_identity, project.pk)
        assert Task.objects.filter(pk=task.pk).exists()
