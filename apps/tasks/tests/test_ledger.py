"""Tests for the task ledger service."""

import uuid
from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from apps.core.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from apps.tasks import access, completion, ledger
from apps.tasks.models import Project, Task
from conftest import ProjectFactory, TaskFactory


@pytest.mark.django_db
class TestCreateTask:

    def test_create_pending_task(self, identity, project):
        t = ledger.create_task(identity, project.pk, title="  Write docs  ")
        assert t.title == "Write docs"
        assert t.status == Task.Status.PENDING
        assert t.project_id == project.pk
        assert t.is_overdue is False

    def test_assignee_at_creation_keeps_pending(self, identity, project, other_user):
        t = ledger.create_task(identity, project.pk, title="Review", assignee_id=other_user.pk)
        assert t.assignee == other_user
        assert t.status == Task.Status.PENDING

    def test_unknown_assignee_not_found(self, identity, project):
        with pytest.raises(NotFoundError):
            ledger.create_task(identity, project.pk, title="X", assignee_id=uuid.uuid4())
        assert Task.objects.count() == 0

    def test_past_due_date_rejected(self, identity, project):
        yesterday = timezone.now() - timedelta(days=1)
        with pytest.raises(ValidationFailedError):
            ledger.create_task(identity, project.pk, title="Late", due_date=yesterday)
        assert Task.objects.count() == 0

    def test_future_due_date_accepted(self, identity, project):
        tomorrow = timezone.now() + timedelta(days=1)
        t = ledger.create_task(identity, project.pk, title="Soon", due_date=tomorrow)
        assert t.due_date == tomorrow

    def test_blank_title_rejected(self, identity, project):
        with pytest.raises(ValidationFailedError):
            ledger.create_task(identity, project.pk, title="")

    def test_reopens_completed_project(self, identity, user):
        p = ProjectFactory(owner=user, status=Project.Status.COMPLETED)
        ledger.create_task(identity, p.pk, title="More work")
        p.refresh_from_db()
        assert p.status == Project.Status.IN_PROGRESS

    def test_cancelled_project_stays_cancelled(self, identity, user):
        p = ProjectFactory(owner=user, status=Project.Status.CANCELLED)
        ledger.create_task(identity, p.pk, title="Still allowed")
        p.refresh_from_db()
        assert p.status == Project.Status.CANCELLED

    def test_non_owner_not_found(self, other_identity, project):
        with pytest.raises(NotFoundError):
            ledger.create_task(other_identity, project.pk, title="Sneaky")


@pytest.mark.django_db
class TestAssignTask:

    def test_assign_moves_pending_to_in_progress(self, identity, project, task, other_user):
        t = ledger.assign_task(identity, project.pk, task.pk, assignee_id=other_user.pk)
        assert t.assignee == other_user
        assert t.status == Task.Status.IN_PROGRESS

    def test_reassign_replaces_assignee(self, identity, user, project, task, other_user):
        ledger.assign_task(identity, project.pk, task.pk, assignee_id=other_user.pk)
        t = ledger.assign_task(identity, project.pk, task.pk, assignee_id=user.pk)
        assert t.assignee == user
        assert t.status == Task.Status.IN_PROGRESS

    def test_assign_completed_task_keeps_status(self, identity, project, other_user):
        t = TaskFactory(project=project, status=Task.Status.COMPLETED)
        t = ledger.assign_task(identity, project.pk, t.pk, assignee_id=other_user.pk)
        assert t.status == Task.Status.COMPLETED

    def test_unknown_user_not_found(self, identity, project, task):
        with pytest.raises(NotFoundError):
            ledger.assign_task(identity, project.pk, task.pk, assignee_id=uuid.uuid4())


@pytest.mark.django_db
class TestUpdateTask:

    def test_update_title_and_description(self, identity, project, task):
        t = ledger.update_task(identity, project.pk, task.pk, title="New", description="Body")
        t.refresh_from_db()
        assert t.title == "New"
        assert t.description == "Body"

    def test_absent_due_date_leaves_value(self, identity, project):
        due = timezone.now() + timedelta(days=3)
        t = TaskFactory(project=project, due_date=due)
        ledger.update_task(identity, project.pk, t.pk, title="Renamed")
        t.refresh_from_db()
        assert t.due_date == due

    def test_new_due_date_replaces_value(self, identity, project, task):
        due = timezone.now() + timedelta(days=7)
        ledger.update_task(identity, project.pk, task.pk, title="T", due_date=due)
        task.refresh_from_db()
        assert task.due_date == due

    def test_future_due_date_clears_overdue(self, identity, project):
        t = TaskFactory(
            project=project,
            due_date=timezone.now() - timedelta(days=2),
            is_overdue=True,
        )
        ledger.update_task(
            identity, project.pk, t.pk, title="T", due_date=timezone.now() + timedelta(days=1)
        )
        t.refresh_from_db()
        assert t.is_overdue is False

    def test_blank_title_rejected(self, identity, project, task):
        with pytest.raises(ValidationFailedError):
            ledger.update_task(identity, project.pk, task.pk, title="  ")


@pytest.mark.django_db
class TestCancelAndCompleteTask:

    def test_cancel_is_idempotent(self, identity, project, task):
        ledger.cancel_task(identity, project.pk, task.pk)
        t = ledger.cancel_task(identity, project.pk, task.pk)
        assert t.status == Task.Status.CANCELLED

    def test_cancel_completed_task(self, identity, project):
        t = TaskFactory(project=project, status=Task.Status.COMPLETED)
        assert ledger.cancel_task(identity, project.pk, t.pk).status == Task.Status.CANCELLED

    def test_complete_cancelled_task_rejected(self, identity, project, task):
        ledger.cancel_task(identity, project.pk, task.pk)
        with pytest.raises(ValidationFailedError):
            ledger.complete_task(identity, project.pk, task.pk)
        task.refresh_from_db()
        assert task.status == Task.Status.CANCELLED

    def test_completing_last_open_task_completes_project(self, identity, project):
        a = TaskFactory(project=project)
        b = TaskFactory(project=project)
        ledger.complete_task(identity, project.pk, a.pk)
        project.refresh_from_db()
        assert project.status == Project.Status.IN_PROGRESS

        ledger.complete_task(identity, project.pk, b.pk)
        project.refresh_from_db()
        assert project.status == Project.Status.COMPLETED

    def test_cancelled_siblings_do_not_block_completion(self, identity, project):
        TaskFactory(project=project, status=Task.Status.CANCELLED)
        t = TaskFactory(project=project)
        ledger.complete_task(identity, project.pk, t.pk)
        project.refresh_from_db()
        assert project.status == Project.Status.COMPLETED

    def test_cancelled_project_is_never_completed(self, identity, user):
        p = ProjectFactory(owner=user, status=Project.Status.CANCELLED)
        t = TaskFactory(project=p)
        ledger.complete_task(identity, p.pk, t.pk)
        p.refresh_from_db()
        assert p.status == Project.Status.CANCELLED

    def test_cancel_does_not_complete_project(self, identity, project, task):
        ledger.cancel_task(identity, project.pk, task.pk)
        project.refresh_from_db()
        assert project.status == Project.Status.IN_PROGRESS


@pytest.mark.django_db
class TestDeleteTasks:

    def test_delete_task(self, identity, project, task):
        ledger.delete_task(identity, project.pk, task.pk)
        assert not Task.objects.filter(pk=task.pk).exists()

    def test_deleting_last_open_task_completes_project(self, identity, project):
        TaskFactory(project=project, status=Task.Status.COMPLETED)
        open_task = TaskFactory(project=project)
        ledger.delete_task(identity, project.pk, open_task.pk)
        project.refresh_from_db()
        assert project.status == Project.Status.COMPLETED

    def test_deleting_from_empty_project_completes_it(self, identity, project, task):
        ledger.delete_task(identity, project.pk, task.pk)
        project.refresh_from_db()
        assert project.status == Project.Status.COMPLETED

    def test_bulk_delete(self, identity, project):
        tasks = TaskFactory.create_batch(3, project=project)
        deleted = ledger.bulk_delete_tasks(identity, project.pk, [t.pk for t in tasks[:2]])
        assert deleted == 2
        assert list(Task.objects.filter(project=project)) == [tasks[2]]

    def test_bulk_delete_is_all_or_nothing(self, identity, user, project):
        mine = TaskFactory.create_batch(2, project=project)
        elsewhere = TaskFactory(project=ProjectFactory(owner=user))
        ids = [t.pk for t in mine] + [elsewhere.pk]
        with pytest.raises(ForbiddenError):
            ledger.bulk_delete_tasks(identity, project.pk, ids)
        assert Task.objects.count() == 3

    def test_bulk_delete_unknown_id_forbidden(self, identity, project, task):
        with pytest.raises(ForbiddenError):
            ledger.bulk_delete_tasks(identity, project.pk, [task.pk, uuid.uuid4()])
        assert Task.objects.filter(pk=task.pk).exists()

    def test_bulk_delete_empty_list_rejected(self, identity, project):
        with pytest.raises(ValidationFailedError):
            ledger.bulk_delete_tasks(identity, project.pk, [])

    def test_bulk_delete_non_owner_not_found(self, other_identity, project, task):
        with pytest.raises(NotFoundError):
            ledger.bulk_delete_tasks(other_identity, project.pk, [task.pk])


@pytest.mark.django_db
class TestTaskQueries:

    def test_list_orders_by_due_date_undated_last(self, identity, project):
        now = timezone.now()
        undated = TaskFactory(project=project)
        far = TaskFactory(project=project, due_date=now + timedelta(days=10))
        near = TaskFactory(project=project, due_date=now + timedelta(days=1))
        assert list(ledger.list_project_tasks(identity, project.pk)) == [near, far, undated]

    def test_list_non_owner_not_found(self, other_identity, project):
        with pytest.raises(NotFoundError):
            ledger.list_project_tasks(other_identity, project.pk)

    def test_assigned_tasks_span_projects(self, identity, user, other_user):
        theirs = ProjectFactory(owner=other_user)
        mine = ProjectFactory(owner=user)
        a = TaskFactory(project=theirs, assignee=user)
        b = TaskFactory(project=mine, assignee=user)
        TaskFactory(project=mine, assignee=other_user)
        assert set(ledger.list_assigned_tasks(identity)) == {a, b}

    def test_get_task(self, identity, project, task):
        assert ledger.get_task(identity, project.pk, task.pk) == task


@pytest.mark.django_db
class TestProjectRowLock:
    """Every task mutation locks the parent project before re-evaluating it."""

    @pytest.fixture
    def recorder(self):
        recorder = mock.Mock()
        with mock.patch(
            "apps.tasks.ledger.get_owned_project", wraps=access.get_owned_project
        ) as owned, mock.patch(
            "apps.tasks.ledger.get_project_task", wraps=access.get_project_task
        ) as scoped_task, mock.patch(
            "apps.tasks.ledger.reconcile_project_status",
            wraps=completion.reconcile_project_status,
        ) as reconcile:
            recorder.attach_mock(owned, "get_owned_project")
            recorder.attach_mock(scoped_task, "get_project_task")
            recorder.attach_mock(reconcile, "reconcile_project_status")
            yield recorder

    def _calls(self, recorder):
        return [(name, kwargs) for name, _args, kwargs in recorder.mock_calls]

    def test_create_locks_project(self, recorder, identity, project):
        ledger.create_task(identity, project.pk, title="New")
        assert self._calls(recorder) == [("get_owned_project", {"for_update": True})]

    def test_assign_locks_project(self, recorder, identity, project, task, other_user):
        ledger.assign_task(identity, project.pk, task.pk, assignee_id=other_user.pk)
        assert self._calls(recorder) == [("get_project_task", {"for_update": True})]

    def test_complete_locks_before_reconcile(self, recorder, identity, project, task):
        ledger.complete_task(identity, project.pk, task.pk)
        assert self._calls(recorder) == [
            ("get_project_task", {"for_update": True}),
            ("reconcile_project_status", {}),
        ]

    def test_delete_locks_before_reconcile(self, recorder, identity, project, task):
        ledger.delete_task(identity, project.pk, task.pk)
        assert self._calls(recorder) == [
            ("get_project_task", {"for_update": True}),
            ("reconcile_project_status", {}),
        ]

    def test_bulk_delete_locks_before_reconcile(self, recorder, identity, project, task):
        ledger.bulk_delete_tasks(identity, project.pk, [task.pk])
        assert self._calls(recorder) == [
            ("get_owned_project", {"for_update": True}),
            ("reconcile_project_status", {}),
        ]

    def test_lock_is_taken_with_select_for_update(self, identity, project, task):
        with mock.patch(
            "django.db.models.QuerySet.select_for_update",
            autospec=True,
            side_effect=lambda qs, *a, **kw: qs,
        ) as select_for_update:
            ledger.complete_task(identity, project.pk, task.pk)
        assert select_for_update.called
