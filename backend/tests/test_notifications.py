from datetime import timedelta

import pytest

from conftest import job_fields, principal_of
from jobportal.core.errors import Forbidden, NotFound
from jobportal.db.base import utcnow
from jobportal.models import Notification
from jobportal.services import applications, jobs, notifications


def test_list_newest_first_with_job_title(db, manager, applicant):
    first = jobs.create_job(db, principal_of(manager), job_fields(title="First"))
    second = jobs.create_job(db, principal_of(manager), job_fields(title="Second"))
    applications.apply(db, first.id, principal_of(applicant))
    applications.apply(db, second.id, principal_of(applicant))

    # Push the first confirmation back in time
    older = db.query(Notification).filter(Notification.job_id == first.id).one()
    older.created_at = utcnow() - timedelta(days=1)
    db.commit()

    rows = notifications.list_for_user(db, applicant.id)
    assert [title for _, title in rows] == ["Second", "First"]


def test_list_only_own_notifications(db, applicant, other_applicant, job):
    applications.apply(db, job.id, principal_of(applicant))
    assert notifications.list_for_user(db, other_applicant.id) == []


def test_staged_notification_needs_caller_commit(db, applicant):
    notifications.create_notification(db, applicant.id, "Hello", "Info")
    db.rollback()
    assert notifications.list_for_user(db, applicant.id) == []


def test_job_title_missing_for_notification_without_job(db, applicant):
    notifications.create_notification(db, applicant.id, "Welcome aboard", "Welcome")
    db.commit()

    [(notification, title)] = notifications.list_for_user(db, applicant.id)
    assert notification.message == "Welcome aboard"
    assert title is None


class TestMarkRead:
    @pytest.fixture
    def notification(self, db, applicant, job):
        applications.apply(db, job.id, principal_of(applicant))
        return db.query(Notification).one()

    def test_recipient_marks_read(self, db, applicant, notification):
        result = notifications.mark_read(db, notification.id, principal_of(applicant))
        assert result.is_read is True

    def test_marking_twice_is_harmless(self, db, applicant, notification):
        notifications.mark_read(db, notification.id, principal_of(applicant))
        result = notifications.mark_read(db, notification.id, principal_of(applicant))
        assert result.is_read is True

    def test_admin_has_no_bypass(self, db, admin, notification):
        with pytest.raises(Forbidden) as exc_info:
            notifications.mark_read(db, notification.id, principal_of(admin))
        assert exc_info.value.message == "You are not authorized to modify this notification."

        db.expire_all()
        assert db.get(Notification, notification.id).is_read is False

    def test_other_user_forbidden(self, db, other_applicant, notification):
        with pytest.raises(Forbidden):
            notifications.mark_read(db, notification.id, principal_of(other_applicant))

    def test_missing_notification(self, db, applicant):
        with pytest.raises(NotFound):
            notifications.mark_read(db, 42, principal_of(applicant))
