"""
HTTP-level tests: routing, bearer authentication, status codes and the
error envelope.
"""

import pytest
from sqlalchemy.exc import OperationalError

from conftest import PASSWORD, principal_of
from jobportal.core.config import Settings, settings
from jobportal.core.errors import ConfigurationError
from jobportal.main import validate_startup
from jobportal.services import jobs as job_registry
from jobportal.services import users

API = settings.API_V1_PREFIX

JOB_PAYLOAD = {
    "title": "Backend Engineer",
    "description": "Build APIs.",
    "location": "Remote",
    "employment_type": "Full-time",
    "salary_min": 50000,
    "salary_max": 80000,
    "company_name": "Acme",
    "application_deadline": "2025-12-01T00:00:00",
}


def assert_error(response, status_code, code):
    assert response.status_code == status_code, response.text
    error = response.json()["error"]
    assert error["code"] == code
    return error


class TestRoot:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_request_id_echoed(self, client):
        response = client.get("/", headers={"x-request-id": "abc-123"})
        assert response.headers["x-request-id"] == "abc-123"

    def test_unknown_route_uses_envelope(self, client):
        assert_error(client.get(f"{API}/nowhere"), 404, "HTTP_EXCEPTION")


class TestLogin:
    def test_login_returns_usable_token(self, client, manager):
        response = client.post(
            f"{API}/auth/login", json={"email": manager.email, "password": PASSWORD}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["expires_at"]

        me = client.get(
            f"{API}/users/me", headers={"Authorization": f"Bearer {body['token']}"}
        )
        assert me.status_code == 200
        assert me.json()["role"] == "Manager"

    def test_wrong_password(self, client, manager):
        response = client.post(
            f"{API}/auth/login", json={"email": manager.email, "password": "wrong-password"}
        )
        error = assert_error(response, 401, "UNAUTHENTICATED")
        assert error["message"] == "Invalid login attempt."


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get(f"{API}/notifications/mine")
        assert_error(response, 401, "UNAUTHENTICATED")
        assert response.headers["www-authenticate"] == "Bearer"

    def test_malformed_token(self, client):
        response = client.get(
            f"{API}/notifications/mine", headers={"Authorization": "Bearer not.a.token"}
        )
        assert_error(response, 401, "UNAUTHENTICATED")


class TestRegistration:
    def test_register_then_login(self, client):
        response = client.post(
            f"{API}/users/register",
            json={
                "email": "Jane@Example.com",
                "username": "jane",
                "password": "hunter22",
                "confirm_password": "hunter22",
                "phone_number": "+1 5551234567",
            },
        )
        assert response.status_code == 200, response.text
        assert response.json()["message"] == "Registration successful!"

        login = client.post(
            f"{API}/auth/login", json={"email": "jane@example.com", "password": "hunter22"}
        )
        assert login.status_code == 200

    def test_every_invalid_field_reported(self, client):
        response = client.post(
            f"{API}/users/register",
            json={
                "email": "not-an-email",
                "username": "ab",
                "password": "123",
                "confirm_password": "123",
                "phone_number": "call me",
            },
        )
        error = assert_error(response, 400, "VALIDATION_FAILED")
        fields = {detail["field"] for detail in error["details"]}
        assert {"email", "username", "password", "phone_number"} <= fields

    def test_duplicate_email(self, client, applicant):
        response = client.post(
            f"{API}/users/register",
            json={
                "email": applicant.email,
                "username": "someone-new",
                "password": "hunter22",
                "confirm_password": "hunter22",
            },
        )
        error = assert_error(response, 400, "VALIDATION_FAILED")
        assert [detail["field"] for detail in error["details"]] == ["email"]

    def test_mismatched_confirmation_reported_with_other_fields(self, client):
        response = client.post(
            f"{API}/users/register",
            json={
                "email": "not-an-email",
                "username": "jane",
                "password": "hunter22",
                "confirm_password": "hunter23",
            },
        )
        error = assert_error(response, 400, "VALIDATION_FAILED")
        messages = {detail["field"]: detail["message"] for detail in error["details"]}
        assert {"email", "confirm_password"} <= set(messages)
        assert messages["confirm_password"] == (
            "The password and confirmation password do not match."
        )


class TestJobsApi:
    def test_manager_creates_and_lists(self, client, manager, applicant, auth_headers):
        created = client.post(f"{API}/jobs", json=JOB_PAYLOAD, headers=auth_headers(manager))
        assert created.status_code == 200, created.text
        job_id = created.json()["job_id"]

        listed = client.get(f"{API}/jobs", headers=auth_headers(applicant))
        assert listed.status_code == 200
        [job] = listed.json()
        assert job["id"] == job_id
        assert job["manager_username"] == manager.username

        mine = client.get(f"{API}/jobs/mine", headers=auth_headers(manager))
        assert [j["id"] for j in mine.json()] == [job_id]

    def test_applicant_cannot_create(self, client, applicant, auth_headers):
        response = client.post(f"{API}/jobs", json=JOB_PAYLOAD, headers=auth_headers(applicant))
        assert_error(response, 403, "FORBIDDEN")

    def test_admin_cannot_browse(self, client, admin, job, auth_headers):
        response = client.get(f"{API}/jobs/{job.id}", headers=auth_headers(admin))
        assert_error(response, 403, "FORBIDDEN")

    def test_non_owner_update_forbidden(self, client, other_manager, job, auth_headers):
        response = client.put(
            f"{API}/jobs/{job.id}", json=JOB_PAYLOAD, headers=auth_headers(other_manager)
        )
        error = assert_error(response, 403, "FORBIDDEN")
        assert error["message"] == "You are not authorized to update this job."

    def test_admin_deletes_any_job(self, client, admin, job, auth_headers):
        response = client.delete(f"{API}/jobs/{job.id}", headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["message"] == f"Job with ID {job.id} deleted successfully."

    def test_missing_job(self, client, applicant, auth_headers):
        error = assert_error(
            client.get(f"{API}/jobs/999", headers=auth_headers(applicant)), 404, "NOT_FOUND"
        )
        assert error["message"] == "Job with ID 999 not found."

    def test_salary_range_validated(self, client, manager, auth_headers):
        payload = dict(JOB_PAYLOAD, salary_min=90000, salary_max=1000)
        response = client.post(f"{API}/jobs", json=payload, headers=auth_headers(manager))
        error = assert_error(response, 400, "VALIDATION_FAILED")
        assert error["details"][0]["field"] == "salary_max"
        assert error["details"][0]["message"] == (
            "Maximum salary must not be lower than minimum salary."
        )

    def test_salary_bounds_reported_with_other_fields(self, client, manager, auth_headers):
        payload = dict(JOB_PAYLOAD, title="", salary_min=-5, salary_max=2000000)
        response = client.post(f"{API}/jobs", json=payload, headers=auth_headers(manager))
        error = assert_error(response, 400, "VALIDATION_FAILED")
        fields = {detail["field"] for detail in error["details"]}
        assert {"title", "salary_min", "salary_max"} <= fields

    def test_nothing_saved_when_validation_fails(self, client, manager, db, auth_headers):
        payload = dict(JOB_PAYLOAD, salary_min=-5)
        response = client.post(f"{API}/jobs", json=payload, headers=auth_headers(manager))
        assert_error(response, 400, "VALIDATION_FAILED")
        assert job_registry.list_jobs(db) == []


class TestApplicationFlow:
    def test_apply_notify_and_mark_read(self, client, applicant, job, auth_headers):
        headers = auth_headers(applicant)

        applied = client.post(
            f"{API}/jobapplications/apply/{job.id}",
            json={"cover_letter": "I love APIs"},
            headers=headers,
        )
        assert applied.status_code == 200, applied.text
        assert applied.json()["application_id"]

        duplicate = client.post(f"{API}/jobapplications/apply/{job.id}", headers=headers)
        error = assert_error(duplicate, 409, "CONFLICT")
        assert error["message"] == "You have already applied for this job."

        [notification] = client.get(f"{API}/notifications/mine", headers=headers).json()
        assert notification["job_title"] == "Backend Engineer"
        assert notification["message"].endswith("The application deadline is 12/01/2025.")
        assert notification["is_read"] is False

        marked = client.put(f"{API}/notifications/{notification['id']}/read", headers=headers)
        assert marked.status_code == 200

        [notification] = client.get(f"{API}/notifications/mine", headers=headers).json()
        assert notification["is_read"] is True

        [application] = client.get(f"{API}/jobapplications/mine", headers=headers).json()
        assert application["status"] == "Pending"

    @pytest.mark.parametrize("user_fixture", ["manager", "admin"])
    def test_staff_apply_forbidden(self, request, client, job, auth_headers, user_fixture):
        user = request.getfixturevalue(user_fixture)
        response = client.post(
            f"{API}/jobapplications/apply/{job.id}", headers=auth_headers(user)
        )
        error = assert_error(response, 403, "FORBIDDEN")
        assert error["message"] == "Managers and Admins cannot apply for jobs."

    def test_admin_cannot_mark_others_notification(
        self, client, admin, applicant, job, auth_headers
    ):
        client.post(f"{API}/jobapplications/apply/{job.id}", headers=auth_headers(applicant))
        [notification] = client.get(
            f"{API}/notifications/mine", headers=auth_headers(applicant)
        ).json()

        response = client.put(
            f"{API}/notifications/{notification['id']}/read", headers=auth_headers(admin)
        )
        assert_error(response, 403, "FORBIDDEN")

    def test_deleted_account_cannot_apply(
        self, client, admin, applicant, job, db, auth_headers
    ):
        headers = auth_headers(applicant)
        users.delete_user(db, principal_of(admin), applicant.id)

        response = client.post(f"{API}/jobapplications/apply/{job.id}", headers=headers)
        assert_error(response, 401, "UNAUTHENTICATED")


class TestPostsApi:
    def test_publish_then_read_anonymously(self, client, manager, auth_headers):
        created = client.post(
            f"{API}/posts",
            json={"description": "We are hiring!", "image_url": "https://img/banner.png"},
            headers=auth_headers(manager),
        )
        assert created.status_code == 200, created.text
        assert created.json()["message"] == "Post created successfully!"
        post_id = created.json()["post_id"]

        [post] = client.get(f"{API}/posts").json()
        assert post["id"] == post_id
        assert post["username"] == manager.username
        assert post["name"] == manager.name

        single = client.get(f"{API}/posts/{post_id}")
        assert single.status_code == 200
        assert single.json()["image_url"] == "https://img/banner.png"

    def test_publishing_needs_a_token(self, client):
        response = client.post(f"{API}/posts", json={"description": "Hi"})
        assert_error(response, 401, "UNAUTHENTICATED")

    def test_admin_cannot_publish(self, client, admin, auth_headers):
        response = client.post(
            f"{API}/posts", json={"description": "Hi"}, headers=auth_headers(admin)
        )
        assert_error(response, 403, "FORBIDDEN")

    def test_empty_description_rejected(self, client, applicant, auth_headers):
        response = client.post(
            f"{API}/posts", json={"description": ""}, headers=auth_headers(applicant)
        )
        error = assert_error(response, 400, "VALIDATION_FAILED")
        assert [detail["field"] for detail in error["details"]] == ["description"]

    def test_author_and_admin_edit_others_forbidden(
        self, client, admin, applicant, other_applicant, auth_headers
    ):
        post_id = client.post(
            f"{API}/posts", json={"description": "Mine"}, headers=auth_headers(applicant)
        ).json()["post_id"]

        forbidden = client.put(
            f"{API}/posts/{post_id}",
            json={"description": "Not yours"},
            headers=auth_headers(other_applicant),
        )
        error = assert_error(forbidden, 403, "FORBIDDEN")
        assert error["message"] == "You are not authorized to modify this post."

        updated = client.put(
            f"{API}/posts/{post_id}",
            json={"description": "Edited"},
            headers=auth_headers(applicant),
        )
        assert updated.json()["message"] == f"Post with ID {post_id} updated successfully."

        deleted = client.delete(f"{API}/posts/{post_id}", headers=auth_headers(admin))
        assert deleted.json()["message"] == f"Post with ID {post_id} deleted successfully."

        missing = client.get(f"{API}/posts/{post_id}")
        error = assert_error(missing, 404, "NOT_FOUND")
        assert error["message"] == f"Post with ID {post_id} not found."


class TestUsersApi:
    def test_admin_lists_users(self, client, admin, applicant, auth_headers):
        response = client.get(f"{API}/users", headers=auth_headers(admin))
        assert response.status_code == 200
        assert {user["username"] for user in response.json()} == {"admin", "applicant"}

    def test_manager_cannot_list_users(self, client, manager, auth_headers):
        assert_error(client.get(f"{API}/users", headers=auth_headers(manager)), 403, "FORBIDDEN")

    def test_update_own_profile(self, client, applicant, auth_headers):
        response = client.put(
            f"{API}/users/me", json={"address": "Main St 1"}, headers=auth_headers(applicant)
        )
        assert response.status_code == 200

        me = client.get(f"{API}/users/me", headers=auth_headers(applicant)).json()
        assert me["address"] == "Main St 1"
        assert me["role"] == "Applicant"


class TestFailureEnvelope:
    def test_unexpected_error_is_generic(self, client, applicant, auth_headers, monkeypatch):
        def explode(db):
            raise RuntimeError("password=hunter2 leaked")

        monkeypatch.setattr(job_registry, "list_jobs", explode)

        response = client.get(f"{API}/jobs", headers=auth_headers(applicant))
        error = assert_error(response, 500, "INTERNAL_SERVER_ERROR")
        assert "hunter2" not in response.text
        assert error["message"] == "An unexpected error occurred"

    def test_database_outage(self, client, applicant, auth_headers, monkeypatch):
        def unavailable(db):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        monkeypatch.setattr(job_registry, "list_jobs", unavailable)

        response = client.get(f"{API}/jobs", headers=auth_headers(applicant))
        assert_error(response, 503, "DATABASE_UNAVAILABLE")


class TestStartupValidation:
    def test_short_signing_key_refused(self):
        with pytest.raises(ConfigurationError):
            validate_startup(Settings(JWT_SECRET_KEY="short"))

    def test_missing_database_url_refused(self):
        with pytest.raises(ConfigurationError):
            validate_startup(Settings(DATABASE_URL=""))

    def test_valid_configuration(self):
        validate_startup(settings)
