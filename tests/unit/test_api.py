"""Unit tests for the REST blueprints with service factories patched out."""

from datetime import date
from unittest.mock import Mock, patch

import pytest
from flask_jwt_extended import create_access_token
from shared.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

from app import create_app
from config import Config
from utils import decorators


class ApiTestConfig(Config):
    TESTING = True
    JWT_SECRET_KEY = "test-jwt-secret"
    OTP_RATE_LIMIT_CALLS = 2
    OTP_RATE_LIMIT_WINDOW_SECONDS = 60
    NOTIFICATION_WORKERS = 1


@pytest.fixture
def app():
    flask_app = create_app(ApiTestConfig)
    decorators._rate_limit_storage.clear()
    yield flask_app
    flask_app.extensions["marketplace"]["dispatcher"].shutdown(wait=True)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """Bearer header for user 1."""
    with app.app_context():
        token = create_access_token(identity="1")
    return {"Authorization": f"Bearer {token}"}


class TestAuthEndpoints:
    """Tests for /api/auth."""

    def test_send_verification(self, client):
        """A code is sent and the result is wrapped in the success envelope."""
        service = Mock()
        service.send_verification.return_value = {
            "phone_number": "+15551234567",
            "provider_ref": "dev-mode",
            "mode": "development",
            "verification_code": "000000",
        }
        with patch("blueprints.auth.get_auth_service", return_value=service):
            response = client.post(
                "/api/auth/send-verification", json={"phone_number": "+15551234567"}
            )

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "success"
        assert body["data"]["mode"] == "development"

    def test_send_verification_rate_limited(self, client):
        """The third request inside the window is refused."""
        service = Mock()
        service.send_verification.return_value = {"phone_number": "+15551234567"}
        with patch("blueprints.auth.get_auth_service", return_value=service):
            for _ in range(2):
                assert client.post("/api/auth/send-verification", json={}).status_code == 200
            response = client.post("/api/auth/send-verification", json={})

        assert response.status_code == 429
        assert response.get_json()["status"] == "error"
        assert service.send_verification.call_count == 2

    def test_rate_limit_forgets_idle_clients(self, client):
        """Clients whose calls left the window are dropped from the limiter."""
        decorators._rate_limit_storage["10.0.0.9:api_send_verification"] = [0.0]
        decorators._rate_limit_storage["10.0.0.9:api_resend_verification"] = [0.0]
        service = Mock()
        service.send_verification.return_value = {"phone_number": "+15551234567"}
        with patch("blueprints.auth.get_auth_service", return_value=service):
            client.post("/api/auth/send-verification", json={})

        assert "10.0.0.9:api_send_verification" not in decorators._rate_limit_storage
        assert "10.0.0.9:api_resend_verification" in decorators._rate_limit_storage
        assert len(decorators._rate_limit_storage) == 2

    def test_send_verification_registered_phone(self, client):
        """Service conflicts become 409."""
        service = Mock()
        service.send_verification.side_effect = ConflictError("Phone number already registered")
        with patch("blueprints.auth.get_auth_service", return_value=service):
            response = client.post(
                "/api/auth/send-verification", json={"phone_number": "+15551234567"}
            )

        assert response.status_code == 409
        assert response.get_json() == {
            "status": "error",
            "message": "Phone number already registered",
        }

    def test_register_returns_token(self, client):
        """Registration answers 201 with a token and the session user."""
        service = Mock()
        service.register_user.return_value = {
            "user_id": 11,
            "phone_number": "+15551234567",
            "is_phone_verified": True,
            "is_profile_complete": False,
            "role": "user",
            "full_name": None,
        }
        with patch("blueprints.auth.get_auth_service", return_value=service):
            response = client.post(
                "/api/auth/register", json={"phone_number": "+15551234567", "pin": "1234"}
            )

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["token"]
        assert data["user"] == {
            "user_id": 11,
            "phone_number": "+15551234567",
            "is_phone_verified": True,
            "is_profile_complete": False,
            "role": "user",
        }

    def test_me_requires_token(self, client):
        """Protected routes answer 401 without a token."""
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.get_json()["status"] == "error"

    def test_me(self, client, auth_headers):
        """The token identity is passed to the service as an int."""
        service = Mock()
        service.get_current_user.return_value = {"user_id": 1, "date_of_birth": date(1990, 5, 1)}
        with patch("blueprints.auth.get_auth_service", return_value=service):
            response = client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["user"]["date_of_birth"] == "1990-05-01"
        service.get_current_user.assert_called_once_with(1)

    def test_change_pin_validation_error(self, client, auth_headers):
        """Validation errors become 400."""
        service = Mock()
        service.change_pin.side_effect = ValidationError("Current PIN and new PIN are required")
        with patch("blueprints.auth.get_auth_service", return_value=service):
            response = client.put("/api/auth/change-pin", json={}, headers=auth_headers)

        assert response.status_code == 400


class TestJobEndpoints:
    """Tests for /api/jobs."""

    def test_create_job(self, client, auth_headers, stored_job):
        """Job creation answers 201 with the job."""
        service = Mock()
        service.create_job.return_value = stored_job
        with patch("blueprints.jobs.get_job_service", return_value=service):
            response = client.post("/api/jobs", json={"title": "x"}, headers=auth_headers)

        assert response.status_code == 201
        body = response.get_json()
        assert body["message"] == "Job created successfully"
        assert body["data"]["job"]["scheduled_date"] == "2025-03-12"
        service.create_job.assert_called_once_with(1, {"title": "x"})

    def test_create_job_multipart_attachments(self, client, auth_headers, stored_job):
        """Form clients may send repeated attachment fields."""
        service = Mock()
        service.create_job.return_value = stored_job
        with patch("blueprints.jobs.get_job_service", return_value=service):
            client.post(
                "/api/jobs",
                data={"title": "x", "attachments": ["jobs/a.jpg", "jobs/b.jpg"]},
                headers=auth_headers,
            )

        payload = service.create_job.call_args[0][1]
        assert payload["attachments"] == ["jobs/a.jpg", "jobs/b.jpg"]

    def test_list_jobs_is_public(self, client):
        """The public listing needs no token and forwards filters."""
        service = Mock()
        service.list_jobs.return_value = {"jobs": [], "pagination": {"total_jobs": 0}}
        with patch("blueprints.jobs.get_job_discovery_service", return_value=service):
            response = client.get("/api/jobs?urgency=Urgent&page=2&limit=5")

        assert response.status_code == 200
        filters = service.list_jobs.call_args[0][0]
        assert filters.urgency == "Urgent"
        assert service.list_jobs.call_args[1]["page"] == "2"

    def test_hot_jobs_excludes_caller(self, client, auth_headers):
        """Signed-in callers do not see their own postings in the feed."""
        service = Mock()
        service.list_by_urgency_near_location.return_value = {"jobs": []}
        with patch("blueprints.jobs.get_job_discovery_service", return_value=service):
            client.get("/api/jobs/hot?location=Springfield", headers=auth_headers)

        kwargs = service.list_by_urgency_near_location.call_args[1]
        assert kwargs["urgency"] == "Urgent"
        assert kwargs["location"] == "Springfield"
        assert kwargs["exclude_user_id"] == 1

    def test_hot_jobs_missing_location(self, client):
        """A feed without location is a 400."""
        service = Mock()
        service.list_by_urgency_near_location.side_effect = ValidationError(
            "Location parameter is required"
        )
        with patch("blueprints.jobs.get_job_discovery_service", return_value=service):
            response = client.get("/api/jobs/normal")

        assert response.status_code == 400
        assert service.list_by_urgency_near_location.call_args[1]["exclude_user_id"] is None

    def test_get_job_not_found(self, client):
        """Missing jobs are 404."""
        service = Mock()
        service.get_job.side_effect = NotFoundError("Job not found")
        with patch("blueprints.jobs.get_job_service", return_value=service):
            response = client.get("/api/jobs/99")

        assert response.status_code == 404

    def test_update_job_not_owner(self, client, auth_headers):
        """Non-owners get 403."""
        service = Mock()
        service.update_job.side_effect = AuthorizationError("Not authorized to update this job")
        with patch("blueprints.jobs.get_job_service", return_value=service):
            response = client.put("/api/jobs/7", json={"title": "x"}, headers=auth_headers)

        assert response.status_code == 403

    def test_record_interest_twice(self, client, auth_headers):
        """A repeated interest still succeeds with its own message."""
        service = Mock()
        service.record_interest.return_value = {
            "job_id": 7,
            "already_recorded": True,
            "noted_at": None,
        }
        with patch("blueprints.jobs.get_job_service", return_value=service):
            response = client.post("/api/jobs/7/interest", headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json()["message"] == "Interest already recorded"

    def test_expire_requires_admin(self, client, auth_headers):
        """Only admins can run the expiry sweep."""
        user_service = Mock()
        user_service.get_user_by_id.return_value = {"user_id": 1, "role": "user"}
        with patch("utils.decorators.get_user_service", return_value=user_service):
            response = client.post("/api/jobs/expire", headers=auth_headers)

        assert response.status_code == 403
        assert response.get_json()["message"] == "Admin access required"

    def test_expire_as_admin(self, client, auth_headers):
        """Admins get the sweep report."""
        user_service = Mock()
        user_service.get_user_by_id.return_value = {"user_id": 1, "role": "admin"}
        discovery = Mock()
        discovery.expire_old_jobs.return_value = {"checked": 3, "matched": 1, "updated": 1}
        with (
            patch("utils.decorators.get_user_service", return_value=user_service),
            patch("blueprints.jobs.get_job_discovery_service", return_value=discovery),
        ):
            response = client.post("/api/jobs/expire", headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json()["data"] == {"checked": 3, "matched": 1, "updated": 1}

    def test_database_error_carries_underlying_message(self, client, auth_headers):
        """Persistence failures answer 500 with the driver message attached."""
        service = Mock()
        service.create_job.side_effect = PersistenceError(
            "create job", Exception('null value in column "title" violates not-null constraint')
        )
        with patch("blueprints.jobs.get_job_service", return_value=service):
            response = client.post("/api/jobs", json={"title": "x"}, headers=auth_headers)

        assert response.status_code == 500
        assert response.get_json() == {
            "status": "error",
            "message": "Failed to create job",
            "error": 'null value in column "title" violates not-null constraint',
        }

    def test_unexpected_error_is_sanitized(self, client, auth_headers):
        """Errors outside the service hierarchy answer 500 without their text."""
        service = Mock()
        service.delete_job.side_effect = RuntimeError("connection to server at 10.0.0.5 failed")
        with patch("blueprints.jobs.get_job_service", return_value=service):
            response = client.delete("/api/jobs/7", headers=auth_headers)

        assert response.status_code == 500
        body = response.get_json()
        assert body["status"] == "error"
        assert "10.0.0.5" not in body["message"]


class TestOtherEndpoints:
    """Tests for locations, notifications, health and error handlers."""

    def test_save_location(self, client, auth_headers):
        """Saving a location answers 201."""
        service = Mock()
        service.save_location.return_value = {"location_id": 4, "name": "Home"}
        with patch("blueprints.locations.get_location_service", return_value=service):
            response = client.post(
                "/api/locations", json={"name": "Home"}, headers=auth_headers
            )

        assert response.status_code == 201
        assert response.get_json()["data"]["location"]["location_id"] == 4

    def test_list_notifications_parses_is_read(self, client, auth_headers):
        """The is_read query flag is turned into a boolean."""
        service = Mock()
        service.list_notifications.return_value = {"notifications": [], "unread_count": 0}
        with patch("blueprints.notifications.get_notification_service", return_value=service):
            client.get("/api/notifications?is_read=false", headers=auth_headers)

        assert service.list_notifications.call_args[1]["is_read"] is False

    def test_health_database_down(self, client):
        """Health answers 503 when the database is unreachable."""
        database = Mock()
        database.get_cursor.side_effect = Exception("could not connect")
        with patch("blueprints.system.get_database", return_value=database):
            response = client.get("/api/health")

        assert response.status_code == 503
        body = response.get_json()
        assert body["database"] == {"status": "disconnected", "connected": False}
        assert body["message"] == "Database connection failed"

    def test_unknown_route(self, client):
        """Unknown routes answer with the JSON envelope."""
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.get_json() == {"status": "error", "message": "Route not found"}
