"""
Unit tests for Meetings main service.
"""

import base64
import json

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from service_meetings.app.exceptions import DownstreamError, UpstreamRejectedError
from service_meetings.app.main import MeetingsService, create_app
from service_meetings.app.models import MeetingRecord, Principal, ServiceToken
from shared.config import MeetingsConfig
from shared.errors import ConfigurationError
from shared.test_helpers import test_data_factory, test_environment


def _config(**overrides) -> MeetingsConfig:
    return MeetingsConfig(**dict(test_environment.get_mock_config(), **overrides))


class TestMeetingsService:
    """Test cases for MeetingsService."""

    @pytest.fixture
    def app(self):
        """Create FastAPI app instance."""
        return create_app(_config())

    @pytest.fixture
    def service(self, app) -> MeetingsService:
        return app.state.meetings_service

    @pytest.fixture
    def client(self, app):
        """Create test client."""
        return TestClient(app)

    @pytest.fixture
    def authenticated(self, service):
        """Make the identity service accept every credential."""
        service.identity_validator.validate = AsyncMock(
            return_value=Principal(userid=7, nickname="Alice")
        )
        return service.identity_validator.validate

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "meetings"
        assert data["message"] == "Meeting Access Gateway - Meetings Service"

    def test_health_endpoint(self, client):
        """Test health endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "meetings"
        assert data["status"] == "ok"

    def test_metrics_endpoint(self, client):
        """Test metrics endpoint."""
        client.get("/health")

        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "http_requests_total" in response.text

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_api_requires_token(self, client):
        """Test the gate refuses requests without a credential."""
        response = client.get("/api/config")

        assert response.status_code == 401
        data = response.json()
        assert data["code"] == "AUTHENTICATION_ERROR"
        assert data["message"] == "Token is required"

    def test_invalid_token_hides_upstream_reason(self, client, service):
        """Test a rejected credential yields a generic 401."""
        service.identity_validator.validate = AsyncMock(side_effect=UpstreamRejectedError("user banned: spam"))

        response = client.get("/api/config", headers={"Token": "bad"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"
        assert "spam" not in response.text

    def test_config_endpoint(self, client, authenticated):
        """Test client configuration is returned after authentication."""
        response = client.get("/api/config", headers={"Authorization": "Bearer good"})

        assert response.status_code == 200
        assert response.json() == {"disable_join_meeting": False}
        authenticated.assert_awaited_once_with("good")

    def test_query_parameter_credential(self, client, authenticated):
        response = client.get("/api/config", params={"token": "from-query"})

        assert response.status_code == 200
        authenticated.assert_awaited_once_with("from-query")

    def test_signature_endpoint(self, client, authenticated):
        """Test a signature is issued for an authenticated caller."""
        response = client.post(
            "/api/signature",
            json={"meetingNumber": "85746065432", "role": 1},
            headers={"Token": "good"},
        )

        assert response.status_code == 200
        signature = response.json()["signature"]
        assert len(signature.split(".")) == 3

    def test_signature_malformed_body(self, client, authenticated):
        """Test a body with a non-numeric role is a client error."""
        response = client.post(
            "/api/signature",
            json={"meetingNumber": "1", "role": "host"},
            headers={"Token": "good"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_signature_without_meeting_number(self, client, authenticated):
        """Test a missing meeting number is signed as empty."""
        response = client.post("/api/signature", json={"role": 0}, headers={"Token": "good"})

        assert response.status_code == 200
        payload = response.json()["signature"].split(".")[1]
        claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
        assert claims["mn"] == ""
        assert claims["role"] == 0

    def test_signature_invalid_json(self, client, authenticated):
        response = client.post(
            "/api/signature",
            content=b"{not json",
            headers={"Token": "good", "Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_signature_requires_token(self, client):
        response = client.post("/api/signature", json={"meetingNumber": "1", "role": 0})

        assert response.status_code == 401

    def test_create_meeting(self, client, service, authenticated):
        """Test meeting creation returns the upstream record."""
        service.meeting_service.token_broker.get_service_token = AsyncMock(
            return_value=ServiceToken(access_token="zoom-access-token")
        )
        service.meeting_service.gateway.create_meeting = AsyncMock(
            return_value=MeetingRecord.model_validate(test_data_factory.create_meeting_record("Sprint review"))
        )

        response = client.post("/api/meetings", json={"topic": "Sprint review"}, headers={"Token": "good"})

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == 85746065432
        assert data["topic"] == "Sprint review"
        assert data["join_url"].startswith("https://zoom.us/j/")

    def test_create_meeting_upstream_failure_is_opaque(self, client, service, authenticated):
        """Test upstream diagnostics are not returned to the caller."""
        service.meeting_service.token_broker.get_service_token = AsyncMock(
            return_value=ServiceToken(access_token="zoom-access-token")
        )
        service.meeting_service.gateway.create_meeting = AsyncMock(
            side_effect=DownstreamError(400, '{"code":300,"message":"internal account detail"}')
        )

        response = client.post("/api/meetings", json={"topic": "Sprint review"}, headers={"Token": "good"})

        assert response.status_code == 502
        data = response.json()
        assert data["code"] == "EXTERNAL_SERVICE_ERROR"
        assert data["details"] == {}
        assert "internal account detail" not in response.text

    def test_create_meeting_missing_topic(self, client, authenticated):
        response = client.post("/api/meetings", json={"duration": 30}, headers={"Token": "good"})

        assert response.status_code == 400


class TestMeetingsServiceConfiguration:
    """Test cases for configuration-dependent behaviour."""

    def test_missing_signing_keys_fail_fast(self):
        """Test startup refuses to run without signing credentials."""
        with pytest.raises(ConfigurationError) as exc_info:
            create_app(_config(zoom_api_key="", zoom_api_secret=""))

        assert exc_info.value.details == {"missing": ["ZOOM_API_KEY", "ZOOM_API_SECRET"]}

    def test_join_disabled_allows_missing_keys(self):
        """Test signing keys are optional when joining is disabled."""
        app = create_app(_config(zoom_api_key="", zoom_api_secret="", disable_join_meeting=True, disable_dootask_auth=True))
        client = TestClient(app)

        assert client.get("/api/config").json() == {"disable_join_meeting": True}

        response = client.post("/api/signature", json={"meetingNumber": "1", "role": 0})
        assert response.status_code == 500
        assert response.json()["code"] == "CONFIGURATION_ERROR"

    def test_bypass_mode_skips_identity_service(self):
        """Test disabling identity validation admits callers without a token."""
        app = create_app(_config(disable_dootask_auth=True))
        validate = AsyncMock()
        app.state.meetings_service.identity_validator.validate = validate

        response = TestClient(app).get("/api/config")

        assert response.status_code == 200
        validate.assert_not_called()

    def test_meeting_creation_without_oauth(self):
        """Test meeting creation reports missing OAuth settings as a server error."""
        app = create_app(_config(zoom_account_id="", disable_dootask_auth=True))

        response = TestClient(app).post("/api/meetings", json={"topic": "Standup"})

        assert response.status_code == 500
        assert response.json()["code"] == "CONFIGURATION_ERROR"
