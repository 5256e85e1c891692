"""
Integration tests for the meetings gateway request flow.

The application runs in-process; every outbound HTTP call is routed through
an ``httpx.MockTransport`` that plays the identity service, the OAuth
endpoint and the meeting API.
"""

import base64
import json

import httpx
import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from service_meetings.app.adapters.meetings_client import ZOOM_CREATE_MEETING_URL
from service_meetings.app.adapters.oauth_client import ZOOM_TOKEN_URL
from service_meetings.app.main import create_app
from shared.config import MeetingsConfig
from shared.test_helpers import mock_async_client_factory, test_data_factory, test_environment

VALID_TOKEN = "dootask-user-token"


class FakeUpstreams:
    """Answers outbound calls and records what the gateway sent."""

    def __init__(self):
        self.calls = []
        self.identity_envelope = test_data_factory.create_envelope(test_data_factory.create_test_user())
        self.meeting_status = 201
        self.meeting_body = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        url = str(request.url)

        if request.url.host == "dootask.test":
            if request.url.params.get("token") != VALID_TOKEN:
                return httpx.Response(200, json={"ret": -1, "msg": "请登录后继续", "data": {}})
            return httpx.Response(200, json=self.identity_envelope)

        if url == ZOOM_TOKEN_URL:
            return httpx.Response(200, json=test_data_factory.create_oauth_token("zoom-access-token"))

        if url == ZOOM_CREATE_MEETING_URL:
            if self.meeting_body is not None:
                return httpx.Response(self.meeting_status, text=self.meeting_body)
            topic = json.loads(request.content)["topic"]
            return httpx.Response(self.meeting_status, json=test_data_factory.create_meeting_record(topic))

        return httpx.Response(404, text="unexpected upstream call")

    def hosts(self):
        return [request.url.host for request in self.calls]


class TestMeetingFlow:
    """End-to-end flows through the gateway."""

    @pytest.fixture
    def upstreams(self):
        return FakeUpstreams()

    @pytest.fixture
    def client(self, upstreams):
        """Create test client with outbound HTTP routed to the fakes."""
        app = create_app(MeetingsConfig(**test_environment.get_mock_config()))
        with patch('httpx.AsyncClient', new=mock_async_client_factory(upstreams)):
            yield TestClient(app)

    def test_create_meeting_flow(self, client, upstreams):
        """Test identity check, token exchange and meeting creation in order."""
        response = client.post(
            "/api/meetings",
            json={"topic": "Sprint review", "start_time": "2024-06-01T10:00:00Z"},
            headers={"Authorization": f"Bearer {VALID_TOKEN}"},
        )

        assert response.status_code == 200
        assert response.json()["topic"] == "Sprint review"
        assert upstreams.hosts() == ["dootask.test", "zoom.us", "api.zoom.us"]

        identity_call, token_call, meeting_call = upstreams.calls
        assert identity_call.url.path == "/api/user/info"

        expected_basic = base64.b64encode(b"test-client:test-client-secret").decode()
        assert token_call.headers["Authorization"] == f"Basic {expected_basic}"
        assert b"account_id=test-account" in token_call.content

        assert meeting_call.headers["Authorization"] == "Bearer zoom-access-token"
        sent = json.loads(meeting_call.content)
        assert sent["duration"] == 60
        assert sent["timezone"] == "Asia/Shanghai"
        assert sent["settings"]["mute_upon_entry"] is True

    def test_signature_flow(self, client, upstreams):
        response = client.post(
            "/api/signature",
            json={"meetingNumber": "85746065432", "role": 0},
            headers={"Token": VALID_TOKEN},
        )

        assert response.status_code == 200
        assert response.json()["signature"].count(".") == 2
        assert upstreams.hosts() == ["dootask.test"]

    def test_rejected_token_stops_flow(self, client, upstreams):
        """Test a rejected credential never reaches the meeting API."""
        response = client.post(
            "/api/meetings",
            json={"topic": "Sprint review"},
            headers={"Token": "stale-token"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"
        assert upstreams.hosts() == ["dootask.test"]

    def test_list_payload_fails_closed(self, client, upstreams):
        upstreams.identity_envelope = {"ret": 1, "msg": "ok", "data": [1, 2]}

        response = client.get("/api/config", params={"token": VALID_TOKEN})

        assert response.status_code == 401

    def test_meeting_api_rejection_is_opaque(self, client, upstreams):
        """Test meeting API errors become a 502 without upstream details."""
        upstreams.meeting_status = 400
        upstreams.meeting_body = '{"code":300,"message":"Invalid start_time"}'

        response = client.post(
            "/api/meetings",
            json={"topic": "Sprint review"},
            headers={"Token": VALID_TOKEN},
        )

        assert response.status_code == 502
        assert "Invalid start_time" not in response.text

    def test_metrics_reflect_flow(self, client):
        client.post("/api/signature", json={"meetingNumber": "1", "role": 0}, headers={"Token": VALID_TOKEN})
        client.get("/api/config", headers={"Token": "stale-token"})

        metrics = client.get("/metrics").text

        assert 'token_validations_total{outcome="ok"} 1.0' in metrics
        assert 'token_validations_total{outcome="upstream_rejected"} 1.0' in metrics
        assert "signatures_issued_total 1.0" in metrics
