"""Tests for milestone push decisions and the LINE push client"""
import json

import httpx
import pytest

from docrequest.services.notification_service import NotificationService, build_progress_message
from docrequest.services.push_client import LinePushClient

from tests.helpers import audit_actions, audit_records


def _row(progress, last_notified=0, owner="U1"):
    return {
        "owner_id": owner,
        "request_id": f"req_{owner}",
        "progress_percent": progress,
        "last_notified_progress": last_notified,
    }


@pytest.fixture
def make_service(make_container, push_client):
    def _make(**overrides):
        container = make_container(**overrides)
        container.schema.ensure_ready()
        return NotificationService(push_client, container.audit, container.settings), container
    return _make


class TestMaybeNotify:
    def test_disabled(self, make_service, push_client):
        service, container = make_service(line_push_enabled=False)
        result = service.maybe_notify(_row(50))
        assert result.should_advance is False
        assert push_client.sent == []
        assert audit_actions(container) == ["line_push_skipped_disabled"]

    def test_no_increase(self, make_service):
        service, container = make_service(line_push_enabled=True)
        assert service.maybe_notify(_row(50, last_notified=50)).should_advance is False
        assert service.maybe_notify(_row(25, last_notified=50)).should_advance is False
        assert audit_actions(container) == ["line_push_skipped_no_increase"] * 2

    def test_dry_run_advances_without_sending(self, make_service, push_client):
        service, container = make_service(line_push_enabled=True, line_push_dry_run=True)
        result = service.maybe_notify(_row(75, last_notified=25))
        assert (result.should_advance, result.new_milestone) == (True, 75)
        assert push_client.sent == []
        assert audit_actions(container) == ["line_push_dry_run"]

    def test_sends_when_live(self, make_service, push_client):
        service, container = make_service(
            line_push_enabled=True,
            line_push_dry_run=False,
            line_channel_access_token="channel-token",
            liff_app_base_url="https://liff.line.me/123-abc",
        )
        result = service.maybe_notify(_row(100, last_notified=75))

        assert (result.should_advance, result.new_milestone) == (True, 100)
        assert len(push_client.sent) == 1
        sent = push_client.sent[0]
        assert sent["to"] == "U1"
        assert sent["access_token"] == "channel-token"
        assert sent["messages"][0]["type"] == "text"
        assert "https://liff.line.me/123-abc" in sent["messages"][0]["text"]
        assert audit_actions(container) == ["line_push_sent"]

    def test_missing_token_fails_without_advancing(self, make_service, push_client):
        service, container = make_service(line_push_enabled=True, line_push_dry_run=False)
        result = service.maybe_notify(_row(50))
        assert result.should_advance is False
        assert push_client.sent == []
        assert audit_actions(container) == ["line_push_failed"]

    def test_push_failure_is_audited_with_truncated_body(self, make_service, push_client):
        push_client.ok = False
        push_client.status_code = 400
        push_client.body = "e" * 800
        service, container = make_service(
            line_push_enabled=True, line_push_dry_run=False, line_channel_access_token="channel-token"
        )

        assert service.maybe_notify(_row(50)).should_advance is False
        extra = audit_records(container, "line_push_failed")[0]["meta"]["extra"]
        assert extra["status_code"] == 400
        assert extra["response_body"].endswith("...(truncated)")

    def test_message_text_per_milestone(self):
        assert build_progress_message(25) != build_progress_message(50)
        assert build_progress_message(33) == build_progress_message(66)
        assert build_progress_message(100, "https://x").endswith("https://x")


class TestLinePushClient:
    def test_posts_to_push_endpoint(self, settings):
        captured = {}

        def handler(request):
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={})

        client = LinePushClient(settings, client=httpx.Client(transport=httpx.MockTransport(handler)))
        result = client.push("U1", [{"type": "text", "text": "hi"}], "channel-token")

        assert result.ok is True
        assert captured["auth"] == "Bearer channel-token"
        assert captured["body"] == {"to": "U1", "messages": [{"type": "text", "text": "hi"}]}

    def test_error_status_is_reported_not_raised(self, settings):
        client = LinePushClient(
            settings,
            client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(429, text="slow"))),
        )
        result = client.push("U1", [], "channel-token")
        assert (result.ok, result.status_code, result.body) == (False, 429, "slow")

    def test_transport_failure_is_reported_not_raised(self, settings):
        def handler(request):
            raise httpx.ConnectTimeout("timeout", request=request)

        client = LinePushClient(settings, client=httpx.Client(transport=httpx.MockTransport(handler)))
        result = client.push("U1", [], "channel-token")
        assert result.ok is False
        assert result.error == "ConnectTimeout"
