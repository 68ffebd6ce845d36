"""Tests for webhook notification service."""

import json

import pytest
from unittest.mock import patch, MagicMock
import httpx

from src.infra.webhook import (
    USER_AGENT,
    WEBHOOK_TIMEOUT_SECONDS,
    WebhookNotifier,
    build_webhook_headers,
    send_webhook,
)
from src.jobs.entities import CompletionNotification, JobPriority


@pytest.fixture
def sample_notification():
    """Create a sample completion notification for testing."""
    return CompletionNotification(
        job_id="test-job-123",
        task_name="Send Report",
        priority=JobPriority.HIGH,
        payload='{"key":"value"}',
        completed_at="2026-01-01T10:00:03.000Z",
    )


def _mock_client(mock_client_class, response=None, side_effect=None):
    mock_client = MagicMock()
    if side_effect is not None:
        mock_client.post.side_effect = side_effect
    else:
        mock_client.post.return_value = response
    mock_client.__enter__.return_value = mock_client
    mock_client.__exit__.return_value = None
    mock_client_class.return_value = mock_client
    return mock_client


def _response(status_code: int, text: str = "OK"):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


class TestNotificationBody:
    """Tests for the webhook body and headers."""

    def test_body_fields(self, sample_notification):
        """Test body uses camelCase keys and embeds the payload as JSON."""
        assert json.loads(sample_notification.to_json()) == {
            "jobId": "test-job-123",
            "taskName": "Send Report",
            "priority": "High",
            "payload": {"key": "value"},
            "completedAt": "2026-01-01T10:00:03.000Z",
        }

    def test_payload_text_embedded_verbatim(self, sample_notification):
        """Test numbers outside float range reach the receiver as sent."""
        sample_notification.payload = '{"big":1e400,"name":"café"}'

        body = sample_notification.to_json()

        assert '"payload":{"big":1e400,"name":"café"}' in body
        assert body.startswith('{"jobId":"test-job-123","taskName":"Send Report"')

    def test_headers(self, sample_notification):
        headers = build_webhook_headers(sample_notification)

        assert headers["Content-Type"] == "application/json"
        assert headers["User-Agent"] == USER_AGENT
        assert headers["X-Job-ID"] == "test-job-123"
        assert headers["X-Job-Event"] == "completed"


class TestSendWebhook:
    """Tests for send_webhook function."""

    def test_successful_send(self, sample_notification):
        """Test 2xx response is recorded as success."""
        with patch("src.infra.webhook.httpx.Client") as mock_client_class:
            mock_client = _mock_client(mock_client_class, response=_response(200))

            outcome = send_webhook("https://example.com/webhook", sample_notification, timeout=5)

        assert outcome == "Success: 200"
        mock_client_class.assert_called_once_with(timeout=5)
        mock_client.post.assert_called_once()
        args, kwargs = mock_client.post.call_args
        assert args[0] == "https://example.com/webhook"
        assert kwargs["content"] == sample_notification.to_json().encode("utf-8")
        assert kwargs["headers"]["X-Job-ID"] == "test-job-123"

    @pytest.mark.parametrize("status_code", [201, 404, 500, 503])
    def test_any_response_is_success_with_its_code(self, sample_notification, status_code):
        """Test non-2xx responses still count as a received response."""
        with patch("src.infra.webhook.httpx.Client") as mock_client_class:
            _mock_client(mock_client_class, response=_response(status_code, "Error"))

            outcome = send_webhook("https://example.com/webhook", sample_notification)

        assert outcome == f"Success: {status_code}"

    def test_timeout_error(self, sample_notification):
        """Test handling timeout error."""
        with patch("src.infra.webhook.httpx.Client") as mock_client_class:
            _mock_client(mock_client_class, side_effect=httpx.TimeoutException("timeout"))

            outcome = send_webhook("https://example.com/webhook", sample_notification, timeout=10.0)

        assert outcome == "Error: Timeout after 10.0s"

    def test_request_error(self, sample_notification):
        """Test handling connection failure."""
        with patch("src.infra.webhook.httpx.Client") as mock_client_class:
            _mock_client(mock_client_class, side_effect=httpx.ConnectError("Connection refused"))

            outcome = send_webhook("https://example.com/webhook", sample_notification)

        assert outcome == "Error: Request error: Connection refused"

    def test_unexpected_error(self, sample_notification):
        """Test handling unexpected error."""
        with patch("src.infra.webhook.httpx.Client") as mock_client_class:
            _mock_client(mock_client_class, side_effect=RuntimeError("Unexpected"))

            outcome = send_webhook("https://example.com/webhook", sample_notification)

        assert outcome == "Error: Unexpected error: Unexpected"

    def test_sends_exactly_once_on_failure(self, sample_notification):
        """Test no retry after a failed delivery."""
        with patch("src.infra.webhook.httpx.Client") as mock_client_class:
            mock_client = _mock_client(
                mock_client_class, side_effect=httpx.ConnectError("Connection refused")
            )

            send_webhook("https://example.com/webhook", sample_notification)

        assert mock_client.post.call_count == 1

    def test_url_without_scheme(self, sample_notification):
        """Test an unusable URL is an error outcome, not an exception."""
        outcome = send_webhook("not-a-url", sample_notification, timeout=1)

        assert outcome.startswith("Error: ")


class TestWebhookNotifier:
    """Tests for WebhookNotifier class."""

    def test_defaults(self):
        notifier = WebhookNotifier("https://example.com/webhook")

        assert notifier.url == "https://example.com/webhook"
        assert notifier.timeout == WEBHOOK_TIMEOUT_SECONDS

    def test_deliver_uses_configured_url_and_timeout(self, sample_notification):
        notifier = WebhookNotifier("https://example.com/hook", timeout=2.5)

        with patch("src.infra.webhook.send_webhook", return_value="Success: 204") as mock_send:
            outcome = notifier.deliver(sample_notification)

        assert outcome == "Success: 204"
        mock_send.assert_called_once_with(
            "https://example.com/hook", sample_notification, timeout=2.5
        )
