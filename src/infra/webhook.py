"""
Webhook notification service for job completion callbacks.

Sends exactly one HTTP POST per completed run. The result is returned as an
outcome string that is stored on the job:

- "Success: <status-code>" when any HTTP response was received
- "Error: <reason>" when no response was received (timeout, connection
  failure, invalid URL, ...)

Nothing is raised past this module and nothing is retried.
"""

import logging

import httpx

from src import __version__
from src.jobs.entities import CompletionNotification

logger = logging.getLogger(__name__)

# Webhook configuration
WEBHOOK_TIMEOUT_SECONDS = 10.0
USER_AGENT = f"JobHook/{__version__}"

SUCCESS_PREFIX = "Success"
ERROR_PREFIX = "Error"


def format_success(status_code: int) -> str:
    return f"{SUCCESS_PREFIX}: {status_code}"


def format_error(reason: str) -> str:
    return f"{ERROR_PREFIX}: {reason}"


def build_webhook_headers(notification: CompletionNotification) -> dict:
    """Headers sent with every completion webhook."""
    return {
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
        "X-Job-ID": notification.job_id,
        "X-Job-Event": "completed",
    }


def send_webhook(
    url: str,
    notification: CompletionNotification,
    timeout: float = WEBHOOK_TIMEOUT_SECONDS,
) -> str:
    """
    POST a completion notification once and describe the outcome.

    Args:
        url: Webhook URL to POST to
        notification: Completion notification to send as JSON body
        timeout: Request timeout in seconds

    Returns:
        Outcome string ("Success: <code>" or "Error: <reason>")
    """
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.post(
                url,
                content=notification.to_json().encode("utf-8"),
                headers=build_webhook_headers(notification),
            )

        if 200 <= response.status_code < 300:
            logger.info(
                f"Webhook sent successfully for job {notification.job_id} "
                f"(status={response.status_code})"
            )
        else:
            logger.warning(
                f"Webhook for job {notification.job_id} answered with "
                f"HTTP {response.status_code}: {response.text[:200]}"
            )
        return format_success(response.status_code)

    except httpx.TimeoutException:
        logger.warning(f"Webhook timeout for job {notification.job_id} after {timeout}s")
        return format_error(f"Timeout after {timeout}s")

    except httpx.RequestError as e:
        logger.warning(f"Webhook request error for job {notification.job_id}: {e}")
        return format_error(f"Request error: {e}")

    except Exception as e:
        logger.error(f"Webhook unexpected error for job {notification.job_id}: {e}")
        return format_error(f"Unexpected error: {e}")


class WebhookNotifier:
    """
    Delivers completion notifications to one configured endpoint.

    Injected into the execution engine; tests substitute a recording fake
    with the same ``deliver`` method.
    """

    def __init__(self, url: str, timeout: float = WEBHOOK_TIMEOUT_SECONDS):
        self.url = url
        self.timeout = timeout

    def deliver(self, notification: CompletionNotification) -> str:
        """Send one notification and return its outcome string."""
        logger.info(f"Sending webhook for job {notification.job_id} (url={self.url})")
        return send_webhook(self.url, notification, timeout=self.timeout)
