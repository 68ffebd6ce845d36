"""
Infrastructure module - configuration, logging, and webhook delivery.
"""

from .config import (
    Settings,
    get_project_root,
    load_settings,
)

from .logging_config import setup_logging

from .webhook import (
    WebhookNotifier,
    send_webhook,
    build_webhook_headers,
)

__all__ = [
    # config
    "Settings",
    "get_project_root",
    "load_settings",
    # logging
    "setup_logging",
    # webhook
    "WebhookNotifier",
    "send_webhook",
    "build_webhook_headers",
]
