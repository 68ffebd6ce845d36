"""
API Routers package.
"""

from . import jobs, webhook_test

__all__ = ["jobs", "webhook_test"]
