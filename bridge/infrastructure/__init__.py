"""
Infrastructure layer - External dependencies and implementations.

Contains:
- Job queue (Redis)
- Report client (booking backend)
- Configuration
"""

from .redis_job_queue import RedisJobQueue
from .report_client import ReportClient
from .settings import (
    Settings,
    get_settings,
    load_settings,
    normalize_port_path,
)


__all__ = [
    # Queue / backend
    "RedisJobQueue",
    "ReportClient",
    # Settings
    "Settings",
    "get_settings",
    "load_settings",
    "normalize_port_path",
]
