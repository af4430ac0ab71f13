"""
BBS Notifier module.

This module contains the status-resolution and notification core: commit
location, repository identity extraction, the key policy, orchestration and
the HTTP transport to the Bitbucket build-status API.
"""

from .config import NotifierConfig
from .listener import TaskListener
from .notifier import (
    BuildStatusNotifier,
    BuildStatusNotifierStep,
    NotificationResult,
    notify_build_status,
)

__all__ = [
    "BuildStatusNotifier",
    "BuildStatusNotifierStep",
    "NotificationResult",
    "NotifierConfig",
    "TaskListener",
    "notify_build_status",
]
