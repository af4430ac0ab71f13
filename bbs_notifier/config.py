"""
Notifier configuration.

Configuration is passed to the notifier as an explicit parameter bundle.
Global values are looked up in priority order:

1. Command line option
2. Environment variable (BBS_HOST, BBS_CREDENTIALS_ID)
3. Setting persisted in the credential store (managed with `bbs-admin config`)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from bbs_common.repository import CredentialRepository

from .host_validator import validate_bitbucket_host

logger = logging.getLogger(__name__)

SETTING_BITBUCKET_HOST = "bitbucket_host"
SETTING_GLOBAL_CREDENTIALS_ID = "global_credentials_id"

KNOWN_SETTINGS = (SETTING_BITBUCKET_HOST, SETTING_GLOBAL_CREDENTIALS_ID)


@dataclass
class NotifierConfig:
    """Global defaults plus the per-job notifier options."""

    bitbucket_host: str
    global_credentials_id: str | None = None
    credentials_id: str | None = None  # Job-scoped, takes precedence over global
    notify_start: bool = True
    notify_finish: bool = True
    override_latest_build: bool = False


def get_db_path() -> str:
    """
    Get the credential database path from environment or use default.

    Environment variables:
    - BBS_DB_PATH: Custom database path (useful for testing)
    """
    return os.environ.get("BBS_DB_PATH", str(Path.home() / ".bbs" / "notifier.db"))


async def load_config(
    repository: CredentialRepository,
    bitbucket_host: str | None = None,
    global_credentials_id: str | None = None,
    credentials_id: str | None = None,
    notify_start: bool = True,
    notify_finish: bool = True,
    override_latest_build: bool = False,
) -> NotifierConfig:
    """
    Build the notifier configuration from options, environment and store.

    Raises:
        ConfigurationError: If no valid Bitbucket host is configured
    """
    host = (
        bitbucket_host
        or os.environ.get("BBS_HOST")
        or await repository.get_setting(SETTING_BITBUCKET_HOST)
    )
    global_id = (
        global_credentials_id
        or os.environ.get("BBS_CREDENTIALS_ID")
        or await repository.get_setting(SETTING_GLOBAL_CREDENTIALS_ID)
    )

    config = NotifierConfig(
        bitbucket_host=validate_bitbucket_host(host),
        global_credentials_id=global_id,
        credentials_id=credentials_id,
        notify_start=notify_start,
        notify_finish=notify_finish,
        override_latest_build=override_latest_build,
    )
    logger.debug(f"Loaded notifier configuration: {config}")
    return config
