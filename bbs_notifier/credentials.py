"""Credential lookup with job-level to global fallback."""

import logging

from bbs_common.models import Credentials
from bbs_common.repository import CredentialRepository

logger = logging.getLogger(__name__)


async def resolve_credentials(
    repository: CredentialRepository,
    job_credentials_id: str | None,
    global_credentials_id: str | None,
) -> Credentials | None:
    """
    Resolve the credentials to authenticate with.

    Priority (highest to lowest):
    1. Credentials configured on the job (or passed to the step)
    2. Globally configured default credentials

    Args:
        repository: Credential store to look identifiers up in
        job_credentials_id: Job-scoped credentials identifier
        global_credentials_id: Global default credentials identifier

    Returns:
        Credentials if either identifier resolves, None otherwise
    """
    for credentials_id in (job_credentials_id, global_credentials_id):
        if not credentials_id:
            continue
        credentials = await repository.get_credentials(credentials_id)
        if credentials is not None:
            return credentials
        logger.warning(f"Credentials not found: {credentials_id}")

    return None
