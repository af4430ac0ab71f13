"""
HTTP transport for the Bitbucket build-status API.

One POST per status resource, basic authentication through a requests auth
object, bounded connect/read timeouts and no internal retry. Retrying is
left to the job engine re-running the notification step.
"""

import json
import logging

import requests
from requests.auth import HTTPBasicAuth

from bbs_common.errors import CredentialsMissing, StatusDeliveryError
from bbs_common.models import BuildStatus, Credentials, StatusResource

from .listener import TaskListener

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 30
READ_TIMEOUT = 60

CONTENT_TYPE = "application/json; charset=utf-8"


def _log_response(response: requests.Response, *args, **kwargs) -> None:
    """Response hook logging the outgoing request and what came back."""
    request = response.request
    body = request.body.decode("utf-8") if isinstance(request.body, bytes) else request.body
    logger.info(f"REQUEST INFO: {request.method} {request.url}")
    logger.info(f"REQUEST BODY: {body}")
    logger.info(f"This response was received STATUS: {response.status_code}")
    logger.info(f"This response was received message: {response.reason}")
    logger.info(f"This response was received: {response.text}")


def create_session() -> requests.Session:
    """Create a session that logs every exchange with the server."""
    session = requests.Session()
    session.hooks["response"].append(_log_response)
    return session


def serialize_build_status(status: BuildStatus) -> str:
    """Serialize a status to the JSON body sent to the server."""
    return json.dumps(status.to_dict(), indent=2)


def send_build_status_notification(
    credentials: Credentials | None,
    resource: StatusResource,
    status: BuildStatus,
    listener: TaskListener,
    session: requests.Session | None = None,
) -> requests.Response:
    """
    Post a build status for one commit.

    Args:
        credentials: Username/secret for basic authentication
        resource: Endpoint to post to
        status: Status to send
        listener: Build log for operator-facing output
        session: Optional session to reuse (a new one is created otherwise)

    Returns:
        The server's response (2xx)

    Raises:
        CredentialsMissing: If no credentials were resolved (no request is made)
        StatusDeliveryError: On connection errors, timeouts or non-2xx responses
    """
    if credentials is None:
        raise CredentialsMissing("Credentials could not be found!")

    url = resource.generate_url("POST")
    owns_session = session is None
    if session is None:
        session = create_session()

    body = serialize_build_status(status)
    logger.info(f"This request for url: {url}")
    logger.info(f"This request body: {body}")

    # Auth object rather than a session header: it signs each prepared request.
    try:
        response = session.post(
            url,
            data=body.encode("utf-8"),
            headers={"Content-Type": CONTENT_TYPE},
            auth=HTTPBasicAuth(credentials.username, credentials.secret),
            timeout=(CONNECT_TIMEOUT, READ_TIMEOUT),
        )
    except requests.exceptions.RequestException as e:
        raise StatusDeliveryError(
            f"Error sending build status for commit {resource.commit_id}: {e}"
        ) from e
    finally:
        if owns_session:
            session.close()

    listener.println(
        f"Sending build status {status.state} for commit {resource.commit_id} "
        "to BitBucket is done!"
    )
    listener.println(f"Sent build status with http status code: {response.status_code}")

    try:
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        raise StatusDeliveryError(
            f"Bitbucket rejected build status for commit {resource.commit_id}: {e}",
            status_code=response.status_code,
            body=response.text,
        ) from e

    return response
