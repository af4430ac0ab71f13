"""
Build status notification orchestration.

Resolves the repositories and commits a build belongs to, applies the key
policy (including continuation after an aborted build) and posts one status
per repository. Notification is best-effort: one bad remote never blocks the
others, and the build publisher never fails the build.
"""

import logging
from dataclasses import dataclass

import requests

from bbs_common.errors import (
    ConfigurationError,
    RepositoryIdentityError,
    StatusDeliveryError,
)
from bbs_common.models import Build, BuildResult, BuildStatus, Credentials, StatusResource

from .config import NotifierConfig
from .identity import (
    MAX_KEY_LENGTH,
    build_key,
    create_build_status_from_build,
    default_build_description,
    default_build_name,
    unique_build_key,
)
from .listener import TaskListener
from .scm import locate_commit_repo_map, parse_repo_identity
from .transport import send_build_status_notification

logger = logging.getLogger(__name__)


@dataclass
class NotificationResult:
    """Outcome of posting one status to one repository."""

    resource: StatusResource
    status: BuildStatus
    status_code: int | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def _aborted_previous_commits(
    build: Build, bitbucket_host: str, listener: TaskListener
) -> set[str]:
    """
    Commits built by the previous build, if that build was aborted.

    Best-effort: any failure is logged and treated as "no previous commits".
    """
    previous = build.previous_build
    if previous is None or previous.result != BuildResult.ABORTED:
        return set()

    try:
        return {
            commit_id
            for commit_id, _ in locate_commit_repo_map(previous, bitbucket_host, listener)
        }
    except Exception as e:
        logger.warning(
            f"Could not resolve commits of aborted build #{previous.number}: {e}",
            exc_info=True,
        )
        return set()


def notify_build_status(
    credentials: Credentials | None,
    bitbucket_host: str,
    override_latest_build: bool,
    build: Build,
    listener: TaskListener,
    build_status: BuildStatus | None = None,
    repo_slug: str | None = None,
    commit_id: str | None = None,
    session: requests.Session | None = None,
) -> list[NotificationResult]:
    """
    Post a build's status to every Bitbucket repository it was built from.

    Args:
        credentials: Credentials for basic authentication
        bitbucket_host: Base URL of the Bitbucket server
        override_latest_build: Share one status entry across all builds of the job
        build: Build to report
        listener: Build log for operator-facing output
        build_status: Explicit status to send (derived from the build otherwise)
        repo_slug: Repository slug replacing the derived one (needs commit_id)
        commit_id: Commit replacing the derived one (needs repo_slug)
        session: Optional HTTP session shared by all requests of this call

    Returns:
        One NotificationResult per repository a request was attempted for

    Raises:
        UnsupportedSourceControl: If the build has no supported source control
        CredentialsMissing: If no credentials were resolved
    """
    if build_status is None:
        build_status = create_build_status_from_build(build, override_latest_build)

    commit_repo_map = locate_commit_repo_map(build, bitbucket_host, listener)

    previous_commits = _aborted_previous_commits(build, bitbucket_host, listener)
    previous_key = None
    if previous_commits:
        assert build.previous_build is not None
        previous_key = build_key(build.previous_build, override_latest_build)

    results: list[NotificationResult] = []
    for current_commit, repo_url in commit_repo_map:
        try:
            owner, slug = parse_repo_identity(repo_url)
        except RepositoryIdentityError as e:
            logger.info(f"Bitbucket build notifier: {e}")
            listener.println(f"Skipping {repo_url}: {e}")
            continue

        logger.info(f"Commit ID found: {current_commit}")
        logger.info(f"repoSlug found: {slug}")
        logger.info(f"userName found: {owner}")

        resource = StatusResource(bitbucket_host, owner, slug, current_commit)

        # Previous build was aborted on the same revision: reuse its key so the
        # stale status entry is replaced instead of left next to a new one.
        status = build_status
        if previous_key is not None and current_commit in previous_commits:
            logger.info(
                f"Continuing status of aborted build #{build.previous_build.number} "
                f"on commit {current_commit}"
            )
            status = build_status.with_key(previous_key)

        if repo_slug and commit_id:
            resource = StatusResource(bitbucket_host, owner, repo_slug, commit_id)

        results.append(_send(credentials, resource, status, listener, session))

    if not results:
        listener.println("No Bitbucket repository to notify for this build")

    return results


def _send(
    credentials: Credentials | None,
    resource: StatusResource,
    status: BuildStatus,
    listener: TaskListener,
    session: requests.Session | None,
) -> NotificationResult:
    try:
        response = send_build_status_notification(
            credentials, resource, status, listener, session=session
        )
    except StatusDeliveryError as e:
        logger.warning(f"Build status delivery failed: {e}")
        if e.body:
            logger.warning(f"Response body: {e.body}")
        listener.println(
            f"Failed to send build status to {resource.owner}/{resource.repo_slug}: {e}"
        )
        return NotificationResult(resource, status, e.status_code, str(e))

    return NotificationResult(resource, status, response.status_code)


class BuildStatusNotifier:
    """
    Build publisher reporting "in progress" before and the result after a build.

    Notification failures are written to the build log and never change the
    build's own outcome: prebuild() and perform() always return True.
    """

    def __init__(self, config: NotifierConfig, credentials: Credentials | None):
        self.config = config
        self.credentials = credentials

    def prebuild(self, build: Build, listener: TaskListener) -> bool:
        if not self.config.notify_start:
            return True
        logger.info("Bitbucket notify on start")
        self._notify(build, listener, "start")
        return True

    def perform(self, build: Build, listener: TaskListener) -> bool:
        if not self.config.notify_finish:
            return True
        logger.info("Bitbucket notify on finish")
        self._notify(build, listener, "finish")
        return True

    def _notify(self, build: Build, listener: TaskListener, phase: str) -> None:
        try:
            results = notify_build_status(
                self.credentials,
                self.config.bitbucket_host,
                self.config.override_latest_build,
                build,
                listener,
            )
        except Exception as e:
            logger.info(f"Bitbucket notify on {phase} failed: {e}", exc_info=True)
            listener.println(f"Bitbucket notify on {phase} failed: {e}")
            listener.print_exception(e)
            return

        failed = [r for r in results if not r.success]
        if failed:
            logger.info(
                f"Bitbucket notify on {phase}: {len(failed)} of {len(results)} failed"
            )
        else:
            logger.info(f"Bitbucket notify on {phase} succeeded")


@dataclass
class BuildStatusNotifierStep:
    """
    Explicit scripted notification step ("bitbucketStatusNotify").

    Only build_state is required. Unset fields default to the unique-mode
    key, the per-build name and the test description of the build.
    """

    build_state: str
    credentials_id: str | None = None
    build_key: str | None = None
    build_name: str | None = None
    build_description: str | None = None
    repo_slug: str | None = None
    commit_id: str | None = None

    VALID_STATES = (BuildStatus.INPROGRESS, BuildStatus.SUCCESSFUL, BuildStatus.FAILED)

    def create_build_status(self, build: Build) -> BuildStatus:
        """
        Compose the status to send for this step.

        Raises:
            ConfigurationError: If the state is unknown or the key is too long
        """
        state = self.build_state.upper()
        if state not in self.VALID_STATES:
            raise ConfigurationError(
                f"Unknown build state {self.build_state!r}, "
                f"expected one of {', '.join(self.VALID_STATES)}"
            )

        key = self.build_key if self.build_key is not None else unique_build_key(build)
        if len(key) > MAX_KEY_LENGTH:
            raise ConfigurationError(
                f"Build key must be at most {MAX_KEY_LENGTH} characters: {key}"
            )

        logger.info(f"Got commit id {self.commit_id}")
        logger.info(f"Got repo slug = {self.repo_slug}")

        return BuildStatus(
            state=state,
            key=key,
            url=build.url,
            name=self.build_name
            if self.build_name is not None
            else default_build_name(build),
            description=self.build_description
            if self.build_description is not None
            else default_build_description(build),
        )

    def run(
        self,
        build: Build,
        bitbucket_host: str,
        credentials: Credentials | None,
        listener: TaskListener,
    ) -> list[NotificationResult]:
        """
        Send the step's status for a build.

        Raises:
            BuildStatusError: On any failure, including a repository that
                could not be notified (after all were attempted)
        """
        results = notify_build_status(
            credentials,
            bitbucket_host,
            True,
            build,
            listener,
            build_status=self.create_build_status(build),
            repo_slug=self.repo_slug,
            commit_id=self.commit_id,
        )

        failed = [r for r in results if not r.success]
        if failed:
            raise StatusDeliveryError(
                f"{len(failed)} of {len(results)} build status notifications failed",
                status_code=failed[0].status_code,
            )
        return results
