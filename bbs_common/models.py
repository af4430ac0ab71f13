"""
Data models for build status notification.

These models represent the domain objects used throughout the notifier,
independent of the job engine that produces builds and the server that
receives statuses.
"""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar


class BuildResult(str, Enum):
    """Terminal result of a build. A running build has no result (None)."""

    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"
    NOT_BUILT = "NOT_BUILT"
    ABORTED = "ABORTED"


@dataclass(frozen=True)
class BuildStatus:
    """
    Snapshot of one build's outcome as sent to the build-status API.

    The key identifies the status entry on the server side. Posting the same
    key again for the same commit replaces the entry instead of adding one.
    """

    INPROGRESS: ClassVar[str] = "INPROGRESS"
    SUCCESSFUL: ClassVar[str] = "SUCCESSFUL"
    FAILED: ClassVar[str] = "FAILED"

    state: str | None  # None means "no status", omitted from the payload
    key: str  # At most 40 characters (server constraint)
    url: str
    name: str
    description: str = ""

    def with_key(self, key: str) -> "BuildStatus":
        """Return a copy of this status carrying a different key."""
        return replace(self, key=key)

    def to_dict(self) -> dict[str, Any]:
        """Convert status to the JSON payload expected by the server."""
        result: dict[str, Any] = {}
        if self.state is not None:
            result["state"] = self.state
        result["key"] = self.key
        result["url"] = self.url
        result["name"] = self.name
        result["description"] = self.description
        return result


@dataclass(frozen=True)
class StatusResource:
    """
    Identifies one remote endpoint to notify: (host, owner, repo slug, commit).
    """

    host: str
    owner: str
    repo_slug: str
    commit_id: str

    def generate_url(self, verb: str) -> str:
        """
        Build the REST endpoint for the given HTTP verb.

        Raises:
            ValueError: If the verb is not supported by the build-status API
        """
        if verb == "POST":
            return f"{self.host.rstrip('/')}/rest/build-status/1.0/commits/{self.commit_id}"
        raise ValueError(f"Verb {verb} not allowed or implemented")


@dataclass
class Credentials:
    """
    Username/secret pair used for HTTP basic authentication.

    Credentials are owned by the credential store; callers only borrow them
    for the duration of one request.
    """

    id: str
    username: str
    secret: str = field(repr=False)
    description: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert credentials to dictionary format (secret excluded)."""
        return {
            "id": self.id,
            "username": self.username,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class ScmSource:
    """
    Source-control binding of a job as reported by the metadata provider.

    All remotes of one source share the commit that was checked out.
    """

    type: str  # "git", "hg", ...
    remote_urls: tuple[str, ...] = ()
    commit_id: str | None = None


@dataclass(frozen=True)
class JobDefinition:
    """
    How a job obtains its sources.

    Freestyle jobs have a single `scm`. Pipeline jobs may have a branch
    binding (multibranch projects) and/or a "pipeline script from SCM"
    definition.
    """

    kind: str = "freestyle"  # "freestyle" or "pipeline"
    scm: ScmSource | None = None
    branch_scm: ScmSource | None = None
    script_scm: ScmSource | None = None


@dataclass(frozen=True)
class TestSummary:
    """Aggregated test results attached to a build."""

    __test__ = False  # keep pytest from collecting this class

    total: int
    failed: int

    @property
    def passed(self) -> int:
        return self.total - self.failed


@dataclass
class Build:
    """
    A single run of a job, as supplied by the job-execution engine.
    """

    job_full_name: str
    number: int
    url: str = ""
    result: BuildResult | None = None  # None while the build is running
    environment: dict[str, str] = field(default_factory=dict)
    job: JobDefinition = field(default_factory=JobDefinition)
    test_summary: TestSummary | None = None
    previous_build: "Build | None" = None
