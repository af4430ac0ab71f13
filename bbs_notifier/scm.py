"""
Commit location and repository identity extraction.

Resolves a build's source-control bindings to the commits that were built
and the Bitbucket repositories they came from.
"""

import logging
import re
from abc import ABC, abstractmethod
from string import Template
from urllib.parse import urlsplit, urlunsplit

from bbs_common.errors import RepositoryIdentityError, UnsupportedSourceControl
from bbs_common.models import Build, ScmSource

from .host_validator import HostValidator
from .listener import TaskListener

logger = logging.getLogger(__name__)

# Ordered (commit id, repository URL) pairs. Two remotes may share a commit.
CommitRepoMap = list[tuple[str, str]]

# scp-like git syntax: [user@]host:path
_SCP_URL = re.compile(r"^(?:(?P<user>[^@/]+)@)?(?P<host>[^:/]+):(?!//)(?P<path>.*)$")


def split_remote_url(url: str) -> tuple[str | None, str]:
    """
    Split a remote URL into (host, path).

    Handles both scheme URLs (https://host/owner/repo.git) and the
    scp-like form git uses for ssh (git@host:owner/repo.git).
    """
    if "://" not in url:
        match = _SCP_URL.match(url)
        if match:
            return match.group("host"), match.group("path")
        return None, url

    parts = urlsplit(url)
    return parts.hostname, parts.path


def _replace_path(url: str, path: str) -> str:
    if "://" not in url:
        match = _SCP_URL.match(url)
        if match:
            return url[: match.start("path")] + path
        return path

    return urlunsplit(urlsplit(url)._replace(path=path))


def parse_repo_identity(url: str) -> tuple[str, str]:
    """
    Extract (owner, repository slug) from a repository URL.

    The slug is the last path segment without a trailing ".git"; the owner
    is the segment directly left of it. For nested paths such as
    /group/owner/repo only "owner" is kept.

    Raises:
        RepositoryIdentityError: If the slug or the owner is empty
    """
    _, path = split_remote_url(url)
    path = path.rstrip("/")

    head, _, slug = path.rpartition("/")
    slug = slug.removesuffix(".git")
    if not slug:
        raise RepositoryIdentityError(
            f"Could not extract the repository name from the repository URL: {url}"
        )

    owner = head.rpartition("/")[2]
    if not owner:
        raise RepositoryIdentityError(
            f"Could not extract the user name from the repository URL: {url} "
            f"with repository name: {slug}"
        )

    return owner, slug


class ScmAdapter(ABC):
    """
    Capability interface for one version-control system.

    Adapters turn a source binding into (commit id, repository URL) pairs.
    The locator depends only on this interface.
    """

    @abstractmethod
    def resolve_commit_repo_map(
        self, scm: ScmSource, environment: dict[str, str]
    ) -> CommitRepoMap:
        """
        Resolve the commits built from each remote of a source binding.

        Args:
            scm: Source binding of the job
            environment: Build environment used to expand URL placeholders

        Returns:
            One (commit id, repository URL) pair per remote
        """
        pass


class GitScmAdapter(ScmAdapter):
    """Adapter for git sources: every remote maps to the checked-out commit."""

    def resolve_commit_repo_map(
        self, scm: ScmSource, environment: dict[str, str]
    ) -> CommitRepoMap:
        if not scm.commit_id:
            logger.info("Commit ID could not be found!")
            return []

        commit_repo_map: CommitRepoMap = []
        for remote_url in scm.remote_urls:
            _, path = split_remote_url(remote_url)
            path = Template(path).safe_substitute(environment)
            if path.endswith("/"):
                path = path[:-1]
            commit_repo_map.append((scm.commit_id, _replace_path(remote_url, path)))

        return commit_repo_map


SCM_ADAPTERS: dict[str, type[ScmAdapter]] = {
    "git": GitScmAdapter,
}


def get_scm_adapter(scm: ScmSource | None) -> ScmAdapter:
    """
    Look up the adapter for a source binding.

    Raises:
        UnsupportedSourceControl: If there is no binding or its type is unknown
    """
    if scm is None:
        raise UnsupportedSourceControl("Bitbucket build notifier only works with SCM")

    adapter_class = SCM_ADAPTERS.get(scm.type)
    if adapter_class is None:
        raise UnsupportedSourceControl(
            "Bitbucket build notifier requires a git repo as SCM, "
            f"got: {scm.type}"
        )
    return adapter_class()


def _resolve_scm(
    scm: ScmSource | None,
    build: Build,
    bitbucket_host: str,
    listener: TaskListener,
    host_validator: HostValidator,
) -> CommitRepoMap:
    adapter = get_scm_adapter(scm)
    assert scm is not None  # get_scm_adapter rejects None

    resolved = adapter.resolve_commit_repo_map(scm, build.environment)
    if not resolved and scm.remote_urls:
        listener.println(
            "Commit ID could not be found, skipping "
            f"{', '.join(scm.remote_urls)}"
        )

    commit_repo_map: CommitRepoMap = []
    for commit_id, repo_url in resolved:
        repo_host, _ = split_remote_url(repo_url)
        if not host_validator.is_valid(repo_host, bitbucket_host):
            logger.info(f"Skipping {repo_url}: host is not {bitbucket_host}")
            listener.println(host_validator.render_error(bitbucket_host))
            continue

        commit_repo_map.append((commit_id, repo_url))

    return commit_repo_map


def locate_commit_repo_map(
    build: Build,
    bitbucket_host: str,
    listener: TaskListener,
    host_validator: HostValidator | None = None,
) -> CommitRepoMap:
    """
    Resolve the commits a build checked out, restricted to the Bitbucket host.

    Pipeline jobs collect sources from their branch binding and their
    "pipeline script from SCM" definition; a pipeline where neither yields
    a remote is reported to the build log and yields an empty map. Other
    jobs use their single SCM binding.

    Raises:
        UnsupportedSourceControl: If a binding is missing or of an unsupported type
    """
    host_validator = host_validator or HostValidator()
    job = build.job

    if job.kind == "pipeline":
        logger.info(f"Pipeline job: {build.job_full_name}")
        scms = [scm for scm in (job.branch_scm, job.script_scm) if scm is not None]
        if not any(scm.remote_urls for scm in scms):
            listener.error(f"Not supported project: {job.kind}")
            return []

        commit_repo_map: CommitRepoMap = []
        for scm in scms:
            logger.info(f"SCM type: {scm.type}, remotes: {list(scm.remote_urls)}")
            commit_repo_map.extend(
                _resolve_scm(scm, build, bitbucket_host, listener, host_validator)
            )
        return commit_repo_map

    logger.info(f"Freestyle job: {build.job_full_name}")
    return _resolve_scm(job.scm, build, bitbucket_host, listener, host_validator)
