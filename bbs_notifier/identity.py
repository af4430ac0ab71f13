"""
Key and name policy for build status entries.

The build-status API treats (commit, key) as the identity of a status entry.
Two addressing modes are supported:

- per-build: every build number gets its own entry on the commit
- unique ("override latest build"): all builds of a job share one entry,
  which each new build overwrites

Keys are md5 hex digests (32 characters) since the server rejects keys
longer than 40 characters.
"""

import hashlib

from bbs_common.models import Build, BuildResult, BuildStatus

MAX_KEY_LENGTH = 40


def hash_key(value: str) -> str:
    """Return the md5 hex digest of a string."""
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def default_build_key(build: Build) -> str:
    return hash_key(f"{build.job_full_name}#{build.number}")


def unique_build_key(build: Build) -> str:
    return hash_key(build.job_full_name)


def default_build_name(build: Build) -> str:
    return f"{build.job_full_name} #{build.number}"


def unique_build_name(build: Build) -> str:
    return build.job_full_name


def build_key(build: Build, override_latest_build: bool) -> str:
    """Key of the status entry for a build under the given addressing mode."""
    if override_latest_build:
        return unique_build_key(build)
    return default_build_key(build)


def build_name(build: Build, override_latest_build: bool) -> str:
    """Display name of the status entry for a build."""
    if override_latest_build:
        return unique_build_name(build)
    return default_build_name(build)


def default_build_description(build: Build) -> str:
    """
    Describe the build's test results, e.g. "41 of 42 tests passed".

    Returns an empty string for builds without test results.
    """
    if build.test_summary is None:
        return ""
    summary = build.test_summary
    return f"{summary.passed} of {summary.total} tests passed"


def guess_build_state(result: BuildResult | None) -> str | None:
    """
    Map a build result to a build-status state.

    Returns None for results with no matching state (NOT_BUILT), in which
    case the state is left out of the payload.
    """
    if result is None:
        return BuildStatus.INPROGRESS
    if result == BuildResult.SUCCESS:
        return BuildStatus.SUCCESSFUL
    if result in (BuildResult.UNSTABLE, BuildResult.FAILURE, BuildResult.ABORTED):
        return BuildStatus.FAILED
    return None


def create_build_status_from_build(
    build: Build, override_latest_build: bool
) -> BuildStatus:
    """Compose the full status of a build for the given addressing mode."""
    return BuildStatus(
        state=guess_build_state(build.result),
        key=build_key(build, override_latest_build),
        url=build.url,
        name=build_name(build, override_latest_build),
        description=default_build_description(build),
    )
