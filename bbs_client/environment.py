"""
Build metadata from the job engine's environment.

Jenkins-style engines export the build and git metadata as environment
variables (JOB_NAME, BUILD_NUMBER, BUILD_URL, GIT_COMMIT, GIT_URL, ...).
Explicit arguments take precedence over the environment.
"""

import re
from collections.abc import Mapping, Sequence

from bbs_common.errors import ConfigurationError
from bbs_common.models import Build, BuildResult, JobDefinition, ScmSource, TestSummary

_NUMBERED_GIT_URL = re.compile(r"^GIT_URL_(\d+)$")


def collect_remote_urls(env: Mapping[str, str]) -> tuple[str, ...]:
    """
    Collect remote URLs from GIT_URL_1..GIT_URL_n, falling back to GIT_URL.

    Git sets the numbered variables only when a job has several remotes.
    """
    numbered = sorted(
        (int(match.group(1)), value)
        for name, value in env.items()
        if (match := _NUMBERED_GIT_URL.match(name)) and value
    )
    if numbered:
        return tuple(url for _, url in numbered)
    if env.get("GIT_URL"):
        return (env["GIT_URL"],)
    return ()


def build_from_environment(
    env: Mapping[str, str],
    job_name: str | None = None,
    build_number: int | None = None,
    build_url: str | None = None,
    git_commit: str | None = None,
    git_urls: Sequence[str] = (),
    result: BuildResult | None = None,
    previous_result: BuildResult | None = None,
    git_previous_commit: str | None = None,
    tests_total: int | None = None,
    tests_failed: int | None = None,
) -> Build:
    """
    Describe the current build (and its predecessor) as a Build.

    Raises:
        ConfigurationError: If the job name or build number is unknown
    """
    job_name = job_name or env.get("JOB_NAME")
    if not job_name:
        raise ConfigurationError("Job name is unknown (set JOB_NAME or --job-name)")

    if build_number is None:
        try:
            build_number = int(env.get("BUILD_NUMBER", ""))
        except ValueError:
            raise ConfigurationError(
                "Build number is unknown (set BUILD_NUMBER or --build-number)"
            ) from None

    remote_urls = tuple(git_urls) or collect_remote_urls(env)
    commit_id = git_commit or env.get("GIT_COMMIT")
    scm = None
    if remote_urls:
        scm = ScmSource(type="git", remote_urls=remote_urls, commit_id=commit_id)

    test_summary = None
    if tests_total is not None:
        test_summary = TestSummary(total=tests_total, failed=tests_failed or 0)

    previous_build = None
    if previous_result is not None and build_number > 1:
        previous_commit = git_previous_commit or env.get("GIT_PREVIOUS_COMMIT")
        previous_scm = (
            ScmSource(type="git", remote_urls=remote_urls, commit_id=previous_commit)
            if remote_urls
            else None
        )
        previous_build = Build(
            job_full_name=job_name,
            number=build_number - 1,
            result=previous_result,
            environment=dict(env),
            job=JobDefinition(scm=previous_scm),
        )

    return Build(
        job_full_name=job_name,
        number=build_number,
        url=build_url or env.get("BUILD_URL", ""),
        result=result,
        environment=dict(env),
        job=JobDefinition(scm=scm),
        test_summary=test_summary,
        previous_build=previous_build,
    )
