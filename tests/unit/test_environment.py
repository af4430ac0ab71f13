"""
Unit tests for bbs_client.environment.

Tests how build metadata is read from a Jenkins-style environment.
"""

import pytest

from bbs_common.errors import ConfigurationError
from bbs_common.models import BuildResult, ScmSource
from bbs_client.environment import build_from_environment, collect_remote_urls

SHA = "3f786850e387550fdab836ed7e6dc881de23001b"

ENV = {
    "JOB_NAME": "acme/widgets",
    "BUILD_NUMBER": "7",
    "BUILD_URL": "https://ci.example.com/job/acme/job/widgets/7/",
    "GIT_COMMIT": SHA,
    "GIT_URL": "https://bitbucket.example.com/scm/acme/widgets.git",
}


class TestCollectRemoteUrls:
    """Test suite for collect_remote_urls function."""

    def test_single_remote(self):
        assert collect_remote_urls(ENV) == (ENV["GIT_URL"],)

    def test_numbered_remotes_sorted_numerically(self):
        env = {
            "GIT_URL": "ignored",
            "GIT_URL_10": "ten",
            "GIT_URL_2": "two",
            "GIT_URL_1": "one",
        }
        assert collect_remote_urls(env) == ("one", "two", "ten")

    def test_empty_values_are_ignored(self):
        assert collect_remote_urls({"GIT_URL_1": "", "GIT_URL": ""}) == ()

    def test_no_remote(self):
        assert collect_remote_urls({}) == ()


class TestBuildFromEnvironment:
    """Test suite for build_from_environment function."""

    def test_reads_environment(self):
        build = build_from_environment(ENV)

        assert build.job_full_name == "acme/widgets"
        assert build.number == 7
        assert build.url == ENV["BUILD_URL"]
        assert build.result is None
        assert build.environment == ENV
        assert build.job.kind == "freestyle"
        assert build.job.scm == ScmSource(
            type="git", remote_urls=(ENV["GIT_URL"],), commit_id=SHA
        )
        assert build.test_summary is None
        assert build.previous_build is None

    def test_arguments_take_precedence(self):
        build = build_from_environment(
            ENV,
            job_name="other",
            build_number=9,
            build_url="https://ci.example.com/other/9/",
            git_commit="feedface",
            git_urls=["https://bitbucket.example.com/acme/other.git"],
            result=BuildResult.FAILURE,
        )

        assert (build.job_full_name, build.number) == ("other", 9)
        assert build.url == "https://ci.example.com/other/9/"
        assert build.result == BuildResult.FAILURE
        assert build.job.scm.commit_id == "feedface"
        assert build.job.scm.remote_urls == (
            "https://bitbucket.example.com/acme/other.git",
        )

    def test_without_remote_has_no_scm(self):
        env = {k: v for k, v in ENV.items() if k != "GIT_URL"}

        assert build_from_environment(env).job.scm is None

    def test_test_summary(self):
        build = build_from_environment(ENV, tests_total=42, tests_failed=None)

        assert build.test_summary.total == 42
        assert build.test_summary.failed == 0

    def test_missing_job_name(self):
        env = {k: v for k, v in ENV.items() if k != "JOB_NAME"}

        with pytest.raises(ConfigurationError, match="Job name"):
            build_from_environment(env)

    @pytest.mark.parametrize("value", [None, "", "seven"])
    def test_missing_or_invalid_build_number(self, value):
        env = {k: v for k, v in ENV.items() if k != "BUILD_NUMBER"}
        if value is not None:
            env["BUILD_NUMBER"] = value

        with pytest.raises(ConfigurationError, match="Build number"):
            build_from_environment(env)

    def test_previous_build(self):
        """Test that the predecessor carries its own commit and result."""
        env = {**ENV, "GIT_PREVIOUS_COMMIT": "0ld"}

        build = build_from_environment(env, previous_result=BuildResult.ABORTED)

        previous = build.previous_build
        assert previous.number == 6
        assert previous.result == BuildResult.ABORTED
        assert previous.job_full_name == "acme/widgets"
        assert previous.job.scm.commit_id == "0ld"
        assert previous.job.scm.remote_urls == build.job.scm.remote_urls

    def test_no_previous_build_without_result(self):
        env = {**ENV, "GIT_PREVIOUS_COMMIT": "0ld"}

        assert build_from_environment(env).previous_build is None

    def test_first_build_has_no_predecessor(self):
        build = build_from_environment(
            ENV, build_number=1, previous_result=BuildResult.ABORTED
        )

        assert build.previous_build is None
