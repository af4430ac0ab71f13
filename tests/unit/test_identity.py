"""
Unit tests for bbs_notifier.identity.

Tests status key/name derivation under both addressing modes, the test
description and the result to state mapping.
"""

import hashlib

import pytest

from bbs_common.models import Build, BuildResult, BuildStatus, TestSummary
from bbs_notifier.identity import (
    MAX_KEY_LENGTH,
    build_key,
    build_name,
    create_build_status_from_build,
    default_build_description,
    default_build_key,
    guess_build_state,
    unique_build_key,
)


def md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


class TestBuildKey:
    """Test suite for status keys."""

    @pytest.mark.parametrize(
        "job_name,number",
        [("widgets", 1), ("acme/widgets", 7), ("folder/sub/job with spaces", 12345)],
    )
    def test_per_build_key(self, job_name, number):
        """Test that per-build keys hash the job name and build number."""
        build = Build(job_full_name=job_name, number=number)

        key = build_key(build, override_latest_build=False)

        assert key == md5(f"{job_name}#{number}")
        assert len(key) <= MAX_KEY_LENGTH

    def test_unique_key(self):
        """Test that unique keys hash the job name only."""
        build = Build(job_full_name="acme/widgets", number=7)

        assert build_key(build, override_latest_build=True) == md5("acme/widgets")

    def test_unique_key_shared_across_builds(self):
        """Test that all builds of a job share the unique key."""
        first = Build(job_full_name="acme/widgets", number=1)
        second = Build(job_full_name="acme/widgets", number=2)

        assert unique_build_key(first) == unique_build_key(second)
        assert default_build_key(first) != default_build_key(second)

    def test_key_derivation_is_deterministic(self):
        """Test that deriving a key twice yields the same value."""
        build = Build(job_full_name="acme/widgets", number=3)

        assert build_key(build, False) == build_key(build, False)
        assert build_key(build, True) == build_key(build, True)

    def test_very_long_job_name_still_fits(self):
        """Test that the key length does not depend on the job name length."""
        build = Build(job_full_name="x" * 500, number=99)

        assert len(build_key(build, False)) == 32


class TestBuildName:
    """Test suite for status display names."""

    def test_per_build_name(self):
        build = Build(job_full_name="acme/widgets", number=7)

        assert build_name(build, override_latest_build=False) == "acme/widgets #7"

    def test_unique_name(self):
        build = Build(job_full_name="acme/widgets", number=7)

        assert build_name(build, override_latest_build=True) == "acme/widgets"


class TestDescription:
    """Test suite for the test result description."""

    def test_description_with_tests(self):
        build = Build(
            job_full_name="widgets", number=1, test_summary=TestSummary(total=42, failed=1)
        )

        assert default_build_description(build) == "41 of 42 tests passed"

    def test_description_without_tests(self):
        build = Build(job_full_name="widgets", number=1)

        assert default_build_description(build) == ""


class TestGuessBuildState:
    """Test suite for result to state mapping."""

    @pytest.mark.parametrize(
        "result,state",
        [
            (None, BuildStatus.INPROGRESS),
            (BuildResult.SUCCESS, BuildStatus.SUCCESSFUL),
            (BuildResult.UNSTABLE, BuildStatus.FAILED),
            (BuildResult.FAILURE, BuildStatus.FAILED),
            (BuildResult.ABORTED, BuildStatus.FAILED),
            (BuildResult.NOT_BUILT, None),
        ],
    )
    def test_mapping(self, result, state):
        assert guess_build_state(result) == state


class TestCreateBuildStatusFromBuild:
    """Test suite for composing a complete status."""

    def test_finished_build(self):
        """Test a successful build in per-build mode."""
        build = Build(
            job_full_name="acme/widgets",
            number=7,
            url="https://ci.example.com/job/widgets/7/",
            result=BuildResult.SUCCESS,
            test_summary=TestSummary(total=3, failed=0),
        )

        status = create_build_status_from_build(build, override_latest_build=False)

        assert status == BuildStatus(
            state="SUCCESSFUL",
            key=md5("acme/widgets#7"),
            url="https://ci.example.com/job/widgets/7/",
            name="acme/widgets #7",
            description="3 of 3 tests passed",
        )

    def test_not_built_has_no_state(self):
        """Test that NOT_BUILT produces a payload without state."""
        build = Build(job_full_name="w", number=1, result=BuildResult.NOT_BUILT)

        status = create_build_status_from_build(build, override_latest_build=True)

        assert status.state is None
        assert "state" not in status.to_dict()
