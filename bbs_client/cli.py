"""
Notification CLI invoked by the job engine.

- `bbs-notify start`: report INPROGRESS before the build runs
- `bbs-notify finish --result SUCCESS`: report the final result
- `bbs-notify step --build-state SUCCESSFUL`: explicit scripted notification

`start` and `finish` never fail the build: errors are printed to the build
log and the exit code stays 0. `step` exits with 1 on any failure.
"""

import asyncio
import logging
import os
import sys

import click

from bbs_common.errors import BuildStatusError
from bbs_common.models import Build, BuildResult, Credentials
from bbs_notifier.config import NotifierConfig, get_db_path, load_config
from bbs_notifier.credentials import resolve_credentials
from bbs_notifier.listener import TaskListener
from bbs_notifier.notifier import BuildStatusNotifier, BuildStatusNotifierStep
from bbs_persistence.sqlite_repository import SQLiteCredentialRepository

from .environment import build_from_environment

logger = logging.getLogger(__name__)

RESULT_CHOICES = click.Choice([r.value for r in BuildResult], case_sensitive=False)


def run_async(coro):
    """Helper to run async functions in CLI commands."""
    return asyncio.run(coro)


async def prepare(
    credentials_id: str | None, **config_options
) -> tuple[NotifierConfig, Credentials | None]:
    """Load configuration and resolve credentials from the credential store."""
    repo = SQLiteCredentialRepository(get_db_path())
    await repo.initialize()

    try:
        config = await load_config(repo, credentials_id=credentials_id, **config_options)
        credentials = await resolve_credentials(
            repo, config.credentials_id, config.global_credentials_id
        )
    finally:
        await repo.close()

    if credentials is None:
        logger.warning("No Bitbucket credentials could be resolved")
    return config, credentials


def build_options(func):
    """Options describing the build, defaulting to the job engine's environment."""
    options = [
        click.option("--host", "bitbucket_host", help="Bitbucket base URL (or BBS_HOST)"),
        click.option("--credentials-id", help="Job-scoped credentials identifier"),
        click.option(
            "--global-credentials-id", help="Default credentials (or BBS_CREDENTIALS_ID)"
        ),
        click.option("--job-name", help="Full job name (default: JOB_NAME)"),
        click.option("--build-number", type=int, help="Build number (default: BUILD_NUMBER)"),
        click.option("--build-url", help="Build URL (default: BUILD_URL)"),
        click.option("--git-commit", help="Commit that was built (default: GIT_COMMIT)"),
        click.option(
            "--git-url",
            "git_urls",
            multiple=True,
            help="Remote URL, repeatable (default: GIT_URL_<n> or GIT_URL)",
        ),
        click.option(
            "--previous-result",
            type=RESULT_CHOICES,
            help="Result of the previous build of this job",
        ),
        click.option(
            "--git-previous-commit",
            help="Commit built by the previous build (default: GIT_PREVIOUS_COMMIT)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build(options: dict, result: BuildResult | None = None, **extra) -> Build:
    previous_result = options.get("previous_result")
    return build_from_environment(
        os.environ,
        job_name=options.get("job_name"),
        build_number=options.get("build_number"),
        build_url=options.get("build_url"),
        git_commit=options.get("git_commit"),
        git_urls=options.get("git_urls") or (),
        result=result,
        previous_result=BuildResult(previous_result.upper()) if previous_result else None,
        git_previous_commit=options.get("git_previous_commit"),
        **extra,
    )


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Logging level (default: WARNING)",
)
def cli(log_level: str):
    """Report build statuses to a Bitbucket server."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command("start")
@build_options
@click.option("--notify-start/--no-notify-start", default=True, help="Report at build start")
@click.option("--override-latest-build", is_flag=True, help="One status entry per job")
def start(notify_start: bool, override_latest_build: bool, **options):
    """Report that the build is in progress."""
    listener = TaskListener(sys.stdout)
    try:
        config, credentials = run_async(
            prepare(
                options["credentials_id"],
                bitbucket_host=options["bitbucket_host"],
                global_credentials_id=options["global_credentials_id"],
                notify_start=notify_start,
                override_latest_build=override_latest_build,
            )
        )
        build = _build(options)
    except Exception as e:
        logger.info(f"Bitbucket notify on start failed: {e}", exc_info=True)
        listener.println(f"Bitbucket notify on start failed: {e}")
        sys.exit(0)

    BuildStatusNotifier(config, credentials).prebuild(build, listener)
    sys.exit(0)


@cli.command("finish")
@build_options
@click.option("--notify-finish/--no-notify-finish", default=True, help="Report at build end")
@click.option("--result", required=True, type=RESULT_CHOICES, help="Build result")
@click.option("--tests-total", type=int, help="Number of tests run")
@click.option("--tests-failed", type=int, default=0, help="Number of failed tests")
@click.option("--override-latest-build", is_flag=True, help="One status entry per job")
def finish(
    notify_finish: bool,
    result: str,
    tests_total: int | None,
    tests_failed: int,
    override_latest_build: bool,
    **options,
):
    """Report the final result of the build."""
    listener = TaskListener(sys.stdout)
    try:
        config, credentials = run_async(
            prepare(
                options["credentials_id"],
                bitbucket_host=options["bitbucket_host"],
                global_credentials_id=options["global_credentials_id"],
                notify_finish=notify_finish,
                override_latest_build=override_latest_build,
            )
        )
        build = _build(
            options,
            result=BuildResult(result.upper()),
            tests_total=tests_total,
            tests_failed=tests_failed,
        )
    except Exception as e:
        logger.info(f"Bitbucket notify on finish failed: {e}", exc_info=True)
        listener.println(f"Bitbucket notify on finish failed: {e}")
        sys.exit(0)

    BuildStatusNotifier(config, credentials).perform(build, listener)
    sys.exit(0)


@cli.command("step")
@build_options
@click.option(
    "--build-state",
    required=True,
    help="INPROGRESS, SUCCESSFUL or FAILED",
)
@click.option("--build-key", help="Status key (default: hash of the job name)")
@click.option("--build-name", help="Status name (default: '<job> #<number>')")
@click.option("--build-description", help="Status description")
@click.option("--repo-slug", help="Repository slug to notify instead of the derived one")
@click.option("--commit-id", help="Commit to notify instead of the built one")
@click.option("--tests-total", type=int, help="Number of tests run")
@click.option("--tests-failed", type=int, default=0, help="Number of failed tests")
def step(
    build_state: str,
    build_key: str | None,
    build_name: str | None,
    build_description: str | None,
    repo_slug: str | None,
    commit_id: str | None,
    tests_total: int | None,
    tests_failed: int,
    **options,
):
    """Send an explicit build status from a pipeline script."""
    listener = TaskListener(sys.stdout)
    notifier_step = BuildStatusNotifierStep(
        build_state=build_state,
        credentials_id=options["credentials_id"],
        build_key=build_key,
        build_name=build_name,
        build_description=build_description,
        repo_slug=repo_slug,
        commit_id=commit_id,
    )

    try:
        config, credentials = run_async(
            prepare(
                notifier_step.credentials_id,
                bitbucket_host=options["bitbucket_host"],
                global_credentials_id=options["global_credentials_id"],
                override_latest_build=True,
            )
        )
        build = _build(options, tests_total=tests_total, tests_failed=tests_failed)
        notifier_step.run(build, config.bitbucket_host, credentials, listener)
    except BuildStatusError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    sys.exit(0)


def main():
    """Main entry point for the notification CLI."""
    cli()


if __name__ == "__main__":
    main()
