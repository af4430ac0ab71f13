"""
Admin CLI for managing notifier credentials and global settings.

Provides commands to store, list and remove credentials and to read and
write the global Bitbucket host and default credentials.
"""

import asyncio
import json
import sys

import click

from bbs_common.errors import ConfigurationError
from bbs_common.models import Credentials
from bbs_notifier.config import (
    KNOWN_SETTINGS,
    SETTING_BITBUCKET_HOST,
    SETTING_GLOBAL_CREDENTIALS_ID,
    get_db_path,
)
from bbs_notifier.host_validator import validate_bitbucket_host
from bbs_persistence.sqlite_repository import SQLiteCredentialRepository


def get_repository() -> SQLiteCredentialRepository:
    """Get the repository instance."""
    return SQLiteCredentialRepository(get_db_path())


def run_async(coro):
    """Helper to run async functions in CLI commands."""
    return asyncio.run(coro)


@click.group()
def cli():
    """BBS Admin - Manage credentials and settings of the build status notifier."""
    pass


@cli.group()
def credentials():
    """Manage stored credentials."""
    pass


@cli.group()
def config():
    """Manage global settings."""
    pass


# ============================================================================
# Credentials Commands
# ============================================================================


@credentials.command("add")
@click.argument("credentials_id")
@click.option("--username", required=True, help="Bitbucket username")
@click.option(
    "--secret",
    envvar="BBS_SECRET",
    prompt=True,
    hide_input=True,
    help="Password or access token (prompted if omitted, or BBS_SECRET)",
)
@click.option("--description", help="Optional description")
def credentials_add(
    credentials_id: str, username: str, secret: str, description: str | None
):
    """Store a username/secret pair under CREDENTIALS_ID."""
    if not secret:
        click.echo("Error: Secret must not be empty", err=True)
        sys.exit(1)

    async def add():
        repo = get_repository()
        await repo.initialize()

        try:
            existing = await repo.get_credentials(credentials_id)
            if existing:
                click.echo(
                    f"Error: Credentials already exist: {credentials_id}", err=True
                )
                sys.exit(1)

            await repo.create_credentials(
                Credentials(
                    id=credentials_id,
                    username=username,
                    secret=secret,
                    description=description,
                )
            )

            click.echo("✓ Credentials stored successfully")
            click.echo(f"  ID:       {credentials_id}")
            click.echo(f"  Username: {username}")

        finally:
            await repo.close()

    run_async(add())


@credentials.command("list")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def credentials_list(json_output: bool):
    """List stored credentials (secrets are never shown)."""

    async def list_credentials():
        repo = get_repository()
        await repo.initialize()

        try:
            stored = await repo.list_credentials()

            if json_output:
                click.echo(json.dumps([c.to_dict() for c in stored], indent=2))
                return

            if not stored:
                click.echo("No credentials found.")
                return

            click.echo(f"\n{'ID':<30} {'Username':<25} {'Description':<40}")
            click.echo("-" * 95)
            for c in stored:
                click.echo(f"{c.id:<30} {c.username:<25} {c.description or '':<40}")
            click.echo()

        finally:
            await repo.close()

    run_async(list_credentials())


@credentials.command("remove")
@click.argument("credentials_id")
def credentials_remove(credentials_id: str):
    """Remove stored credentials."""

    async def remove():
        repo = get_repository()
        await repo.initialize()

        try:
            deleted = await repo.delete_credentials(credentials_id)
            if not deleted:
                click.echo(f"Error: Credentials not found: {credentials_id}", err=True)
                sys.exit(1)

            click.echo(f"✓ Credentials removed: {credentials_id}")

        finally:
            await repo.close()

    run_async(remove())


# ============================================================================
# Settings Commands
# ============================================================================


@config.command("show")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def config_show(json_output: bool):
    """Show global settings."""

    async def show():
        repo = get_repository()
        await repo.initialize()

        try:
            settings = await repo.list_settings()

            if json_output:
                click.echo(json.dumps(settings, indent=2))
                return

            for name in KNOWN_SETTINGS:
                click.echo(f"{name:<25} {settings.get(name, '(not set)')}")

        finally:
            await repo.close()

    run_async(show())


@config.command("set")
@click.option("--host", help="Bitbucket base URL, e.g. https://bitbucket.example.com")
@click.option("--global-credentials-id", help="Default credentials identifier")
def config_set(host: str | None, global_credentials_id: str | None):
    """Set global settings."""
    if host is None and global_credentials_id is None:
        click.echo(
            "Error: Provide --host and/or --global-credentials-id", err=True
        )
        sys.exit(1)

    if host is not None:
        try:
            host = validate_bitbucket_host(host)
        except ConfigurationError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    async def set_settings():
        repo = get_repository()
        await repo.initialize()

        try:
            if global_credentials_id is not None:
                if not await repo.get_credentials(global_credentials_id):
                    click.echo(
                        f"Warning: Credentials not found: {global_credentials_id}",
                        err=True,
                    )
                await repo.set_setting(
                    SETTING_GLOBAL_CREDENTIALS_ID, global_credentials_id
                )
                click.echo(f"✓ {SETTING_GLOBAL_CREDENTIALS_ID} = {global_credentials_id}")

            if host is not None:
                await repo.set_setting(SETTING_BITBUCKET_HOST, host)
                click.echo(f"✓ {SETTING_BITBUCKET_HOST} = {host}")

        finally:
            await repo.close()

    run_async(set_settings())


if __name__ == "__main__":
    cli()
