"""Operator command line for the release repository."""

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import click

from cloudnet_repository.config import ParentVersion, RepositoryConfig, config_path_from_env
from cloudnet_repository.context import ServerContext, create_context
from cloudnet_repository.errors import NoNewReleaseError, RepositoryError
from cloudnet_repository.main import configure_logging, run
from cloudnet_repository.models.version import CloudNetVersion
from cloudnet_repository.poller import ReleasePoller
from cloudnet_repository.services.archiver import ReleaseArchiver

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


@dataclass(frozen=True)
class CliEnvironment:
    """Loaded configuration plus the factory used to build a ServerContext.

    Tests pass their own instance as the click obj to inject fakes.
    """

    config: RepositoryConfig
    context_factory: Callable[[RepositoryConfig], ServerContext] = create_context

    def require_parent(self, name: str) -> ParentVersion:
        parent = self.config.parent(name)
        if parent is None:
            known = ", ".join(p.name for p in self.config.parents)
            raise click.BadParameter(f"Unknown parent {name!r} (configured: {known})")
        return parent


@click.group(name="cloudnet-repository", context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Path to config.toml (defaults to $CLOUDNET_REPO_CONFIG or ./config.toml)",
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, debug: bool) -> None:
    """Archive and serve CloudNet releases."""
    # Only load config if not already provided (e.g., by tests)
    if ctx.obj is None:
        try:
            config = RepositoryConfig.load(config_path or config_path_from_env())
        except (FileNotFoundError, ValueError) as err:
            raise click.ClickException(str(err)) from err
        configure_logging(debug or config.debug, config.log_dir)
        ctx.obj = CliEnvironment(config=config)


@cli.command("serve")
@click.pass_obj
def serve_cmd(env: CliEnvironment) -> None:
    """Run the HTTP server."""
    run(env.config)


async def _install(env: CliEnvironment, parent: ParentVersion) -> CloudNetVersion:
    context = env.context_factory(env.config)
    try:
        return await ReleaseArchiver(context).install_latest_release(parent)
    finally:
        await context.aclose()


@cli.command("install")
@click.argument("parent")
@click.pass_obj
def install_cmd(env: CliEnvironment, parent: str) -> None:
    """Install the latest release of PARENT."""
    parent_version = env.require_parent(parent)
    try:
        version = asyncio.run(_install(env, parent_version))
    except NoNewReleaseError as err:
        click.echo(str(err))
        return
    except RepositoryError as err:
        raise click.ClickException(str(err)) from err
    click.echo(f"Installed {version.parent} {version.name} ({len(version.files)} files)")


async def _poll(env: CliEnvironment) -> list[CloudNetVersion]:
    context = env.context_factory(env.config)
    try:
        poller = ReleasePoller(ReleaseArchiver(context), env.config.parents, env.config.poll_interval)
        return await poller.poll_once()
    finally:
        await context.aclose()


@cli.command("poll")
@click.pass_obj
def poll_cmd(env: CliEnvironment) -> None:
    """Install the latest release of every parent once."""
    installed = asyncio.run(_poll(env))
    if not installed:
        click.echo("No new releases")
    for version in installed:
        click.echo(f"Installed {version.parent} {version.name}")


async def _list_versions(env: CliEnvironment, parent: str) -> list[CloudNetVersion]:
    context = env.context_factory(env.config)
    try:
        return await context.registry.list_versions(parent)
    finally:
        await context.aclose()


@cli.command("versions")
@click.argument("parent")
@click.option("--json", "as_json", is_flag=True, help="Print full records as JSON")
@click.pass_obj
def versions_cmd(env: CliEnvironment, parent: str, as_json: bool) -> None:
    """List installed versions of PARENT, oldest first."""
    env.require_parent(parent)
    versions = asyncio.run(_list_versions(env, parent))
    if as_json:
        click.echo(json.dumps([version.to_dict() for version in versions], indent=2))
        return
    if not versions:
        click.echo(f"No versions installed for {parent}")
        return
    for index, version in enumerate(versions):
        marker = " (latest)" if index == len(versions) - 1 else ""
        click.echo(f"{version.name}  {version.commit or '-'}  {version.created_at.isoformat()}{marker}")


def main() -> None:
    """CLI entry point used by the `cloudnet-repository` console script."""
    cli()
