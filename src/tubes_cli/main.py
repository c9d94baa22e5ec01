"""CLI main entry point."""

import json
import os
import sys
from typing import NoReturn

import click
from botocore.exceptions import BotoCoreError

from .application import Application, EchoReporter, validate_name
from .aws import AWSClient
from .config import (
    ENDPOINTS_ENV_VAR,
    AWSConfig,
    get_config_path,
    load_config,
    parse_endpoint_overrides,
)
from .errors import TubesError, ValidationError
from .manifest import BoshInitManifestBuilder, BoshIOClient
from .shared.logging import configure_logging, get_logger, level_for_verbosity
from .shared.paths import ensure_state_dir, resolve_state_dir
from .store import FilesystemConfigStore

log = get_logger(__name__)


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.option("-n", "--name", help="Environment name")
@click.option(
    "--state-dir",
    type=click.Path(),
    help="State directory (default: ./environments/<name>)",
)
@click.option("--region", envvar="AWS_DEFAULT_REGION", help="AWS region")
@click.option("--access-key", envvar="AWS_ACCESS_KEY_ID", help="AWS access key ID")
@click.option("--secret-key", envvar="AWS_SECRET_ACCESS_KEY", help="AWS secret access key")
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def cli(
    ctx: click.Context,
    name: str | None,
    state_dir: str | None,
    region: str | None,
    access_key: str | None,
    secret_key: str | None,
    verbose: int,
    json_output: bool,
) -> None:
    """Provision BOSH-ready environments on AWS."""
    configure_logging(level=level_for_verbosity(verbose), json_output=json_output)
    ctx.ensure_object(dict)
    ctx.obj["name"] = name
    ctx.obj["state_dir"] = state_dir
    ctx.obj["region"] = region or ""
    ctx.obj["access_key"] = access_key or ""
    ctx.obj["secret_key"] = secret_key or ""
    ctx.obj["json_output"] = json_output


def build_application(ctx: click.Context) -> tuple[Application, str]:
    """Wire the application for the environment named on the command line.

    Checks the name, then the AWS settings, then the state directory, and
    exits with an error message on the first problem.

    Returns:
        (application, environment name)
    """
    name = ctx.obj.get("name")
    if not name:
        _fail("missing required flag name")
    try:
        validate_name(name)
    except ValidationError as e:
        _fail(str(e))

    try:
        aws_config = AWSConfig(
            region=ctx.obj.get("region", ""),
            access_key=ctx.obj.get("access_key", ""),
            secret_key=ctx.obj.get("secret_key", ""),
            endpoint_overrides=parse_endpoint_overrides(os.environ.get(ENDPOINTS_ENV_VAR)),
        )
    except ValueError as e:
        _fail(str(e))
    if aws_config.missing_fields():
        _fail("missing one or more AWS config options/env vars")

    cli_config = load_config()
    try:
        aws_client = AWSClient.from_config(
            aws_config,
            wait_timeout=cli_config.wait_timeout,
            poll_interval=cli_config.poll_interval,
        )
    except (ValueError, BotoCoreError) as e:
        _fail(str(e))

    try:
        if ctx.obj.get("state_dir"):
            state_dir = resolve_state_dir(ctx.obj["state_dir"])
        else:
            state_dir = ensure_state_dir(name)
    except OSError as e:
        _fail(str(e))
    log.debug("using state directory", path=str(state_dir))

    app = Application(
        aws_client=aws_client,
        config_store=FilesystemConfigStore(state_dir),
        manifest_builder=BoshInitManifestBuilder(BoshIOClient(cli_config.boshio_url)),
        reporter=EchoReporter(),
        result_writer=click.get_binary_stream("stdout"),
    )
    return app, name


def _run(ctx: click.Context, action: str) -> None:
    app, name = build_application(ctx)
    try:
        getattr(app, action)(name)
    except (TubesError, OSError) as e:
        log.debug("command failed", action=action, error_type=type(e).__name__)
        _fail(str(e))


@cli.command()
@click.pass_context
def up(ctx: click.Context) -> None:
    """Boot a new environment."""
    _run(ctx, "boot")


@cli.command()
@click.pass_context
def down(ctx: click.Context) -> None:
    """Destroy an environment's cloud resources."""
    _run(ctx, "destroy")


@cli.command()
@click.pass_context
def show(ctx: click.Context) -> None:
    """Print the environment's SSH private key."""
    _run(ctx, "show")


@cli.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    click.echo(f"tubes version {__version__}")


@cli.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration and where each value came from."""
    cli_config = load_config()
    values = cli_config.as_dict()
    sources = {key: cli_config.get_source(key) for key in values}

    if ctx.obj["json_output"]:
        click.echo(json.dumps({"values": values, "sources": sources}, indent=2))
        return

    click.echo("tubes CLI Configuration")
    click.echo(f"Config file: {get_config_path()}\n")
    for key, value in values.items():
        click.echo(f"  {key}: {value}  ({sources[key]})")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
