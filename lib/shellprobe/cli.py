"""Click-based CLI for shell probes."""

import json
import logging
import sys
from typing import Any, Callable

import click

from lib.shellprobe import __version__
from lib.shellprobe.check import run
from lib.shellprobe.config import ProbeVariant, load_probe_config, load_settings, read_config_file
from lib.shellprobe.exceptions import ConfigurationError, ProbeError
from lib.shellprobe.logging import setup_logging


def target_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator for the probe target options.

    Parameters
    ----------
    func : Callable[..., Any]
        Function to decorate

    Returns
    -------
    Callable[..., Any]
        Decorated function
    """
    func = click.option("--server", "-s", help="Server host name or address")(func)
    func = click.option("--port", type=int, help="Server port [default: 22]")(func)
    func = click.option("--username", "-u", help="Login name")(func)
    func = click.option("--password", "-p", help="Login password")(func)
    func = click.option("--command", "-c", "command_", help="Command to run after login")(func)
    func = click.option(
        "--expected-output",
        "-e",
        help="Output the command must produce",
    )(func)
    func = click.option(
        "--config",
        "config_file",
        type=click.Path(exists=True, dir_okay=False),
        help="YAML or JSON probe configuration; options above override it",
    )(func)
    return func


def output_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator for logging and output options."""
    func = click.option(
        "--json",
        "json_output",
        is_flag=True,
        help="Output in JSON format",
    )(func)
    func = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        help="Verbose output",
    )(func)
    func = click.option(
        "--quiet",
        "-q",
        is_flag=True,
        help="Quiet output (errors only)",
    )(func)
    return func


def setup_cli_logging(verbose: bool, quiet: bool, json_output: bool) -> None:
    """Set up logging for CLI.

    Parameters
    ----------
    verbose : bool
        Enable verbose logging
    quiet : bool
        Enable quiet logging
    json_output : bool
        Enable JSON output
    """
    settings = load_settings()

    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, settings.log_level.upper(), logging.INFO)

    setup_logging(
        level=level,
        json_output=json_output or settings.log_json,
        log_file=settings.log_file,
    )


def build_config(config_file: str | None, **overrides: Any) -> dict[str, Any]:
    """Merge a configuration file with command line overrides."""
    data: dict[str, Any] = {}
    if config_file:
        data.update(read_config_file(config_file))
    data.update({key: value for key, value in overrides.items() if value is not None})
    return data


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Shell service probe CLI."""
    pass


@cli.command()
@target_options
@click.option(
    "--variant",
    type=click.Choice([variant.value for variant in ProbeVariant]),
    help="Exchange variant [default: SHELLPROBE_VARIANT or line]",
)
@click.option("--timeout", type=float, help="Probe time budget in seconds")
@output_options
def check(
    server: str | None,
    port: int | None,
    username: str | None,
    password: str | None,
    command_: str | None,
    expected_output: str | None,
    config_file: str | None,
    variant: str | None,
    timeout: float | None,
    json_output: bool,
    verbose: bool,
    quiet: bool,
) -> None:
    """Log in to a server, run a command and check its output."""
    setup_cli_logging(verbose, quiet, json_output)

    result: dict[str, Any] = {"server": server, "variant": variant, "success": False}
    try:
        settings = load_settings()
        config = build_config(
            config_file,
            server=server,
            port=port,
            username=username,
            password=password,
            command=command_,
            expected_output=expected_output,
        )
        result["server"] = config.get("server")
        probe = run(
            config,
            timeout=timeout if timeout is not None else settings.timeout,
            variant=variant,
            settings=settings,
        )
    except ProbeError as e:
        result["error"] = str(e)
        if getattr(e, "stage", None):
            result["stage"] = e.stage
        if json_output:
            click.echo(json.dumps(result))
        else:
            click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if json_output:
        result.update(
            server=probe.server,
            variant=probe.variant.value,
            success=True,
            output=probe.output,
            duration=round(probe.duration, 3),
        )
        click.echo(json.dumps(result))
    else:
        click.echo(probe.output)
    sys.exit(0)


@cli.command(name="validate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def validate_command(config_file: str) -> None:
    """Validate a probe configuration file.

    CONFIG_FILE: YAML or JSON probe configuration
    """
    try:
        load_probe_config(config_file)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo("OK")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
