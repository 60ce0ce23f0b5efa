from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Tuple

import click

from .config import Settings
from .dnsmasq_config import generate_config
from .exceptions import DnsNameError, format_error_message
from .log_config import setup_logging
from .plugin import DnsNamePlugin
from .cli_helpers.display import (
    display_error,
    display_info,
    display_records,
    display_success,
    display_warning,
)

__all__ = ["cli"]

logger = logging.getLogger("dnsname")


def _fail(error: Exception) -> None:
    display_error(format_error_message(error))
    sys.exit(1)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--env-file",
    "-e",
    type=click.Path(file_okay=True, dir_okay=False),
    default=None,
    help="dotenv file with DNSNAME_* settings. The process environment wins.",
)
@click.option(
    "--log-file",
    type=click.Path(file_okay=True, dir_okay=False),
    default=None,
    help="Also write log records to this file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging output.")
@click.pass_context
def cli(ctx: click.Context, env_file: str | None, log_file: str | None, verbose: bool) -> None:
    """dnsname – per-network host records for dnsmasq."""
    try:
        settings = Settings.from_env(env_file)
        settings.validate()
    except DnsNameError as e:
        _fail(e)

    setup_logging(verbose, Path(log_file) if log_file else None, settings.log_level)
    logger.debug(f"Settings: {settings}")

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["plugin"] = DnsNamePlugin(settings)


@cli.command()
@click.argument("interface")
@click.argument("name")
@click.option("--ip", "addresses", multiple=True, required=True, help="Address (optionally with /prefix). Repeatable.")
@click.option("--alias", "aliases", multiple=True, help="Additional name for the same addresses. Repeatable.")
@click.option("--domain", "-d", default=None, help="Domain served on this network.")
@click.pass_context
def add(
    ctx: click.Context,
    interface: str,
    name: str,
    addresses: Tuple[str, ...],
    aliases: Tuple[str, ...],
    domain: str | None,
) -> None:
    """Publish NAME on the network bridged by INTERFACE."""
    plugin: DnsNamePlugin = ctx.obj["plugin"]
    try:
        records = plugin.attach(interface, name, list(aliases), list(addresses), domain)
    except (DnsNameError, OSError) as e:
        _fail(e)
    for record in records:
        display_success(f"Added {record}")


@cli.command()
@click.argument("interface")
@click.argument("name")
@click.option("--domain", "-d", default=None, help="Domain served on this network.")
@click.pass_context
def remove(ctx: click.Context, interface: str, name: str, domain: str | None) -> None:
    """Withdraw every record whose primary name is NAME.

    Aliases are not matched; pass the primary name.
    """
    plugin: DnsNamePlugin = ctx.obj["plugin"]
    try:
        result = plugin.detach(interface, name, domain)
    except (DnsNameError, OSError) as e:
        _fail(e)

    for warning in result.warnings:
        display_warning(warning)
    if result.found:
        display_success(f"Removed {name} from {interface}")
    if result.reloaded:
        display_info("dnsmasq reloaded")


@cli.command(name="list")
@click.argument("interface")
@click.pass_context
def list_records(ctx: click.Context, interface: str) -> None:
    """Show the records published on INTERFACE."""
    plugin: DnsNamePlugin = ctx.obj["plugin"]
    records = plugin.records(interface)
    if not records:
        display_info(f"No records on {interface}")
        return
    display_records(records, interface)


@cli.command()
@click.argument("interface")
@click.option("--domain", "-d", default=None, help="Domain served on this network.")
@click.pass_context
def check(ctx: click.Context, interface: str, domain: str | None) -> None:
    """Verify that INTERFACE has a running, configured dnsmasq."""
    plugin: DnsNamePlugin = ctx.obj["plugin"]
    problems = plugin.check(interface, domain)
    if problems:
        for problem in problems:
            display_error(problem)
        sys.exit(1)
    display_success(f"{interface} is healthy")


@cli.command(name="render-config")
@click.argument("interface")
@click.option("--domain", "-d", default=None, help="Domain served on this network.")
@click.pass_context
def render_config(ctx: click.Context, interface: str, domain: str | None) -> None:
    """Print the dnsmasq configuration INTERFACE would get."""
    plugin: DnsNamePlugin = ctx.obj["plugin"]
    try:
        content = generate_config(plugin.service_config(interface, domain))
    except DnsNameError as e:
        _fail(e)
    click.echo(content, nl=False)
