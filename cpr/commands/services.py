"""
Handles the 'services' command group for managing the service registry.
"""
import click
from rich.console import Console
from rich.table import Table

from ..cli_utils import load_registry, standard_command
from ..config import logger, save_config

console = Console()


@click.group("services")
def services_cmd():
    """Manage git services and the default service."""
    pass


@services_cmd.command("add")
@click.argument("prefix")
@click.argument("url")
@click.pass_context
@standard_command
def add_service(ctx, prefix, url):
    """
    Add a new service.

    PREFIX is the short name (ex. gh). URL is the clone URL format for the
    git server (ex. https://github.com/{{ repo }}.git); the {{ repo }}
    placeholder is replaced with the repository path.
    """
    registry = load_registry(ctx)
    registry.add(prefix, url)
    save_config(registry, ctx.obj["config_path"])
    logger.info(f"Added service `{prefix}`: {url}")


@services_cmd.command("remove")
@click.argument("prefix")
@click.pass_context
@standard_command
def remove_service(ctx, prefix):
    """Remove a service."""
    registry = load_registry(ctx)
    registry.remove(prefix)
    save_config(registry, ctx.obj["config_path"])
    logger.info(f"Removed service `{prefix}`")


@services_cmd.command("list")
@click.pass_context
@standard_command
def list_services(ctx):
    """List available services."""
    registry = load_registry(ctx)
    table = Table(title="Services")
    table.add_column("Prefix", style="cyan")
    table.add_column("URL", style="magenta")
    table.add_column("Default", justify="center")
    for prefix in sorted(registry.entries):
        entry = registry.entries[prefix]
        table.add_row(prefix, entry.url,
                      "✓" if prefix == registry.default_prefix else "")
    console.print(table)


@services_cmd.command("default")
@click.argument("prefix", required=False)
@click.pass_context
@standard_command
def default_service(ctx, prefix):
    """
    Set the default service.

    The default service is used when a reference has no prefix. Without
    PREFIX, pick one of the registered services interactively.
    """
    registry = load_registry(ctx)
    if prefix is None:
        choices = sorted(registry.entries)
        if not choices:
            raise click.UsageError("No services registered; add one with `cpr services add`")
        prefix = click.prompt(
            "Select the default service",
            type=click.Choice(choices),
            default=registry.default_prefix if registry.default_prefix in choices else None,
        )
    registry.set_default(prefix)
    save_config(registry, ctx.obj["config_path"])
    logger.info(f"Default service is now `{prefix}`")
