#!/usr/bin/env python3

from pathlib import Path

import click

from cpr import __version__
from cpr.config import get_config_path, set_verbose
from cpr.commands.init import init_handler
from cpr.commands.new import new_handler
from cpr.commands.services import services_cmd


@click.group()
@click.version_option(version=__version__)
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Global configuration file path")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
@click.pass_context
def cli(ctx, config_path, verbose):
    """A simple git-based project manager: create projects from git templates."""
    set_verbose(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path or get_config_path()


cli.add_command(init_handler, name='init')
cli.add_command(new_handler, name='new')
cli.add_command(services_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
