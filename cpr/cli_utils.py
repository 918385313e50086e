"""
Common CLI utilities and decorators for consistent command behavior.
"""
import sys
from functools import wraps

import click

from .config import ensure_config, logger
from .exit_codes import INTERRUPTED, CommandError, get_exit_code_for_exception


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - CommandError subclasses are logged and mapped to their exit code
    - Ctrl-C exits with the interrupted code
    - Unexpected errors are logged with their type and exit non-zero
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            logger.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except (click.ClickException, click.exceptions.Exit, click.Abort):
            raise
        except CommandError as e:
            logger.error(str(e))
            if e.__cause__ is not None:
                logger.debug(f"caused by: {e.__cause__!r}")
            sys.exit(e.exit_code)
        except Exception as e:
            logger.error(f"Command failed: {type(e).__name__}: {e}")
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def load_registry(ctx):
    """Read the registry for this invocation, creating the default config if absent."""
    config_path = ctx.obj["config_path"]
    registry, created = ensure_config(config_path)
    if created:
        click.echo(f"Created default configuration at {config_path}", err=True)
    return registry


# Standard options that many commands share
common_options = {
    'answers': click.option('--answers', 'answers_file',
                            type=click.Path(exists=True, dir_okay=False),
                            help='TOML file with answers to the template questions (no prompting)'),
    'name': click.option('--name', 'project_name',
                         help='Project name (prompted when omitted)'),
    'author': click.option('--author',
                           help='Project author (prompted when omitted)'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('answers', 'name')
        def my_command(answers_file, project_name):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
