"""
Console, logging and the user configuration file.

The configuration file holds the service registry: a mapping of short
prefixes to clone URL templates plus the default prefix.
"""
import logging
import os
from pathlib import Path

import toml
from rich.console import Console
from rich.logging import RichHandler

from .exit_codes import ConfigReadFailed, ConfigParseFailed

# Initialize Rich Console
console = Console(stderr=True)

_level = os.environ.get("CPR_LOG_LEVEL", "INFO").upper()
if not isinstance(logging.getLevelName(_level), int):
    _level = "INFO"

# Configure logging to use RichHandler
logging.basicConfig(
    level=_level,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)]
)

logger = logging.getLogger("cpr")


def set_verbose(verbose):
    """Switch the cpr logger to DEBUG output."""
    if verbose:
        logger.setLevel(logging.DEBUG)


def get_config_path():
    """Location of the user configuration file."""
    override = os.environ.get("CPR_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".cpr" / "config.toml"


def init_config(path):
    """
    Write the default registry to ``path``, creating parent directories.

    Returns:
        Registry: the registry that was written.
    """
    from .services import Registry

    registry = Registry.default()
    logger.debug(f"writing default config to file: {path}")
    save_config(registry, path)
    return registry


def load_config(path=None):
    """
    Read the service registry from ``path``.

    Raises:
        ConfigReadFailed: the file could not be read.
        ConfigParseFailed: the file is not valid TOML or has the wrong shape.
    """
    from .services import Registry

    path = Path(path) if path else get_config_path()
    logger.debug(f"reading config from file: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigReadFailed(path, e.strerror or str(e)) from e

    try:
        data = toml.loads(text)
    except toml.TomlDecodeError as e:
        raise ConfigParseFailed(path, str(e)) from e

    try:
        return Registry.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ConfigParseFailed(path, str(e)) from e


def save_config(registry, path=None):
    """Write ``registry`` back to ``path`` as TOML."""
    path = Path(path) if path else get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        toml.dump(registry.to_dict(), f)


def ensure_config(path=None):
    """
    Load the registry, creating the default configuration first if needed.

    Returns:
        tuple: (registry, created) where ``created`` tells whether the file was new.
    """
    path = Path(path) if path else get_config_path()
    if not path.exists():
        return init_config(path), True
    return load_config(path), False
