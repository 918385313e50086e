"""
Service registry and repository reference resolution.

A reference is either ``prefix:path`` or a bare ``path``. The prefix picks
a service from the registry, whose URL template receives the path in place
of the ``{{ repo }}`` marker.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional

from .config import logger
from .exit_codes import ServiceNotFound, InvalidServiceURL

REPO_MARKER = "{{ repo }}"
DEFAULT_PREFIX = "gh"
DEFAULT_URL = "https://github.com/{{ repo }}.git"


@dataclass
class ServiceEntry:
    prefix: str
    url: str

    def clone_url(self, repo_path: str) -> str:
        return self.url.replace(REPO_MARKER, repo_path, 1)


@dataclass
class Reference:
    prefix: Optional[str]
    path: str

    def __str__(self):
        if self.prefix is None:
            return self.path
        return f"{self.prefix}:{self.path}"


def validate_url_template(url: str):
    """Raise InvalidServiceURL unless ``url`` holds exactly one repo marker."""
    if url.count(REPO_MARKER) != 1:
        raise InvalidServiceURL(url, REPO_MARKER)


@dataclass
class Registry:
    """Prefix to URL-template mapping plus the default prefix."""

    entries: Dict[str, ServiceEntry] = field(default_factory=dict)
    default_prefix: str = DEFAULT_PREFIX

    @classmethod
    def default(cls):
        return cls(
            entries={DEFAULT_PREFIX: ServiceEntry(DEFAULT_PREFIX, DEFAULT_URL)},
            default_prefix=DEFAULT_PREFIX,
        )

    @classmethod
    def from_dict(cls, data):
        """
        Build a registry from the parsed config document.

        The default prefix is not checked against the entries here; that
        happens when a reference is resolved.
        """
        if not isinstance(data, dict):
            raise TypeError("config must be a table")

        services = data.get("services", {})
        if not isinstance(services, dict):
            raise TypeError("'services' must be a table of prefix -> {url}")

        entries = {}
        for prefix, value in services.items():
            if not isinstance(value, dict) or not isinstance(value.get("url"), str):
                raise ValueError(f"service '{prefix}' must have a string 'url'")
            entries[prefix] = ServiceEntry(prefix, value["url"])

        default_prefix = data.get("default_service", data.get("default_prefix", DEFAULT_PREFIX))
        if not isinstance(default_prefix, str):
            raise TypeError("'default_service' must be a string")

        return cls(entries=entries, default_prefix=default_prefix)

    def to_dict(self):
        return {
            "default_service": self.default_prefix,
            "services": {prefix: {"url": entry.url} for prefix, entry in self.entries.items()},
        }

    def add(self, prefix: str, url: str):
        """Register or replace the service for ``prefix``."""
        validate_url_template(url)
        if prefix in self.entries:
            logger.info(f"Replacing service `{prefix}`: {self.entries[prefix].url} -> {url}")
        self.entries[prefix] = ServiceEntry(prefix, url)

    def remove(self, prefix: str):
        if prefix not in self.entries:
            raise ServiceNotFound(prefix)
        del self.entries[prefix]
        if prefix == self.default_prefix:
            logger.warning(f"Removed the default service `{prefix}`; set a new default with `cpr services default`")

    def set_default(self, prefix: str):
        if prefix not in self.entries:
            raise ServiceNotFound(prefix)
        self.default_prefix = prefix

    def lookup(self, prefix: str) -> ServiceEntry:
        """
        Find the entry for ``prefix``, falling back to the default prefix.

        Raises:
            ServiceNotFound: neither ``prefix`` nor the default prefix is registered.
        """
        entry = self.entries.get(prefix)
        if entry is not None:
            return entry

        default = self.entries.get(self.default_prefix)
        if default is None:
            raise ServiceNotFound(prefix)

        logger.warning(f"prefix `{prefix}` not found, using default: {self.default_prefix}")
        return default

    def clone_url(self, prefix: str, repo_path: str) -> str:
        logger.debug(f"querying config for `prefix:path` -> {prefix}:{repo_path}")
        entry = self.lookup(prefix)
        logger.debug(f"using base URL: {entry.url}")
        return entry.clone_url(repo_path)


def parse_reference(reference: str) -> Reference:
    """Split ``prefix:path`` on the first colon; a bare path has no prefix."""
    prefix, sep, path = reference.partition(":")
    if not sep:
        return Reference(prefix=None, path=reference)
    return Reference(prefix=prefix, path=path)


def resolve(reference: str, registry: Registry) -> str:
    """
    Turn a user-supplied reference into a clone URL.

    Args:
        reference: ``prefix:path`` or bare ``path``.
        registry: The service registry to look the prefix up in.

    Returns:
        str: The clone URL. ``path`` is substituted verbatim.

    Raises:
        ServiceNotFound: neither the requested nor the default prefix exists.
    """
    ref = parse_reference(reference)
    prefix = ref.prefix if ref.prefix is not None else registry.default_prefix
    return registry.clone_url(prefix, ref.path)
