"""
Exit codes and the error hierarchy used across cpr.

Every failure that should stop a run is a CommandError subclass; the CLI
layer turns it into a log line and the matching process exit code.
"""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
RESOLUTION_ERROR = 3
TRANSPORT_ERROR = 4
FILESYSTEM_ERROR = 5
SCHEMA_ERROR = 6
TEMPLATE_ERROR = 7
INTERRUPTED = 130


class CommandError(Exception):
    """Base class for errors that map onto a specific exit code."""

    exit_code = GENERAL_ERROR

    def __init__(self, message=None):
        super().__init__(message or self.default_message())

    @classmethod
    def default_message(cls):
        return cls.__name__


# Resolution

class ResolutionError(CommandError):
    exit_code = RESOLUTION_ERROR


class ServiceNotFound(ResolutionError):
    def __init__(self, prefix=None):
        self.prefix = prefix
        if prefix:
            super().__init__(f"Service not found: {prefix}")
        else:
            super().__init__("Service not found")


class InvalidServiceURL(ResolutionError):
    def __init__(self, url, marker):
        self.url = url
        super().__init__(f"Service URL must contain '{marker}' exactly once: {url}")


# Transport

class TransportError(CommandError):
    exit_code = TRANSPORT_ERROR


class RepositoryNotFound(TransportError):
    def __init__(self, url):
        self.url = url
        super().__init__(f"Git repository not found: {url}")


class CloneFailed(TransportError):
    def __init__(self, url, reason=None):
        self.url = url
        self.reason = reason
        message = f"Failed to clone repository: {url}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


# Filesystem pre-conditions

class FilesystemError(CommandError):
    exit_code = FILESYSTEM_ERROR


class DirectoryExists(FilesystemError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"Project directory already exists: {path}")


class DirectoryCreateFailed(FilesystemError):
    def __init__(self, path, reason=None):
        self.path = path
        message = f"Failed to create project directory: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


# Configuration / embedded schema

class SchemaError(CommandError):
    exit_code = SCHEMA_ERROR


class ConfigReadFailed(SchemaError):
    def __init__(self, path, reason=None):
        self.path = path
        message = f"Failed to read {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConfigParseFailed(SchemaError):
    def __init__(self, path, reason=None):
        self.path = path
        message = f"Failed to parse {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


# Per-file I/O

class FileIOError(CommandError):
    exit_code = FILESYSTEM_ERROR


class ReadFileFailed(FileIOError):
    def __init__(self, path, reason=None):
        self.path = path
        message = f"Failed to read file in template: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class WriteFileFailed(FileIOError):
    def __init__(self, path, reason=None):
        self.path = path
        message = f"Failed to write file in template: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


# Template

class TemplateError(CommandError):
    exit_code = TEMPLATE_ERROR


class FormatError(TemplateError):
    """A placeholder or filter could not be rendered."""

    def __init__(self, message, path=None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


def get_exit_code_for_exception(exc):
    """Map an exception to a process exit code."""
    if isinstance(exc, CommandError):
        return exc.exit_code
    if isinstance(exc, KeyboardInterrupt):
        return INTERRUPTED
    if isinstance(exc, (FileNotFoundError, PermissionError)):
        return FILESYSTEM_ERROR
    return GENERAL_ERROR
