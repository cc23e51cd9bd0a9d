"""
Exception types raised while resolving and rendering crate locations.

Every error derives from WhereisError so callers can catch the whole family
in one place; str(err) is the message shown to the user.
"""

from typing import Optional


class WhereisError(Exception):
    """Base class for all cargo-whereis errors."""


class MetadataError(WhereisError):
    """The workspace dependency graph could not be loaded or parsed."""

    def __init__(self, detail: str, exception: Optional[Exception] = None):
        self.detail = detail
        self.exception = exception
        super().__init__(f"failed to load cargo metadata: {detail}")


class NotFoundError(WhereisError):
    """The crate name matches no package in the workspace or its dependencies."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"no such crate in this workspace: {name}")


class NoSourceError(WhereisError):
    def __init__(self):
        super().__init__("dependency source not found")


class UnknownRegistryError(WhereisError):
    """The crate comes from somewhere other than crates.io."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"cannot form URL for registry: {name}")


class RemoteButNotUrlError(WhereisError):
    """A remote location was asked for in path form."""

    def __init__(self):
        super().__init__("cannot represent a remote path without the --url flag")


class ComputeRelativeError(WhereisError):
    def __init__(self):
        super().__init__("failed to compute a relative path from the current location")


class DirectoryUrlError(WhereisError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"failed to compute a URL path from the local path {path}")


class FilesystemError(WhereisError):
    """Wraps an OSError raised while inspecting the filesystem."""

    def __init__(self, exception: OSError):
        self.exception = exception
        super().__init__(str(exception))


class UrlParseError(WhereisError):
    """Wraps a failure to build or parse a URL."""

    def __init__(self, message: str):
        super().__init__(message)
