"""
Where a crate's source lives, and how to print it.

A Location is either Local (a directory on disk) or Remote (a crates.io
page). Both variants are immutable; show() turns one into the string the
user sees according to the --relative and --url options.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from urllib.parse import urlparse

from .errors import (
    ComputeRelativeError,
    DirectoryUrlError,
    FilesystemError,
    RemoteButNotUrlError,
    UrlParseError,
)


class LocationKind(Enum):
    LOCAL = "local"
    REMOTE = "remote"


class Location(ABC):
    """Base class of the two location variants."""

    kind: LocationKind

    @abstractmethod
    def show(self, relative: bool = False, as_url: bool = False) -> str:
        """
        Render this location for display.

        Args:
            relative: Render a local path relative to the current directory.
                Ignored for URLs.
            as_url: Render as a URL (file:// for local crates).

        Returns:
            str: The rendered location

        Raises:
            RemoteButNotUrlError: a remote location was asked for as a path
            ComputeRelativeError: no relative path to the location exists
            DirectoryUrlError: the local path cannot be expressed as a URL
        """


@dataclass(frozen=True)
class Local(Location):
    """A crate checked out on disk; `path` is its manifest directory."""

    path: Path
    kind = LocationKind.LOCAL

    def __post_init__(self):
        if not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))
        if not self.path.is_absolute():
            raise ValueError(f"local location must be absolute: {self.path}")

    def __str__(self) -> str:
        return str(self.path)

    def show(self, relative: bool = False, as_url: bool = False) -> str:
        if as_url:
            return self._directory_url()
        if relative:
            return self._relative_path()
        return str(self.path)

    def _relative_path(self) -> str:
        try:
            cwd = os.getcwd()
        except OSError as e:
            raise FilesystemError(e) from e

        try:
            rel = os.path.relpath(self.path, cwd)
        except ValueError as e:
            # different drives on Windows
            raise ComputeRelativeError() from e

        return rel or "."

    def _directory_url(self) -> str:
        try:
            url = self.path.as_uri()
        except ValueError as e:
            raise DirectoryUrlError(str(self.path)) from e
        if not url.endswith("/"):
            url += "/"
        return url


@dataclass(frozen=True)
class Remote(Location):
    """A crate known only through its registry page."""

    url: str
    kind = LocationKind.REMOTE

    def __post_init__(self):
        parsed = urlparse(self.url)
        if not parsed.scheme or not parsed.netloc:
            raise UrlParseError(f"relative URL without a base: {self.url}")

    def __str__(self) -> str:
        return self.url

    def show(self, relative: bool = False, as_url: bool = False) -> str:
        if not as_url:
            raise RemoteButNotUrlError()
        return self.url
