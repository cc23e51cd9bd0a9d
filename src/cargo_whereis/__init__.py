"""Locate a Cargo workspace dependency on disk or on crates.io."""

from .errors import (
    ComputeRelativeError,
    DirectoryUrlError,
    FilesystemError,
    MetadataError,
    NoSourceError,
    NotFoundError,
    RemoteButNotUrlError,
    UnknownRegistryError,
    UrlParseError,
    WhereisError,
)
from .location import Local, Location, LocationKind, Remote
from .metadata import (
    CargoMetadataCommand,
    Metadata,
    MetadataProvider,
    Package,
    PackageSource,
    StaticMetadataProvider,
)
from .resolver import ROOT_SENTINEL, where_is

__all__ = [
    "CargoMetadataCommand",
    "ComputeRelativeError",
    "DirectoryUrlError",
    "FilesystemError",
    "Local",
    "Location",
    "LocationKind",
    "Metadata",
    "MetadataError",
    "MetadataProvider",
    "NoSourceError",
    "NotFoundError",
    "Package",
    "PackageSource",
    "ROOT_SENTINEL",
    "Remote",
    "RemoteButNotUrlError",
    "StaticMetadataProvider",
    "UnknownRegistryError",
    "UrlParseError",
    "WhereisError",
    "where_is",
]
