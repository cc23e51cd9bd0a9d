"""
Crate location resolution.

Workspace members are looked up first and always win: a member is reported
as its local checkout even if some dependency in the graph shares its name.
Anything else must come from crates.io to be locatable.
"""

import os
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote, urljoin, urlparse

from .cli_config import get_config
from .error_handling import (
    ErrorCategory,
    ErrorLevel,
    get_error_handler,
    log_resolution_error,
)
from .errors import NoSourceError, NotFoundError, UnknownRegistryError, UrlParseError
from .location import Local, Location, Remote
from .metadata import CargoMetadataCommand, Metadata, MetadataProvider, Package
from .structured_logging import log_crate_resolved

# Reported for a workspace member whose directory cannot be canonicalized;
# "/" on POSIX.
ROOT_SENTINEL = Path(os.path.abspath(os.sep))


def canonical_manifest_dir(package: Package) -> Path:
    """Canonical directory of the package's manifest, or ROOT_SENTINEL."""
    try:
        return package.manifest_dir.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        get_error_handler().handle_error(
            ErrorLevel.INFO,
            ErrorCategory.FILESYSTEM,
            f"Could not canonicalize {package.manifest_dir}, using {ROOT_SENTINEL}",
            "resolver",
            "canonical_manifest_dir",
            exception=e,
            details={"crate": package.name},
        )
        return ROOT_SENTINEL


def crates_io_url(crate_name: str, base_url: Optional[str] = None) -> str:
    """The crate's page on crates.io."""
    if base_url is None:
        base_url = get_config().registry.crates_io_url

    parsed = urlparse(base_url)
    if not parsed.scheme or not parsed.netloc:
        raise UrlParseError(f"relative URL without a base: {base_url}")
    if not base_url.endswith("/"):
        base_url += "/"

    return urljoin(base_url, quote(crate_name, safe=""))


def find_location(
    crate_name: str, metadata: Metadata, registry_url: Optional[str] = None
) -> Location:
    """Classify `crate_name` within an already loaded graph."""
    member = next(
        (
            package
            for package in metadata.workspace_packages()
            if package.name == crate_name
        ),
        None,
    )
    if member is not None:
        return Local(canonical_manifest_dir(member))

    package = next(
        (package for package in metadata.packages if package.name == crate_name),
        None,
    )
    if package is None:
        log_resolution_error(
            f"Crate {crate_name} not found in workspace metadata",
            "find_location",
            crate_name,
        )
        raise NotFoundError(crate_name)

    if package.source is None:
        log_resolution_error(
            f"Crate {crate_name} has no recorded source", "find_location", crate_name
        )
        raise NoSourceError()

    if not package.source.is_crates_io():
        log_resolution_error(
            f"Crate {crate_name} comes from an unsupported source: {package.source}",
            "find_location",
            crate_name,
        )
        raise UnknownRegistryError(crate_name)

    return Remote(crates_io_url(crate_name, registry_url))


def where_is(
    crate_name: str,
    manifest_path: Optional[Union[str, Path]] = None,
    provider: Optional[MetadataProvider] = None,
) -> Location:
    """
    Determine where a particular dependency is located.

    Args:
        crate_name: Canonical crate name; aliases are not resolved
        manifest_path: Workspace Cargo.toml, defaults to cargo's own discovery
        provider: Source of the dependency graph, defaults to `cargo metadata`

    Returns:
        Location: Local for workspace members, Remote for crates.io dependencies

    Raises:
        MetadataError: the dependency graph could not be loaded
        NotFoundError: no package has this name
        NoSourceError: the package has no recorded source
        UnknownRegistryError: the package is not from crates.io
    """
    config = get_config()
    if provider is None:
        provider = CargoMetadataCommand.from_config(config)

    metadata = provider.load_graph(Path(manifest_path) if manifest_path else None)
    location = find_location(crate_name, metadata, config.registry.crates_io_url)

    log_crate_resolved(crate_name, location.kind.value, str(location))
    return location
