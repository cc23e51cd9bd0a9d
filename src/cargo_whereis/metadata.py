"""
Workspace dependency graph, as reported by `cargo metadata`.

The resolver only needs a small slice of cargo's output: every package's
name, id, manifest path and source, plus the ids of the workspace members.
MetadataProvider abstracts where that graph comes from so the resolver can
be driven by an in-memory graph in tests.
"""

import json
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .error_handling import SecureLogger, log_metadata_error
from .errors import MetadataError
from .structured_logging import log_metadata_loaded

# Source strings cargo uses for crates.io: the git index and the sparse index.
CRATES_IO_SOURCES = (
    "registry+https://github.com/rust-lang/crates.io-index",
    "sparse+https://index.crates.io/",
)


@dataclass(frozen=True)
class PackageSource:
    """Provenance of a package, cargo's opaque `source` string."""

    repr: str

    def is_crates_io(self) -> bool:
        return self.repr in CRATES_IO_SOURCES

    def __str__(self) -> str:
        return self.repr


@dataclass(frozen=True)
class Package:
    """A single resolved package in the build."""

    id: str
    name: str
    version: str
    manifest_path: Path
    source: Optional[PackageSource] = None

    @property
    def manifest_dir(self) -> Path:
        return self.manifest_path.parent

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Package":
        source = data.get("source")
        return cls(
            id=data["id"],
            name=data["name"],
            version=data.get("version", ""),
            manifest_path=Path(data["manifest_path"]),
            source=PackageSource(source) if source else None,
        )


@dataclass
class Metadata:
    """The workspace's dependency graph."""

    packages: List[Package] = field(default_factory=list)
    workspace_members: List[str] = field(default_factory=list)
    workspace_root: Optional[Path] = None

    def __post_init__(self):
        self._by_id = {package.id: package for package in self.packages}

    def __getitem__(self, package_id: str) -> Package:
        try:
            return self._by_id[package_id]
        except KeyError:
            raise MetadataError(
                f"workspace member {package_id!r} is missing from the package list"
            ) from None

    def workspace_packages(self) -> Iterator[Package]:
        """Yield workspace member packages in declaration order."""
        for package_id in self.workspace_members:
            yield self[package_id]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Metadata":
        """Build a graph from `cargo metadata --format-version 1` output."""
        try:
            packages = [Package.from_dict(entry) for entry in data["packages"]]
            members = [str(member) for member in data["workspace_members"]]
        except KeyError as e:
            raise MetadataError(f"unexpected metadata format: missing {e}") from e
        except (TypeError, AttributeError) as e:
            raise MetadataError(f"unexpected metadata format: {e}") from e

        root = data.get("workspace_root")
        return cls(
            packages=packages,
            workspace_members=members,
            workspace_root=Path(root) if root else None,
        )

    @classmethod
    def from_json(cls, text: str) -> "Metadata":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MetadataError(f"invalid JSON from cargo metadata: {e}") from e
        if not isinstance(data, dict):
            raise MetadataError("unexpected metadata format: top level is not an object")
        return cls.from_dict(data)


class MetadataProvider(ABC):
    """Source of the workspace dependency graph."""

    @abstractmethod
    def load_graph(self, manifest_path: Optional[Path] = None) -> Metadata:
        """Load the graph, optionally for the workspace owning `manifest_path`."""


class StaticMetadataProvider(MetadataProvider):
    """Serves a graph that is already in memory."""

    def __init__(self, metadata: Metadata):
        self.metadata = metadata
        self.requested_paths: List[Optional[Path]] = []

    def load_graph(self, manifest_path: Optional[Path] = None) -> Metadata:
        self.requested_paths.append(manifest_path)
        return self.metadata


class CargoMetadataCommand(MetadataProvider):
    """Runs `cargo metadata` and parses its JSON output."""

    def __init__(
        self,
        cargo_path: str = "cargo",
        offline: bool = False,
        locked: bool = False,
        extra_args: Sequence[str] = (),
    ):
        self.cargo_path = cargo_path
        self.offline = offline
        self.locked = locked
        self.extra_args = list(extra_args)

    @classmethod
    def from_config(cls, config) -> "CargoMetadataCommand":
        return cls(
            cargo_path=config.metadata.cargo_path,
            offline=config.metadata.offline,
            locked=config.metadata.locked,
        )

    def build_command(self, manifest_path: Optional[Path] = None) -> List[str]:
        command = [self.cargo_path, "metadata", "--format-version", "1"]
        if manifest_path is not None:
            command.extend(["--manifest-path", str(manifest_path)])
        if self.offline:
            command.append("--offline")
        if self.locked:
            command.append("--locked")
        command.extend(self.extra_args)
        return command

    def _run_command(self, command: List[str]) -> Tuple[str, str, int]:
        """
        Run a command and capture its output.

        Returns:
            Tuple of (stdout, stderr, return_code)
        """
        completed = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
        )
        stdout = completed.stdout.decode("utf-8", errors="replace") if completed.stdout else ""
        stderr = completed.stderr.decode("utf-8", errors="replace") if completed.stderr else ""
        return stdout, stderr, completed.returncode

    def load_graph(self, manifest_path: Optional[Path] = None) -> Metadata:
        command = self.build_command(manifest_path)
        manifest = str(manifest_path) if manifest_path is not None else None
        started = time.perf_counter()

        try:
            stdout, stderr, return_code = self._run_command(command)
        except OSError as e:
            log_metadata_error(
                f"Could not run {self.cargo_path}: {e}",
                "load_graph",
                manifest_path=manifest,
                exception=e,
            )
            raise MetadataError(f"could not run {self.cargo_path}: {e}", e) from e

        if return_code != 0:
            detail = _last_error_line(SecureLogger.sanitize(stderr)) or f"exit status {return_code}"
            log_metadata_error(
                f"cargo metadata exited with status {return_code}: {detail}",
                "load_graph",
                manifest_path=manifest,
            )
            raise MetadataError(detail)

        try:
            metadata = Metadata.from_json(stdout)
        except MetadataError as e:
            log_metadata_error(str(e), "load_graph", manifest_path=manifest, exception=e)
            raise

        log_metadata_loaded(
            package_count=len(metadata.packages),
            workspace_member_count=len(metadata.workspace_members),
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return metadata


def _last_error_line(stderr: str) -> str:
    """Pick cargo's `error: ...` line out of its stderr, if there is one."""
    lines = [line.strip() for line in stderr.splitlines() if line.strip()]
    for line in lines:
        if line.startswith("error:"):
            return line[len("error:"):].strip()
    return lines[-1] if lines else ""

