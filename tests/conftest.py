"""
Shared fixtures for cargo-whereis tests.
"""

import json

import pytest

from cargo_whereis.cli_config import reset_config
from cargo_whereis.error_handling import get_error_handler
from cargo_whereis.metadata import Metadata, Package, PackageSource, StaticMetadataProvider

CRATES_IO_SOURCE = "registry+https://github.com/rust-lang/crates.io-index"
PRIVATE_SOURCE = "registry+https://my-registry.example.com/index"


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep user config files and cargo environment out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("CARGO", raising=False)
    for key in (
        "CARGO_WHEREIS_CARGO",
        "CARGO_WHEREIS_OFFLINE",
        "CARGO_WHEREIS_LOCKED",
        "CARGO_WHEREIS_REGISTRY_URL",
        "CARGO_WHEREIS_LOG_LEVEL",
        "CARGO_WHEREIS_JSON_LOGS",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)

    reset_config()
    get_error_handler().reset_stats()
    yield
    reset_config()


@pytest.fixture
def workspace(tmp_path):
    """A workspace root with two member crates on disk."""
    root = tmp_path / "ws"
    for member in ("app", "helper"):
        crate_dir = root / member
        crate_dir.mkdir(parents=True)
        (crate_dir / "Cargo.toml").write_text(
            f'[package]\nname = "{member}"\nversion = "0.1.0"\n'
        )
    (root / "Cargo.toml").write_text('[workspace]\nmembers = ["app", "helper"]\n')
    return root.resolve()


def _package(name, manifest_path, source=None, version="1.0.0"):
    return Package(
        id=f"{name} {version} ({source or 'path+file://' + str(manifest_path.parent)})",
        name=name,
        version=version,
        manifest_path=manifest_path,
        source=PackageSource(source) if source else None,
    )


@pytest.fixture
def sample_metadata(workspace, tmp_path):
    """
    Graph with members `app` and `helper`, plus external packages:
    serde (crates.io), private-dep (another registry), vendored (no source),
    and a crates.io package that shares the name `helper`.
    """
    registry = tmp_path / "registry"
    app = _package("app", workspace / "app" / "Cargo.toml", version="0.1.0")
    helper = _package("helper", workspace / "helper" / "Cargo.toml", version="0.1.0")
    packages = [
        app,
        helper,
        _package("serde", registry / "serde-1.0.0" / "Cargo.toml", CRATES_IO_SOURCE),
        _package(
            "private-dep", registry / "private-dep-0.3.0" / "Cargo.toml", PRIVATE_SOURCE
        ),
        _package("vendored", tmp_path / "vendor" / "vendored" / "Cargo.toml"),
        _package("helper", registry / "helper-9.9.9" / "Cargo.toml", CRATES_IO_SOURCE, "9.9.9"),
    ]
    return Metadata(
        packages=packages,
        workspace_members=[app.id, helper.id],
        workspace_root=workspace,
    )


@pytest.fixture
def provider(sample_metadata):
    return StaticMetadataProvider(sample_metadata)


@pytest.fixture
def cargo_metadata_json(workspace, tmp_path):
    """Output shaped like `cargo metadata --format-version 1`."""
    app_id = f"path+file://{workspace / 'app'}#0.1.0"
    serde_id = f"{CRATES_IO_SOURCE}#serde@1.0.197"
    return json.dumps(
        {
            "packages": [
                {
                    "name": "app",
                    "version": "0.1.0",
                    "id": app_id,
                    "source": None,
                    "dependencies": [],
                    "manifest_path": str(workspace / "app" / "Cargo.toml"),
                },
                {
                    "name": "serde",
                    "version": "1.0.197",
                    "id": serde_id,
                    "source": CRATES_IO_SOURCE,
                    "dependencies": [],
                    "manifest_path": str(tmp_path / "registry" / "serde-1.0.197" / "Cargo.toml"),
                },
            ],
            "workspace_members": [app_id],
            "resolve": None,
            "target_directory": str(workspace / "target"),
            "version": 1,
            "workspace_root": str(workspace),
        }
    )
