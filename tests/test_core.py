"""
Core functionality tests for cargo-whereis.
Tests location rendering and crate resolution against in-memory graphs.
"""

import os
from pathlib import Path

import pytest

from cargo_whereis.errors import (
    ComputeRelativeError,
    MetadataError,
    NoSourceError,
    NotFoundError,
    RemoteButNotUrlError,
    UnknownRegistryError,
    UrlParseError,
)
from cargo_whereis.error_handling import ErrorCategory, get_error_handler
from cargo_whereis.location import Local, LocationKind, Remote
from cargo_whereis.metadata import Metadata, Package, StaticMetadataProvider
from cargo_whereis.resolver import ROOT_SENTINEL, crates_io_url, find_location, where_is


class TestLocalRendering:
    """Test rendering of on-disk locations."""

    def test_absolute_path(self, workspace):
        location = Local(workspace / "app")
        assert location.show() == str(workspace / "app")

    def test_relative_path(self, workspace, monkeypatch):
        monkeypatch.chdir(workspace)
        assert Local(workspace / "app").show(relative=True) == "app"

    def test_relative_path_to_parent(self, workspace, monkeypatch):
        monkeypatch.chdir(workspace / "app")
        assert Local(workspace / "helper").show(relative=True) == os.path.join("..", "helper")

    def test_relative_path_of_cwd_is_dot(self, workspace, monkeypatch):
        monkeypatch.chdir(workspace / "app")
        assert Local(Path.cwd()).show(relative=True) == "."

    def test_relative_path_failure(self, workspace, monkeypatch):
        def no_relpath(path, start=None):
            raise ValueError("path is on mount 'C:', start on mount 'D:'")

        monkeypatch.setattr("cargo_whereis.location.os.path.relpath", no_relpath)
        with pytest.raises(ComputeRelativeError) as exc_info:
            Local(workspace / "app").show(relative=True)
        assert "relative path" in str(exc_info.value)

    def test_directory_url(self, workspace):
        url = Local(workspace / "app").show(as_url=True)
        assert url == (workspace / "app").as_uri() + "/"
        assert url.startswith("file://")

    def test_url_ignores_relative(self, workspace):
        location = Local(workspace / "app")
        assert location.show(relative=True, as_url=True) == location.show(as_url=True)

    def test_root_directory_url_has_single_slash(self):
        assert Local(Path("/")).show(as_url=True) == "file:///"

    def test_relative_path_rejected(self):
        with pytest.raises(ValueError):
            Local(Path("relative/dir"))

    def test_string_path_is_accepted(self, workspace):
        location = Local(str(workspace / "app"))
        assert location.path == workspace / "app"
        assert location == Local(workspace / "app")

    def test_relative_string_path_rejected(self):
        with pytest.raises(ValueError):
            Local("relative/dir")

    def test_rendering_is_repeatable(self, workspace, monkeypatch):
        monkeypatch.chdir(workspace)
        location = Local(workspace / "app")
        for relative in (False, True):
            for as_url in (False, True):
                assert location.show(relative, as_url) == location.show(relative, as_url)

    def test_kind(self, workspace):
        assert Local(workspace).kind is LocationKind.LOCAL


class TestRemoteRendering:
    """Test rendering of registry locations."""

    URL = "https://crates.io/crates/serde"

    @pytest.mark.parametrize("relative", [False, True])
    def test_path_form_is_an_error(self, relative):
        with pytest.raises(RemoteButNotUrlError) as exc_info:
            Remote(self.URL).show(relative=relative, as_url=False)
        assert "--url" in str(exc_info.value)

    @pytest.mark.parametrize("relative", [False, True])
    def test_url_form(self, relative):
        assert Remote(self.URL).show(relative=relative, as_url=True) == self.URL

    def test_error_is_repeatable(self):
        location = Remote(self.URL)
        messages = []
        for _ in range(2):
            with pytest.raises(RemoteButNotUrlError) as exc_info:
                location.show()
            messages.append(str(exc_info.value))
        assert messages[0] == messages[1]

    def test_relative_url_rejected(self):
        with pytest.raises(UrlParseError):
            Remote("crates/serde")

    def test_kind(self):
        assert Remote(self.URL).kind is LocationKind.REMOTE


class TestResolution:
    """Test classification of crate names."""

    def test_workspace_member_is_local(self, provider, workspace):
        location = where_is("app", provider=provider)
        assert location == Local(workspace / "app")

    def test_workspace_member_wins_over_registry_package(self, provider, workspace):
        # a crates.io package named `helper` is also in the graph
        location = where_is("helper", provider=provider)
        assert location == Local(workspace / "helper")

    def test_crates_io_dependency_is_remote(self, provider):
        location = where_is("serde", provider=provider)
        assert location == Remote("https://crates.io/crates/serde")

    def test_unknown_registry(self, provider):
        with pytest.raises(UnknownRegistryError) as exc_info:
            where_is("private-dep", provider=provider)
        assert exc_info.value.name == "private-dep"
        assert str(exc_info.value) == "cannot form URL for registry: private-dep"

    def test_package_without_source(self, provider):
        with pytest.raises(NoSourceError):
            where_is("vendored", provider=provider)

    def test_not_found(self, provider):
        with pytest.raises(NotFoundError) as exc_info:
            where_is("nope", provider=provider)
        assert exc_info.value.name == "nope"
        assert str(exc_info.value) == "no such crate in this workspace: nope"

    def test_names_are_case_sensitive(self, provider):
        with pytest.raises(NotFoundError):
            where_is("Serde", provider=provider)

    def test_manifest_path_is_passed_to_provider(self, provider, workspace):
        where_is("app", workspace / "Cargo.toml", provider=provider)
        assert provider.requested_paths == [workspace / "Cargo.toml"]

    def test_no_manifest_path(self, provider):
        where_is("app", provider=provider)
        assert provider.requested_paths == [None]

    def test_missing_member_directory_falls_back_to_root(self, tmp_path):
        ghost = Package(
            id="ghost 0.1.0",
            name="ghost",
            version="0.1.0",
            manifest_path=tmp_path / "gone" / "Cargo.toml",
        )
        metadata = Metadata(packages=[ghost], workspace_members=[ghost.id])
        location = where_is("ghost", provider=StaticMetadataProvider(metadata))
        assert location == Local(ROOT_SENTINEL)
        stats = get_error_handler().get_error_stats()
        assert stats.get(f"{ErrorCategory.FILESYSTEM.value}_INFO") == 1

    def test_member_missing_from_packages(self):
        metadata = Metadata(packages=[], workspace_members=["orphan 0.1.0"])
        with pytest.raises(MetadataError):
            find_location("orphan", metadata)

    def test_provider_failure_is_not_retried(self):
        class FailingProvider(StaticMetadataProvider):
            calls = 0

            def load_graph(self, manifest_path=None):
                FailingProvider.calls += 1
                raise MetadataError("cargo exploded")

        with pytest.raises(MetadataError) as exc_info:
            where_is("app", provider=FailingProvider(Metadata()))
        assert FailingProvider.calls == 1
        assert str(exc_info.value) == "failed to load cargo metadata: cargo exploded"

    def test_resolution_errors_are_recorded(self, provider):
        with pytest.raises(NotFoundError):
            where_is("nope", provider=provider)
        stats = get_error_handler().get_error_stats()
        assert stats.get(f"{ErrorCategory.RESOLUTION.value}_WARNING") == 1


class TestRegistryUrl:
    """Test crates.io URL construction."""

    def test_default_base(self):
        assert crates_io_url("serde") == "https://crates.io/crates/serde"

    def test_base_without_trailing_slash(self):
        assert crates_io_url("serde", "https://mirror.example.com/crates") == (
            "https://mirror.example.com/crates/serde"
        )

    def test_configured_base(self, provider, monkeypatch):
        monkeypatch.setenv("CARGO_WHEREIS_REGISTRY_URL", "https://mirror.example.com/c/")
        assert where_is("serde", provider=provider) == Remote(
            "https://mirror.example.com/c/serde"
        )

    def test_invalid_base(self):
        with pytest.raises(UrlParseError):
            crates_io_url("serde", "not a url")
