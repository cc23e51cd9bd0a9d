"""
Configuration management for cargo-whereis.

Settings come from defaults, then the first config file found in the
standard locations (TOML or JSON), then environment variables.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import toml
from rich.console import Console

from .error_handling import ErrorCategory, get_error_handler

console = Console(stderr=True)

DEFAULT_CRATES_IO_URL = "https://crates.io/crates/"


@dataclass
class MetadataConfig:
    """How `cargo metadata` is invoked."""

    cargo_path: str = "cargo"
    offline: bool = False
    locked: bool = False


@dataclass
class RegistryConfig:
    """Registry URL construction."""

    crates_io_url: str = DEFAULT_CRATES_IO_URL


@dataclass
class LoggingConfig:
    """Logging and error reporting configuration."""

    log_level: str = "WARNING"
    json_logs: bool = False
    log_format: str = "%(levelname)s %(name)s: %(message)s"


@dataclass
class WhereisConfig:
    """Main configuration containing all subsections."""

    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global configuration instance
_global_config: Optional[WhereisConfig] = None


def validate_config_values(config: WhereisConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    if not config.metadata.cargo_path.strip():
        errors.append("metadata.cargo_path must not be empty")

    parsed = urlparse(config.registry.crates_io_url)
    if not parsed.scheme or not parsed.netloc:
        errors.append("registry.crates_io_url must be an absolute URL")

    if not isinstance(logging.getLevelName(config.logging.log_level.upper()), int):
        errors.append(f"logging.log_level is not a valid level: {config.logging.log_level}")

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from a TOML or JSON file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() == ".toml":
                return toml.load(f)
            elif config_path.suffix.lower() == ".json":
                return json.load(f)
    except (OSError, ValueError, toml.TomlDecodeError) as e:
        console.print(
            f"warning: error loading config from {config_path}: {e}", style="yellow"
        )

    return None


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".cargo-whereis.toml",
        Path.cwd() / ".cargo-whereis.json",
        Path.home() / ".config" / "cargo-whereis" / "config.toml",
        Path.home() / ".config" / "cargo-whereis" / "config.json",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: WhereisConfig) -> None:
    """Apply environment variable overrides."""

    def get_env_bool(key: str, default: bool = False) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    # cargo sets CARGO when it runs an external subcommand
    if cargo := os.environ.get("CARGO"):
        config.metadata.cargo_path = cargo
    if cargo := os.environ.get("CARGO_WHEREIS_CARGO"):
        config.metadata.cargo_path = cargo

    config.metadata.offline = get_env_bool("CARGO_WHEREIS_OFFLINE", config.metadata.offline)
    config.metadata.locked = get_env_bool("CARGO_WHEREIS_LOCKED", config.metadata.locked)

    if registry_url := os.environ.get("CARGO_WHEREIS_REGISTRY_URL"):
        config.registry.crates_io_url = registry_url

    if log_level := os.environ.get("CARGO_WHEREIS_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()
    config.logging.json_logs = get_env_bool("CARGO_WHEREIS_JSON_LOGS", config.logging.json_logs)


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    for key, value in section_data.items():
        if hasattr(config, key):
            expected = type(getattr(config, key))
            if not isinstance(value, expected):
                console.print(
                    f"warning: {section_name}.{key} must be a {expected.__name__}, "
                    f"ignoring {value!r}",
                    style="yellow",
                )
                continue
            setattr(config, key, value)
        else:
            console.print(
                f"warning: unknown config key in {section_name}: {key}", style="yellow"
            )


def load_config() -> WhereisConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None:
        return _global_config

    config = WhereisConfig()

    config_file = find_config_file()
    if config_file:
        file_config = load_config_file(config_file)
        if file_config:
            for section_name in ("metadata", "registry", "logging"):
                if isinstance(file_config.get(section_name), dict):
                    apply_config_section(
                        getattr(config, section_name),
                        file_config[section_name],
                        section_name,
                    )

    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("warning: configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        get_error_handler().warning(
            ErrorCategory.CONFIGURATION,
            "Invalid configuration values replaced by defaults",
            "cli_config",
            "load_config",
            details={"errors": validation_errors},
            suggestions=["Run with a corrected config file or environment"],
        )
        _restore_invalid_defaults(config, validation_errors)

    _global_config = config
    return config


def _restore_invalid_defaults(config: WhereisConfig, errors: List[str]) -> None:
    defaults = WhereisConfig()
    for error in errors:
        if error.startswith("metadata.cargo_path"):
            config.metadata.cargo_path = defaults.metadata.cargo_path
        elif error.startswith("registry.crates_io_url"):
            config.registry.crates_io_url = defaults.registry.crates_io_url
        elif error.startswith("logging.log_level"):
            config.logging.log_level = defaults.logging.log_level


def get_config() -> WhereisConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None
