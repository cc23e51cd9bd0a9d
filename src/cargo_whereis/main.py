import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console

from .cli_config import load_config
from .error_handling import ErrorCategory, ErrorLevel, get_error_handler
from .errors import RemoteButNotUrlError, WhereisError
from .location import Location
from .metadata import CargoMetadataCommand
from .resolver import where_is
from .structured_logging import configure_logging, log_render_fallback

__version__ = "0.2.0"

# cargo runs `cargo-whereis whereis ARGS...` for `cargo whereis ARGS...`
CARGO_SUBCOMMAND = "whereis"


def render_location(
    location: Location, relative: bool, as_url: bool, force: bool
) -> str:
    """
    Render a location, falling back to a URL for remote crates when forced.

    Only RemoteButNotUrlError is retried; any other error propagates.
    """
    try:
        return location.show(relative=relative, as_url=as_url)
    except RemoteButNotUrlError as e:
        if not force:
            _record_render_failure(location, e)
            raise
        log_render_fallback(str(location))
        return location.show(relative=relative, as_url=True)


def _record_render_failure(location: Location, error: WhereisError) -> None:
    get_error_handler().handle_error(
        ErrorLevel.INFO,
        ErrorCategory.RENDERING,
        str(error),
        "main",
        "render_location",
        details={"location": str(location)},
        suggestions=["Pass --url, or --force to accept a URL for remote crates"],
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="cargo-whereis")
@click.option(
    "--manifest-path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Location of workspace Cargo.toml.",
)
@click.option(
    "--relative",
    "-r",
    is_flag=True,
    help="Output relative to the current directory. Default: output is absolute.",
)
@click.option(
    "--url",
    "-u",
    "as_url",
    is_flag=True,
    help=(
        "Output a URL. This uses file:// syntax for local crates, and links to "
        "the appropriate registry for remote crates."
    ),
)
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Output a URL instead of an error if the crate is an external dependency.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log resolution details to stderr.")
@click.argument("crate", metavar="CRATE")
def cli(
    manifest_path: Optional[Path],
    relative: bool,
    as_url: bool,
    force: bool,
    verbose: bool,
    crate: str,
) -> None:
    """
    Find where a crate's source lives.

    CRATE must be the official crate name, even if it has an alias.

    Without --url the output is a local filesystem path, and with --url it is
    always a URL. This behavior is consistent, for scripting; --force accepts
    either a path or a URL according to the nature of the dependency.

    Examples:

      cargo whereis serde

      cargo whereis my-crate --relative

      cargo whereis serde --force
    """
    if as_url and relative:
        raise click.UsageError("--relative cannot be used with --url")
    if as_url and force:
        raise click.UsageError("--force cannot be used with --url")

    try:
        config = load_config()
        configure_logging(
            "DEBUG" if verbose else config.logging.log_level,
            enable_json=config.logging.json_logs,
            log_format=config.logging.log_format,
        )

        location = where_is(
            crate,
            manifest_path,
            provider=CargoMetadataCommand.from_config(config),
        )
        click.echo(render_location(location, relative, as_url, force))

    except KeyboardInterrupt:
        Console(stderr=True).print("interrupted", style="yellow")
        sys.exit(130)
    except WhereisError as e:
        Console(stderr=True).print(
            f"error: {e}", style="red", markup=False, highlight=False, soft_wrap=True
        )
        sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    """Console entry point, usable directly or as `cargo whereis`."""
    args = list(sys.argv[1:] if argv is None else argv)
    if args and args[0] == CARGO_SUBCOMMAND:
        args = args[1:]
    cli.main(args=args, prog_name="cargo-whereis")


if __name__ == "__main__":
    main()
