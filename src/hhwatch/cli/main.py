"""CLI commands."""

from __future__ import annotations

import sys
import time
from pathlib import Path

import click

from hhwatch.config import load_config, setup_logging
from hhwatch.models.config import Config
from hhwatch.watchman import WatchmanError, WatchmanSession, init_exn
from hhwatch.watchman.crash import crash_marker_path


def _open_session(config: Config, root: Path, subscribe: bool) -> WatchmanSession:
    try:
        return init_exn(
            config.watchman.init_timeout,
            subscribe,
            root.resolve(),
            config=config,
        )
    except WatchmanError as e:
        click.echo(f"Watchman unavailable for {root}: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("--config", "-c", type=Path, help="Config file path")
@click.option("--strict/--no-strict", default=None, help="Exit on Watchman failures")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, strict: bool | None) -> None:
    """hhwatch - list and track source files through Watchman."""
    ctx.ensure_object(dict)
    loaded = load_config(config)
    if strict is not None:
        loaded.watchman.strict = strict
    setup_logging(loaded)
    ctx.obj["config"] = loaded


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.pass_context
def files(ctx: click.Context, root: Path) -> None:
    """Print every tracked file under ROOT."""
    config = ctx.obj["config"]
    session = _open_session(config, root, subscribe=False)

    try:
        for path in sorted(session.get_all_files()):
            click.echo(path)
    except WatchmanError as e:
        click.echo(f"Watchman failed: {e}", err=True)
        sys.exit(1)
    finally:
        session.close()


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--subscribe/--no-subscribe", default=None, help="Use a subscription")
@click.option("--interval", "-i", default=1.0, help="Seconds between polls")
@click.option("--count", "-n", default=0, help="Stop after N polls (0 = forever)")
@click.pass_context
def changes(
    ctx: click.Context,
    root: Path,
    subscribe: bool | None,
    interval: float,
    count: int,
) -> None:
    """Print files under ROOT as they change."""
    config = ctx.obj["config"]
    if subscribe is None:
        subscribe = config.watchman.subscribe
    session = _open_session(config, root, subscribe=subscribe)

    polls = 0
    try:
        while count == 0 or polls < count:
            if polls:
                time.sleep(interval)
            changed = session.get_changes()
            polls += 1
            for path in sorted(changed):
                click.echo(f"{session.clockspec} {path}")
    except WatchmanError as e:
        click.echo(f"Watchman failed: {e}", err=True)
        sys.exit(1)
    finally:
        session.close()


@cli.command("crash-marker")
@click.argument("root", type=Path)
@click.pass_context
def crash_marker(ctx: click.Context, root: Path) -> None:
    """Show the crash marker for ROOT and whether it exists."""
    config = ctx.obj["config"]
    marker = crash_marker_path(root.resolve(), config.watchman.tmp_dir)

    click.echo(str(marker))
    if marker.exists():
        click.echo("Watchman failed for this root", err=True)
        sys.exit(1)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
