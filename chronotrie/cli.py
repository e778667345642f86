"""CLI entry point for Chronotrie."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.syntax import Syntax
from rich.table import Table

from chronotrie_core.config import ChronotrieConfig, load_config
from chronotrie_core.config.loader import DEFAULT_CONFIG_TEMPLATE
from chronotrie_core.hlc import ClockError, HybridLogicalClock, Timestamp
from chronotrie_core.merkle import KeyCodec, MerkleTrie, MerkleTrieDiffer, hash_timestamp

app = typer.Typer(
    name="chronotrie",
    help="Find where two replicas' timestamped event sets diverge.",
)

config_app = typer.Typer(help="Manage Chronotrie configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: ChronotrieConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}
_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonLogFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _get_config() -> ChronotrieConfig:
    if _config is None:
        return load_config()
    return _config


def _configure_logging(cfg: ChronotrieConfig) -> None:
    if cfg.log_format == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JsonLogFormatter())
        logging.basicConfig(level=_LOG_LEVELS[cfg.log_level], handlers=[handler])
    else:
        logging.basicConfig(level=_LOG_LEVELS[cfg.log_level], format=_TEXT_FORMAT)


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to chronotrie.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _configure_logging(_config)


def _codec(cfg: ChronotrieConfig, depth: int | None = None) -> KeyCodec:
    if depth is None:
        depth = cfg.trie.depth
    return KeyCodec(depth=depth, bucket_ms=cfg.trie.bucket_ms)


@app.command()
def key(
    millis: Annotated[int, typer.Argument(help="Wall-clock time in milliseconds since the epoch")],
    depth: Annotated[int | None, typer.Option("--depth", help="Override trie depth")] = None,
) -> None:
    """Print the trie key for a point in time."""
    cfg = _get_config()
    try:
        k = _codec(cfg, depth).encode(millis)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    typer.echo(str(k))


@app.command(name="hash")
def hash_cmd(
    millis: Annotated[int, typer.Argument(help="Wall-clock time in milliseconds since the epoch")],
    counter: Annotated[int, typer.Option("--counter", help="Logical counter")] = 0,
    origin: Annotated[str, typer.Option("--origin", help="Originating node id")] = "",
) -> None:
    """Print a timestamp's canonical string and item hash."""
    cfg = _get_config()
    try:
        ts = Timestamp(millis, counter, origin)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    typer.echo(ts.to_canonical())
    typer.echo(f"{cfg.trie.hash_algorithm}={hash_timestamp(ts, cfg.trie.hash_algorithm)}")


@app.command()
def now(
    origin: Annotated[
        str | None, typer.Option("--origin", help="Override clock.origin from config")
    ] = None,
) -> None:
    """Issue a timestamp from this node's clock, with its trie key and hash."""
    cfg = _get_config()
    clock_cfg = cfg.clock if origin is None else cfg.clock.model_copy(update={"origin": origin})
    if not clock_cfg.origin:
        rprint("[red]Error:[/red] no clock origin; set clock.origin or pass --origin")
        raise typer.Exit(1)
    try:
        ts = HybridLogicalClock.from_config(clock_cfg).send()
        k = _codec(cfg).key_for(ts)
    except (ClockError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    typer.echo(ts.to_canonical())
    typer.echo(f"key={k}")
    typer.echo(f"{cfg.trie.hash_algorithm}={hash_timestamp(ts, cfg.trie.hash_algorithm)}")


def _parse_event(entry: object) -> Timestamp:
    """Accept either a canonical string or a {millis, counter, origin} mapping."""
    if isinstance(entry, str):
        return Timestamp.parse(entry)
    if isinstance(entry, dict):
        try:
            return Timestamp(
                millis=int(entry["millis"]),
                counter=int(entry.get("counter", 0)),
                origin=str(entry.get("origin", "")),
            )
        except KeyError as e:
            raise ValueError(f"Event missing field {e}: {entry!r}") from e
        except TypeError as e:
            raise ValueError(f"Event fields must be scalars: {entry!r}") from e
    raise ValueError(f"Unsupported event entry: {entry!r}")


def _load_events(path: Path) -> list[Timestamp]:
    """Read a YAML/JSON list of events."""
    if not path.is_file():
        raise ValueError(f"Event file not found: {path}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of events in {path}")
    return [_parse_event(entry) for entry in raw]


@app.command()
def diff(
    left: Annotated[Path, typer.Argument(help="Events held by the left replica")],
    right: Annotated[Path, typer.Argument(help="Events held by the right replica")],
    max_depth: Annotated[
        int | None, typer.Option("--max-depth", help="Report coarser prefixes instead of full keys")
    ] = None,
    limit: Annotated[int | None, typer.Option("--limit", min=1, help="Stop after N paths")] = None,
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
    fail_on_diff: Annotated[
        bool, typer.Option("--fail-on-diff", help="Exit 1 if the replicas diverge")
    ] = False,
) -> None:
    """Build a trie for each event file and list where they diverge."""
    cfg = _get_config()
    try:
        left_trie = MerkleTrie.build(_load_events(left), cfg.trie)
        right_trie = MerkleTrie.build(_load_events(right), cfg.trie)
        result = MerkleTrieDiffer.diff(
            left_trie,
            right_trie,
            max_depth=max_depth,
            limit=limit if limit is not None else cfg.trie.max_divergences,
        )
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    codec = left_trie.codec
    if ci:
        for path in result.paths:
            start = Timestamp.from_millis(codec.prefix_start(path))
            typer.echo(f"DIVERGED {path} {start.as_datetime.isoformat()}")
        if not result.paths:
            typer.echo("OK: replicas equivalent")
        typer.echo(f"left_root={result.left_root_hash} right_root={result.right_root_hash}")
        if result.truncated:
            typer.echo("TRUNCATED")
    else:
        table = Table(title="Divergence")
        table.add_column("Key", style="cyan")
        table.add_column("From", style="green")
        for path in result.paths:
            start = Timestamp.from_millis(codec.prefix_start(path))
            table.add_row(str(path), start.as_datetime.isoformat())
        rprint(table)
        rprint(
            f"\n[dim]Root hashes:[/dim] {result.left_root_hash:#010x} / "
            f"{result.right_root_hash:#010x}"
        )
        if result.truncated:
            rprint(f"[yellow]Stopped after {len(result.paths)} path(s).[/yellow]")
        if result.paths:
            rprint(f"\n[red]{len(result.paths)} diverging path(s) found.[/red]")
        else:
            rprint("\n[green]Replicas are equivalent.[/green]")

    if fail_on_diff and result.paths:
        raise typer.Exit(code=1)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: Annotated[bool, typer.Option("--force", help="Overwrite existing file")] = False,
) -> None:
    """Write a default chronotrie.yaml to the current directory."""
    path = Path("chronotrie.yaml")
    if path.exists() and not force:
        rprint(f"[yellow]{path} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    path.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {path}")


if __name__ == "__main__":
    app()
