"""CLI entry point for vecscan."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click


# Default config template
CONFIG_TEMPLATE = """\
scan:
  check_invariants: false  # Validate cursor positions after every step

logging:
  level: WARNING  # DEBUG shows per-scan compaction and reconciliation

# First matching rule wins; unmatched elements are kept.
# match: a mapping (subset match on objects) or a scalar (equality).
# Omit match to apply a rule to every element.
rules: []
#  - match: {status: draft}
#    action: remove
#  - match: {kind: section}
#    action: update
#    set: {reviewed: true}
#  - match: {kind: section}
#    action: insert_after
#    items: [{kind: divider}]
#  - match: 0
#    action: replace
#    value: null
"""


def _read_items(path: Path, jsonl: bool) -> list[Any]:
    text = path.read_text(encoding="utf-8")
    try:
        if jsonl:
            return [json.loads(line) for line in text.splitlines() if line.strip()]
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Cannot parse {path}: {exc}") from exc
    if not isinstance(data, list):
        raise click.ClickException(
            f"{path} must contain a JSON array, got {type(data).__name__}"
        )
    return data


def _dump_items(items: list[Any], jsonl: bool) -> str:
    if jsonl:
        return "".join(json.dumps(item, ensure_ascii=False) + "\n" for item in items)
    return json.dumps(items, indent=2, ensure_ascii=False) + "\n"


@click.group()
def cli() -> None:
    """vecscan: in-place forward scans over lists."""


@cli.command()
@click.option(
    "--path",
    "config_path",
    type=click.Path(dir_okay=False, resolve_path=True),
    default=".vecscan.yaml",
    help="Where to write the config (default: ./.vecscan.yaml).",
)
def init(config_path: str) -> None:
    """Write a starter config file."""
    path = Path(config_path)
    if path.exists():
        click.echo(f"{path} already exists")
        raise SystemExit(1)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    click.echo(f"Created {path}")


@cli.command("check-config")
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
def check_config(config_path: str) -> None:
    """Validate a config file and its rules."""
    from vecscan.config import ConfigError, load_config

    try:
        config = load_config(Path(config_path))
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"Config OK: {len(config['rules'])} rule(s)")


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Config file with rules (default: ./.vecscan.yaml).",
)
@click.option(
    "--output",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the result here instead of stdout.",
)
@click.option("--jsonl", is_flag=True, help="Read and write JSON Lines instead of a JSON array.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def apply(
    input_path: str,
    config_path: str | None,
    output_path: str | None,
    jsonl: bool,
    verbose: bool,
) -> None:
    """Apply the configured rules to a JSON array in one pass."""
    from vecscan.config import ConfigError, load_config, log_level
    from vecscan.rules import apply_rules, parse_rules

    try:
        config = load_config(Path(config_path) if config_path else None)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    logging.basicConfig(
        level=logging.DEBUG if verbose else log_level(config),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    items = _read_items(Path(input_path), jsonl)
    rules = parse_rules(config["rules"])
    report = apply_rules(items, rules, check_invariants=config["scan"]["check_invariants"])

    rendered = _dump_items(items, jsonl)
    if output_path:
        Path(output_path).write_text(rendered, encoding="utf-8")
    else:
        click.echo(rendered, nl=False)

    click.echo(f"vecscan: {report.summary()}", err=True)
