"""cli.py: Command‑line interface for **cache-table**
====================================================

A small **Typer** application for poking at cache tables from the shell.
Tables live in‑process, so the commands build a table, exercise it and
report on it rather than talking to a running service.

Usage examples
--------------
::

    # Show the merged settings (env, YAML, TOML, .env)
    cache-table settings --json

    # Fill a table with 50 items of random lifespan, read it 500 times,
    # wait two seconds and report what survived
    cache-table simulate --items 50 --max-lifespan 3 --reads 500 --wait 2

Notes
-----
* Settings are read from :pymod:`cache_table.config.settings` – override
  via ``CACHE_TABLE_*`` environment variables or config files.
* Errors are rendered with coloured tracebacks using *rich*.
"""
from __future__ import annotations

import json
import random
import sys
import time
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table
from rich.traceback import install as rich_tb_install

from cache_table.config.settings import configure_logging, get_settings
from cache_table.core.registry import cache, drop_table
from cache_table.utils.exceptions import KeyNotFoundError

# pretty tracebacks for CLI users
rich_tb_install(show_locals=False)

# ---------------------------------------------------------------------------
# Typer application
# ---------------------------------------------------------------------------
app = typer.Typer(add_completion=False, rich_markup_mode="rich", no_args_is_help=True)
console = Console()

# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command(help="Print the merged settings.")
def settings(
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    s = get_settings()
    dumped = s.model_dump(mode="json")
    if as_json:
        typer.echo(json.dumps(dumped, indent=2))
    else:
        for k, v in dumped.items():
            rprint(f"[bold]{k:24}[/] : {v}")


@app.command(help="Fill an in‑process table, read from it and report expiry.")
def simulate(
    items: int = typer.Option(20, "--items", "-n", min=1, help="Number of items to add"),
    max_lifespan: float = typer.Option(
        2.0, "--max-lifespan", help="Upper bound of random lifespans in seconds (0 = never expire)"
    ),
    reads: int = typer.Option(100, "--reads", "-r", min=0, help="Random lookups to perform"),
    wait: float = typer.Option(0.0, "--wait", "-w", min=0.0, help="Seconds to wait before reporting"),
    top: int = typer.Option(5, "--top", "-t", min=1, help="How many of the most accessed items to show"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducible runs"),
    name: Optional[str] = typer.Option(None, "--table", help="Table name (defaults to settings.default_table)"),
) -> None:
    """Show how lifespans and access counts evolve for a synthetic workload."""

    rng = random.Random(seed)
    table_name = name or get_settings().default_table
    table = cache(table_name)
    expired: list[str] = []
    misses = 0
    table.add_about_to_delete_item_callback(lambda item: expired.append(item.key))

    try:
        for i in range(items):
            life_span = round(rng.uniform(max_lifespan / 10, max_lifespan), 2) if max_lifespan > 0 else 0
            table.add(f"key-{i}", life_span, f"value-{i}")
        for _ in range(reads):
            try:
                table.value(f"key-{rng.randrange(items)}")
            except KeyNotFoundError:
                misses += 1

        rprint(f"[green]✓ Added {items} items, performed {reads} reads ({misses} misses).[/]")
        if wait:
            time.sleep(wait)

        report = Table(title=f"Most accessed in '{table_name}'")
        report.add_column("key")
        report.add_column("hits", justify="right")
        report.add_column("lifespan (s)", justify="right")
        for item in table.most_accessed(top):
            report.add_row(str(item.key), str(item.access_count), f"{item.life_span:g}")
        console.print(report)
        rprint(f"[bold]{table.count()}[/] items alive, [yellow]{len(expired)}[/] expired.")
    finally:
        drop_table(table_name)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:  # pragma: no cover
    """CLI entry‑point used by `python -m cache_table.cli`."""

    configure_logging()
    try:
        app()
    except Exception as exc:
        rprint(f"[red]Error:[/] {exc}")
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
