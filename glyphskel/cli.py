"""GlyphSkeleton CLI — build confusable tables and compare skeletons."""

import json
import logging
import sys

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .builder import DEFAULT_BASE_URL, DEFAULT_CACHE_DIR, DEFAULT_TTL, FetchError, TableBuilder
from .dataset import DatasetError
from .engine import SkeletonEngine
from .rules import OverrideRules
from .tables import (
    DEFAULT_TABLE_PATH,
    TABLE_ENV_VAR,
    ConfusableTable,
    TableNotFoundError,
    get_default_table,
)

console = Console()


def _load_table(path):
    """Load an explicit table path, or the default one. Exits on failure."""
    try:
        if path:
            return ConfusableTable.load(path)
        return get_default_table()
    except TableNotFoundError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)
    except (OSError, ValueError) as e:
        console.print(f"[red]Cannot load table {path or '(default)'}:[/] {e}")
        sys.exit(1)


def _escape(text: str) -> str:
    """Show non-ASCII characters as \\u escapes for unambiguous output."""
    return text.encode("ascii", "backslashreplace").decode("ascii")


def _write_output(path, text):
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    console.print(f"[green]Output written to {path}[/]")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log progress at INFO level")
def main(verbose):
    """GlyphSkeleton — Unicode TR39 confusable detection toolkit."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@main.command()
@click.option("--url", envvar="GLYPHSKEL_URL", default=DEFAULT_BASE_URL, show_default=True,
              help="Base URL of the Unicode security data directory")
@click.option("--local", "local_path", type=click.Path(exists=True),
              help="Read confusables.txt from this file or directory instead of downloading")
@click.option("-o", "--output", type=click.Path(), default=DEFAULT_TABLE_PATH, show_default=True,
              help="Where to write the generated table")
@click.option("--cache-dir", default=DEFAULT_CACHE_DIR, show_default=True,
              help="Download cache directory")
@click.option("--ttl", type=int, default=DEFAULT_TTL, show_default=True,
              help="Reuse a cached download younger than this many seconds (0 = always fetch)")
@click.option("--rules", "rules_path", type=click.Path(exists=True),
              help="Override rules YAML (defaults to the packaged rules)")
def build(url, local_path, output, cache_dir, ttl, rules_path):
    """Build the confusable table from the Unicode confusables.txt."""
    try:
        rules = OverrideRules(rules_path)
        builder = TableBuilder(
            base_url=url, local_path=local_path, cache_dir=cache_dir, ttl=ttl, rules=rules,
        )
        console.print(f"[cyan]Building from[/] {builder.source}")
        table = builder.build_and_save(output)
    except (DatasetError, FetchError, ValueError, OSError) as e:
        console.print(f"[red]Build failed:[/] {e}")
        sys.exit(1)

    console.print(f"[green]Wrote {len(table)} confusables → {output}[/]")
    console.print(f"  Supplementary overrides: {len(rules.supplementary)}")


@main.command(name="skeleton")
@click.argument("texts", nargs=-1, required=True)
@click.option("-f", "--format", "fmt", type=click.Choice(["table", "json", "yaml"]), default="table")
@click.option("-o", "--output", type=click.Path(), help="Write output to file")
@click.option("--table", "table_path", envvar=TABLE_ENV_VAR, type=click.Path(),
              help="Confusable table JSON (or set GLYPHSKEL_TABLE)")
def skeleton_cmd(texts, fmt, output, table_path):
    """Print the skeleton of each TEXT."""
    engine = SkeletonEngine.from_table(_load_table(table_path))
    results = [{"input": t, "skeleton": engine.skeleton(t)} for t in texts]

    if fmt == "table":
        table = Table(title="Skeletons", show_lines=True)
        table.add_column("Input", style="cyan")
        table.add_column("Skeleton", style="green")
        table.add_column("Escaped")
        for r in results:
            table.add_row(escape(r["input"]), escape(r["skeleton"]), escape(_escape(r["skeleton"])))
        console.print(table)
        return

    if fmt == "yaml":
        text = yaml.dump(results, default_flow_style=False, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps(results, indent=2, ensure_ascii=False)
    if output:
        _write_output(output, text)
    else:
        click.echo(text)


@main.command()
@click.argument("first")
@click.argument("second")
@click.option("-f", "--format", "fmt", type=click.Choice(["table", "json"]), default="table")
@click.option("--table", "table_path", envvar=TABLE_ENV_VAR, type=click.Path(),
              help="Confusable table JSON (or set GLYPHSKEL_TABLE)")
def compare(first, second, fmt, table_path):
    """Check whether FIRST and SECOND are confusable."""
    engine = SkeletonEngine.from_table(_load_table(table_path))
    skel_first = engine.skeleton(first)
    skel_second = engine.skeleton(second)
    confusable = skel_first == skel_second

    if fmt == "json":
        click.echo(json.dumps({
            "first": first,
            "second": second,
            "first_skeleton": skel_first,
            "second_skeleton": skel_second,
            "confusable": confusable,
        }, indent=2, ensure_ascii=False))
        return

    table = Table(title="Confusable Check", show_lines=True)
    table.add_column("Input", style="cyan")
    table.add_column("Skeleton", style="green")
    table.add_column("Escaped")
    table.add_row(escape(first), escape(skel_first), escape(_escape(skel_first)))
    table.add_row(escape(second), escape(skel_second), escape(_escape(skel_second)))
    console.print(table)
    if confusable:
        console.print("[bold red]CONFUSABLE[/]")
    else:
        console.print("[green]DISTINCT[/]")


@main.command()
@click.option("--table", "table_path", envvar=TABLE_ENV_VAR, type=click.Path(),
              help="Confusable table JSON (or set GLYPHSKEL_TABLE)")
def info(table_path):
    """Show provenance and size of the confusable table."""
    table = _load_table(table_path)
    console.print(f"\n[bold cyan]Confusable table[/]")
    console.print(f"  Source:     {table.source or '-'}")
    console.print(f"  Generated:  {table.generated_at or '-'}")
    console.print(f"  Entries:    {len(table):,}")
    if table.header:
        console.print(f"\n  [bold]Dataset header[/]")
        for line in table.header:
            console.print(f"    {line}", markup=False, highlight=False)
    console.print()
