"""Dictionary store CLI commands.

This module provides commands for managing persisted dictionaries:
- dict_stats: Show dictionary statistics
- export_dict: Export dictionary strings to a JSON file
- import_dict: Import dictionary strings from a JSON file
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click


@click.command("dict_stats")
@click.option(
    "--dict",
    "-d",
    "dict_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the SQLite dictionary store.",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output result as JSON.",
)
@click.option(
    "--top",
    "-n",
    default=10,
    show_default=True,
    help="Number of longest strings to list.",
)
def dict_stats(dict_path: str, output_json: bool, top: int) -> None:
    """Show dictionary statistics.

    Shows the entry count, total and average string size, and the
    longest strings (which save the most bytes once interned).

    Examples:

        pson dict_stats -d ./session.db

        pson dict_stats -d ./session.db --json
    """
    from pson.store import DictionaryStore

    try:
        with DictionaryStore(dict_path) as store:
            tokens = store.load()
    except Exception as e:
        click.echo(f"Error opening dictionary: {e}", err=True)
        sys.exit(1)

    sizes = [len(token.encode("utf-8")) for token in tokens]
    total_bytes = sum(sizes)
    average = total_bytes / len(tokens) if tokens else 0.0
    longest = sorted(
        enumerate(tokens), key=lambda item: sizes[item[0]], reverse=True
    )[:top]

    if output_json:
        output: dict[str, Any] = {
            "dict_path": dict_path,
            "token_count": len(tokens),
            "total_bytes": total_bytes,
            "average_bytes": round(average, 2),
            "longest": [
                {"id": token_id, "token": token}
                for token_id, token in longest
            ],
        }
        click.echo(json.dumps(output, indent=2))
        return

    click.echo(f"\nDictionary: {dict_path}")
    click.echo("=" * 60)
    click.echo(f"Entries:       {len(tokens):,}")
    click.echo(f"Total size:    {total_bytes:,} bytes")
    click.echo(f"Average size:  {average:.1f} bytes")
    if longest:
        click.echo()
        click.echo(f"{'Id':>8}  {'Bytes':>6}  Token")
        click.echo("-" * 60)
        for token_id, token in longest:
            display = token[:37] + "..." if len(token) > 40 else token
            click.echo(f"{token_id:>8}  {sizes[token_id]:>6}  {display}")
    click.echo()


@click.command("export_dict")
@click.option(
    "--dict",
    "-d",
    "dict_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the SQLite dictionary store to export from.",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    required=True,
    type=click.Path(dir_okay=False),
    help="Output JSON file.",
)
def export_dict(dict_path: str, output_path: str) -> None:
    """Export dictionary strings, in id order, to a JSON array.

    The exported file can seed a decoder or another store.

    Examples:

        pson export_dict -d ./session.db -o ./dictionary.json
    """
    from pson.store import DictionaryStore

    try:
        with DictionaryStore(dict_path) as store:
            count = store.export(Path(output_path))
    except Exception as e:
        click.echo(f"Error exporting dictionary: {e}", err=True)
        sys.exit(1)

    click.echo(f"Exported {count} entries to {output_path}")


@click.command("import_dict")
@click.option(
    "--dict",
    "-d",
    "dict_path",
    required=True,
    type=click.Path(dir_okay=False),
    help="Path to the SQLite dictionary store (created if needed).",
)
@click.option(
    "--input",
    "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON array of strings to import.",
)
def import_dict(dict_path: str, input_path: str) -> None:
    """Replace a store's dictionary with strings from a JSON array.

    Existing entries are removed first, so ids follow the file order.

    Examples:

        pson import_dict -d ./session.db -i ./dictionary.json
    """
    from pson.store import DictionaryStore

    try:
        with DictionaryStore(dict_path) as store:
            count = store.import_(Path(input_path))
    except Exception as e:
        click.echo(f"Error importing dictionary: {e}", err=True)
        sys.exit(1)

    click.echo(f"Imported {count} entries into {dict_path}")
