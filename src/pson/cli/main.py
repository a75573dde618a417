"""Main CLI entry point and core commands.

This module provides the main CLI group and the encode and inspect
commands for converting JSON files to pson messages.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click

from pson import __version__


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging.",
)
def cli(verbose: bool) -> None:
    """pson - compact binary JSON with a shared key dictionary.

    Use 'pson encode' to encode a JSON file.
    Use 'pson inspect' to show the value tree a JSON file encodes to.
    Use 'pson dict_stats' to view a dictionary store.
    Use 'pson export_dict' to export a dictionary store.
    Use 'pson import_dict' to import a dictionary store.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


def _load_json(input_path: str) -> Any:
    """Read and parse a JSON file, exiting on error."""
    try:
        return json.loads(Path(input_path).read_text())
    except (OSError, ValueError) as e:
        click.echo(f"Error reading {input_path}: {e}", err=True)
        sys.exit(1)


@cli.command("encode")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Output file for the binary message (default: hex to stdout).",
)
@click.option(
    "--dict",
    "-d",
    "dict_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Dictionary store to seed from and append new entries to.",
)
@click.option(
    "--freeze",
    is_flag=True,
    help="Do not add new keys to the dictionary.",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Fail on values that cannot be encoded instead of using null.",
)
def encode(
    input_path: str,
    output_path: Optional[str],
    dict_path: Optional[str],
    freeze: bool,
    strict: bool,
) -> None:
    """Encode a JSON file to a binary message.

    Examples:

        pson encode data.json -o data.pson

        pson encode data.json --dict session.db

        pson encode data.json --dict session.db --freeze
    """
    from pson import Encoder, EncoderConfig
    from pson.store import DictionaryStore

    data = _load_json(input_path)
    config = EncoderConfig.from_dict({"strict": strict})

    try:
        seed: list[str] = []
        if dict_path:
            with DictionaryStore(dict_path) as store:
                seed = store.load()
        encoder = Encoder(seed, config=config)
        if freeze:
            encoder.freeze()
        message = encoder.encode_message(data)
        blob = encoder.codec.serialize(message)
    except Exception as e:
        click.echo(f"Error encoding {input_path}: {e}", err=True)
        sys.exit(1)

    # Additions are only stored once the message carrying them is written
    if output_path:
        try:
            Path(output_path).write_bytes(blob)
        except OSError as e:
            click.echo(f"Error writing {output_path}: {e}", err=True)
            sys.exit(1)
        click.echo(
            f"Wrote {len(blob)} bytes to {output_path} "
            f"({len(message.dict)} new dictionary entries)",
            err=True,
        )
    else:
        click.echo(blob.hex())

    if dict_path and message.dict:
        try:
            with DictionaryStore(dict_path) as store:
                store.append(message.dict)
        except Exception as e:
            click.echo(f"Error updating dictionary: {e}", err=True)
            sys.exit(1)


@cli.command("inspect")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--dict",
    "-d",
    "dict_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Dictionary store to seed from (not modified).",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output result as JSON.",
)
def inspect(
    input_path: str, dict_path: Optional[str], output_json: bool
) -> None:
    """Show the value tree and dictionary additions for a JSON file.

    Examples:

        pson inspect data.json

        pson inspect data.json --dict session.db --json
    """
    from pson import Encoder
    from pson.nodes import to_plain
    from pson.store import DictionaryStore

    data = _load_json(input_path)

    try:
        seed: list[str] = []
        if dict_path:
            with DictionaryStore(dict_path) as store:
                seed = store.load()
        encoder = Encoder(seed)
        message = encoder.encode_message(data)
        blob = encoder.codec.serialize(message)
    except Exception as e:
        click.echo(f"Error encoding {input_path}: {e}", err=True)
        sys.exit(1)

    output = {
        "dictionary_additions": [
            {"id": len(seed) + i, "token": token}
            for i, token in enumerate(message.dict)
        ],
        "data": to_plain(message.data),
        "bytes": len(blob),
    }
    if output_json:
        click.echo(json.dumps(output, indent=2))
        return

    click.echo(f"\n{'='*60}")
    click.echo(f"Message for: {input_path}")
    click.echo("=" * 60)
    click.echo(f"Encoded size:        {len(blob)} bytes")
    click.echo(f"Dictionary additions: {len(message.dict)}")
    for addition in output["dictionary_additions"]:
        click.echo(f"  {addition['id']:>6}  {addition['token']}")
    click.echo(f"{'='*60}")
    click.echo(json.dumps(output["data"], indent=2))
    click.echo()


# Import and register commands
from pson.cli.dictionary import (  # noqa: E402
    dict_stats,
    export_dict,
    import_dict,
)

cli.add_command(dict_stats)
cli.add_command(export_dict)
cli.add_command(import_dict)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
