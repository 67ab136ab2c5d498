"""Inkwell CLI — entry point for the extract and entries commands."""

import click

from inkwell import __version__


@click.group()
@click.version_option(version=__version__, package_name="inkwell")
def main() -> None:
    """Inkwell — turn photographed journal pages into journal entries."""


from .entries_cmd import entries
from .extract_cmd import extract

main.add_command(extract)
main.add_command(entries)
