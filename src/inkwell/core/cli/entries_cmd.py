"""inkwell entries — list, show, and delete stored entries."""

from __future__ import annotations

import asyncio

import click

from inkwell.core.exceptions import InkwellError

from .common import config_option, load_config, user_option


def _service(config):
    from inkwell.journal.service import JournalService

    return JournalService.from_config(config)


def _run(coro):
    try:
        return asyncio.run(coro)
    except InkwellError as e:
        raise click.ClickException(str(e)) from e


@click.group()
def entries() -> None:
    """Browse stored journal entries."""


@entries.command("list")
@user_option
@click.option("--page", default=1, show_default=True, type=click.IntRange(min=1))
@click.option("--page-size", default=None, type=click.IntRange(min=1), help="Defaults to journal.page_size.")
@click.option("--query", default=None, help="Search text, title, and qualifiers.")
@click.option("--qualifier", "qualifiers", multiple=True, help="Only entries with this qualifier, e.g. 'Tone: Calm'.")
@click.option("--oldest-first", is_flag=True)
@config_option
def list_entries(user_id, page, page_size, query, qualifiers, oldest_first, config_path) -> None:
    """List entries, newest entry date first."""
    config = load_config(config_path)
    service = _service(config)
    result = _run(
        service.store.list_entries(
            user_id,
            page=page,
            page_size=page_size or config.get_int("journal.page_size", 20),
            query=query,
            qualifiers=list(qualifiers) or None,
            newest_first=not oldest_first,
        )
    )
    for entry in result.entries:
        tags = f"  [{', '.join(entry.qualifiers)}]" if entry.qualifiers else ""
        click.echo(f"{entry.id}  {entry.entry_date:%Y-%m-%d}  {entry.title or '(untitled)'}{tags}")
    click.echo(f"Showing {len(result.entries)} of {result.total_count} entries", err=True)


@entries.command("show")
@user_option
@click.argument("entry_id")
@config_option
def show(user_id, entry_id, config_path) -> None:
    """Print one entry."""
    entry = _run(_service(load_config(config_path)).store.get(user_id, entry_id))
    click.echo(f"# {entry.title or '(untitled)'}")
    click.echo(f"Date: {entry.entry_date:%Y-%m-%d}")
    if entry.qualifiers:
        click.echo(f"Qualifiers: {', '.join(entry.qualifiers)}")
    click.echo(f"Pages: {len(entry.images)}")
    click.echo("")
    click.echo(entry.text)


@entries.command("delete")
@user_option
@click.argument("entry_id")
@click.confirmation_option(prompt="Delete this entry and its page images?")
@config_option
def delete(user_id, entry_id, config_path) -> None:
    """Delete an entry and its page images."""
    _run(_service(load_config(config_path)).delete_entry(user_id, entry_id))
    click.echo(f"Deleted entry {entry_id}")
