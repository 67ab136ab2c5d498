"""inkwell extract — pull text out of page photos, optionally saving an entry."""

from __future__ import annotations

import asyncio

import click

from inkwell.core.exceptions import InkwellError
from inkwell.imaging.tiers import CompressionTier

from .common import config_option, load_config, read_image_file, user_option


def _echo_batch(batch) -> None:
    for result in batch.results:
        status = "ok" if result.success else f"FAILED ({result.error})"
        uncertain = f", {len(result.error_ranges)} uncertain" if result.error_ranges else ""
        click.echo(f"Page {result.page_number}: {status}{uncertain}", err=True)
    if batch.manual_entry_available:
        click.echo("No text could be extracted. You can type the entry by hand instead.", err=True)
        return
    click.echo(batch.combined_text)


async def _extract(config, user_id: str, images: list[str], tier: str | None, title: str, save: bool) -> None:
    from inkwell.extraction.adapter import LiteLLMVisionAdapter
    from inkwell.extraction.batch import BatchExtractor
    from inkwell.extraction.reconciler import DualViewReconciler
    from inkwell.journal.service import JournalService

    service = JournalService.from_config(config)
    if tier:
        service.tier = CompressionTier.parse(tier)
    adapter = LiteLLMVisionAdapter.from_config(config)

    if not save:
        pages = [service.compressor.compress(image, service.tier).data_url for image in images]
        _echo_batch(await BatchExtractor(adapter).process_images(pages))
        return

    entry = await service.start_entry(user_id, images, title=title)
    batch = await service.extract(user_id, entry.id, adapter)
    _echo_batch(batch)
    if batch.manual_entry_available:
        click.echo(f"Saved entry {entry.id} with {len(entry.images)} page(s) and no text.", err=True)
        return
    await service.save_session(user_id, entry.id, DualViewReconciler(batch))
    click.echo(f"Saved entry {entry.id}", err=True)


@click.command()
@click.argument("image_paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@user_option
@click.option(
    "--tier",
    type=click.Choice([t.value for t in CompressionTier], case_sensitive=False),
    default=None,
    help="Compression tier (defaults to compression.default_tier).",
)
@click.option("--title", default="", help="Title for the saved entry.")
@click.option("--save", is_flag=True, help="Store the pages and extracted text as a new entry.")
@config_option
def extract(image_paths, user_id, tier, title, save, config_path) -> None:
    """Extract text from page photos, in the order given."""
    config = load_config(config_path)
    try:
        images = [read_image_file(path) for path in image_paths]
        asyncio.run(_extract(config, user_id, images, tier, title, save))
    except InkwellError as e:
        raise click.ClickException(str(e)) from e
