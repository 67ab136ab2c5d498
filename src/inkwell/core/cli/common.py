"""Shared setup logic for CLI commands."""

from __future__ import annotations

import mimetypes
from pathlib import Path

import click

from inkwell.core.config import Config
from inkwell.core.exceptions import CaptureError
from inkwell.core.utils.logging import setup_logging_from_config
from inkwell.imaging.data_url import to_data_url

INKWELL_DIR = Path.home() / ".inkwell"
CONFIG_PATH = INKWELL_DIR / "config.yaml"

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (YAML or JSON). Defaults to ~/.inkwell/config.yaml.",
)
user_option = click.option("--user", "user_id", required=True, help="Owner of the entries.")


def load_config(config_path: str | None = None) -> Config:
    """Load config and configure logging from it."""
    config = Config(config_file=config_path or str(CONFIG_PATH))
    setup_logging_from_config(config)
    return config


def read_image_file(path: str) -> str:
    """Read an image file into a data URL."""
    mime_type = mimetypes.guess_type(path)[0] or "image/jpeg"
    try:
        return to_data_url(Path(path).read_bytes(), mime_type)
    except OSError as e:
        raise CaptureError(f"Cannot read image {path}: {e}") from e
