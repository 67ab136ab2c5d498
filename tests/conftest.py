"""Shared test fixtures for inkwell."""

import os
import tempfile
from io import BytesIO

import pytest
from PIL import Image

from inkwell.imaging.data_url import to_data_url


def make_image_data_url(width: int = 64, height: int = 48, color=(200, 180, 160), fmt: str = "PNG") -> str:
    """Render a solid-color image and wrap it in a data URL."""
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    mime = "image/png" if fmt == "PNG" else "image/jpeg"
    return to_data_url(buffer.getvalue(), mime)


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file pointing all paths into tmp_dir."""
    import yaml

    config_data = {
        "paths": {
            "data_dir": os.path.join(tmp_dir, "data"),
            "storage_dir": os.path.join(tmp_dir, "data", "storage"),
            "log_dir": os.path.join(tmp_dir, "data", "logs"),
        },
        "compression": {"default_tier": "Medium"},
        "extraction": {"model": "gpt-4.1-nano"},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def page_image():
    """A small PNG page as a data URL."""
    return make_image_data_url()


@pytest.fixture
def wide_page_image():
    """A page wider than every compression tier's width cap."""
    return make_image_data_url(width=2400, height=1200)
