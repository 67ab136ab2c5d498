"""Resize and re-encode captured pages before extraction.

Sizes are measured from the base64 payload of each data URL, so ``ratio``
reflects what re-encoding actually saved on the wire. A page that cannot be
decoded is passed through untouched; compression never blocks submission.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

from loguru import logger
from PIL import Image, ImageOps

from inkwell.core.exceptions import CaptureError, CompressionError

from .data_url import decode_data_url, payload_size_kb, to_data_url
from .tiers import DEFAULT_TIERS, CompressionTier, TierSettings


@dataclass
class CompressedImage:
    """Result of compressing one page.

    ``width``/``height`` describe the re-encoded image and are ``None`` when
    the input was passed through unchanged.
    """

    data_url: str
    original_size_kb: float
    compressed_size_kb: float
    ratio: float
    width: int | None = None
    height: int | None = None

    @property
    def passthrough(self) -> bool:
        return self.width is None


def _target_size(width: int, height: int, max_width: int) -> tuple[int, int]:
    if width <= max_width:
        return width, height
    return max_width, max(1, round(height * max_width / width))


def resize_and_encode(data_url: str, settings: TierSettings) -> tuple[str, int, int]:
    """Decode, cap the width, and re-encode as JPEG.

    Returns:
        ``(data_url, width, height)`` of the re-encoded image.

    Raises:
        CompressionError: if the image cannot be decoded or encoded.
    """
    try:
        raw = decode_data_url(data_url)
        with Image.open(BytesIO(raw)) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            width, height = _target_size(img.width, img.height, settings.max_width)
            if (width, height) != img.size:
                img = img.resize((width, height), Image.Resampling.LANCZOS)
            buffer = BytesIO()
            img.save(buffer, format="JPEG", quality=settings.jpeg_quality, optimize=True)
    except (CaptureError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise CompressionError(f"Failed to compress image: {e}") from e

    return to_data_url(buffer.getvalue(), "image/jpeg"), width, height


class ImageCompressor:
    """Applies a tier table to captured pages.

    Example::

        compressor = ImageCompressor()
        result = compressor.compress(page_data_url, CompressionTier.parse("medium"))
        print(f"{result.original_size_kb:.0f}KB -> {result.compressed_size_kb:.0f}KB")
    """

    def __init__(self, tiers: dict[CompressionTier, TierSettings | None] | None = None):
        self.tiers = dict(DEFAULT_TIERS if tiers is None else tiers)

    def settings_for(self, tier: CompressionTier) -> TierSettings | None:
        return self.tiers[tier]

    def compress(self, image: str, tier: CompressionTier = CompressionTier.MEDIUM) -> CompressedImage:
        """Compress one page. *tier* is already parsed; see ``CompressionTier.parse``."""
        original_size = payload_size_kb(image)
        settings = self.settings_for(tier)

        if settings is None:
            return CompressedImage(
                data_url=image,
                original_size_kb=original_size,
                compressed_size_kb=original_size,
                ratio=1.0,
            )

        try:
            data_url, width, height = resize_and_encode(image, settings)
        except CompressionError as e:
            logger.warning(f"Image compression failed, using original: {e}")
            return CompressedImage(
                data_url=image,
                original_size_kb=original_size,
                compressed_size_kb=original_size,
                ratio=1.0,
            )

        compressed_size = payload_size_kb(data_url)
        ratio = compressed_size / original_size if original_size else 1.0
        logger.debug(
            f"Compressed page at tier {tier.value}: {original_size:.1f}KB -> {compressed_size:.1f}KB "
            f"({width}x{height})"
        )
        return CompressedImage(
            data_url=data_url,
            original_size_kb=original_size,
            compressed_size_kb=compressed_size,
            ratio=ratio,
            width=width,
            height=height,
        )

    def compress_all(self, images: list[str], tier: CompressionTier) -> list[CompressedImage]:
        """Compress pages in order; failures fall back per page."""
        return [self.compress(image, tier) for image in images]


_default_compressor = ImageCompressor()


def compress(image: str, tier: CompressionTier = CompressionTier.MEDIUM) -> CompressedImage:
    """Compress *image* with the default tier table."""
    return _default_compressor.compress(image, tier)
