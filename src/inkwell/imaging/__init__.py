"""Tiered image compression for captured journal pages."""

from .compression import CompressedImage, ImageCompressor, compress
from .data_url import decode_data_url, payload_size_kb, to_data_url
from .tiers import DEFAULT_TIERS, CompressionTier, TierSettings, tier_table_from_config

__all__ = [
    "DEFAULT_TIERS",
    "CompressedImage",
    "CompressionTier",
    "ImageCompressor",
    "TierSettings",
    "compress",
    "decode_data_url",
    "payload_size_kb",
    "tier_table_from_config",
    "to_data_url",
]
