"""Tests for inkwell.imaging.tiers."""

import pytest

from inkwell.core.config import Config
from inkwell.core.exceptions import ValidationError
from inkwell.imaging.tiers import (
    DEFAULT_TIERS,
    CompressionTier,
    TierSettings,
    build_tier_table,
    tier_table_from_config,
)


class TestCompressionTier:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Medium", CompressionTier.MEDIUM),
            ("high", CompressionTier.HIGH),
            (" LOW ", CompressionTier.LOW),
            ("none", CompressionTier.NONE),
            (None, CompressionTier.NONE),
            (CompressionTier.HIGH, CompressionTier.HIGH),
        ],
    )
    def test_parse(self, raw, expected):
        assert CompressionTier.parse(raw) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValidationError, match="Unknown compression tier"):
            CompressionTier.parse("Extreme")


class TestTierSettings:
    def test_defaults_shrink_with_tier(self):
        low, medium, high = (DEFAULT_TIERS[t] for t in (CompressionTier.LOW, CompressionTier.MEDIUM, CompressionTier.HIGH))
        assert DEFAULT_TIERS[CompressionTier.NONE] is None
        assert (low.max_width, low.quality) == (2000, 0.9)
        assert (medium.max_width, medium.quality) == (1400, 0.7)
        assert (high.max_width, high.quality) == (1024, 0.5)

    def test_jpeg_quality_scale(self):
        assert TierSettings(max_width=100, quality=0.7).jpeg_quality == 70
        assert TierSettings(max_width=100, quality=0.001).jpeg_quality == 1

    @pytest.mark.parametrize("max_width,quality", [(0, 0.5), (100, 0.0), (100, 1.5)])
    def test_invalid(self, max_width, quality):
        with pytest.raises(ValidationError):
            TierSettings(max_width=max_width, quality=quality)


class TestBuildTierTable:
    def test_partial_override(self):
        table = build_tier_table({"high": {"max_width": 800}})
        assert table[CompressionTier.HIGH] == TierSettings(max_width=800, quality=0.5)
        assert table[CompressionTier.MEDIUM] == DEFAULT_TIERS[CompressionTier.MEDIUM]

    def test_none_tier_cannot_be_overridden(self):
        with pytest.raises(ValidationError):
            build_tier_table({"None": {"max_width": 800}})

    def test_settings_must_be_mapping(self):
        with pytest.raises(ValidationError):
            build_tier_table({"Low": 800})

    def test_from_config(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        config.set("compression.tiers", {"Medium": {"quality": 0.6}})
        table = tier_table_from_config(config)
        assert table[CompressionTier.MEDIUM].quality == 0.6
        assert table[CompressionTier.MEDIUM].max_width == 1400
