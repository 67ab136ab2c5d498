"""Compression tiers.

A tier names a resize-and-re-encode profile. ``None`` is a passthrough; the
others cap the output width and set the JPEG quality.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from inkwell.core.exceptions import ValidationError

if TYPE_CHECKING:
    from inkwell.core.config import Config


class CompressionTier(StrEnum):
    NONE = "None"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, value: str | CompressionTier | None) -> CompressionTier:
        """Parse a tier name case-insensitively. ``None`` means no compression."""
        if value is None:
            return cls.NONE
        if isinstance(value, CompressionTier):
            return value
        wanted = str(value).strip().lower()
        for tier in cls:
            if tier.value.lower() == wanted:
                return tier
        choices = ", ".join(t.value for t in cls)
        raise ValidationError(f"Unknown compression tier '{value}'. Choose one of: {choices}")


@dataclass(frozen=True)
class TierSettings:
    """Resize/re-encode profile.

    Attributes:
        max_width: Output width cap in pixels; narrower images keep their width.
        quality: JPEG quality in (0, 1].
    """

    max_width: int
    quality: float

    def __post_init__(self):
        if self.max_width < 1:
            raise ValidationError(f"max_width must be positive, got {self.max_width}")
        if not 0 < self.quality <= 1:
            raise ValidationError(f"quality must be in (0, 1], got {self.quality}")

    @property
    def jpeg_quality(self) -> int:
        """Quality on Pillow's 1-100 scale."""
        return max(1, min(100, round(self.quality * 100)))


DEFAULT_TIERS: dict[CompressionTier, TierSettings | None] = {
    CompressionTier.NONE: None,
    CompressionTier.LOW: TierSettings(max_width=2000, quality=0.9),
    CompressionTier.MEDIUM: TierSettings(max_width=1400, quality=0.7),
    CompressionTier.HIGH: TierSettings(max_width=1024, quality=0.5),
}


def build_tier_table(overrides: dict[str, Any] | None = None) -> dict[CompressionTier, TierSettings | None]:
    """Return the default tier table with per-tier overrides applied.

    ``overrides`` maps tier names to partial settings, e.g.
    ``{"High": {"max_width": 800}}``. The ``None`` tier cannot be overridden.
    """
    table = dict(DEFAULT_TIERS)
    for name, values in (overrides or {}).items():
        tier = CompressionTier.parse(name)
        if tier is CompressionTier.NONE:
            raise ValidationError("The 'None' tier is a passthrough and takes no settings")
        if not isinstance(values, dict):
            raise ValidationError(f"Settings for tier '{name}' must be a mapping")
        base = table[tier]
        table[tier] = TierSettings(
            max_width=int(values.get("max_width", base.max_width)),
            quality=float(values.get("quality", base.quality)),
        )
    return table


def tier_table_from_config(config: Config) -> dict[CompressionTier, TierSettings | None]:
    """Build the tier table from ``compression.tiers`` in *config*."""
    return build_tier_table(config.get("compression.tiers") or {})
