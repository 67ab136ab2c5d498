"""Tests for inkwell.imaging.compression."""

from io import BytesIO

import pytest
from PIL import Image

from inkwell.core.exceptions import CompressionError, ValidationError
from inkwell.imaging.compression import ImageCompressor, compress, resize_and_encode
from inkwell.imaging.data_url import decode_data_url, payload_size_kb, to_data_url
from inkwell.imaging.tiers import DEFAULT_TIERS, CompressionTier, TierSettings, build_tier_table


def _open(data_url: str) -> Image.Image:
    return Image.open(BytesIO(decode_data_url(data_url)))


class TestNoneTier:
    def test_identity(self, page_image):
        result = compress(page_image, CompressionTier.NONE)
        assert result.data_url == page_image
        assert result.ratio == 1.0
        assert result.original_size_kb == result.compressed_size_kb == payload_size_kb(page_image)
        assert result.passthrough

    def test_python_none_means_no_compression(self, page_image):
        assert compress(page_image, CompressionTier.parse(None)).data_url == page_image


class TestResize:
    @pytest.mark.parametrize("tier", [CompressionTier.LOW, CompressionTier.MEDIUM, CompressionTier.HIGH])
    def test_width_capped_and_aspect_kept(self, wide_page_image, tier):
        result = compress(wide_page_image, tier)
        max_width = DEFAULT_TIERS[tier].max_width
        with _open(result.data_url) as img:
            assert img.format == "JPEG"
            assert img.width == max_width
            assert img.height == round(1200 * max_width / 2400)
        assert (result.width, result.height) == (img.width, img.height)

    def test_narrow_image_keeps_width(self, page_image):
        result = compress(page_image, CompressionTier.HIGH)
        assert (result.width, result.height) == (64, 48)
        assert result.data_url.startswith("data:image/jpeg;base64,")

    def test_rgba_converted(self):
        buffer = BytesIO()
        Image.new("RGBA", (32, 32), (0, 0, 0, 0)).save(buffer, format="PNG")
        data_url, width, height = resize_and_encode(
            to_data_url(buffer.getvalue(), "image/png"), TierSettings(max_width=16, quality=0.5)
        )
        with _open(data_url) as img:
            assert img.mode == "RGB"
        assert (width, height) == (16, 16)

    def test_ratio_is_compressed_over_original(self, wide_page_image):
        result = compress(wide_page_image, CompressionTier.MEDIUM)
        assert result.ratio == pytest.approx(result.compressed_size_kb / result.original_size_kb)

    def test_overridden_table(self, wide_page_image):
        compressor = ImageCompressor(build_tier_table({"High": {"max_width": 300}}))
        assert compressor.compress(wide_page_image, CompressionTier.HIGH).width == 300


class TestFailureFallback:
    def test_corrupt_image_passes_through(self):
        corrupt = to_data_url(b"definitely not an image", "image/jpeg")
        result = compress(corrupt, CompressionTier.HIGH)
        assert result.data_url == corrupt
        assert result.ratio == 1.0
        assert result.passthrough

    def test_non_data_url_passes_through(self):
        result = compress("https://example.com/page.jpg", CompressionTier.MEDIUM)
        assert result.data_url == "https://example.com/page.jpg"
        assert result.ratio == 1.0

    def test_resize_and_encode_raises(self):
        with pytest.raises(CompressionError):
            resize_and_encode(to_data_url(b"junk"), TierSettings(max_width=10, quality=0.5))

    def test_compress_all_keeps_order(self, page_image, wide_page_image):
        corrupt = to_data_url(b"junk")
        results = ImageCompressor().compress_all([wide_page_image, corrupt, page_image], CompressionTier.MEDIUM)
        assert [r.passthrough for r in results] == [False, True, False]
        assert results[1].data_url == corrupt


class TestTierParsing:
    def test_unknown_name_fails_when_parsed(self):
        with pytest.raises(ValidationError, match="Unknown compression tier"):
            CompressionTier.parse("Ultra")

    def test_compress_takes_parsed_tiers_only(self, page_image, monkeypatch):
        def refuse(value):
            raise AssertionError(f"compress parsed {value!r}")

        monkeypatch.setattr(CompressionTier, "parse", refuse)
        assert compress(page_image, CompressionTier.NONE).data_url == page_image
        assert compress(page_image, CompressionTier.LOW).width == 64
