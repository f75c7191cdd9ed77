"""Unit tests for the logo cache"""

from PIL import Image
from io import BytesIO

from dunning_letters.assets import Asset, AssetCache, calculate_logo_size, downscale_image

SPECS = {"main": {"url": "https://logos.example/main.png", "max_px": (300, 200), "quality": 30}}


class CountingFetcher:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = 0

    def __call__(self, url, timeout):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payload


def test_downscale_keeps_aspect_and_flattens(png_bytes):
    """Test a transparent PNG becomes a JPEG inside the pixel box"""
    data, width, height = downscale_image(png_bytes(900, 300), (300, 200), 30)
    assert (width, height) == (300, 100)
    assert data[:2] == b"\xff\xd8"
    assert Image.open(BytesIO(data)).mode == "RGB"


def test_small_images_are_not_enlarged(png_bytes):
    _, width, height = downscale_image(png_bytes(50, 40, mode="RGB"), (300, 200), 80)
    assert (width, height) == (50, 40)


def test_cache_fetches_once(png_bytes):
    fetcher = CountingFetcher(payload=png_bytes())
    cache = AssetCache(specs=SPECS, fetcher=fetcher)

    first = cache.get("main")
    second = cache.get("main")

    assert first is second
    assert fetcher.calls == 1
    assert len(cache) == 1
    assert first.data_url.startswith("data:image/jpeg;base64,")


def test_failures_return_none_and_retry():
    """Test a failed fetch is not memoised"""
    fetcher = CountingFetcher(error=OSError("connection refused"))
    cache = AssetCache(specs=SPECS, fetcher=fetcher)

    assert cache.get("main") is None
    assert cache.get("main") is None
    assert fetcher.calls == 2
    assert len(cache) == 0


def test_undecodable_payload_is_skipped():
    cache = AssetCache(specs=SPECS, fetcher=CountingFetcher(payload=b"<html>not an image</html>"))
    assert cache.get("main") is None


def test_unknown_or_unconfigured_keys():
    fetcher = CountingFetcher(payload=b"")
    cache = AssetCache(specs={"left": {"url": ""}}, fetcher=fetcher)
    assert cache.get("left") is None
    assert cache.get("missing") is None
    assert fetcher.calls == 0


def test_clear_empties_cache(png_bytes):
    cache = AssetCache(specs=SPECS, fetcher=CountingFetcher(payload=png_bytes()))
    cache.get("main")
    assert "main" in cache
    cache.clear()
    assert len(cache) == 0


def test_logo_size_fits_box():
    """Test width-first fitting, capped by height"""
    wide = Asset(key="a", data=b"", width=300, height=100)
    square = Asset(key="b", data=b"", width=100, height=100)
    assert calculate_logo_size(wide, 60, 20) == (60, 20)
    assert calculate_logo_size(square, 30, 10) == (10, 10)
    assert calculate_logo_size(square, 35, 35) == (35, 35)
