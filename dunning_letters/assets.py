import base64
import logging
import urllib.request
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .config import ASSET_TIMEOUT, ASSET_USER_AGENT, LOGO_SPECS
from .exceptions import AssetError

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, int], bytes]


@dataclass(frozen=True)
class Asset:
    """A logo decoded, downscaled and re-encoded as JPEG."""

    key: str
    data: bytes
    width: int
    height: int

    @property
    def aspect(self) -> float:
        return self.width / self.height if self.height else 1.0

    @property
    def data_url(self) -> str:
        return "data:image/jpeg;base64," + base64.b64encode(self.data).decode("ascii")

    def stream(self) -> BytesIO:
        return BytesIO(self.data)


def fetch_url(url: str, timeout: int = ASSET_TIMEOUT) -> bytes:
    req = urllib.request.Request(url, headers={"User-Agent": ASSET_USER_AGENT})
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        return resp.read()


def downscale_image(raw: bytes, max_px: Tuple[int, int], quality: int) -> Tuple[bytes, int, int]:
    """
    Shrink an image into the max_px box (aspect kept, never enlarged),
    flatten transparency onto white and re-encode as JPEG.
    """
    try:
        img = Image.open(BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise AssetError(f"Cannot decode image: {exc}") from exc

    img.thumbnail(max_px)
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        img = background
    elif img.mode != "RGB":
        img = img.convert("RGB")

    out = BytesIO()
    img.save(out, format="JPEG", quality=quality)
    return out.getvalue(), img.width, img.height


def calculate_logo_size(asset: Asset, max_w: float, max_h: float) -> Tuple[float, float]:
    """Fit the logo to max_w, then shrink to max_h if it is too tall."""
    w = max_w
    h = w / asset.aspect
    if h > max_h:
        h = max_h
        w = h * asset.aspect
    return w, h


class AssetCache:
    """
    Lazily fetched logos keyed by name. Successful loads are kept for the
    lifetime of the cache; failures are logged and retried on the next call.
    """

    def __init__(self, specs: Optional[Dict[str, Dict]] = None, fetcher: Fetcher = fetch_url):
        self.specs = LOGO_SPECS if specs is None else specs
        self.fetcher = fetcher
        self._assets: Dict[str, Asset] = {}

    def get(self, key: str) -> Optional[Asset]:
        cached = self._assets.get(key)
        if cached is not None:
            return cached
        spec = self.specs.get(key)
        if not spec or not spec.get("url"):
            return None
        try:
            raw = self.fetcher(spec["url"], ASSET_TIMEOUT)
            data, width, height = downscale_image(raw, spec.get("max_px", (250, 150)), spec.get("quality", 80))
        except Exception as exc:
            logger.warning("Logo %s unavailable: %s", key, exc)
            return None
        asset = Asset(key=key, data=data, width=width, height=height)
        self._assets[key] = asset
        return asset

    def clear(self) -> None:
        self._assets.clear()

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, key: str) -> bool:
        return key in self._assets
