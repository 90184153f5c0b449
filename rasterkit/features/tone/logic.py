from typing import Tuple
import numpy as np
from numba import njit, prange  # type: ignore
from rasterkit.domain.errors import InvalidParameterError
from rasterkit.domain.types import RasterBuffer
from rasterkit.features.tone.models import AUTO_ENHANCE_SATURATION
from rasterkit.kernel.image.logic import gray_average
from rasterkit.kernel.image.validation import ensure_raster, ensure_finite


@njit(parallel=True, cache=True, fastmath=True)
def _stretch_saturate_jit(img: np.ndarray, lo: float, scale: float, boost: float) -> np.ndarray:
    """
    (v - lo) * scale per channel, stored as 8-bit, then
    avg + (v - avg) * boost around the stretched per-pixel gray.
    """
    h, w, _ = img.shape
    res = np.empty_like(img)

    for y in prange(h):
        px = np.empty(3, dtype=np.float64)
        for x in range(w):
            for ch in range(3):
                v = np.floor((img[y, x, ch] - lo) * scale + 0.5)
                if v < 0.0:
                    v = 0.0
                elif v > 255.0:
                    v = 255.0
                px[ch] = v

            avg = (px[0] + px[1] + px[2]) / 3.0
            for ch in range(3):
                v = np.floor(avg + (px[ch] - avg) * boost + 0.5)
                if v < 0.0:
                    v = 0.0
                elif v > 255.0:
                    v = 255.0
                res[y, x, ch] = np.uint8(v)
            res[y, x, 3] = img[y, x, 3]
    return res


def luminance_bounds(image: RasterBuffer) -> Tuple[float, float]:
    """
    Global (min, max) of the unweighted RGB average.
    """
    gray = gray_average(image.pixels)
    return float(gray.min()), float(gray.max())


def auto_enhance(image: RasterBuffer, saturation_boost: float = AUTO_ENHANCE_SATURATION) -> RasterBuffer:
    """
    Stretches [min, max] luminance to [0, 255], then boosts saturation.
    A flat image (min == max) skips the stretch.
    """
    ensure_raster(image)
    saturation_boost = ensure_finite(saturation_boost, "saturation boost")
    if saturation_boost < 0.0:
        raise InvalidParameterError(f"Saturation boost must be >= 0, got {saturation_boost}")

    lo, hi = luminance_bounds(image)
    if hi > lo:
        scale = 255.0 / (hi - lo)
    else:
        lo, scale = 0.0, 1.0

    return RasterBuffer(_stretch_saturate_jit(image.pixels, lo, scale, saturation_boost))
