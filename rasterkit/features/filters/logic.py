import cv2
import numpy as np
from numba import njit, prange  # type: ignore
from rasterkit.domain.errors import InvalidParameterError
from rasterkit.domain.types import RasterBuffer
from rasterkit.features.filters.models import ADJUST_PERCENT_RANGE
from rasterkit.kernel.image.logic import merge_alpha
from rasterkit.kernel.image.validation import ensure_raster, ensure_finite, ensure_range


@njit(cache=True)
def _to_u8(v: float) -> np.uint8:
    v = np.floor(v + 0.5)
    if v < 0.0:
        v = 0.0
    elif v > 255.0:
        v = 255.0
    return np.uint8(v)


@njit(cache=True)
def _clamp(v: float) -> float:
    if v < 0.0:
        return 0.0
    if v > 255.0:
        return 255.0
    return v


@njit(parallel=True, cache=True, fastmath=True)
def _denoise_jit(img: np.ndarray, weights: np.ndarray, radius: int) -> np.ndarray:
    """
    Gaussian-weighted mean. Window is clipped at the borders and
    renormalised by the weights that were actually used.
    """
    h, w, _ = img.shape
    res = np.empty_like(img)

    for y in prange(h):
        for x in range(w):
            r = 0.0
            g = 0.0
            b = 0.0
            total = 0.0
            for ky in range(-radius, radius + 1):
                yy = y + ky
                if yy < 0 or yy >= h:
                    continue
                for kx in range(-radius, radius + 1):
                    xx = x + kx
                    if xx < 0 or xx >= w:
                        continue
                    wt = weights[ky + radius, kx + radius]
                    r += img[yy, xx, 0] * wt
                    g += img[yy, xx, 1] * wt
                    b += img[yy, xx, 2] * wt
                    total += wt

            res[y, x, 0] = _to_u8(r / total)
            res[y, x, 1] = _to_u8(g / total)
            res[y, x, 2] = _to_u8(b / total)
            res[y, x, 3] = img[y, x, 3]
    return res


@njit(parallel=True, cache=True, fastmath=True)
def _sharpen_jit(img: np.ndarray, amount: float) -> np.ndarray:
    """
    [0, -a, 0; -a, 1+4a, -a; 0, -a, 0] on interior pixels.
    The 1px border ring has no full neighbourhood and is copied as-is.
    """
    h, w, _ = img.shape
    res = img.copy()
    center = 1.0 + 4.0 * amount

    for y in prange(1, h - 1):
        for x in range(1, w - 1):
            for ch in range(3):
                v = (
                    img[y, x, ch] * center
                    - amount * img[y - 1, x, ch]
                    - amount * img[y + 1, x, ch]
                    - amount * img[y, x - 1, ch]
                    - amount * img[y, x + 1, ch]
                )
                res[y, x, ch] = _to_u8(v)
    return res


@njit(parallel=True, cache=True, fastmath=True)
def _adjust_tone_jit(img: np.ndarray, brightness: float, contrast: float, saturation: float) -> np.ndarray:
    """
    brightness -> contrast -> saturation, clamped between stages.
    Returns RGB only.
    """
    h, w, _ = img.shape
    res = np.empty((h, w, 3), dtype=np.uint8)

    for y in prange(h):
        px = np.empty(3, dtype=np.float64)
        for x in range(w):
            for ch in range(3):
                v = _clamp(img[y, x, ch] * brightness)
                px[ch] = _clamp((v - 127.5) * contrast + 127.5)

            avg = (px[0] + px[1] + px[2]) / 3.0
            for ch in range(3):
                res[y, x, ch] = _to_u8(avg + (px[ch] - avg) * saturation)
    return res


def gaussian_weights(strength: float, radius: int) -> np.ndarray:
    """
    exp(-(dx^2 + dy^2) / (2 * strength^2)) over a (2r+1)^2 window.
    """
    d = np.arange(-radius, radius + 1, dtype=np.float64)
    dx, dy = np.meshgrid(d, d)
    return np.exp(-(dx * dx + dy * dy) / (2.0 * strength * strength))


def denoise(image: RasterBuffer, strength: float, radius: int = 1) -> RasterBuffer:
    """
    Distance-only ("bilateral-style") smoothing. Alpha is untouched.
    """
    ensure_raster(image)
    strength = ensure_finite(strength, "denoise strength")
    if strength <= 0.0:
        raise InvalidParameterError(f"Denoise strength must be > 0, got {strength}")
    if int(radius) != radius or radius < 1:
        raise InvalidParameterError(f"Denoise radius must be an integer >= 1, got {radius}")

    weights = gaussian_weights(strength, int(radius))
    return RasterBuffer(_denoise_jit(image.pixels, weights, int(radius)))


def sharpen(image: RasterBuffer, amount: float) -> RasterBuffer:
    """
    Unsharp-mask convolution, clamped to [0, 255].

    Note: the outermost 1px ring is copied from the source unprocessed
    (no zero padding).
    """
    ensure_raster(image)
    amount = ensure_finite(amount, "sharpen amount")
    if amount < 0.0:
        raise InvalidParameterError(f"Sharpen amount must be >= 0, got {amount}")
    if amount == 0.0:
        return image.copy()

    return RasterBuffer(_sharpen_jit(image.pixels, amount))


def gaussian_blur_rgb(image: RasterBuffer, sigma: float) -> RasterBuffer:
    """
    Gaussian blur on colour channels, sigma in pixels. Alpha is untouched.
    """
    if sigma <= 0.0:
        return image.copy()
    rgb = np.ascontiguousarray(image.pixels[..., :3])
    blurred = cv2.GaussianBlur(rgb, (0, 0), sigmaX=sigma, sigmaY=sigma, borderType=cv2.BORDER_REFLECT_101)
    return RasterBuffer(merge_alpha(blurred, image.pixels))


def adjust(
    image: RasterBuffer,
    brightness: float = 100.0,
    contrast: float = 100.0,
    saturation: float = 100.0,
    blur: float = 0.0,
) -> RasterBuffer:
    """
    Editor filter stack in fixed order:
    contrast/brightness -> saturation -> blur.
    """
    ensure_raster(image)
    low, high = ADJUST_PERCENT_RANGE
    b = ensure_range(brightness, "brightness", low, high) / 100.0
    c = ensure_range(contrast, "contrast", low, high) / 100.0
    s = ensure_range(saturation, "saturation", low, high) / 100.0
    blur = ensure_finite(blur, "blur")
    if blur < 0.0:
        raise InvalidParameterError(f"Blur radius must be >= 0, got {blur}")

    if b == 1.0 and c == 1.0 and s == 1.0:
        res = image.copy()
    else:
        rgb = _adjust_tone_jit(image.pixels, b, c, s)
        res = RasterBuffer(merge_alpha(rgb, image.pixels))

    if blur > 0.0:
        res = gaussian_blur_rgb(res, blur)
    return res
