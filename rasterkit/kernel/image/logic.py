import numpy as np
from numba import njit, prange  # type: ignore
from rasterkit.domain.errors import InvalidParameterError
from rasterkit.domain.types import ImageBuffer, RasterBuffer, ALPHA


@njit(parallel=True, cache=True, fastmath=True)
def _gray_average_jit(img: np.ndarray) -> np.ndarray:
    """
    Unweighted (R+G+B)/3.
    """
    h, w, _ = img.shape
    res = np.empty((h, w), dtype=np.float32)
    for y in prange(h):
        for x in range(w):
            res[y, x] = (np.float32(img[y, x, 0]) + np.float32(img[y, x, 1]) + np.float32(img[y, x, 2])) / np.float32(3.0)
    return res


@njit(parallel=True, cache=True)
def _to_uint8_jit(img: np.ndarray) -> np.ndarray:
    """
    Round half-up & clamp to [0, 255] (NaN -> 0).
    """
    res = np.empty(img.shape, dtype=np.uint8)
    img_flat = img.reshape(-1)
    res_flat = res.reshape(-1)

    for i in prange(len(img_flat)):
        val = img_flat[i]
        if np.isnan(val):
            v = 0.0
        else:
            v = np.floor(val + 0.5)

        if v < 0.0:
            v = 0.0
        elif v > 255.0:
            v = 255.0

        res_flat[i] = np.uint8(v)
    return res


@njit(parallel=True, cache=True)
def _composite_over_jit(img: np.ndarray, bg_r: float, bg_g: float, bg_b: float) -> np.ndarray:
    """
    Source-over onto an opaque background colour.
    """
    h, w, _ = img.shape
    res = np.empty_like(img)
    bg = (bg_r, bg_g, bg_b)
    for y in prange(h):
        for x in range(w):
            a = img[y, x, 3] / 255.0
            for ch in range(3):
                v = img[y, x, ch] * a + bg[ch] * (1.0 - a)
                v = np.floor(v + 0.5)
                if v > 255.0:
                    v = 255.0
                res[y, x, ch] = np.uint8(v)
            res[y, x, 3] = 255
    return res


def float_to_uint8(img: np.ndarray) -> ImageBuffer:
    """Converts a float buffer on the 0-255 scale to uint8."""
    res: np.ndarray = _to_uint8_jit(np.ascontiguousarray(img.astype(np.float32)))
    return res


def gray_average(img: ImageBuffer) -> np.ndarray:
    """
    Per-pixel unweighted RGB mean, float32 (H, W).
    """
    res: np.ndarray = _gray_average_jit(np.ascontiguousarray(img))
    return res


def composite_over(image: RasterBuffer, background: tuple[int, int, int] = (255, 255, 255)) -> RasterBuffer:
    """
    Flattens transparency onto a solid colour. Result is fully opaque.
    """
    pixels = image.pixels
    if np.all(pixels[..., ALPHA] == 255):
        return image.copy()
    r, g, b = background
    return RasterBuffer(_composite_over_jit(pixels, float(r), float(g), float(b)))


def merge_alpha(rgb: np.ndarray, source: ImageBuffer) -> ImageBuffer:
    """
    Reattaches the untouched alpha plane of `source` to processed RGB.
    """
    h, w = source.shape[:2]
    res = np.empty((h, w, 4), dtype=np.uint8)
    res[..., :3] = rgb
    res[..., ALPHA] = source[..., ALPHA]
    return res


def parse_hex_color(value: str) -> tuple[int, int, int, int]:
    """
    '#rgb', '#rrggbb' or '#rrggbbaa' -> RGBA.
    """
    s = value.strip().lstrip("#")
    if len(s) == 3:
        s = "".join(c * 2 for c in s)
    if len(s) == 6:
        s += "ff"
    if len(s) != 8:
        raise InvalidParameterError(f"Invalid colour: {value!r}")
    try:
        r, g, b, a = (int(s[i : i + 2], 16) for i in range(0, 8, 2))
    except ValueError as e:
        raise InvalidParameterError(f"Invalid colour: {value!r}") from e
    return r, g, b, a
