import math
from typing import Callable, Optional, Tuple
import cv2
import numpy as np
from rasterkit.domain.errors import InvalidRegionError, InvalidParameterError
from rasterkit.domain.types import ImageBuffer, RasterBuffer, ALPHA
from rasterkit.features.geometry.models import CropRegion, ResampleFilter, RotateMode
from rasterkit.kernel.image.logic import float_to_uint8
from rasterkit.kernel.image.validation import (
    ensure_raster,
    ensure_dimensions,
    ensure_finite,
    round_half_up,
)

_CV2_FILTERS = {
    ResampleFilter.CUBIC: cv2.INTER_CUBIC,
    ResampleFilter.LANCZOS: cv2.INTER_LANCZOS4,
    ResampleFilter.AREA: cv2.INTER_AREA,
    ResampleFilter.LINEAR: cv2.INTER_LINEAR,
}


def _is_opaque(pixels: ImageBuffer) -> bool:
    return bool(np.all(pixels[..., ALPHA] == 255))


def _premultiplied(pixels: ImageBuffer, op: Callable[[np.ndarray], np.ndarray]) -> ImageBuffer:
    """
    Runs a resampling op in premultiplied-alpha float space so transparent
    pixels don't bleed their colour into neighbours.
    """
    f = pixels.astype(np.float32)
    f[..., :3] *= f[..., ALPHA : ALPHA + 1] / 255.0

    out = op(f)

    alpha = np.clip(out[..., ALPHA : ALPHA + 1], 0.0, 255.0)
    visible = alpha > 1e-3
    rgb = np.where(visible, out[..., :3] * 255.0 / np.where(visible, alpha, 1.0), 0.0)
    return float_to_uint8(np.concatenate([rgb, alpha], axis=-1))


def crop(image: RasterBuffer, region: CropRegion) -> RasterBuffer:
    """
    Copies a rectangular sub-region into a new buffer.
    """
    ensure_raster(image)
    x, y, w, h = region.x, region.y, region.width, region.height
    if any(int(v) != v for v in (x, y, w, h)):
        raise InvalidRegionError(f"Crop region must be integral: {region}")
    if x < 0 or y < 0 or w < 1 or h < 1:
        raise InvalidRegionError(f"Crop region out of bounds: {region}")
    if x + w > image.width or y + h > image.height:
        raise InvalidRegionError(f"Crop region {region} exceeds source {image.width}x{image.height}")

    y1, y2, x1, x2 = region.bounds
    return RasterBuffer(image.pixels[int(y1) : int(y2), int(x1) : int(x2)].copy())


def resolve_filter(src_size: Tuple[int, int], dst_size: Tuple[int, int], requested: ResampleFilter) -> int:
    """
    AUTO: area-averaging when shrinking on both axes, bicubic otherwise.
    """
    if requested != ResampleFilter.AUTO:
        return _CV2_FILTERS[requested]
    (sw, sh), (dw, dh) = src_size, dst_size
    if dw <= sw and dh <= sh:
        return cv2.INTER_AREA
    return cv2.INTER_CUBIC


def resample(
    image: RasterBuffer,
    width: int,
    height: int,
    filter: ResampleFilter = ResampleFilter.AUTO,
) -> RasterBuffer:
    """
    High-quality resampling to arbitrary target dimensions.
    """
    ensure_raster(image)
    width, height = ensure_dimensions(width, height)

    if (width, height) == image.size:
        return image.copy()

    interp = resolve_filter(image.size, (width, height), ResampleFilter(filter))

    def _resize(buf: np.ndarray) -> np.ndarray:
        res: np.ndarray = cv2.resize(buf, (width, height), interpolation=interp)
        return res.reshape(height, width, -1)

    if _is_opaque(image.pixels):
        return RasterBuffer(np.ascontiguousarray(_resize(image.pixels)))
    return RasterBuffer(_premultiplied(image.pixels, _resize))


def resize(
    image: RasterBuffer,
    width: int,
    height: int,
    filter: ResampleFilter = ResampleFilter.AUTO,
) -> RasterBuffer:
    return resample(image, width, height, filter)


def linked_dimension(new_primary: int, primary_original: int, other_original: int) -> int:
    """
    Keeps aspect ratio: other = round(new_primary * other_original / primary_original).
    """
    if primary_original <= 0 or other_original <= 0:
        raise InvalidParameterError("Original dimensions must be positive")
    return max(1, round_half_up(new_primary * (other_original / primary_original)))


def fit_dimensions(
    original: Tuple[int, int],
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Fills in whichever target dimension is missing from the source aspect.
    """
    ow, oh = original
    if width is not None and height is not None:
        return width, height
    if width is not None:
        return width, linked_dimension(width, ow, oh)
    if height is not None:
        return linked_dimension(height, oh, ow), height
    return ow, oh


def flip(image: RasterBuffer, horizontal: bool = False, vertical: bool = False) -> RasterBuffer:
    """
    Exact mirroring along the requested axes.
    """
    ensure_raster(image)
    img = image.pixels
    if horizontal:
        img = np.fliplr(img)
    if vertical:
        img = np.flipud(img)
    return RasterBuffer(np.array(img, dtype=np.uint8, order="C", copy=True))


def expanded_canvas(width: int, height: int, degrees: float) -> Tuple[int, int]:
    """
    Bounding box of a w x h rectangle rotated by `degrees`.
    """
    theta = math.radians(degrees)
    c, s = abs(math.cos(theta)), abs(math.sin(theta))
    # epsilon absorbs cos/sin noise at right angles
    out_w = math.ceil(width * c + height * s - 1e-6)
    out_h = math.ceil(width * s + height * c - 1e-6)
    return max(1, out_w), max(1, out_h)


def _warp(
    pixels: ImageBuffer,
    degrees: float,
    flip_horizontal: bool,
    flip_vertical: bool,
    mode: RotateMode,
) -> ImageBuffer:
    """
    Single affine pass: mirror in image space, then rotate clockwise about the centre.
    """
    h, w = pixels.shape[:2]
    theta = math.radians(degrees)
    cos_t, sin_t = math.cos(theta), math.sin(theta)
    sx = -1.0 if flip_horizontal else 1.0
    sy = -1.0 if flip_vertical else 1.0

    # y axis points down, so this rotates clockwise on screen
    a_mat = np.array([[cos_t * sx, -sin_t * sy], [sin_t * sx, cos_t * sy]], dtype=np.float64)

    if mode == RotateMode.EXPAND:
        out_w, out_h = expanded_canvas(w, h, degrees)
    else:
        out_w, out_h = w, h

    c_src = np.array([(w - 1) / 2.0, (h - 1) / 2.0])
    c_dst = np.array([(out_w - 1) / 2.0, (out_h - 1) / 2.0])
    t_vec = c_dst - a_mat @ c_src
    m_mat = np.hstack([a_mat, t_vec.reshape(2, 1)])

    def _affine(buf: np.ndarray) -> np.ndarray:
        res: np.ndarray = cv2.warpAffine(
            buf,
            m_mat,
            (out_w, out_h),
            flags=cv2.INTER_CUBIC,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=(0, 0, 0, 0),
        )
        return res.reshape(out_h, out_w, -1)

    return _premultiplied(pixels, _affine)


def transform(
    image: RasterBuffer,
    rotation: float = 0.0,
    flip_horizontal: bool = False,
    flip_vertical: bool = False,
    mode: RotateMode = RotateMode.EXPAND,
) -> RasterBuffer:
    """
    Flip + arbitrary clockwise rotation. Right angles take an exact
    sample-permuting path; anything else is resampled bicubically.
    """
    ensure_raster(image)
    degrees = ensure_finite(rotation, "rotation") % 360.0
    mode = RotateMode(mode)
    h, w = image.height, image.width

    if degrees % 90.0 == 0.0:
        k = int(degrees // 90.0)
        if mode == RotateMode.EXPAND or k % 2 == 0 or w == h:
            img = image.pixels
            if flip_horizontal:
                img = np.fliplr(img)
            if flip_vertical:
                img = np.flipud(img)
            img = np.rot90(img, k=-k)
            return RasterBuffer(np.array(img, dtype=np.uint8, order="C", copy=True))

    return RasterBuffer(_warp(image.pixels, degrees, flip_horizontal, flip_vertical, mode))


def rotate(image: RasterBuffer, degrees: float, mode: RotateMode = RotateMode.EXPAND) -> RasterBuffer:
    """
    Clockwise rotation about the image centre.

    EXPAND grows the canvas to fit the rotated content (final output);
    CROP keeps the source canvas (preview framing).
    """
    return transform(image, degrees, mode=mode)
