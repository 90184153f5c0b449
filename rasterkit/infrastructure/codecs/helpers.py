from typing import Optional
import numpy as np
from rasterkit.domain.models import ImageFormat
from rasterkit.domain.types import ImageBuffer
from rasterkit.kernel.image.validation import round_half_up
from rasterkit.infrastructure.codecs.constants import (
    SIGNATURES,
    JPEG_QUALITY_RANGE,
    WEBP_QUALITY_RANGE,
)


def sniff_format(data: bytes) -> Optional[ImageFormat]:
    """
    Identifies the container from its magic bytes.
    """
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ImageFormat.WEBP
    for magic, fmt in SIGNATURES:
        if data.startswith(magic):
            return fmt
    return None


def jpeg_quality(quality: float) -> int:
    """[0, 1] -> libjpeg quality, monotonic."""
    lo, hi = JPEG_QUALITY_RANGE
    return lo + round_half_up(quality * (hi - lo))


def webp_quality(quality: float) -> float:
    lo, hi = WEBP_QUALITY_RANGE
    return lo + quality * (hi - lo)


def to_rgba8(img: np.ndarray) -> ImageBuffer:
    """
    Broadens gray/RGB/RGBA arrays of any bit depth to (H, W, 4) uint8.
    """
    if img.dtype == np.uint8:
        arr = img
    elif img.dtype == np.uint16:
        arr = ((img.astype(np.uint32) + 128) // 257).astype(np.uint8)
    elif np.issubdtype(img.dtype, np.floating):
        arr = np.floor(np.clip(np.nan_to_num(img), 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
    elif img.dtype == np.bool_:
        arr = img.astype(np.uint8) * 255
    else:
        raise ValueError(f"Unsupported sample type: {img.dtype}")

    if arr.ndim == 2:
        arr = arr[:, :, np.newaxis]
    if arr.ndim != 3:
        raise ValueError(f"Unsupported image shape: {img.shape}")

    h, w, c = arr.shape
    res = np.empty((h, w, 4), dtype=np.uint8)
    if c == 1:
        res[..., :3] = arr
        res[..., 3] = 255
    elif c == 2:
        res[..., :3] = arr[..., :1]
        res[..., 3] = arr[..., 1]
    elif c == 3:
        res[..., :3] = arr
        res[..., 3] = 255
    else:
        res[...] = arr[..., :4]
    return res
