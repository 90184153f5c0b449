from typing import Tuple
from rasterkit.domain.errors import InvalidParameterError
from rasterkit.domain.types import RasterBuffer
from rasterkit.features.geometry.logic import resample
from rasterkit.features.geometry.models import ResampleFilter
from rasterkit.kernel.image.validation import ensure_raster, ensure_finite, round_half_up


def upscaled_size(width: int, height: int, factor: float) -> Tuple[int, int]:
    return round_half_up(width * factor), round_half_up(height * factor)


def upscale(image: RasterBuffer, factor: float, filter: ResampleFilter = ResampleFilter.CUBIC) -> RasterBuffer:
    """
    Magnifies by any factor >= 1 using the resize resampler.
    """
    ensure_raster(image)
    factor = ensure_finite(factor, "upscale factor")
    if factor < 1.0:
        raise InvalidParameterError(f"Upscale factor must be >= 1, got {factor}")

    width, height = upscaled_size(image.width, image.height, factor)
    return resample(image, width, height, filter)
