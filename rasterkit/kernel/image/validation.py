import math
from rasterkit.domain.errors import InvalidParameterError
from rasterkit.domain.types import RasterBuffer


def ensure_raster(image: RasterBuffer) -> RasterBuffer:
    """
    Guards public entry points against raw arrays and foreign objects.
    """
    if not isinstance(image, RasterBuffer):
        raise InvalidParameterError(f"Expected RasterBuffer, got {type(image).__name__}")
    return image


def ensure_dimensions(width: int, height: int) -> tuple[int, int]:
    if isinstance(width, bool) or isinstance(height, bool):
        raise InvalidParameterError("Dimensions must be integers")
    if int(width) != width or int(height) != height:
        raise InvalidParameterError(f"Dimensions must be integers, got {width}x{height}")
    if width < 1 or height < 1:
        raise InvalidParameterError(f"Dimensions must be >= 1, got {width}x{height}")
    return int(width), int(height)


def ensure_finite(value: float, name: str) -> float:
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value}")
    return float(value)


def ensure_range(value: float, name: str, low: float, high: float) -> float:
    value = ensure_finite(value, name)
    if not low <= value <= high:
        raise InvalidParameterError(f"{name} must be in [{low}, {high}], got {value}")
    return value


def round_half_up(value: float) -> int:
    """
    Math.round semantics (Python's round() is banker's rounding).
    """
    return int(math.floor(value + 0.5))
