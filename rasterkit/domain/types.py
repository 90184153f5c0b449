from dataclasses import dataclass
from typing import Sequence, Tuple, Union
import numpy as np
from rasterkit.domain.errors import InvalidParameterError

# (H, W, 4) uint8, RGBA
ImageBuffer = np.ndarray
Dimensions = Tuple[int, int]
RGBA = Tuple[int, int, int, int]

CHANNELS = 4
ALPHA = 3


@dataclass(frozen=True)
class AppConfig:
    """
    Process-wide defaults. Operations never read this directly.
    """

    default_quality: float
    compress_quality: float
    upscale_presets: Tuple[float, ...]
    max_workers: int
    log_level: str
    log_format: str


@dataclass(frozen=True, eq=False)
class RasterBuffer:
    """
    Decoded image: (height, width, 4) uint8 RGBA, row-major, top-left origin.

    Operations read one buffer and return a freshly allocated one; a buffer is
    never mutated once returned.
    """

    pixels: ImageBuffer

    def __post_init__(self) -> None:
        arr = self.pixels
        if not isinstance(arr, np.ndarray):
            raise InvalidParameterError("Raster pixels must be a numpy array")
        if arr.ndim != 3 or arr.shape[2] != CHANNELS:
            raise InvalidParameterError(f"Expected (H, W, 4) RGBA array, got shape {arr.shape}")
        if arr.shape[0] < 1 or arr.shape[1] < 1:
            raise InvalidParameterError(f"Raster dimensions must be >= 1, got {arr.shape[1]}x{arr.shape[0]}")
        if arr.dtype != np.uint8:
            raise InvalidParameterError(f"Raster samples must be uint8, got {arr.dtype}")
        object.__setattr__(self, "pixels", np.ascontiguousarray(arr))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Dimensions:
        """(width, height)"""
        return self.width, self.height

    @property
    def samples(self) -> np.ndarray:
        """Flat R,G,B,A view, length width*height*4."""
        return self.pixels.reshape(-1)

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()

    def copy(self) -> "RasterBuffer":
        return RasterBuffer(self.pixels.copy())

    @classmethod
    def from_samples(
        cls,
        width: int,
        height: int,
        samples: Union[bytes, bytearray, Sequence[int], np.ndarray],
    ) -> "RasterBuffer":
        """
        Builds a raster from a flat interleaved RGBA sequence.
        """
        if width < 1 or height < 1:
            raise InvalidParameterError(f"Raster dimensions must be >= 1, got {width}x{height}")

        if isinstance(samples, (bytes, bytearray)):
            flat = np.frombuffer(samples, dtype=np.uint8)
        else:
            flat = np.asarray(samples)
            if flat.dtype != np.uint8:
                if flat.size and (flat.min() < 0 or flat.max() > 255):
                    raise InvalidParameterError("Samples must be in [0, 255]")
                flat = flat.astype(np.uint8)

        expected = width * height * CHANNELS
        if flat.size != expected:
            raise InvalidParameterError(f"Expected {expected} samples for {width}x{height}, got {flat.size}")

        return cls(flat.reshape(height, width, CHANNELS).copy())

    @classmethod
    def blank(cls, width: int, height: int, color: RGBA = (0, 0, 0, 0)) -> "RasterBuffer":
        if width < 1 or height < 1:
            raise InvalidParameterError(f"Raster dimensions must be >= 1, got {width}x{height}")
        arr = np.empty((height, width, CHANNELS), dtype=np.uint8)
        arr[...] = np.asarray(color, dtype=np.uint8)
        return cls(arr)

    def equals(self, other: "RasterBuffer") -> bool:
        """Sample-exact comparison."""
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))
