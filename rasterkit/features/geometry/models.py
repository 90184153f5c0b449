from dataclasses import dataclass
from enum import StrEnum
from typing import Optional


class RotateMode(StrEnum):
    # Canvas grows to hold the whole rotated image
    EXPAND = "expand"
    # Canvas keeps source size; corners outside are cut off
    CROP = "crop"


class ResampleFilter(StrEnum):
    AUTO = "auto"
    CUBIC = "cubic"
    LANCZOS = "lanczos"
    AREA = "area"
    LINEAR = "linear"


@dataclass(frozen=True)
class CropRegion:
    x: int
    y: int
    width: int
    height: int

    @property
    def bounds(self) -> tuple[int, int, int, int]:
        """(y1, y2, x1, x2)"""
        return self.y, self.y + self.height, self.x, self.x + self.width


@dataclass(frozen=True)
class ResizeConfig:
    """
    Target size. Leaving one side as None keeps the source aspect ratio.
    """

    width: Optional[int] = None
    height: Optional[int] = None
    filter: ResampleFilter = ResampleFilter.AUTO


@dataclass(frozen=True)
class TransformConfig:
    """
    Rotation (degrees, clockwise) and mirroring, applied as one pass.
    """

    rotation: float = 0.0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    mode: RotateMode = RotateMode.EXPAND
