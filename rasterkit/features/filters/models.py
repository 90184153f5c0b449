from dataclasses import dataclass


@dataclass(frozen=True)
class DenoiseConfig:
    """
    Gaussian-weighted spatial smoothing.
    strength is the kernel sigma; radius 1 means a 3x3 window.
    """

    strength: float = 0.5
    radius: int = 1


@dataclass(frozen=True)
class SharpenConfig:
    """
    3x3 unsharp-mask kernel.
    """

    amount: float = 1.0


@dataclass(frozen=True)
class AdjustConfig:
    """
    Editor filter stack. Percentages, 100 = identity.
    """

    brightness: float = 100.0
    contrast: float = 100.0
    saturation: float = 100.0
    blur: float = 0.0

    @property
    def is_identity(self) -> bool:
        return self.brightness == 100.0 and self.contrast == 100.0 and self.saturation == 100.0 and self.blur == 0.0


ADJUST_PERCENT_RANGE = (0.0, 200.0)
