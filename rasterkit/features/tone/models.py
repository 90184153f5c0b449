from dataclasses import dataclass

# Fixed saturation multiplier applied after the contrast stretch
AUTO_ENHANCE_SATURATION = 1.2


@dataclass(frozen=True)
class AutoEnhanceConfig:
    """
    Global auto contrast/brightness stretch followed by a saturation boost.
    """

    saturation_boost: float = AUTO_ENHANCE_SATURATION
