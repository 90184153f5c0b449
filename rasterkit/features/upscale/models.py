from dataclasses import dataclass
from rasterkit.features.geometry.models import ResampleFilter

UPSCALE_PRESETS = (2.0, 3.0, 4.0)


@dataclass(frozen=True)
class UpscaleConfig:
    factor: float = 2.0
    filter: ResampleFilter = ResampleFilter.CUBIC
