from rasterkit.domain.interfaces import PipelineContext
from rasterkit.domain.types import RasterBuffer
from rasterkit.features.tone.models import AutoEnhanceConfig
from rasterkit.features.tone.logic import auto_enhance, luminance_bounds


class AutoEnhanceProcessor:
    """
    Image-wide tone correction.
    """

    def __init__(self, config: AutoEnhanceConfig):
        self.config = config

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer:
        context.metrics["luminance_bounds"] = luminance_bounds(image)
        return auto_enhance(image, self.config.saturation_boost)
