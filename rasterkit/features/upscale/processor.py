from rasterkit.domain.interfaces import PipelineContext
from rasterkit.domain.types import RasterBuffer
from rasterkit.features.upscale.models import UpscaleConfig
from rasterkit.features.upscale.logic import upscale


class UpscaleProcessor:
    def __init__(self, config: UpscaleConfig):
        self.config = config

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer:
        res = upscale(image, self.config.factor, self.config.filter)
        context.metrics["upscaled_size"] = res.size
        return res
