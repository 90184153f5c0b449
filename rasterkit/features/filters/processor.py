from rasterkit.domain.interfaces import PipelineContext
from rasterkit.domain.types import RasterBuffer
from rasterkit.features.filters.models import DenoiseConfig, SharpenConfig, AdjustConfig
from rasterkit.features.filters.logic import denoise, sharpen, adjust


class DenoiseProcessor:
    def __init__(self, config: DenoiseConfig):
        self.config = config

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer:
        return denoise(image, self.config.strength, self.config.radius)


class SharpenProcessor:
    def __init__(self, config: SharpenConfig):
        self.config = config

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer:
        return sharpen(image, self.config.amount)


class AdjustProcessor:
    """
    Brightness/contrast/saturation/blur stack.
    """

    def __init__(self, config: AdjustConfig):
        self.config = config

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer:
        if self.config.is_identity:
            return image.copy()
        return adjust(
            image,
            brightness=self.config.brightness,
            contrast=self.config.contrast,
            saturation=self.config.saturation,
            blur=self.config.blur,
        )
