from rasterkit.domain.errors import InvalidParameterError
from rasterkit.domain.interfaces import PipelineContext
from rasterkit.domain.types import RasterBuffer
from rasterkit.features.geometry.models import CropRegion, ResizeConfig, TransformConfig
from rasterkit.features.geometry.logic import crop, fit_dimensions, resize, transform


class CropProcessor:
    """
    Executes crop.
    """

    def __init__(self, config: CropRegion):
        self.config = config

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer:
        context.metrics["active_roi"] = self.config.bounds
        return crop(image, self.config)


class ResizeProcessor:
    def __init__(self, config: ResizeConfig):
        self.config = config

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer:
        if self.config.width is None and self.config.height is None:
            raise InvalidParameterError("Resize needs a target width or height")
        width, height = fit_dimensions(image.size, self.config.width, self.config.height)
        return resize(image, width, height, self.config.filter)


class TransformProcessor:
    """
    Rotates and flips in one pass.
    """

    def __init__(self, config: TransformConfig):
        self.config = config

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer:
        context.metrics["geometry_params"] = {
            "rotation": self.config.rotation,
            "flip_horizontal": self.config.flip_horizontal,
            "flip_vertical": self.config.flip_vertical,
            "mode": str(self.config.mode),
        }
        return transform(
            image,
            self.config.rotation,
            self.config.flip_horizontal,
            self.config.flip_vertical,
            self.config.mode,
        )
