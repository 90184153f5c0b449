from rasterkit.domain.interfaces import PipelineContext
from rasterkit.domain.types import RasterBuffer
from rasterkit.features.overlay.models import TextOverlayConfig
from rasterkit.features.overlay.logic import draw_text


class TextOverlayProcessor:
    def __init__(self, config: TextOverlayConfig):
        self.config = config

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer:
        return draw_text(
            image,
            self.config.text,
            color=self.config.color,
            size=self.config.size,
            position=self.config.position,
        )
