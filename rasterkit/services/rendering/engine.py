import time
from typing import Any, Callable, Dict, Optional, Sequence, Type
from rasterkit.domain.errors import InvalidParameterError
from rasterkit.domain.interfaces import IProcessor, PipelineContext
from rasterkit.domain.types import RasterBuffer
from rasterkit.features.geometry.models import CropRegion, ResizeConfig, TransformConfig
from rasterkit.features.geometry.processor import CropProcessor, ResizeProcessor, TransformProcessor
from rasterkit.features.filters.models import DenoiseConfig, SharpenConfig, AdjustConfig
from rasterkit.features.filters.processor import DenoiseProcessor, SharpenProcessor, AdjustProcessor
from rasterkit.features.tone.models import AutoEnhanceConfig
from rasterkit.features.tone.processor import AutoEnhanceProcessor
from rasterkit.features.upscale.models import UpscaleConfig
from rasterkit.features.upscale.processor import UpscaleProcessor
from rasterkit.features.overlay.models import TextOverlayConfig
from rasterkit.features.overlay.processor import TextOverlayProcessor
from rasterkit.kernel.image.validation import ensure_raster
from rasterkit.kernel.system.logging import get_logger

logger = get_logger(__name__)

STEP_PROCESSORS: Dict[Type[Any], Callable[[Any], IProcessor]] = {
    CropRegion: CropProcessor,
    ResizeConfig: ResizeProcessor,
    TransformConfig: TransformProcessor,
    DenoiseConfig: DenoiseProcessor,
    SharpenConfig: SharpenProcessor,
    AdjustConfig: AdjustProcessor,
    AutoEnhanceConfig: AutoEnhanceProcessor,
    UpscaleConfig: UpscaleProcessor,
    TextOverlayConfig: TextOverlayProcessor,
}


class PixelEngine:
    """
    Runs an ordered list of step configs over a raster.
    """

    def processor_for(self, step: Any) -> IProcessor:
        factory = STEP_PROCESSORS.get(type(step))
        if factory is None:
            raise InvalidParameterError(f"Unknown pipeline step: {type(step).__name__}")
        return factory(step)

    def process(
        self,
        img: RasterBuffer,
        steps: Sequence[Any],
        context: Optional[PipelineContext] = None,
    ) -> RasterBuffer:
        img = ensure_raster(img)

        if context is None:
            context = PipelineContext(original_size=img.size)

        # Resolve every step up-front so a bad step fails before any pixel work
        processors = [self.processor_for(step) for step in steps]

        current_img = img
        for i, processor in enumerate(processors):
            start = time.perf_counter()
            current_img = processor.process(current_img, context)
            logger.debug(
                f"Step {i} {type(processor).__name__}: {current_img.width}x{current_img.height} "
                f"in {(time.perf_counter() - start) * 1000:.1f}ms"
            )

        if current_img is img:
            current_img = img.copy()

        context.metrics["output_size"] = current_img.size
        return current_img
