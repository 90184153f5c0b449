import math
import os
from typing import Any, Optional, Sequence
from rasterkit.domain.errors import InvalidParameterError
from rasterkit.domain.interfaces import IImageCodec, PipelineContext
from rasterkit.domain.models import EncodeRequest, ExportResult, ImageFormat
from rasterkit.domain.types import RasterBuffer
from rasterkit.features.geometry.logic import resize
from rasterkit.infrastructure.codecs.registry import codec_registry
from rasterkit.kernel.image.validation import round_half_up
from rasterkit.kernel.system.config import APP_CONFIG, DEFAULT_ENCODE_REQUEST
from rasterkit.kernel.system.logging import get_logger
from rasterkit.services.rendering.engine import PixelEngine

logger = get_logger(__name__)


def output_filename(name: str, fmt: ImageFormat, prefix: str = "") -> str:
    """
    '{prefix}{stem}.{ext}' for the target container.
    """
    stem = os.path.splitext(os.path.basename(name))[0] or "image"
    return f"{prefix}{stem}.{fmt.extension}"


def compressed_size(width: int, height: int, source_bytes: int, max_bytes: int) -> tuple[int, int]:
    """
    Scales both dimensions by sqrt(max/current) when the source is over budget.
    """
    if source_bytes <= max_bytes:
        return width, height
    ratio = math.sqrt(max_bytes / source_bytes)
    return max(1, round_half_up(width * ratio)), max(1, round_half_up(height * ratio))


class ExportService:
    """
    decode -> pipeline -> encode for a single image.
    """

    def __init__(self, codec: Optional[IImageCodec] = None, engine: Optional[PixelEngine] = None) -> None:
        self.codec: IImageCodec = codec if codec is not None else codec_registry
        self.engine = engine if engine is not None else PixelEngine()

    def encode(
        self,
        raster: RasterBuffer,
        request: EncodeRequest,
        name: str,
        prefix: str = "",
    ) -> ExportResult:
        data = self.codec.encode(raster, request)
        return ExportResult(
            data=data,
            filename=output_filename(name, request.format, prefix),
            format=request.format,
            width=raster.width,
            height=raster.height,
            source_name=name,
        )

    def render(
        self,
        source: bytes,
        steps: Sequence[Any] = (),
        request: EncodeRequest = DEFAULT_ENCODE_REQUEST,
        name: str = "image",
        hint: Optional[str] = None,
        prefix: str = "",
        context: Optional[PipelineContext] = None,
    ) -> ExportResult:
        raster = self.codec.decode(source, hint)
        processed = self.engine.process(raster, steps, context)
        return self.encode(processed, request, name, prefix)

    def compress(
        self,
        source: bytes,
        max_bytes: Optional[int] = None,
        quality: float = APP_CONFIG.compress_quality,
        name: str = "image",
        hint: Optional[str] = None,
        steps: Sequence[Any] = (),
        prefix: str = "",
    ) -> ExportResult:
        """
        JPEG re-encode; when the source exceeds max_bytes the image is
        first downscaled by sqrt(max_bytes / source size).
        """
        request = EncodeRequest(format=ImageFormat.JPEG, quality=quality)
        if max_bytes is not None and max_bytes <= 0:
            raise InvalidParameterError(f"max_bytes must be > 0, got {max_bytes}")

        raster = self.engine.process(self.codec.decode(source, hint), steps)

        if max_bytes is not None:
            width, height = compressed_size(raster.width, raster.height, len(source), max_bytes)
            if (width, height) != raster.size:
                logger.debug(f"Compress {name}: {raster.width}x{raster.height} -> {width}x{height}")
                raster = resize(raster, width, height)

        return self.encode(raster, request, name, prefix)
