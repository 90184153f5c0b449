from typing import Protocol, Optional, Any
from dataclasses import dataclass, field
from rasterkit.domain.types import RasterBuffer, Dimensions
from rasterkit.domain.models import EncodeRequest


@dataclass
class PipelineContext:
    """
    Per-render state passed through the pipeline.
    """

    original_size: Dimensions
    # Data gathered by steps (tone bounds, step sizes, ...)
    metrics: dict[str, Any] = field(default_factory=dict)


class IImageCodec(Protocol):
    """
    Container decode/encode capability.
    """

    def decode(self, data: bytes, hint: Optional[str] = None) -> RasterBuffer: ...

    def encode(self, buffer: RasterBuffer, request: EncodeRequest) -> bytes: ...


class IProcessor(Protocol):
    """
    Single pipeline step bound to its config.
    """

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer: ...


class IProgressCallback(Protocol):
    def __call__(self, completed: int, total: int, name: str) -> Any: ...
