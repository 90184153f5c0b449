from typing import Optional
import imageio.v3 as iio
from rasterkit.domain.errors import CorruptDataError, EncodingFailure
from rasterkit.domain.interfaces import IImageCodec
from rasterkit.domain.models import EncodeRequest
from rasterkit.domain.types import RasterBuffer
from rasterkit.infrastructure.codecs.helpers import to_rgba8

# TIFF ExtraSamples: unassociated alpha
_UNASSOCIATED_ALPHA = 2


class TiffCodec(IImageCodec):
    """
    Lossless TIFF through imageio's tifffile plugin. First page only.
    """

    def decode(self, data: bytes, hint: Optional[str] = None) -> RasterBuffer:
        try:
            img = iio.imread(data, index=0, plugin="tifffile")
            pixels = to_rgba8(img)
        except (OSError, ValueError, IndexError, KeyError) as e:
            raise CorruptDataError(f"Failed to decode TIFF: {e}") from e
        return RasterBuffer(pixels)

    def encode(self, buffer: RasterBuffer, request: EncodeRequest) -> bytes:
        try:
            data: bytes = iio.imwrite(
                "<bytes>",
                buffer.pixels,
                plugin="tifffile",
                extension=".tiff",
                photometric="rgb",
                extrasamples=[_UNASSOCIATED_ALPHA],
            )
        except (OSError, ValueError) as e:
            raise EncodingFailure(f"TIFF encoder rejected {buffer.width}x{buffer.height} raster: {e}") from e
        return data
