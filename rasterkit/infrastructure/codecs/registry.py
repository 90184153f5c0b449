from typing import Optional
from rasterkit.domain.errors import CorruptDataError, UnsupportedFormatError
from rasterkit.domain.interfaces import IImageCodec
from rasterkit.domain.models import EncodeRequest, ImageFormat
from rasterkit.domain.types import RasterBuffer
from rasterkit.infrastructure.codecs.helpers import sniff_format
from rasterkit.infrastructure.codecs.pillow_codec import PillowCodec
from rasterkit.infrastructure.codecs.tiff_codec import TiffCodec
from rasterkit.kernel.image.validation import ensure_raster


class CodecRegistry(IImageCodec):
    """
    Selects codec based on magic bytes (decode) or target format (encode).
    """

    def __init__(self) -> None:
        self._pillow = PillowCodec()
        self._tiff = TiffCodec()

    def codec_for(self, fmt: ImageFormat) -> IImageCodec:
        if fmt == ImageFormat.TIFF:
            return self._tiff
        return self._pillow

    def detect(self, data: bytes, hint: Optional[str] = None) -> ImageFormat:
        """
        Signature wins over the declared hint. A known hint with an
        unrecognised signature means the payload is damaged.
        """
        if not data:
            raise CorruptDataError("Empty image data")

        fmt = sniff_format(data)
        if fmt is not None:
            return fmt

        if hint is None:
            raise UnsupportedFormatError("Unrecognised image signature")

        declared = ImageFormat.from_hint(hint)
        raise CorruptDataError(f"Data does not match declared format {declared}")

    def decode(self, data: bytes, hint: Optional[str] = None) -> RasterBuffer:
        fmt = self.detect(bytes(data), hint)
        return self.codec_for(fmt).decode(bytes(data), fmt.value)

    def encode(self, buffer: RasterBuffer, request: EncodeRequest) -> bytes:
        ensure_raster(buffer)
        return self.codec_for(request.format).encode(buffer, request)


# Global instance for shared use
codec_registry = CodecRegistry()
