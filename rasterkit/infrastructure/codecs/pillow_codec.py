import io
from typing import Any, Dict, Optional, Tuple
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError
from rasterkit.domain.errors import CorruptDataError, EncodingFailure, UnsupportedFormatError
from rasterkit.domain.interfaces import IImageCodec
from rasterkit.domain.models import EncodeRequest, ImageFormat
from rasterkit.domain.types import RasterBuffer, ALPHA
from rasterkit.infrastructure.codecs.constants import (
    GIF_ALPHA_THRESHOLD,
    GIF_COLORS,
    GIF_TRANSPARENT_INDEX,
    ICO_MAX_SIZE,
    PILLOW_FORMATS,
    PNG_COMPRESS_LEVEL,
    WEBP_METHOD,
)
from rasterkit.infrastructure.codecs.helpers import jpeg_quality, webp_quality, to_rgba8
from rasterkit.kernel.image.logic import composite_over


class PillowCodec(IImageCodec):
    """
    PNG / JPEG / WebP / BMP / GIF / ICO through Pillow.
    """

    def decode(self, data: bytes, hint: Optional[str] = None) -> RasterBuffer:
        fmt = ImageFormat.from_hint(hint) if hint else None
        formats = [PILLOW_FORMATS[fmt]] if fmt in PILLOW_FORMATS else None

        try:
            with Image.open(io.BytesIO(data), formats=formats) as img:
                img.load()
                img = ImageOps.exif_transpose(img)
                if img.mode in ("I;16", "I;16B", "I", "F"):
                    pixels = to_rgba8(self._high_bit_depth(img))
                else:
                    pixels = np.asarray(img.convert("RGBA"), dtype=np.uint8).copy()
        except UnidentifiedImageError as e:
            raise CorruptDataError(f"Unreadable image data: {e}") from e
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            raise CorruptDataError(f"Failed to decode image: {e}") from e

        return RasterBuffer(pixels)

    @staticmethod
    def _high_bit_depth(img: Image.Image) -> np.ndarray:
        arr = np.asarray(img)
        if img.mode == "F":
            return arr.astype(np.float32) / 255.0
        return np.clip(arr, 0, 65535).astype(np.uint16)

    def encode(self, buffer: RasterBuffer, request: EncodeRequest) -> bytes:
        fmt = request.format
        pil_name = PILLOW_FORMATS.get(fmt)
        if pil_name is None:
            raise UnsupportedFormatError(f"Pillow codec cannot write {fmt}")

        if fmt == ImageFormat.ICO and max(buffer.size) > ICO_MAX_SIZE:
            raise EncodingFailure(
                f"ICO holds at most {ICO_MAX_SIZE}x{ICO_MAX_SIZE}, got {buffer.width}x{buffer.height}"
            )

        options = self._save_options(request, buffer)
        if fmt == ImageFormat.GIF:
            img, transparent = self._to_palette(buffer)
            if transparent:
                options["transparency"] = GIF_TRANSPARENT_INDEX
        elif fmt.has_alpha:
            img = Image.fromarray(buffer.pixels)
        else:
            # Opaque-only container: flatten onto white first
            img = Image.fromarray(composite_over(buffer).pixels).convert("RGB")

        out = io.BytesIO()
        try:
            img.save(out, format=pil_name, **options)
        except (OSError, ValueError, SystemError) as e:
            raise EncodingFailure(f"{fmt} encoder rejected {buffer.width}x{buffer.height} raster: {e}") from e
        return out.getvalue()

    @staticmethod
    def _to_palette(buffer: RasterBuffer) -> Tuple[Image.Image, bool]:
        """
        Adaptive palette over the colour channels. Pixels below the alpha
        threshold go to the reserved transparent slot.
        """
        img = Image.fromarray(np.ascontiguousarray(buffer.pixels[..., :3])).quantize(colors=GIF_COLORS)
        mask = buffer.pixels[..., ALPHA] < GIF_ALPHA_THRESHOLD
        if not mask.any():
            return img, False

        palette = list(img.getpalette() or [])
        img.putpalette((palette + [0] * 768)[:768])
        img.paste(GIF_TRANSPARENT_INDEX, mask=Image.fromarray(mask.astype(np.uint8) * 255))
        return img, True

    @staticmethod
    def _save_options(request: EncodeRequest, buffer: RasterBuffer) -> Dict[str, Any]:
        if request.format == ImageFormat.JPEG:
            return {"quality": jpeg_quality(request.quality)}
        if request.format == ImageFormat.WEBP:
            return {"quality": webp_quality(request.quality), "method": WEBP_METHOD}
        if request.format == ImageFormat.PNG:
            return {"compress_level": PNG_COMPRESS_LEVEL}
        if request.format == ImageFormat.ICO:
            return {"sizes": [buffer.size]}
        return {}
