from typing import Optional, Tuple
import numpy as np
from PIL import Image, ImageDraw, ImageFont
from rasterkit.domain.errors import InvalidParameterError
from rasterkit.domain.types import RasterBuffer
from rasterkit.kernel.image.logic import parse_hex_color
from rasterkit.kernel.image.validation import ensure_raster


def load_font(size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    """
    Sans-serif font at `size` px, falling back to Pillow's bundled face.
    """
    for name in ("DejaVuSans.ttf", "Arial.ttf", "arial.ttf"):
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def draw_text(
    image: RasterBuffer,
    text: str,
    color: str = "#ffffff",
    size: int = 24,
    position: Optional[Tuple[float, float]] = None,
) -> RasterBuffer:
    """
    Alpha-composites a text layer onto the image, horizontally centred on
    the anchor with the anchor on the text baseline.
    """
    ensure_raster(image)
    if int(size) != size or size < 1:
        raise InvalidParameterError(f"Text size must be an integer >= 1, got {size}")
    fill = parse_hex_color(color)

    if not text:
        return image.copy()

    if position is None:
        position = (image.width / 2.0, image.height / 2.0)

    base = Image.fromarray(image.pixels)
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    draw.text(position, text, fill=fill, font=load_font(int(size)), anchor="ms")

    res = Image.alpha_composite(base, layer)
    return RasterBuffer(np.asarray(res, dtype=np.uint8).copy())
