from rasterkit.domain.models import ImageFormat

SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", ImageFormat.PNG),
    (b"\xff\xd8\xff", ImageFormat.JPEG),
    (b"II*\x00", ImageFormat.TIFF),
    (b"MM\x00*", ImageFormat.TIFF),
    (b"BM", ImageFormat.BMP),
    (b"GIF87a", ImageFormat.GIF),
    (b"GIF89a", ImageFormat.GIF),
    (b"\x00\x00\x01\x00", ImageFormat.ICO),
)

PILLOW_FORMATS = {
    ImageFormat.PNG: "PNG",
    ImageFormat.JPEG: "JPEG",
    ImageFormat.WEBP: "WEBP",
    ImageFormat.BMP: "BMP",
    ImageFormat.GIF: "GIF",
    ImageFormat.ICO: "ICO",
}

JPEG_QUALITY_RANGE = (1, 95)
WEBP_QUALITY_RANGE = (0.0, 100.0)
PNG_COMPRESS_LEVEL = 6
WEBP_METHOD = 4

# Palette slots for GIF colours; the last one is reserved for transparency
GIF_COLORS = 255
GIF_TRANSPARENT_INDEX = 255
GIF_ALPHA_THRESHOLD = 128

ICO_MAX_SIZE = 256
