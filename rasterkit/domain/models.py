from dataclasses import dataclass
from enum import StrEnum
from typing import Optional
from rasterkit.domain.errors import InvalidParameterError, UnsupportedFormatError


class ImageFormat(StrEnum):
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"
    BMP = "bmp"
    TIFF = "tiff"
    # Palette, single frame, 1-bit transparency
    GIF = "gif"
    # Single-entry icon, at most 256x256
    ICO = "ico"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES.get(self, f"image/{self.value}")

    @property
    def has_alpha(self) -> bool:
        """False for containers that can only store opaque pixels."""
        return self not in (ImageFormat.JPEG, ImageFormat.BMP)

    @property
    def is_lossy(self) -> bool:
        return self in (ImageFormat.JPEG, ImageFormat.WEBP)

    @classmethod
    def from_hint(cls, hint: str) -> "ImageFormat":
        """
        Accepts a MIME type ("image/jpeg"), an extension (".jpg") or a bare
        name ("jpg", "JPEG").
        """
        key = hint.strip().lower()
        if key.startswith("image/"):
            key = key[len("image/") :]
        key = key.rsplit(".", 1)[-1]
        fmt = _ALIASES.get(key)
        if fmt is None:
            raise UnsupportedFormatError(f"Unsupported image format: {hint!r}")
        return fmt


_EXTENSIONS = {
    ImageFormat.PNG: "png",
    ImageFormat.JPEG: "jpg",
    ImageFormat.WEBP: "webp",
    ImageFormat.BMP: "bmp",
    ImageFormat.TIFF: "tiff",
    ImageFormat.GIF: "gif",
    ImageFormat.ICO: "ico",
}

_MIME_TYPES = {
    ImageFormat.ICO: "image/x-icon",
}

_ALIASES = {
    "png": ImageFormat.PNG,
    "jpg": ImageFormat.JPEG,
    "jpeg": ImageFormat.JPEG,
    "jpe": ImageFormat.JPEG,
    "pjpeg": ImageFormat.JPEG,
    "webp": ImageFormat.WEBP,
    "bmp": ImageFormat.BMP,
    "x-ms-bmp": ImageFormat.BMP,
    "tif": ImageFormat.TIFF,
    "tiff": ImageFormat.TIFF,
    "gif": ImageFormat.GIF,
    "ico": ImageFormat.ICO,
    "x-icon": ImageFormat.ICO,
    # "image/vnd.microsoft.icon" reduces to its last dotted part
    "icon": ImageFormat.ICO,
}


@dataclass(frozen=True)
class EncodeRequest:
    """
    Target container + quality in [0, 1] (ignored by lossless formats).
    """

    format: ImageFormat = ImageFormat.PNG
    quality: float = 0.9

    def __post_init__(self) -> None:
        if not isinstance(self.format, ImageFormat):
            object.__setattr__(self, "format", ImageFormat.from_hint(str(self.format)))
        if not 0.0 <= self.quality <= 1.0:
            raise InvalidParameterError(f"Quality must be in [0, 1], got {self.quality}")


@dataclass(frozen=True)
class ExportResult:
    """
    Encoded output ready for download/archiving.
    """

    data: bytes
    filename: str
    format: ImageFormat
    width: int
    height: int
    source_name: Optional[str] = None
