import io
import unittest
from unittest.mock import patch
import numpy as np
import pytest
from PIL import Image
from rasterkit.domain.errors import (
    CorruptDataError,
    EncodingFailure,
    InvalidParameterError,
    UnsupportedFormatError,
)
from rasterkit.domain.models import EncodeRequest, ImageFormat
from rasterkit.domain.types import RasterBuffer
from rasterkit.infrastructure.codecs.helpers import jpeg_quality, sniff_format, to_rgba8, webp_quality
from rasterkit.infrastructure.codecs.registry import CodecRegistry, codec_registry


def _gradient(w: int = 32, h: int = 24, alpha: bool = True) -> RasterBuffer:
    arr = np.zeros((h, w, 4), dtype=np.uint8)
    arr[..., 0] = np.linspace(0, 255, w, dtype=np.uint8)[None, :]
    arr[..., 1] = np.linspace(0, 255, h, dtype=np.uint8)[:, None]
    arr[..., 2] = 90
    arr[..., 3] = np.linspace(40, 255, w, dtype=np.uint8)[None, :] if alpha else 255
    return RasterBuffer(arr)


class TestRoundTrip(unittest.TestCase):
    def setUp(self) -> None:
        self.codec = CodecRegistry()

    def test_png_is_exact_with_alpha(self) -> None:
        img = _gradient()
        data = self.codec.encode(img, EncodeRequest(ImageFormat.PNG))
        self.assertTrue(data.startswith(b"\x89PNG"))
        self.assertTrue(self.codec.decode(data).equals(img))

    def test_tiff_is_exact_with_alpha(self) -> None:
        img = _gradient(17, 9)
        data = self.codec.encode(img, EncodeRequest(ImageFormat.TIFF))
        self.assertEqual(sniff_format(data), ImageFormat.TIFF)
        self.assertTrue(self.codec.decode(data).equals(img))

    def test_bmp_is_exact_when_opaque(self) -> None:
        img = _gradient(alpha=False)
        data = self.codec.encode(img, EncodeRequest(ImageFormat.BMP))
        self.assertEqual(sniff_format(data), ImageFormat.BMP)
        self.assertTrue(self.codec.decode(data).equals(img))

    def test_jpeg_keeps_dimensions(self) -> None:
        img = _gradient(alpha=False)
        data = self.codec.encode(img, EncodeRequest(ImageFormat.JPEG, quality=0.95))
        res = self.codec.decode(data)

        self.assertEqual(res.size, img.size)
        self.assertTrue(np.all(res.pixels[..., 3] == 255))
        err = np.abs(res.pixels[..., :3].astype(int) - img.pixels[..., :3].astype(int))
        self.assertLess(float(err.mean()), 6.0)

    def test_jpeg_flattens_transparency_onto_white(self) -> None:
        img = RasterBuffer.blank(16, 16, (0, 0, 0, 0))
        res = self.codec.decode(self.codec.encode(img, EncodeRequest(ImageFormat.JPEG)))
        self.assertTrue(np.all(res.pixels[..., :3] >= 250))

    def test_webp_keeps_dimensions(self) -> None:
        img = _gradient(40, 30)
        data = self.codec.encode(img, EncodeRequest(ImageFormat.WEBP, quality=0.8))
        self.assertEqual(sniff_format(data), ImageFormat.WEBP)
        self.assertEqual(self.codec.decode(data).size, (40, 30))

    def test_gif_is_exact_for_few_colours(self) -> None:
        arr = np.zeros((12, 16, 4), dtype=np.uint8)
        arr[..., 3] = 255
        arr[:6, :8, :3] = (200, 30, 30)
        arr[:6, 8:, :3] = (30, 200, 30)
        arr[6:, :8, :3] = (30, 30, 200)
        arr[6:, 8:, :3] = (250, 250, 250)
        img = RasterBuffer(arr)

        data = self.codec.encode(img, EncodeRequest(ImageFormat.GIF))
        self.assertEqual(sniff_format(data), ImageFormat.GIF)
        self.assertTrue(self.codec.decode(data, hint="image/gif").equals(img))

    def test_gif_keeps_binary_transparency(self) -> None:
        arr = np.zeros((8, 8, 4), dtype=np.uint8)
        arr[..., :3] = (10, 120, 240)
        arr[:, 4:, 3] = 255
        arr[:, :4, 3] = 40

        res = self.codec.decode(self.codec.encode(RasterBuffer(arr), EncodeRequest(ImageFormat.GIF)))
        self.assertEqual(res.size, (8, 8))
        self.assertTrue(np.all(res.pixels[:, :4, 3] == 0))
        self.assertTrue(np.all(res.pixels[:, 4:, 3] == 255))
        np.testing.assert_array_equal(res.pixels[:, 4:, :3], arr[:, 4:, :3])

    def test_ico_is_exact_with_alpha(self) -> None:
        img = _gradient(32, 32)
        data = self.codec.encode(img, EncodeRequest(ImageFormat.ICO))
        self.assertEqual(sniff_format(data), ImageFormat.ICO)
        self.assertTrue(self.codec.decode(data).equals(img))

    def test_ico_rejects_oversized_raster(self) -> None:
        img = RasterBuffer.blank(300, 10, (0, 0, 0, 255))
        with self.assertRaises(EncodingFailure):
            self.codec.encode(img, EncodeRequest(ImageFormat.ICO))

    def test_jpeg_size_grows_with_quality(self) -> None:
        rng = np.random.default_rng(3)
        img = RasterBuffer(rng.integers(0, 256, size=(64, 64, 4), dtype=np.uint8))
        sizes = [len(self.codec.encode(img, EncodeRequest(ImageFormat.JPEG, quality=q))) for q in (0.1, 0.5, 0.9)]
        self.assertLess(sizes[0], sizes[1])
        self.assertLess(sizes[1], sizes[2])


class TestDecodeErrors(unittest.TestCase):
    def test_unknown_signature(self) -> None:
        with self.assertRaises(UnsupportedFormatError):
            codec_registry.decode(b"definitely not an image")

    def test_empty_data(self) -> None:
        with self.assertRaises(CorruptDataError):
            codec_registry.decode(b"")

    def test_garbage_with_declared_format(self) -> None:
        with self.assertRaises(CorruptDataError):
            codec_registry.decode(b"definitely not an image", hint="image/png")

    def test_garbage_with_unknown_hint(self) -> None:
        with self.assertRaises(UnsupportedFormatError):
            codec_registry.decode(b"definitely not an image", hint="image/heic")

    def test_truncated_png(self) -> None:
        data = codec_registry.encode(_gradient(64, 64), EncodeRequest(ImageFormat.PNG))
        with self.assertRaises(CorruptDataError):
            codec_registry.decode(data[: len(data) // 2])

    def test_signature_wins_over_hint(self) -> None:
        img = _gradient()
        data = codec_registry.encode(img, EncodeRequest(ImageFormat.PNG))
        self.assertTrue(codec_registry.decode(data, hint="photo.jpg").equals(img))


class TestEncodeErrors(unittest.TestCase):
    def test_quality_out_of_range(self) -> None:
        with self.assertRaises(InvalidParameterError):
            EncodeRequest(ImageFormat.JPEG, quality=1.5)
        with self.assertRaises(InvalidParameterError):
            EncodeRequest(ImageFormat.JPEG, quality=-0.1)

    def test_string_format_is_coerced(self) -> None:
        self.assertEqual(EncodeRequest("jpg").format, ImageFormat.JPEG)
        with self.assertRaises(UnsupportedFormatError):
            EncodeRequest("heic")

    def test_backend_failure_is_wrapped(self) -> None:
        with patch.object(Image.Image, "save", side_effect=OSError("encoder error -2")):
            with self.assertRaises(EncodingFailure):
                codec_registry.encode(_gradient(), EncodeRequest(ImageFormat.PNG))


def test_exif_orientation_is_applied():
    src = Image.new("RGB", (40, 20), (200, 10, 10))
    exif = Image.Exif()
    exif[0x0112] = 6
    buf = io.BytesIO()
    src.save(buf, format="JPEG", exif=exif.tobytes())

    res = codec_registry.decode(buf.getvalue())
    assert res.size == (20, 40)


@pytest.mark.parametrize(
    "hint, expected",
    [
        ("image/jpeg", ImageFormat.JPEG),
        (".JPG", ImageFormat.JPEG),
        ("holiday.tif", ImageFormat.TIFF),
        ("webp", ImageFormat.WEBP),
        ("image/x-ms-bmp", ImageFormat.BMP),
        ("PNG", ImageFormat.PNG),
        ("image/gif", ImageFormat.GIF),
        ("favicon.ico", ImageFormat.ICO),
        ("image/x-icon", ImageFormat.ICO),
        ("image/vnd.microsoft.icon", ImageFormat.ICO),
    ],
)
def test_format_hints(hint, expected):
    assert ImageFormat.from_hint(hint) == expected


def test_format_properties():
    assert ImageFormat.JPEG.extension == "jpg"
    assert ImageFormat.PNG.mime_type == "image/png"
    assert not ImageFormat.JPEG.has_alpha
    assert not ImageFormat.BMP.has_alpha
    assert ImageFormat.WEBP.has_alpha
    assert ImageFormat.WEBP.is_lossy
    assert not ImageFormat.TIFF.is_lossy
    assert ImageFormat.GIF.has_alpha
    assert ImageFormat.ICO.extension == "ico"
    assert ImageFormat.ICO.mime_type == "image/x-icon"


def test_quality_mapping():
    assert jpeg_quality(0.0) == 1
    assert jpeg_quality(1.0) == 95
    # 0.75 * 94 = 70.5 rounds up, not to even
    assert jpeg_quality(0.75) == 72
    assert webp_quality(0.5) == pytest.approx(50.0)


def test_to_rgba8_broadens_channels():
    gray = np.array([[0, 255]], dtype=np.uint8)
    res = to_rgba8(gray)
    assert res.shape == (1, 2, 4)
    assert list(res[0, 1]) == [255, 255, 255, 255]

    deep = np.array([[[65535, 0, 257]]], dtype=np.uint16)
    assert list(to_rgba8(deep)[0, 0]) == [255, 0, 1, 255]
