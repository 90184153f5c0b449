import numpy as np
import pytest
from rasterkit.domain.errors import InvalidParameterError, InvalidRegionError
from rasterkit.domain.types import RasterBuffer
from rasterkit.features.geometry.logic import (
    crop,
    resize,
    flip,
    rotate,
    transform,
    expanded_canvas,
    linked_dimension,
    fit_dimensions,
)
from rasterkit.features.geometry.models import CropRegion, ResampleFilter, RotateMode
from rasterkit.features.geometry.processor import CropProcessor, ResizeProcessor, TransformProcessor
from rasterkit.features.geometry.models import ResizeConfig, TransformConfig
from rasterkit.domain.interfaces import PipelineContext


def _raster(h: int, w: int, seed: int = 0) -> RasterBuffer:
    rng = np.random.default_rng(seed)
    return RasterBuffer(rng.integers(0, 256, size=(h, w, 4), dtype=np.uint8))


def _opaque(h: int, w: int, color=(120, 60, 200)) -> RasterBuffer:
    return RasterBuffer.blank(w, h, (*color, 255))


@pytest.mark.parametrize(
    "region",
    [
        CropRegion(0, 0, 40, 30),
        CropRegion(5, 7, 10, 3),
        CropRegion(39, 29, 1, 1),
        CropRegion(0, 10, 40, 20),
    ],
)
def test_crop_copies_region(region):
    src = _raster(30, 40)
    res = crop(src, region)

    assert res.width == region.width
    assert res.height == region.height
    for dy in range(region.height):
        for dx in range(region.width):
            assert np.array_equal(res.pixels[dy, dx], src.pixels[region.y + dy, region.x + dx])


def test_crop_result_does_not_alias_source():
    src = _raster(10, 10)
    res = crop(src, CropRegion(0, 0, 10, 5))
    assert not np.shares_memory(res.pixels, src.pixels)


@pytest.mark.parametrize(
    "region",
    [
        CropRegion(-1, 0, 5, 5),
        CropRegion(0, -1, 5, 5),
        CropRegion(36, 0, 5, 5),
        CropRegion(0, 26, 5, 5),
        CropRegion(0, 0, 0, 5),
    ],
)
def test_crop_out_of_bounds(region):
    with pytest.raises(InvalidRegionError):
        crop(_raster(30, 40), region)


def test_invalid_region_is_parameter_error():
    with pytest.raises(InvalidParameterError):
        crop(_raster(4, 4), CropRegion(2, 2, 4, 4))


def test_resize_identity():
    src = _raster(17, 23)
    res = resize(src, 23, 17)
    assert res.size == src.size
    diff = np.abs(res.pixels.astype(int) - src.pixels.astype(int))
    assert diff.max() <= 1


@pytest.mark.parametrize("dims", [(37, 23), (100, 80), (13, 61), (1, 1)])
def test_resize_dimensions(dims):
    res = resize(_raster(40, 50), *dims)
    assert res.size == dims
    assert res.pixels.dtype == np.uint8


@pytest.mark.parametrize("filt", list(ResampleFilter))
def test_resize_uniform_stays_uniform(filt):
    src = _opaque(20, 30)
    res = resize(src, 47, 13, filt)
    diff = np.abs(res.pixels.astype(int) - np.array([120, 60, 200, 255]))
    assert diff.max() <= 1


def test_resize_fractional_scale_blends():
    # Two-colour halves: a non-integer shrink must produce blended columns at the seam
    arr = np.zeros((4, 10, 4), dtype=np.uint8)
    arr[..., 3] = 255
    arr[:, 5:, :3] = 200
    res = resize(RasterBuffer(arr), 7, 4)
    reds = set(int(v) for v in res.pixels[0, :, 0])
    assert any(0 < v < 200 for v in reds)


def test_resize_invalid_dimensions():
    with pytest.raises(InvalidParameterError):
        resize(_raster(4, 4), 0, 4)
    with pytest.raises(InvalidParameterError):
        resize(_raster(4, 4), 4, -2)


def test_resize_transparent_edges_do_not_darken():
    # Opaque red next to transparent black: premultiplied resampling keeps red pure
    arr = np.zeros((8, 8, 4), dtype=np.uint8)
    arr[:, :4] = (255, 0, 0, 255)
    res = resize(RasterBuffer(arr), 16, 16)
    visible = res.pixels[..., 3] > 32
    assert np.all(res.pixels[visible][:, 0] >= 250)


def test_flip_twice_is_identity():
    src = _raster(9, 14)
    assert flip(flip(src, True, False), True, False).equals(src)
    assert flip(flip(src, False, True), False, True).equals(src)
    assert flip(flip(src, True, True), True, True).equals(src)


def test_flip_axes():
    src = _raster(5, 6)
    assert np.array_equal(flip(src, horizontal=True).pixels, src.pixels[:, ::-1])
    assert np.array_equal(flip(src, vertical=True).pixels, src.pixels[::-1])
    assert flip(src).equals(src)


def test_rotate_90_clockwise_expand():
    src = _raster(3, 5)
    res = rotate(src, 90, RotateMode.EXPAND)
    assert res.size == (3, 5)
    # first row becomes the last column
    assert np.array_equal(res.pixels[:, -1], src.pixels[0])
    assert np.array_equal(res.pixels[0, 2], src.pixels[0, 0])


def test_rotate_negative_is_counter_clockwise():
    src = _raster(3, 5)
    assert rotate(src, -90).equals(rotate(src, 270))
    assert np.array_equal(rotate(src, -90).pixels[:, 0], src.pixels[0, ::-1])


def test_rotate_full_turn_is_identity():
    src = _raster(6, 7)
    assert rotate(src, 0).equals(src)
    assert rotate(src, 360).equals(src)
    assert rotate(src, 720, RotateMode.CROP).equals(src)


def test_rotate_180_matches_double_flip():
    src = _raster(6, 9)
    assert rotate(src, 180).equals(flip(src, True, True))
    assert rotate(src, 180, RotateMode.CROP).equals(flip(src, True, True))


def test_rotate_arbitrary_expand_canvas():
    src = _opaque(10, 10)
    res = rotate(src, 45, RotateMode.EXPAND)
    assert res.size == expanded_canvas(10, 10, 45) == (15, 15)
    # corners fall outside the rotated square
    assert res.pixels[0, 0, 3] == 0
    assert res.pixels[-1, -1, 3] == 0
    # centre is still covered
    assert res.pixels[7, 7, 3] == 255
    assert abs(int(res.pixels[7, 7, 0]) - 120) <= 2


def test_rotate_arbitrary_crop_keeps_canvas():
    src = _opaque(20, 30)
    res = rotate(src, 30, RotateMode.CROP)
    assert res.size == (30, 20)
    assert res.pixels[0, 0, 3] == 0
    assert res.pixels[10, 15, 3] == 255


def test_rotate_90_crop_on_non_square_keeps_canvas():
    res = rotate(_raster(10, 20), 90, RotateMode.CROP)
    assert res.size == (20, 10)


def test_rotate_modes_differ():
    src = _opaque(10, 20)
    expand = rotate(src, 30, RotateMode.EXPAND)
    cropped = rotate(src, 30, RotateMode.CROP)
    assert expand.width > cropped.width
    assert expand.height > cropped.height


def test_rotate_rejects_non_finite():
    with pytest.raises(InvalidParameterError):
        rotate(_raster(4, 4), float("nan"))


def test_transform_composes_flip_then_rotate():
    src = _raster(4, 7)
    composed = transform(src, 90, flip_horizontal=True)
    stepwise = rotate(flip(src, True, False), 90)
    assert composed.equals(stepwise)


def test_transform_arbitrary_angle_with_flip():
    # Mirrored left/right halves: flip + rotation in one pass keeps the canvas maths consistent
    arr = np.zeros((16, 16, 4), dtype=np.uint8)
    arr[..., 3] = 255
    arr[:, :8, 0] = 255
    res = transform(RasterBuffer(arr), 10, flip_horizontal=True, mode=RotateMode.CROP)
    assert res.size == (16, 16)
    # red half moved to the right
    assert res.pixels[8, 12, 0] > 200
    assert res.pixels[8, 3, 0] < 50


def test_linked_dimension():
    assert linked_dimension(400, 800, 600) == 300
    assert linked_dimension(300, 600, 800) == 400
    # half-up rounding
    assert linked_dimension(5, 2, 1) == 3
    assert linked_dimension(1, 1000, 1) == 1


def test_fit_dimensions():
    assert fit_dimensions((800, 600), width=400) == (400, 300)
    assert fit_dimensions((800, 600), height=300) == (400, 300)
    assert fit_dimensions((800, 600)) == (800, 600)
    assert fit_dimensions((800, 600), 10, 20) == (10, 20)


def test_processors_record_metrics():
    src = _raster(10, 10)
    context = PipelineContext(original_size=src.size)

    CropProcessor(CropRegion(1, 2, 3, 4)).process(src, context)
    assert context.metrics["active_roi"] == (2, 6, 1, 4)

    TransformProcessor(TransformConfig(rotation=90, flip_vertical=True)).process(src, context)
    assert context.metrics["geometry_params"]["rotation"] == 90
    assert context.metrics["geometry_params"]["flip_vertical"] is True


def test_resize_processor_links_missing_side():
    src = _raster(20, 40)
    context = PipelineContext(original_size=src.size)

    assert ResizeProcessor(ResizeConfig(width=20)).process(src, context).size == (20, 10)
    assert ResizeProcessor(ResizeConfig(height=5)).process(src, context).size == (10, 5)
    assert ResizeProcessor(ResizeConfig(12, 7)).process(src, context).size == (12, 7)

    with pytest.raises(InvalidParameterError):
        ResizeProcessor(ResizeConfig()).process(src, context)
