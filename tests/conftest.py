import os
import tempfile
import numpy as np
import pytest

# Keep numba's on-disk kernel cache out of the source tree
os.environ.setdefault("NUMBA_CACHE_DIR", os.path.join(tempfile.gettempdir(), "rasterkit-numba-cache"))


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def noisy_raster(rng):
    from rasterkit.domain.types import RasterBuffer

    return RasterBuffer(rng.integers(0, 256, size=(24, 32, 4), dtype=np.uint8))
