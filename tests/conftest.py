"""
Conftest: shared fixtures for all Hyperspace test modules.

1. Synthetic source images written to tmp_path (no binary fixtures in the repo)
2. Small RGBA frames for effect tests
3. A "quiet" ParameterSet with every frame-dependent effect switched off
"""

import os
import sys

import numpy as np
import pytest
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.params import ParameterSet


def _write_image(path, array):
    Image.fromarray(array).save(str(path))
    return str(path)


@pytest.fixture
def red_image(tmp_path):
    """100x100 opaque red PNG on disk."""
    arr = np.zeros((100, 100, 3), dtype=np.uint8)
    arr[:, :, 0] = 255
    return _write_image(tmp_path / "red.png", arr)


@pytest.fixture
def gradient_image(tmp_path):
    """64x64 RGB gradient PNG (not flat, so effects visibly change it)."""
    arr = np.zeros((64, 64, 3), dtype=np.uint8)
    arr[:, :, 0] = np.linspace(0, 255, 64, dtype=np.uint8)[None, :]
    arr[:, :, 1] = 128
    arr[:, :, 2] = np.linspace(255, 0, 64, dtype=np.uint8)[:, None]
    return _write_image(tmp_path / "gradient.png", arr)


@pytest.fixture
def red_source():
    """100x100 opaque red RGBA working raster."""
    src = np.zeros((100, 100, 4), dtype=np.uint8)
    src[:, :, 0] = 255
    src[:, :, 3] = 255
    return src


@pytest.fixture
def rgba_frame():
    """A 48x48 random RGBA frame with mixed alpha."""
    rng = np.random.RandomState(0)
    return rng.randint(0, 256, (48, 48, 4)).astype(np.uint8)


@pytest.fixture
def quiet_params():
    """Every frame-dependent effect off: no spin, hue, zoom, stars or post."""
    return ParameterSet(
        frame_count=10,
        rotation_speed=0.0,
        hue_speed=0.0,
        star_count=0,
        global_zoom_mode="None",
        working_size=100,
    )
