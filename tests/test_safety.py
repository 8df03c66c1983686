"""
Hyperspace -- Safety & Image Loading Tests
Preflight rejections, decode failures, output location checks.

Run with: pytest tests/test_safety.py -v
"""

import os
import sys
from unittest.mock import patch

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core import safety
from core.safety import InputError, preflight, check_output_location
from core.image_io import load_source_image, save_frame


# ---------------------------------------------------------------------------
# Preflight
# ---------------------------------------------------------------------------

def test_preflight_ok(red_image):
    info = preflight(red_image)
    assert info["extension"] == ".png"
    assert info["size_mb"] < 1


def test_preflight_empty_path():
    with pytest.raises(InputError, match="No source image"):
        preflight("")


def test_preflight_missing_names_path(tmp_path):
    missing = str(tmp_path / "ghost.png")
    with pytest.raises(InputError) as exc:
        preflight(missing)
    assert missing in str(exc.value)
    assert exc.value.path == missing


def test_preflight_rejects_extension(tmp_path):
    doc = tmp_path / "notes.txt"
    doc.write_text("hello")
    with pytest.raises(InputError, match="not supported"):
        preflight(str(doc))


def test_preflight_rejects_oversized(red_image):
    with patch.object(safety, "MAX_FILE_MB", 0):
        with pytest.raises(InputError, match="exceeds"):
            preflight(red_image)


def test_output_location_creates_parent(tmp_path):
    out = check_output_location(str(tmp_path / "a" / "b" / "out.gif"))
    assert out.parent.is_dir()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def test_load_resizes_to_square_rgba(gradient_image):
    src = load_source_image(gradient_image, size=40)
    assert src.shape == (40, 40, 4)
    assert src.dtype == np.uint8
    assert (src[:, :, 3] == 255).all()


def test_load_keeps_existing_alpha(tmp_path):
    from PIL import Image
    arr = np.zeros((20, 20, 4), dtype=np.uint8)
    arr[:, :, 3] = 0
    arr[5:15, 5:15] = [0, 0, 255, 255]
    path = tmp_path / "cutout.png"
    Image.fromarray(arr).save(path)
    src = load_source_image(str(path), size=20)
    assert src[0, 0, 3] == 0
    assert src[10, 10, 3] == 255


def test_load_undecodable(tmp_path):
    bad = tmp_path / "broken.jpg"
    bad.write_bytes(b"definitely not a jpeg")
    with pytest.raises(InputError, match="broken.jpg"):
        load_source_image(str(bad))


def test_save_frame_roundtrip(tmp_path):
    from PIL import Image
    frame = np.zeros((8, 8, 4), dtype=np.uint8)
    frame[:, :] = [10, 20, 30, 40]
    path = tmp_path / "f.png"
    save_frame(frame, path)
    with Image.open(path) as img:
        np.testing.assert_array_equal(np.array(img), frame)
