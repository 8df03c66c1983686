"""
Hyperspace -- Tunnel Compositor Tests
Layer sizing, rotation, straight-alpha compositing, and clipping.

Run with: pytest tests/test_tunnel.py -v
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import effects.tunnel as tunnel
from effects.tunnel import (
    alpha_over,
    composite_layers,
    paste_centered,
    resize_layer,
    rotate_layer,
    DegenerateGeometryError,
    MIN_LAYER_SIZE,
)


def _record_sizes(monkeypatch):
    sizes = []
    original = tunnel.paste_centered

    def spy(frame, layer):
        sizes.append(layer.shape[:2])
        return original(frame, layer)

    monkeypatch.setattr(tunnel, "paste_centered", spy)
    return sizes


# ---------------------------------------------------------------------------
# Layer geometry
# ---------------------------------------------------------------------------

def test_three_layers_halving(monkeypatch, red_source):
    sizes = _record_sizes(monkeypatch)
    canvas = np.zeros_like(red_source)
    out = composite_layers(red_source, canvas, angle=0.0, max_layers=3, scale_decay=0.5)
    assert sizes == [(100, 100), (50, 50), (25, 25)]
    assert out[50, 50, 0] >= 254
    assert out[50, 50, 1] == 0 and out[50, 50, 2] == 0
    assert (out[:, :, 3] == 255).all()


def test_chain_stops_at_size_floor(monkeypatch, red_source):
    sizes = _record_sizes(monkeypatch)
    composite_layers(red_source, np.zeros_like(red_source), max_layers=50, scale_decay=0.5)
    # 100, 50, 25, 12, 6, 3 -> next would be 1px
    assert [s[0] for s in sizes] == [100, 50, 25, 12, 6, 3]


def test_zero_layers_returns_copy_of_canvas(red_source):
    canvas = np.full_like(red_source, 7)
    out = composite_layers(red_source, canvas, max_layers=0)
    np.testing.assert_array_equal(out, canvas)
    assert out is not canvas


def test_canvas_not_mutated(red_source):
    canvas = np.zeros_like(red_source)
    composite_layers(red_source, canvas, max_layers=3)
    assert not canvas.any()


def test_resize_below_floor_raises(red_source):
    with pytest.raises(DegenerateGeometryError):
        resize_layer(red_source, MIN_LAYER_SIZE - 1, 10)


def test_resize_same_size_is_noop(red_source):
    assert resize_layer(red_source, 100, 100) is red_source


# ---------------------------------------------------------------------------
# Rotation
# ---------------------------------------------------------------------------

def test_rotation_full_turn_is_identity(red_source):
    assert rotate_layer(red_source, 0.0) is red_source
    assert rotate_layer(red_source, 720.0) is red_source


def test_rotation_clips_corners_transparent(red_source):
    rotated = rotate_layer(red_source, 45.0)
    assert rotated.shape == red_source.shape
    assert rotated[0, 0, 3] == 0
    np.testing.assert_array_equal(rotated[50, 50], [255, 0, 0, 255])


def test_rotation_is_clockwise_on_screen():
    # A marker right of center should end up below center after +90
    layer = np.zeros((41, 41, 4), dtype=np.uint8)
    layer[18:23, 30:38] = [255, 255, 255, 255]
    rotated = rotate_layer(layer, 90.0)
    assert rotated[26:, :, 3].sum() > 0
    assert rotated[:16, :, 3].sum() == 0
    assert rotated[:, 28:, 3].sum() == 0


def test_rotation_deterministic(red_source):
    a = rotate_layer(red_source, 33.3)
    b = rotate_layer(red_source, 33.3)
    np.testing.assert_array_equal(a, b)


# ---------------------------------------------------------------------------
# Compositing
# ---------------------------------------------------------------------------

def test_alpha_over_opaque_src_wins():
    dst = np.full((4, 4, 4), [0, 0, 255, 255], dtype=np.uint8)
    src = np.full((4, 4, 4), [255, 0, 0, 255], dtype=np.uint8)
    np.testing.assert_array_equal(alpha_over(dst, src), src)


def test_alpha_over_transparent_src_keeps_dst():
    dst = np.full((4, 4, 4), [10, 20, 30, 40], dtype=np.uint8)
    src = np.full((4, 4, 4), [255, 255, 255, 0], dtype=np.uint8)
    np.testing.assert_array_equal(alpha_over(dst, src), dst)


def test_alpha_over_half_alpha_over_opaque():
    dst = np.full((1, 1, 4), [0, 0, 0, 255], dtype=np.uint8)
    src = np.full((1, 1, 4), [255, 255, 255, 128], dtype=np.uint8)
    out = alpha_over(dst, src)
    assert out[0, 0, 3] == 255
    assert 126 <= out[0, 0, 0] <= 129


def test_alpha_over_onto_transparent_keeps_src_color():
    # Straight alpha: color is not darkened when the destination is empty
    dst = np.zeros((1, 1, 4), dtype=np.uint8)
    src = np.full((1, 1, 4), [200, 100, 50, 128], dtype=np.uint8)
    out = alpha_over(dst, src)
    assert out[0, 0, 3] == 127 or out[0, 0, 3] == 128
    assert abs(int(out[0, 0, 0]) - 200) <= 1


@pytest.mark.parametrize("color", [(255, 255, 255), (200, 100, 50), (1, 254, 128)])
def test_alpha_over_same_color_is_exact_for_every_alpha(color):
    dst = np.full((1, 255, 4), [*color, 255], dtype=np.uint8)
    src = dst.copy()
    src[0, :, 3] = np.arange(1, 256)
    out = alpha_over(dst, src)
    np.testing.assert_array_equal(out, dst)


def test_paste_centered_clips_to_frame():
    frame = np.zeros((10, 10, 4), dtype=np.uint8)
    layer = np.full((20, 20, 4), 255, dtype=np.uint8)
    assert paste_centered(frame, layer) is True
    assert (frame == 255).all()


def test_paste_centered_touches_only_center():
    frame = np.zeros((20, 20, 4), dtype=np.uint8)
    layer = np.full((4, 4, 4), 255, dtype=np.uint8)
    paste_centered(frame, layer)
    assert frame[8:12, 8:12].min() == 255
    assert frame[:8].max() == 0
    assert frame[12:].max() == 0
