"""
Hyperspace — Distortion Effects
Sine wave warp via a per-pixel displacement map.
"""

import cv2
import numpy as np

# Phase advance per frame, in radians
WAVE_PHASE_STEP = 0.1


def wave_map(height: int, width: int, amplitude: float, frequency: float,
             direction: str, frame_index: int = 0) -> tuple[np.ndarray, np.ndarray]:
    """Build cv2.remap source coordinates for a sine wave.

    Horizontal: src_x = x + A * sin(y * f + i * 0.1), src_y = y
    Vertical:   src_y = y + A * sin(x * f + i * 0.1), src_x = x

    Returns:
        (map_x, map_y) float32 arrays of shape (height, width).
    """
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    phase = frame_index * WAVE_PHASE_STEP

    if direction == "Horizontal":
        xs = xs + amplitude * np.sin(ys * frequency + phase).astype(np.float32)
    elif direction == "Vertical":
        ys = ys + amplitude * np.sin(xs * frequency + phase).astype(np.float32)

    return xs.astype(np.float32), ys.astype(np.float32)


def wave_warp(frame: np.ndarray, amplitude: float = 0.0, frequency: float = 0.0,
              direction: str = "None", frame_index: int = 0) -> np.ndarray:
    """Apply a sine wave displacement to the image.

    Args:
        frame: (H, W, C) uint8 array, RGB or RGBA.
        amplitude: Peak displacement in pixels. 0 = no change.
        frequency: Radians per pixel along the driving axis.
        direction: 'Horizontal', 'Vertical', or 'None'.
        frame_index: Shifts the wave phase so it travels over time.

    Returns:
        Warped frame, same shape. Samples are bilinear; out-of-range
        coordinates replicate the nearest edge pixel.
    """
    direction = getattr(direction, "value", direction)
    if amplitude <= 0 or frequency <= 0 or direction not in ("Horizontal", "Vertical"):
        return frame

    h, w = frame.shape[:2]
    map_x, map_y = wave_map(h, w, float(amplitude), float(frequency), direction, frame_index)
    return cv2.remap(frame, map_x, map_y, cv2.INTER_LINEAR, borderMode=cv2.BORDER_REPLICATE)
