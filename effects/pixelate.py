"""
Hyperspace — Pixelate Effect
Blocky mosaic from a nearest-neighbor round trip through a smaller size.
"""

import numpy as np
from PIL import Image


def pixelate(frame: np.ndarray, level: int = 0) -> np.ndarray:
    """Downscale then upscale with nearest neighbor.

    Args:
        frame: (H, W, C) uint8 array, RGB or RGBA.
        level: Block size in pixels. 0 or 1 = no change.

    Returns:
        Pixelated frame, same shape.
    """
    level = int(level)
    if level <= 1:
        return frame

    h, w = frame.shape[:2]
    small_w = max(1, w // level)
    small_h = max(1, h // level)

    img = Image.fromarray(frame)
    small = img.resize((small_w, small_h), Image.Resampling.NEAREST)
    return np.array(small.resize((w, h), Image.Resampling.NEAREST))
