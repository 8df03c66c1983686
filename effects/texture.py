"""
Hyperspace — Texture Effects
Gaussian softening applied last in the chain.
"""

import cv2
import numpy as np


def blur(frame: np.ndarray, radius: float = 0.0) -> np.ndarray:
    """Gaussian blur with sigma = radius.

    The kernel size is derived from sigma by OpenCV. Works on any channel
    count, so alpha edges soften along with color.

    Args:
        frame: (H, W, C) uint8 array.
        radius: Sigma in pixels. 0 = no change.

    Returns:
        Blurred frame.
    """
    radius = float(radius)
    if radius <= 0:
        return frame
    return cv2.GaussianBlur(frame, (0, 0), radius)
