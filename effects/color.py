"""
Hyperspace — Color Effects
Hue cycling with a saturation pulse, and RGB inversion.
"""

import math

import cv2
import numpy as np

# OpenCV 8-bit hue is 0-179 (half-degrees)
HUE_RANGE = 180.0


def saturation_multiplier(progress: float, speed: float, intensity: float) -> float:
    """Saturation gain for a point in the loop.

    Pulses between 2 - intensity and intensity at speed / 4 cycles per loop.
    intensity 1.0 gives a constant 1.0 (no pulse).
    """
    pulse = math.sin(2.0 * math.pi * progress * (speed / 4.0))
    return 1.0 + pulse * (intensity - 1.0)


def hue_cycle(frame: np.ndarray, speed: float = 3.6, intensity: float = 1.0,
              offset: float = 0.0, progress: float = 0.0) -> np.ndarray:
    """Rotate the hue wheel by offset and pulse saturation.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        speed: Hue steps (0-179 scale) per frame. Sets the pulse rate.
        intensity: Saturation pulse depth. 1.0 = hue shift only.
        offset: Hue rotation for this frame (FrameContext.hue_offset).
        progress: Position in the loop, 0 <= progress < 1.

    Returns:
        Color-cycled frame.
    """
    offset = offset % HUE_RANGE
    sat_mult = saturation_multiplier(progress, speed, intensity)

    hsv = cv2.cvtColor(frame, cv2.COLOR_RGB2HSV).astype(np.float32)
    hsv[:, :, 0] = np.floor(np.mod(hsv[:, :, 0] + offset, HUE_RANGE))
    if sat_mult != 1.0:
        hsv[:, :, 1] = np.clip(np.rint(hsv[:, :, 1] * sat_mult), 0, 255)
    return cv2.cvtColor(hsv.astype(np.uint8), cv2.COLOR_HSV2RGB)


def color_invert(frame: np.ndarray) -> np.ndarray:
    """Invert every channel of an RGB frame (255 - value).

    Applied through apply_effect, which strips alpha first and reattaches it,
    so transparency is never inverted.
    """
    return 255 - frame
