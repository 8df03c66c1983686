"""
Hyperspace — Global Zoom
Uniform scale of the whole composited frame about its center.
"""

import cv2
import numpy as np

from core.params import MIN_ZOOM


def global_zoom(frame: np.ndarray, scale: float = 1.0) -> np.ndarray:
    """Scale a frame about its geometric center, keeping its size.

    Zooming in crops the edges; zooming out fills the uncovered border by
    reflection (BORDER_REFLECT_101) so no hard transparent edge appears.

    Args:
        frame: (H, W, C) uint8 array.
        scale: Zoom factor. 1.0 returns the frame untouched. Values below
            MIN_ZOOM are clamped.

    Returns:
        Zoomed frame, same shape as the input.
    """
    scale = max(MIN_ZOOM, float(scale))
    if scale == 1.0:
        return frame

    h, w = frame.shape[:2]
    zoom_mat = cv2.getRotationMatrix2D((w / 2.0, h / 2.0), 0.0, scale)
    return cv2.warpAffine(
        frame, zoom_mat, (w, h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_REFLECT_101,
    )
