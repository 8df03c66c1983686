"""
Hyperspace — Tunnel Layer Compositor

Builds the tunnel effect: the source is repeatedly shrunk, spun about its
own center, and pasted center-aligned over the frame with straight-alpha
"over" compositing. Each layer is resized from the previous layer (chained),
not from the original, and the loop ends once a layer drops below
MIN_LAYER_SIZE pixels on either side.
"""

import cv2
import numpy as np
from PIL import Image

# Smallest layer edge (pixels) still worth drawing
MIN_LAYER_SIZE = 2

# Added before truncating composite values so float error never drops a level
ALPHA_EPSILON = 1e-6


class DegenerateGeometryError(ValueError):
    """Raised when a resize would produce a layer below MIN_LAYER_SIZE."""
    pass


def resize_layer(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """Lanczos resize of an RGBA layer.

    Raises:
        DegenerateGeometryError: If either target edge is below MIN_LAYER_SIZE.
    """
    if width < MIN_LAYER_SIZE or height < MIN_LAYER_SIZE:
        raise DegenerateGeometryError(
            f"Layer size {width}x{height} below {MIN_LAYER_SIZE}px floor"
        )
    if image.shape[1] == width and image.shape[0] == height:
        return image
    img = Image.fromarray(image)
    return np.array(img.resize((width, height), Image.Resampling.LANCZOS))


def rotate_layer(layer: np.ndarray, angle: float) -> np.ndarray:
    """Rotate an RGBA layer about its own center.

    Positive angles turn clockwise on screen. Output keeps the layer's size;
    corners that leave the bounds are clipped and uncovered areas are
    fully transparent.
    """
    if angle % 360.0 == 0.0:
        return layer
    h, w = layer.shape[:2]
    center = (w / 2.0, h / 2.0)
    # OpenCV treats positive angles as counter-clockwise
    rot_mat = cv2.getRotationMatrix2D(center, -angle, 1.0)
    return cv2.warpAffine(
        layer, rot_mat, (w, h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 0),
    )


def alpha_over(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    """Straight (non-premultiplied) alpha "over": src on top of dst.

    Both arrays are (h, w, 4) uint8 of the same shape. Pixels where src is
    fully transparent keep dst exactly.

    out_a   = src_a + dst_a * (1 - src_a)
    out_rgb = (src_rgb * src_a + dst_rgb * dst_a * (1 - src_a)) / out_a
    """
    s_a = src[:, :, 3:4].astype(np.float64) / 255.0
    d_a = dst[:, :, 3:4].astype(np.float64) / 255.0
    s_rgb = src[:, :, :3].astype(np.float64)
    d_rgb = dst[:, :, :3].astype(np.float64)

    out_a = s_a + d_a * (1.0 - s_a)
    numer = s_rgb * s_a + d_rgb * d_a * (1.0 - s_a)
    safe_a = np.where(out_a > 0, out_a, 1.0)
    out_rgb = np.where(out_a > 0, numer / safe_a, 0.0)

    result = np.empty_like(dst)
    # Truncate like an integer cast
    result[:, :, :3] = np.clip(out_rgb + ALPHA_EPSILON, 0, 255).astype(np.uint8)
    result[:, :, 3] = np.clip(out_a[:, :, 0] * 255.0 + ALPHA_EPSILON, 0, 255).astype(np.uint8)

    untouched = src[:, :, 3] == 0
    result[untouched] = dst[untouched]
    return result


def paste_centered(frame: np.ndarray, layer: np.ndarray) -> bool:
    """Composite a layer over the frame, centers aligned. Mutates frame.

    Only the intersection of the layer rect and the frame is touched.

    Returns:
        False if the layer does not overlap the frame (nothing drawn).
    """
    fh, fw = frame.shape[:2]
    lh, lw = layer.shape[:2]
    paste_x = fw // 2 - lw // 2
    paste_y = fh // 2 - lh // 2

    x0, y0 = max(0, paste_x), max(0, paste_y)
    x1, y1 = min(fw, paste_x + lw), min(fh, paste_y + lh)
    if x1 <= x0 or y1 <= y0:
        return False

    src = layer[y0 - paste_y:y1 - paste_y, x0 - paste_x:x1 - paste_x]
    frame[y0:y1, x0:x1] = alpha_over(frame[y0:y1, x0:x1], src)
    return True


def composite_layers(source: np.ndarray, frame: np.ndarray, angle: float = 0.0,
                     max_layers: int = 10, scale_decay: float = 0.85) -> np.ndarray:
    """Paint the tunnel layers over a frame.

    Args:
        source: (H, W, 4) uint8 RGBA working image.
        frame: (H, W, 4) uint8 RGBA canvas (e.g. a starfield). Not modified.
        angle: Rotation for this frame in degrees (clockwise positive).
        max_layers: Upper bound on layers drawn.
        scale_decay: Size ratio between consecutive layers.

    Returns:
        New frame with layers composited, largest first.
    """
    result = frame.copy()
    if max_layers <= 0:
        return result

    height, width = result.shape[:2]
    scale = 1.0
    running = source

    for _ in range(max_layers):
        try:
            running = resize_layer(running, int(width * scale), int(height * scale))
        except DegenerateGeometryError:
            break
        paste_centered(result, rotate_layer(running, angle))
        scale *= scale_decay

    return result
