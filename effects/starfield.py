"""
Hyperspace — Starfield
Background point patterns drawn onto the blank canvas before the tunnel
layers are composited over them.
"""

import math

import cv2
import numpy as np

STAR_RADIUS = 1
STAR_COLOR = (255, 255, 255)


def render_starfield(canvas: np.ndarray, star_count: int = 0, pattern: str = "None",
                     frame_index: int = 0, seed: int = 42) -> np.ndarray:
    """Draw stars onto an RGBA canvas.

    Args:
        canvas: (H, W, 4) uint8 RGBA array. Not modified.
        star_count: Number of stars (0 = no-op).
        pattern: 'Random', 'Spiral', or 'None'.
        frame_index: Current frame. Reseeds the random scatter and drifts the spiral.
        seed: Base seed for the random scatter.

    Returns:
        New canvas with stars drawn.
    """
    pattern = getattr(pattern, "value", pattern)
    if star_count <= 0 or pattern == "None":
        return canvas

    result = canvas.copy()
    h, w = result.shape[:2]

    if pattern == "Random":
        # Seed changes each frame so the field twinkles but stays reproducible
        rng = np.random.RandomState(seed + frame_index)
        xs = rng.randint(0, w, star_count)
        ys = rng.randint(0, h, star_count)
        alphas = (255 * rng.uniform(0.5, 1.0, star_count)).astype(np.int32)
        for x, y, a in zip(xs, ys, alphas):
            cv2.circle(result, (int(x), int(y)), STAR_RADIUS, (*STAR_COLOR, int(a)), cv2.FILLED)

    elif pattern == "Spiral":
        cx, cy = w / 2.0, h / 2.0
        for j in range(star_count):
            angle = 0.1 * j + 0.05 * frame_index
            radius = 2 * j
            x = int(cx + radius * math.cos(angle))
            y = int(cy + radius * math.sin(angle))
            # Off-canvas points are skipped, not clamped
            if 0 <= x < w and 0 <= y < h:
                cv2.circle(result, (x, y), STAR_RADIUS, (*STAR_COLOR, 255), cv2.FILLED)

    else:
        raise ValueError(f"Unknown starfield pattern: {pattern}")

    return result
