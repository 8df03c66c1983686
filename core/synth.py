"""
Hyperspace — Frame Synthesizer

One frame of the animation, as a pure function of the source raster, the
frame index, and the parameter set:

    blank canvas -> starfield -> tunnel layers -> global zoom -> post chain

Nothing is carried between frames. Rotation, hue offset, and zoom are all
recomputed from the frame index, so any frame can be rendered on its own.
"""

import numpy as np

from core.params import FrameContext, ParameterSet
from effects import apply_chain, build_post_chain
from effects.starfield import render_starfield
from effects.tunnel import composite_layers
from effects.zoom import global_zoom


def blank_canvas(height: int, width: int) -> np.ndarray:
    """Fully transparent (H, W, 4) uint8 canvas."""
    return np.zeros((height, width, 4), dtype=np.uint8)


def synthesize_frame(source: np.ndarray, frame_index: int, params: ParameterSet) -> np.ndarray:
    """Render frame `frame_index` of `params.frame_count`.

    Args:
        source: (H, W, 4) uint8 RGBA working image.
        frame_index: 0 <= frame_index < params.frame_count.
        params: Render parameters (read only).

    Returns:
        (H, W, 4) uint8 RGBA raster.

    Raises:
        ValueError: If frame_index is out of range or source is not RGBA.
    """
    if source.ndim != 3 or source.shape[2] != 4:
        raise ValueError(f"Source must be (H, W, 4) RGBA, got shape {source.shape}")

    ctx = FrameContext.build(params, frame_index)
    h, w = source.shape[:2]

    frame = render_starfield(
        blank_canvas(h, w),
        star_count=params.star_count,
        pattern=params.starfield_pattern.value,
        frame_index=frame_index,
        seed=params.star_seed,
    )
    frame = composite_layers(
        source, frame,
        angle=ctx.rotation_angle,
        max_layers=params.max_layers,
        scale_decay=params.scale_decay,
    )
    frame = global_zoom(frame, ctx.zoom_scale)
    frame = apply_chain(
        frame, build_post_chain(params, ctx),
        frame_index=frame_index, total_frames=params.frame_count,
    )
    return np.ascontiguousarray(frame, dtype=np.uint8)
