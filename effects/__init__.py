"""
Hyperspace — Effects Registry
Post-composite effects with a uniform interface.
Every effect is a function: (frame: np.ndarray, **params) -> np.ndarray
"""

import inspect

import numpy as np

from effects.pixelate import pixelate
from effects.distortion import wave_warp
from effects.color import hue_cycle, color_invert
from effects.texture import blur

# Master registry: name -> (function, default_params, description)
EFFECTS = {
    "pixelate": {
        "fn": pixelate,
        "category": "glitch",
        "params": {"level": 0},
        "description": "Nearest-neighbor mosaic (block size in pixels, 0/1 = off)",
    },
    "wave": {
        "fn": wave_warp,
        "category": "distortion",
        "params": {"amplitude": 0.0, "frequency": 0.0, "direction": "None"},
        "description": "Traveling sine wave displacement (Horizontal/Vertical)",
    },
    "hue_cycle": {
        "fn": hue_cycle,
        "category": "color",
        "params": {"speed": 3.6, "intensity": 1.0, "offset": 0.0, "progress": 0.0},
        "description": "Rotate hue per frame with a pulsing saturation",
        "rgb_only": True,
    },
    "invert": {
        "fn": color_invert,
        "category": "color",
        "params": {},
        "description": "Invert RGB (alpha untouched)",
        "rgb_only": True,
    },
    "blur": {
        "fn": blur,
        "category": "texture",
        "params": {"radius": 0.0},
        "description": "Gaussian blur, sigma = radius",
    },
}

# Order the post chain always runs in. Blur is last so it softens
# block edges and warp seams from the earlier stages.
POST_CHAIN_ORDER = ("pixelate", "wave", "hue_cycle", "invert", "blur")

# Category display order and labels
CATEGORIES = {
    "glitch": "GLITCH",
    "distortion": "DISTORTION",
    "color": "COLOR",
    "texture": "TEXTURE",
}


def get_effect(name: str):
    """Get an effect by name. Returns (fn, default_params).

    Raises ValueError if effect doesn't exist.
    """
    if name not in EFFECTS:
        available = ", ".join(sorted(EFFECTS.keys()))
        raise ValueError(f"Unknown effect: {name}. Available: {available}")
    entry = EFFECTS[name]
    return entry["fn"], entry["params"].copy()


def list_effects(category: str = None) -> list[dict]:
    """List all available effects with descriptions, in chain order.

    Args:
        category: Optional filter — only return effects in this category.
    """
    results = []
    for name in POST_CHAIN_ORDER:
        entry = EFFECTS[name]
        if category and entry.get("category") != category:
            continue
        results.append({
            "name": name,
            "description": entry["description"],
            "params": entry["params"],
            "category": entry.get("category", "other"),
        })
    return results


def apply_effect(frame, effect_name: str, frame_index: int = 0, total_frames: int = 1, **params):
    """Apply a named effect to a frame with given params.

    RGBA frames: effects flagged rgb_only see only the color channels and
    get the input alpha reattached; the rest receive all four channels so
    alpha moves with the pixels.
    """
    fn, defaults = get_effect(effect_name)
    merged = {**defaults, **params}

    _input_alpha = None
    if EFFECTS[effect_name].get("rgb_only") and frame.ndim == 3 and frame.shape[2] == 4:
        _input_alpha = frame[:, :, 3].copy()
        frame = frame[:, :, :3].copy()

    # Inject temporal context for effects that need it
    sig = inspect.signature(fn)
    if "frame_index" in sig.parameters:
        merged["frame_index"] = frame_index
    if "total_frames" in sig.parameters:
        merged["total_frames"] = total_frames

    wet = fn(frame, **merged)

    if _input_alpha is not None:
        return np.dstack([wet, _input_alpha])
    return wet


def apply_chain(frame, effects_list: list[dict], frame_index: int = 0, total_frames: int = 1):
    """Apply a chain of effects sequentially.

    effects_list: [{"name": "pixelate", "params": {"level": 8}}, ...]
    Each effect consumes the previous one's output.
    """
    for effect in effects_list:
        frame = apply_effect(
            frame, effect["name"],
            frame_index=frame_index, total_frames=total_frames,
            **effect.get("params", {}),
        )
    return frame


def build_post_chain(params, ctx) -> list[dict]:
    """Build the enabled post effects for one frame, in POST_CHAIN_ORDER.

    Args:
        params: ParameterSet for the run.
        ctx: FrameContext for the frame.

    Returns:
        apply_chain-style list. Disabled stages are left out.
    """
    chain = []
    if params.pixelation_level > 1:
        chain.append({"name": "pixelate", "params": {"level": params.pixelation_level}})

    if (params.wave_amplitude > 0 and params.wave_frequency > 0
            and params.wave_direction.value != "None"):
        chain.append({"name": "wave", "params": {
            "amplitude": params.wave_amplitude,
            "frequency": params.wave_frequency,
            "direction": params.wave_direction.value,
        }})

    if params.hue_speed != 0 and params.hue_intensity > 0:
        chain.append({"name": "hue_cycle", "params": {
            "speed": params.hue_speed,
            "intensity": params.hue_intensity,
            "offset": ctx.hue_offset,
            "progress": ctx.progress,
        }})

    period = params.color_invert_period
    if period > 0 and ctx.frame_index % period == 0:
        chain.append({"name": "invert", "params": {}})

    if params.blur_radius > 0:
        chain.append({"name": "blur", "params": {"radius": params.blur_radius}})

    return chain
