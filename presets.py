"""
Hyperspace -- Built-in Presets
Curated parameter sets for the tunnel animator.

Each preset is a partial ParameterSet: fields it leaves out keep their
defaults. The source image path is never part of a preset.

Categories:
    Classic     -- The plain spinning tunnel and its close relatives
    Cosmic      -- Starfields, deep tunnels, slow breathing zoom
    Psychedelic -- Strobing inversion, fast hue, heavy warp
    Retro       -- Mosaic and soft blur looks
"""

BUILT_IN_PRESETS = [
    {
        "name": "Classic Tunnel",
        "description": "The stock look: ten layers shrinking by 0.85, two turns per loop, "
                       "gentle hue drift and a 10% breathing zoom.",
        "category": "Classic",
        "params": {},
        "tags": ["default", "tunnel", "spin"],
    },
    {
        "name": "Still Life",
        "description": "Layers only. No spin, no color cycling, no zoom. Useful for checking "
                       "how a source reads as a tunnel before adding motion.",
        "category": "Classic",
        "params": {
            "rotation_direction": "None",
            "hue_speed": 0.0,
            "global_zoom_mode": "None",
        },
        "tags": ["static", "debug", "clean"],
    },
    {
        "name": "Hyperspace",
        "description": "Five layers over a random starfield, a soft horizontal ripple and an "
                       "inversion flash every 18 frames.",
        "category": "Cosmic",
        "params": {
            "max_layers": 5,
            "blur_radius": 0.2,
            "star_count": 110,
            "starfield_pattern": "Random",
            "pixelation_level": 0,
            "color_invert_period": 18,
            "wave_amplitude": 1.1,
            "wave_frequency": 0.33,
            "wave_direction": "Horizontal",
        },
        "tags": ["stars", "ripple", "flash"],
    },
    {
        "name": "Galaxy Spiral",
        "description": "A rotating spiral of stars behind a deep, slowly turning tunnel.",
        "category": "Cosmic",
        "params": {
            "max_layers": 12,
            "scale_decay": 0.92,
            "rotation_speed": 2.0,
            "star_count": 400,
            "starfield_pattern": "Spiral",
            "hue_speed": 3.6,
            "oscillating_amplitude": 0.2,
            "oscillating_frequency": 1.0,
            "oscillating_midpoint": 0.9,
        },
        "tags": ["spiral", "stars", "deep"],
    },
    {
        "name": "Warp Drive",
        "description": "Linear push-in through the tunnel with a fast hue sweep.",
        "category": "Cosmic",
        "params": {
            "max_layers": 12,
            "scale_decay": 0.8,
            "rotation_speed": 4.0,
            "global_zoom_mode": "Linear",
            "linear_zoom_speed": 1.0,
            "hue_speed": 12.8,
        },
        "tags": ["zoom", "speed", "rainbow"],
    },
    {
        "name": "Acid Ripple",
        "description": "Vertical wave warp, saturation pulse and fast hue cycling.",
        "category": "Psychedelic",
        "params": {
            "wave_amplitude": 3.6,
            "wave_frequency": 0.2,
            "wave_direction": "Vertical",
            "hue_speed": 9.0,
            "hue_intensity": 1.5,
            "oscillating_amplitude": 0.4,
            "oscillating_frequency": 2.15,
            "oscillating_midpoint": 0.82,
        },
        "tags": ["wave", "saturation", "trippy"],
    },
    {
        "name": "Strobe Vortex",
        "description": "Counter-clockwise spin with inversion on every other frame. "
                       "Flashes hard; not for photosensitive viewers.",
        "category": "Psychedelic",
        "params": {
            "rotation_direction": "Counter-Clockwise",
            "rotation_speed": 6.0,
            "color_invert_period": 2,
            "hue_speed": 6.0,
            "blur_radius": 0.5,
        },
        "tags": ["strobe", "invert", "spin"],
    },
    {
        "name": "Retro Mosaic",
        "description": "8px blocks softened by a light blur, with a slow hue drift.",
        "category": "Retro",
        "params": {
            "pixelation_level": 8,
            "blur_radius": 1.0,
            "hue_speed": 3.6,
            "global_zoom_mode": "None",
        },
        "tags": ["pixel", "8bit", "mosaic"],
    },
]

_PRESETS_BY_NAME = {p["name"].lower(): p for p in BUILT_IN_PRESETS}


def get_preset(name: str) -> dict:
    """Look up a preset by name (case-insensitive).

    Raises:
        KeyError: If the preset name is not found.
    """
    preset = _PRESETS_BY_NAME.get(name.strip().lower())
    if preset is None:
        available = ", ".join(p["name"] for p in BUILT_IN_PRESETS)
        raise KeyError(f"Unknown preset '{name}'. Available: {available}")
    return preset


def list_presets(category: str = None) -> list[dict]:
    """List presets (name, description, category, tags), optionally by category."""
    results = []
    for preset in BUILT_IN_PRESETS:
        if category and preset["category"].lower() != category.lower():
            continue
        results.append({
            "name": preset["name"],
            "description": preset["description"],
            "category": preset["category"],
            "tags": preset["tags"],
        })
    return results
