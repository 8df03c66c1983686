"""
Hyperspace -- Render Parameters

Pydantic model for the full parameter set consumed by the frame pipeline,
plus the per-frame context derived from it.

A ParameterSet is frozen: the render loop works from a snapshot taken at
launch, and live edits (CLI flags, HTTP requests) go through with_updates(),
which always returns a new validated object.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class RotationDirection(str, Enum):
    """Spin direction of the tunnel layers."""
    CLOCKWISE = "Clockwise"
    COUNTER_CLOCKWISE = "Counter-Clockwise"
    NONE = "None"


class StarfieldPattern(str, Enum):
    """Background point pattern drawn before the layers."""
    NONE = "None"
    RANDOM = "Random"    # Twinkling uniform scatter
    SPIRAL = "Spiral"    # Archimedean spiral, drifts with frame index


class WaveDirection(str, Enum):
    """Axis along which the wave warp displaces pixels."""
    NONE = "None"
    HORIZONTAL = "Horizontal"  # x displaced as a function of y
    VERTICAL = "Vertical"      # y displaced as a function of x


class ZoomMode(str, Enum):
    """Global zoom curve over the animation."""
    NONE = "None"
    LINEAR = "Linear"            # Steady push-in
    OSCILLATING = "Oscillating"  # Breathing in/out


# Floor for the global zoom scale (avoids a singular affine)
MIN_ZOOM = 0.1


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Parameter set
# ---------------------------------------------------------------------------

class ParameterSet(BaseModel):
    """Complete configuration for one animation run.

    Groups:
        Core:     source_image_path, frame_count, rotation_*
        Tunnel:   max_layers, scale_decay
        Post:     star*, pixelation_level, color_invert_period, wave_*,
                  blur_radius, hue_*
        Zoom:     global_zoom_mode, linear_zoom_speed, oscillating_*
        Output:   working_size, frame_delay_cs
    """

    model_config = {"frozen": True, "extra": "forbid"}

    # -- Core --
    source_image_path: str = Field(
        default="",
        description="Path to the still image the animation is built from.",
    )
    frame_count: int = Field(
        default=60, ge=1, le=10000,
        description="Number of frames in the loop.",
    )
    rotation_direction: RotationDirection = Field(default=RotationDirection.CLOCKWISE)
    rotation_speed: float = Field(
        default=3.6, ge=0.0, allow_inf_nan=False,
        description="Rotation budget. Every 2.0 adds one full turn over the run (rounded).",
    )

    # -- Tunnel --
    max_layers: int = Field(default=10, ge=0, le=100)
    scale_decay: float = Field(
        default=0.85, gt=0.0, le=1.0, allow_inf_nan=False,
        description="Per-layer shrink ratio.",
    )

    # -- Starfield --
    star_count: int = Field(default=0, ge=0, le=100000)
    starfield_pattern: StarfieldPattern = Field(default=StarfieldPattern.NONE)
    star_seed: int = Field(
        default=42, ge=0,
        description="Seed for the Random starfield. Combined with the frame index.",
    )

    # -- Post effects --
    pixelation_level: int = Field(
        default=0, ge=0,
        description="Mosaic block size in pixels. 0 or 1 disables.",
    )
    color_invert_period: int = Field(
        default=0, ge=0,
        description="Invert RGB on every Nth frame (frame index divisible by N). 0 disables.",
    )
    wave_amplitude: float = Field(default=0.0, ge=0.0, allow_inf_nan=False)
    wave_frequency: float = Field(default=0.0, ge=0.0, allow_inf_nan=False)
    wave_direction: WaveDirection = Field(default=WaveDirection.NONE)
    blur_radius: float = Field(
        default=0.0, ge=0.0, allow_inf_nan=False,
        description="Gaussian sigma in pixels. 0 disables.",
    )
    hue_speed: float = Field(
        default=3.6, allow_inf_nan=False,
        description="Hue steps (0-179 scale) added per frame.",
    )
    hue_intensity: float = Field(
        default=1.0, ge=0.0, allow_inf_nan=False,
        description="Saturation pulse depth. 1.0 = no pulse, 0 disables the hue stage.",
    )

    # -- Global zoom --
    global_zoom_mode: ZoomMode = Field(default=ZoomMode.OSCILLATING)
    linear_zoom_speed: float = Field(default=0.5, allow_inf_nan=False)
    oscillating_amplitude: float = Field(default=0.1, allow_inf_nan=False)
    oscillating_frequency: float = Field(default=1.0, allow_inf_nan=False)
    oscillating_midpoint: float = Field(default=1.0, allow_inf_nan=False)

    # -- Output --
    working_size: int = Field(
        default=600, ge=16, le=4096,
        description="Source is resized to a working_size x working_size square.",
    )
    frame_delay_cs: int = Field(
        default=8, ge=1, le=1000,
        description="Delay between frames in centiseconds (GIF timing unit).",
    )

    # -- Derived values --

    @property
    def angle_per_frame(self) -> float:
        """Degrees of rotation added per frame. Positive is clockwise on screen."""
        if self.rotation_direction == RotationDirection.NONE:
            return 0.0
        turns = _round_half_up(self.rotation_speed / 2.0)
        total = turns * 360.0
        if self.rotation_direction == RotationDirection.COUNTER_CLOCKWISE:
            total = -total
        return total / self.frame_count

    def rotation_angle(self, frame_index: int) -> float:
        """Rotation for a frame, computed directly from the index."""
        return self.angle_per_frame * frame_index

    def zoom_scale(self, progress: float) -> float:
        """Global zoom factor at a point in the loop (progress in [0, 1))."""
        if self.global_zoom_mode == ZoomMode.LINEAR:
            scale = 1.0 + self.linear_zoom_speed * progress
        elif self.global_zoom_mode == ZoomMode.OSCILLATING:
            wave = math.sin(2.0 * math.pi * self.oscillating_frequency * progress)
            scale = self.oscillating_midpoint + self.oscillating_amplitude * wave
        else:
            return 1.0
        return max(MIN_ZOOM, scale)

    # -- Copies --

    def snapshot(self) -> "ParameterSet":
        """Independent copy handed to a render run."""
        return self.model_copy(deep=True)

    def with_updates(self, **changes) -> "ParameterSet":
        """Return a new validated ParameterSet with some fields replaced.

        Raises:
            pydantic.ValidationError: If a changed value is out of range.
            ValueError: If a field name is unknown.
        """
        unknown = set(changes) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)

    @classmethod
    def from_preset(cls, name: str, **overrides) -> "ParameterSet":
        """Build a ParameterSet from a built-in preset.

        Raises:
            KeyError: If the preset name is not found.
        """
        from presets import get_preset
        preset = get_preset(name)
        return cls(**{**preset["params"], **overrides})

    @classmethod
    def randomized(cls, seed: int | None = None, **overrides) -> "ParameterSet":
        """Cosmic Chaos: randomize the effect settings, keep the core ones.

        Ranges match the advanced settings sliders.
        """
        rng = np.random.RandomState(seed)
        waves = list(WaveDirection)
        patterns = [StarfieldPattern.RANDOM, StarfieldPattern.SPIRAL, StarfieldPattern.NONE]
        params = {
            "max_layers": int(rng.randint(5, 21)),
            "blur_radius": rng.randint(0, 51) / 10.0,
            "star_count": int(rng.randint(0, 201)),
            "pixelation_level": int(rng.randint(0, 51)),
            "color_invert_period": int(rng.randint(0, 61)),
            "wave_amplitude": rng.randint(0, 501) / 10.0,
            "wave_frequency": rng.randint(0, 101) / 100.0,
            "wave_direction": waves[rng.randint(0, len(waves))],
            "starfield_pattern": patterns[rng.randint(0, len(patterns))],
        }
        params.update(overrides)
        return cls(**params)


# ---------------------------------------------------------------------------
# Per-frame context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FrameContext:
    """Values derived from a ParameterSet for one frame index."""
    frame_index: int
    frame_count: int
    progress: float
    rotation_angle: float
    hue_offset: float
    zoom_scale: float

    @classmethod
    def build(cls, params: ParameterSet, frame_index: int) -> "FrameContext":
        if not 0 <= frame_index < params.frame_count:
            raise ValueError(
                f"frame_index {frame_index} out of range for {params.frame_count} frames"
            )
        progress = frame_index / params.frame_count
        return cls(
            frame_index=frame_index,
            frame_count=params.frame_count,
            progress=progress,
            rotation_angle=params.rotation_angle(frame_index),
            hue_offset=(frame_index * params.hue_speed) % 180.0,
            zoom_scale=params.zoom_scale(progress),
        )
