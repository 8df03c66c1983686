"""
Hyperspace — Frame Sinks

Adapters between the render loop and whatever stores the frames. The loop
only talks to the FrameSink interface:

    begin(width, height, frame_delay_cs)
    write_frame(raster)         (called in increasing frame order)
    end() -> output location    (after the last frame, or on cancel)
    abort()                     (on failure; discards partial output)

GIF container writing is delegated to Pillow.
"""

from pathlib import Path

import numpy as np
from PIL import Image

from core.image_io import save_frame


class EncodingError(Exception):
    """Raised when a sink cannot accept or store a frame."""
    pass


class FrameSink:
    """Base sink. Validates frame geometry; subclasses store the frames."""

    def __init__(self):
        self.width = None
        self.height = None
        self.frame_delay_cs = None
        self.frames_written = 0

    def begin(self, width: int, height: int, frame_delay_cs: int = 8):
        self.width = width
        self.height = height
        self.frame_delay_cs = frame_delay_cs
        self.frames_written = 0

    def write_frame(self, raster: np.ndarray):
        if self.width is None:
            raise EncodingError("write_frame() called before begin()")
        expected = (self.height, self.width, 4)
        if raster.shape != expected or raster.dtype != np.uint8:
            raise EncodingError(
                f"Frame {self.frames_written} has shape {raster.shape} {raster.dtype}, "
                f"expected {expected} uint8"
            )
        self._store(raster)
        self.frames_written += 1

    def _store(self, raster: np.ndarray):
        raise NotImplementedError

    def end(self):
        return None

    def abort(self):
        pass


class MemorySink(FrameSink):
    """Keeps every frame in a list. Used for previews and tests."""

    def __init__(self):
        super().__init__()
        self.frames = []

    def begin(self, width, height, frame_delay_cs=8):
        super().begin(width, height, frame_delay_cs)
        self.frames = []

    def _store(self, raster):
        self.frames.append(raster.copy())

    def abort(self):
        self.frames = []


class GifFileSink(FrameSink):
    """Buffers frames and writes a looping GIF with Pillow on end()."""

    def __init__(self, output_path: str, loop: int = 0):
        super().__init__()
        self.output_path = Path(output_path)
        self.loop = loop
        self._images = []

    def begin(self, width, height, frame_delay_cs=8):
        super().begin(width, height, frame_delay_cs)
        self._images = []
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise EncodingError(f"Failed to open GIF for writing: {e}") from e

    def _store(self, raster):
        self._images.append(Image.fromarray(raster))

    def end(self):
        if not self._images:
            raise EncodingError("No frames to write")
        first, rest = self._images[0], self._images[1:]
        try:
            first.save(
                str(self.output_path),
                format="GIF",
                save_all=True,
                append_images=rest,
                duration=self.frame_delay_cs * 10,
                loop=self.loop,
                disposal=2,
            )
        except (OSError, ValueError) as e:
            raise EncodingError(f"Failed to write GIF {self.output_path}: {e}") from e
        finally:
            self._images = []
        return str(self.output_path)

    def abort(self):
        self._images = []


class PngSequenceSink(FrameSink):
    """Writes each frame immediately as <stem>_frame_0000.png."""

    def __init__(self, output_dir: str, stem: str = "hyperspace"):
        super().__init__()
        self.output_dir = Path(output_dir)
        self.stem = stem
        self.paths = []

    def begin(self, width, height, frame_delay_cs=8):
        super().begin(width, height, frame_delay_cs)
        self.paths = []
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise EncodingError(f"Cannot create {self.output_dir}: {e}") from e

    def _store(self, raster):
        path = self.output_dir / f"{self.stem}_frame_{self.frames_written:04d}.png"
        try:
            save_frame(raster, path)
        except OSError as e:
            raise EncodingError(f"Failed to write {path}: {e}") from e
        self.paths.append(path)

    def end(self):
        return str(self.output_dir)

    def abort(self):
        for path in self.paths:
            path.unlink(missing_ok=True)
        self.paths = []
