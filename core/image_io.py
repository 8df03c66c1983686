"""
Hyperspace — Image I/O
Loads the source still into a normalized RGBA working raster and writes
single frames back out as PNG.
"""

import numpy as np
from PIL import Image, UnidentifiedImageError

from core.safety import InputError, preflight


def load_source_image(image_path: str, size: int = 600) -> np.ndarray:
    """Load an image as a (size, size, 4) uint8 RGBA array.

    Images without alpha get a fully opaque alpha channel. The result is
    resized to a square working resolution with Lanczos resampling.

    Raises:
        InputError: If the path fails preflight or Pillow cannot decode it.
    """
    preflight(image_path)
    try:
        with Image.open(str(image_path)) as img:
            img = img.convert("RGBA")
            if img.size != (size, size):
                img = img.resize((size, size), Image.Resampling.LANCZOS)
            return np.array(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise InputError(
            f"Could not decode image at '{image_path}': {e}", path=str(image_path)
        ) from e


def save_frame(array: np.ndarray, output_path: str):
    """Save an RGBA (or RGB) raster as PNG."""
    img = Image.fromarray(np.clip(array, 0, 255).astype(np.uint8))
    img.save(str(output_path))
