"""
Hyperspace — Safety & Resource Guards
Centralized preflight checks run before any frame work begins.
Rejects missing, oversized, or unsupported source images and output
locations without enough free disk.
"""

import os
from pathlib import Path

# --- Configurable Limits ---
MAX_FILE_MB = 100          # Maximum source image size
MIN_DISK_MB = 50           # Minimum free disk space at the output location
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff"}


class InputError(Exception):
    """Raised when the source image is missing, unsupported, or undecodable."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


def preflight(input_path: str) -> dict:
    """Run all safety checks on a source image path.

    Args:
        input_path: Path to the source image.

    Returns:
        dict with file metadata (path, size_mb, extension).

    Raises:
        InputError: If any check fails. The message names the failing path.
    """
    input_path = str(input_path)
    if not input_path:
        raise InputError("No source image selected", path=input_path)

    real_path = os.path.realpath(input_path)

    # 1. File exists
    if not os.path.isfile(real_path):
        raise InputError(f"Image file not found at '{input_path}'", path=input_path)

    # 2. File extension check
    ext = Path(real_path).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise InputError(
            f"File type '{ext}' not supported for '{input_path}'. "
            f"Supported: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
            path=input_path,
        )

    # 3. File size check
    size_mb = os.path.getsize(real_path) / (1024 * 1024)
    if size_mb > MAX_FILE_MB:
        raise InputError(
            f"Image '{input_path}' is {size_mb:.0f}MB, exceeds {MAX_FILE_MB}MB limit.",
            path=input_path,
        )

    return {
        "path": real_path,
        "size_mb": size_mb,
        "extension": ext,
    }


def check_output_location(output_path: str) -> Path:
    """Make sure the output directory exists and has room.

    Returns:
        Resolved output path.

    Raises:
        OSError: If the directory cannot be created or is nearly full.
    """
    output_path = Path(output_path).expanduser()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if hasattr(os, "statvfs"):
        stat = os.statvfs(str(output_path.parent))
        free_mb = (stat.f_bavail * stat.f_frsize) / (1024 ** 2)
        if free_mb < MIN_DISK_MB:
            raise OSError(
                f"Only {free_mb:.0f}MB free at {output_path.parent}, need {MIN_DISK_MB}MB minimum."
            )
    return output_path
