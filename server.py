#!/usr/bin/env python3
"""
Hyperspace — FastAPI Backend
Starts renders on a background worker, reports progress, and accepts
cancellation. One render at a time.
"""

import sys
import os
import base64
import threading
from io import BytesIO
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ValidationError
import numpy as np
from PIL import Image

from core.params import ParameterSet
from core.render import RenderJob, preview_frame
from core.encoders import GifFileSink, PngSequenceSink
from core.safety import InputError, check_output_location
from effects import list_effects
from presets import list_presets

app = FastAPI(title="Hyperspace")

# Default export directory — user-visible location
EXPORT_DIR = Path.home() / "Pictures" / "Hyperspace"

# Preview resolution cap
MAX_PREVIEW_DIMENSION = 600

# Render progress tracking (polled by the client during a render)
_render_progress = {
    "active": False,
    "percent": 0,
    "message": "",
    "status": "idle",  # "running", "completed", "cancelled", "failed", "idle"
    "output": None,
    "reason": "",
    "cancel_requested": False,
}
_render_progress_lock = threading.Lock()

# The one render job allowed at a time; _job_lock guards check-and-start
_job = {"current": None}
_job_lock = threading.Lock()

ERROR_RECOVERY = {
    "bad_params": {"code": "BAD_PARAMS", "hint": "Check parameter names and ranges.", "action": None},
    "no_image": {"code": "NO_IMAGE", "hint": "Select a readable png/jpg/bmp image first.", "action": "load_file"},
    "preset_not_found": {"code": "PRESET_NOT_FOUND", "hint": "Use GET /api/presets for valid names.", "action": "refresh"},
    "render_busy": {"code": "RENDER_BUSY", "hint": "Wait for the current render or cancel it.", "action": "cancel"},
    "bad_output": {"code": "BAD_OUTPUT", "hint": "Choose a writable output location.", "action": None},
}


def _error_detail(key: str, message: str) -> dict:
    """Build structured error detail dict for the client."""
    recovery = ERROR_RECOVERY.get(key, {})
    return {
        "detail": message,
        "code": recovery.get("code", "UNKNOWN"),
        "hint": recovery.get("hint", ""),
        "action": recovery.get("action"),
    }


def _set_progress(**kwargs):
    """Thread-safe update of render progress dict."""
    with _render_progress_lock:
        _render_progress.update(kwargs)


def _get_progress():
    """Thread-safe snapshot of render progress dict."""
    with _render_progress_lock:
        return dict(_render_progress)


def _sync_progress():
    """Fold queued worker events into the progress dict."""
    job = _job["current"]
    if job is None:
        return
    # Read liveness before draining so no event queued before exit is missed
    finished = not job.running
    for percent, message in job.drain_progress():
        if percent is not None:
            _set_progress(percent=percent)
        _set_progress(message=message)
    if not finished:
        _set_progress(cancel_requested=job.cancel_requested)
    elif job.result is not None:
        result = job.result
        _set_progress(
            active=False,
            status=result.status.value,
            output=result.output,
            reason=result.reason,
            cancel_requested=False,
        )


def _frame_to_data_url(frame: np.ndarray) -> str:
    """Encode an RGBA frame as a PNG data URL, composited onto a checkerboard."""
    h, w = frame.shape[:2]
    tile = 8
    rows = np.arange(h) // tile
    cols = np.arange(w) // tile
    pattern = ((rows[:, None] + cols[None, :]) % 2).astype(np.uint8)
    checker = np.where(pattern[:, :, None], np.uint8(255), np.uint8(200))
    alpha = frame[:, :, 3:4].astype(np.float32) / 255.0
    rgb = frame[:, :, :3].astype(np.float32)
    composited = np.clip(rgb * alpha + checker.astype(np.float32) * (1 - alpha), 0, 255)

    img = Image.fromarray(composited.astype(np.uint8))
    if max(w, h) > MAX_PREVIEW_DIMENSION:
        ratio = MAX_PREVIEW_DIMENSION / max(w, h)
        img = img.resize((int(w * ratio), int(h * ratio)), Image.Resampling.LANCZOS)

    buf = BytesIO()
    img.save(buf, format="PNG", optimize=True)
    b64 = base64.b64encode(buf.getvalue()).decode()
    return f"data:image/png;base64,{b64}"


class RenderRequest(BaseModel):
    params: dict = {}            # ParameterSet fields; must include source_image_path
    preset: str | None = None    # Optional base preset, params override it
    output_path: str | None = None
    png_sequence: bool = False   # Write PNG frames to output_path (a directory)


class PreviewRequest(BaseModel):
    params: dict = {}
    preset: str | None = None
    frame_index: int = 0


def _build_params(params: dict, preset: str | None) -> ParameterSet:
    try:
        if preset:
            return ParameterSet.from_preset(preset, **params)
        return ParameterSet(**params)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=_error_detail("preset_not_found", str(e)))
    except (ValidationError, TypeError) as e:
        raise HTTPException(status_code=422, detail=_error_detail("bad_params", str(e)))


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


@app.get("/api/presets")
async def get_presets(category: str | None = None):
    return {"presets": list_presets(category)}


@app.get("/api/effects")
async def get_effects():
    """Post effects in chain order."""
    return {"effects": list_effects()}


@app.post("/api/preview")
def preview(req: PreviewRequest):
    """Render one frame and return it as a data URL."""
    params = _build_params(req.params, req.preset)
    try:
        frame = preview_frame(params, req.frame_index)
    except InputError as e:
        raise HTTPException(status_code=400, detail=_error_detail("no_image", str(e)))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=_error_detail("bad_params", str(e)))
    return {
        "frame_index": req.frame_index,
        "frame_count": params.frame_count,
        "image": _frame_to_data_url(frame),
    }


@app.post("/api/render")
def start_render(req: RenderRequest):
    """Start a background render. 409 if one is already running."""
    _sync_progress()
    with _job_lock:
        current = _job["current"]
        if current is not None and current.running:
            raise HTTPException(status_code=409, detail=_error_detail("render_busy", "A render is already running"))

        params = _build_params(req.params, req.preset)
        stem = Path(params.source_image_path).stem or "hyperspace"
        try:
            if req.png_sequence:
                out_dir = Path(req.output_path) if req.output_path else EXPORT_DIR / f"{stem}_frames"
                sink = PngSequenceSink(out_dir, stem=stem)
                target = str(out_dir)
            else:
                out = req.output_path or str(EXPORT_DIR / f"{stem}.gif")
                target = str(check_output_location(out))
                sink = GifFileSink(target)
        except OSError as e:
            raise HTTPException(status_code=400, detail=_error_detail("bad_output", str(e)))

        _set_progress(active=True, percent=0, message="Launching Hyperspace...", status="running",
                      output=None, reason="", cancel_requested=False)
        _job["current"] = RenderJob(params, sink).start()
    return {"status": "started", "frame_count": params.frame_count, "output": target}


@app.get("/api/render/progress")
async def render_progress():
    """Poll render progress. Returns percent, message and terminal status."""
    _sync_progress()
    return _get_progress()


@app.post("/api/render/cancel")
async def cancel_render():
    """Request cancellation of a running render (takes effect between frames)."""
    _sync_progress()
    job = _job["current"]
    if job is None or not job.running:
        return {"status": "no_render_running"}
    job.cancel()
    _set_progress(cancel_requested=job.cancel_requested)
    return {"status": "cancel_requested"}


def start(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    print(f"Hyperspace — launching at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="warning")


if __name__ == "__main__":
    start()
