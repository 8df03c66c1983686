"""
Hyperspace — Animation Render Loop

Drives the frame synthesizer over frame indices 0..N-1 and hands each
raster to a FrameSink, in order.

    render_animation()  synchronous loop, returns a RenderResult
    RenderJob           runs the loop on a worker thread; progress goes
                        through a queue, cancellation through an Event

Terminal states: completed (output location), cancelled, failed (reason).
Cancellation is cooperative and checked between frames only, so a frame
in flight always finishes and the sink is never left half-written.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from enum import Enum

import numpy as np

from core.encoders import EncodingError
from core.image_io import load_source_image
from core.params import ParameterSet
from core.safety import InputError
from core.synth import synthesize_frame


class RenderStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class RenderResult:
    """Terminal report of a run."""
    status: RenderStatus
    frames_written: int = 0
    output: str | None = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == RenderStatus.COMPLETED

    def to_dict(self):
        return {
            "status": self.status.value,
            "frames_written": self.frames_written,
            "output": self.output,
            "reason": self.reason,
        }


def _abort_quietly(frame_sink):
    """Discard partial output. A failing abort is logged, never raised."""
    try:
        frame_sink.abort()
    except Exception:
        logging.exception("Discarding partial output failed")


def preview_frame(params: ParameterSet, frame_index: int = 0) -> np.ndarray:
    """Render a single frame straight from the source path.

    Raises:
        InputError: If the source image can't be loaded.
        ValueError: If frame_index is out of range.
    """
    source = load_source_image(params.source_image_path, size=params.working_size)
    return synthesize_frame(source, frame_index, params)


def render_animation(params: ParameterSet, frame_sink, progress_callback=None, cancel_event=None):
    """Render every frame of an animation into a sink.

    Args:
        params: Render parameters. A snapshot is taken before anything runs.
        frame_sink: FrameSink receiving rasters in increasing frame order.
        progress_callback: Optional fn(percent, message), called once per frame.
        cancel_event: Optional threading.Event. Checked before each frame.

    Returns:
        RenderResult. Never raises for render or sink failures.
    """
    params = params.snapshot()
    total = params.frame_count

    # Loading
    try:
        source = load_source_image(params.source_image_path, size=params.working_size)
        height, width = source.shape[:2]
        frame_sink.begin(width, height, params.frame_delay_cs)
    except (InputError, EncodingError) as e:
        logging.warning("Render aborted before start: %s", e)
        return RenderResult(RenderStatus.FAILED, reason=f"Error: {e}")
    except Exception as e:
        logging.exception("Render failed before the first frame")
        return RenderResult(RenderStatus.FAILED, reason=f"Error: {e}")

    logging.info("Rendering %d frames at %dx%d", total, width, height)
    start_time = time.time()
    written = 0

    # Running
    try:
        for i in range(total):
            if cancel_event is not None and cancel_event.is_set():
                break
            frame = synthesize_frame(source, i, params)
            frame_sink.write_frame(frame)
            written += 1
            if progress_callback:
                progress_callback((i + 1) * 100 // total, f"Frame {i + 1}/{total}")
    except Exception as e:
        logging.exception(f"Render failed at frame {written}")
        _abort_quietly(frame_sink)
        return RenderResult(RenderStatus.FAILED, frames_written=written,
                            reason=f"Error at frame {written + 1}/{total}: {e}")

    cancelled = cancel_event is not None and cancel_event.is_set()
    try:
        output = frame_sink.end()
    except Exception as e:
        logging.exception("Finalizing output failed")
        _abort_quietly(frame_sink)
        return RenderResult(RenderStatus.FAILED, frames_written=written, reason=f"Error: {e}")

    elapsed = time.time() - start_time
    if cancelled:
        logging.info("Render cancelled after %d/%d frames", written, total)
        return RenderResult(RenderStatus.CANCELLED, frames_written=written, output=output,
                            reason="GIF generation cancelled.")

    logging.info("Render complete: %d frames in %.1fs", written, elapsed)
    return RenderResult(RenderStatus.COMPLETED, frames_written=written, output=output)


class RenderJob:
    """One render on a dedicated worker thread.

    The ParameterSet is snapshotted at construction, so later edits to the
    caller's settings never reach the running job. The caller polls
    drain_progress() from its own loop and never touches worker memory.
    """

    def __init__(self, params: ParameterSet, frame_sink):
        self.params = params.snapshot()
        self.frame_sink = frame_sink
        self.result = None
        self._cancel_event = threading.Event()
        self._progress = queue.Queue()
        self._thread = threading.Thread(target=self._run, name="hyperspace-render", daemon=True)

    def _run(self):
        try:
            self.result = render_animation(
                self.params, self.frame_sink,
                progress_callback=self._report,
                cancel_event=self._cancel_event,
            )
        except Exception as e:
            logging.exception("Render worker crashed")
            self.result = RenderResult(RenderStatus.FAILED, reason=f"Error: {e}")
        finally:
            if self.result is None:
                self.result = RenderResult(RenderStatus.FAILED, reason="Render worker stopped")
            self._progress.put((100 if self.result.ok else None, self.result.status.value))

    def _report(self, percent, message):
        self._progress.put((percent, message))

    def start(self):
        self._thread.start()
        return self

    def cancel(self):
        """Request a stop at the next frame boundary."""
        self._cancel_event.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def drain_progress(self) -> list[tuple]:
        """Pop every pending (percent, message) event without blocking.

        The final event carries the terminal status name as its message
        (percent is 100 on completion, None otherwise).
        """
        events = []
        while True:
            try:
                events.append(self._progress.get_nowait())
            except queue.Empty:
                return events

    def wait(self, timeout: float | None = None):
        """Block until the worker finishes. Returns the RenderResult (None on timeout)."""
        self._thread.join(timeout)
        return self.result
