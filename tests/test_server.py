"""
Hyperspace -- HTTP API Tests
Health, presets, preview, and the background render lifecycle
(start, progress polling, busy rejection, cancellation).

Run with: pytest tests/test_server.py -v
"""

import base64
import os
import sys
import threading
import time

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from starlette.testclient import TestClient

import core.render as render_mod
import server
from server import app, _frame_to_data_url


@pytest.fixture(autouse=True)
def reset_state():
    """Drop any job and progress left by a previous test."""
    def _reset():
        job = server._job["current"]
        if job is not None:
            job.cancel()
            job.wait(timeout=30)
        server._job["current"] = None
        server._set_progress(active=False, percent=0, message="", status="idle",
                             output=None, reason="", cancel_requested=False)
    _reset()
    yield
    _reset()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def gate(monkeypatch):
    """Hold the render loop inside its first frame until released."""
    started = threading.Event()
    release = threading.Event()
    real = render_mod.synthesize_frame

    def gated(source, index, params):
        started.set()
        release.wait(10)
        return real(source, index, params)

    monkeypatch.setattr(render_mod, "synthesize_frame", gated)
    yield started, release
    release.set()


def _poll_until_done(client, timeout=30):
    deadline = time.time() + timeout
    while time.time() < deadline:
        state = client.get("/api/render/progress").json()
        if state["status"] not in ("running",):
            return state
        time.sleep(0.05)
    raise AssertionError("render did not finish in time")


def _render_body(image, tmp_path, **params):
    return {
        "params": {"source_image_path": image, "frame_count": 3, "working_size": 32, **params},
        "output_path": str(tmp_path / "out.gif"),
    }


# ---------------------------------------------------------------------------
# Simple endpoints
# ---------------------------------------------------------------------------

def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_presets(client):
    names = [p["name"] for p in client.get("/api/presets").json()["presets"]]
    assert "Classic Tunnel" in names
    retro = client.get("/api/presets", params={"category": "Retro"}).json()["presets"]
    assert [p["name"] for p in retro] == ["Retro Mosaic"]


def test_effects(client):
    names = [e["name"] for e in client.get("/api/effects").json()["effects"]]
    assert names == ["pixelate", "wave", "hue_cycle", "invert", "blur"]


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------

def test_preview_returns_png(client, red_image):
    resp = client.post("/api/preview", json={
        "params": {"source_image_path": red_image, "working_size": 32, "frame_count": 4},
        "frame_index": 2,
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["frame_count"] == 4
    assert data["image"].startswith("data:image/png;base64,")
    assert base64.b64decode(data["image"].split(",", 1)[1])[:4] == b"\x89PNG"


def test_preview_with_preset(client, red_image):
    resp = client.post("/api/preview", json={
        "preset": "Hyperspace",
        "params": {"source_image_path": red_image, "working_size": 32},
    })
    assert resp.status_code == 200


def test_preview_bad_param(client, red_image):
    resp = client.post("/api/preview", json={
        "params": {"source_image_path": red_image, "scale_decay": 2.0},
    })
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "BAD_PARAMS"


def test_preview_unknown_preset(client, red_image):
    resp = client.post("/api/preview", json={"preset": "Nope", "params": {}})
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "PRESET_NOT_FOUND"


def test_preview_missing_image(client, tmp_path):
    resp = client.post("/api/preview", json={
        "params": {"source_image_path": str(tmp_path / "missing.png")},
    })
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["code"] == "NO_IMAGE"
    assert "missing.png" in detail["detail"]


def test_preview_frame_out_of_range(client, red_image):
    resp = client.post("/api/preview", json={
        "params": {"source_image_path": red_image, "working_size": 32, "frame_count": 4},
        "frame_index": 4,
    })
    assert resp.status_code == 422


def test_frame_to_data_url_composites_alpha():
    from io import BytesIO
    from PIL import Image
    frame = np.zeros((16, 16, 4), dtype=np.uint8)
    frame[:, :] = [255, 0, 0, 128]
    url = _frame_to_data_url(frame)
    img = Image.open(BytesIO(base64.b64decode(url.split(",", 1)[1])))
    pixels = np.array(img)
    assert pixels.shape == (16, 16, 3)
    assert pixels[:, :, 1].mean() > 0


def test_frame_to_data_url_downscales_large_frames():
    from io import BytesIO
    from PIL import Image
    frame = np.zeros((900, 900, 4), dtype=np.uint8)
    url = _frame_to_data_url(frame)
    img = Image.open(BytesIO(base64.b64decode(url.split(",", 1)[1])))
    assert max(img.size) == server.MAX_PREVIEW_DIMENSION


# ---------------------------------------------------------------------------
# Render lifecycle
# ---------------------------------------------------------------------------

def test_render_completes(client, red_image, tmp_path):
    resp = client.post("/api/render", json=_render_body(red_image, tmp_path))
    assert resp.status_code == 200
    assert resp.json()["status"] == "started"
    state = _poll_until_done(client)
    assert state["status"] == "completed"
    assert state["percent"] == 100
    assert state["active"] is False
    assert state["output"] == str(tmp_path / "out.gif")
    assert (tmp_path / "out.gif").exists()


def test_render_failure_reported(client, tmp_path):
    body = _render_body(str(tmp_path / "gone.png"), tmp_path)
    assert client.post("/api/render", json=body).status_code == 200
    state = _poll_until_done(client)
    assert state["status"] == "failed"
    assert "gone.png" in state["reason"]


def test_render_rejects_bad_params(client, red_image, tmp_path):
    resp = client.post("/api/render", json=_render_body(red_image, tmp_path, max_layers=-3))
    assert resp.status_code == 422


def test_render_busy_then_cancel(client, red_image, tmp_path, gate):
    started, release = gate
    body = _render_body(red_image, tmp_path, frame_count=40)
    assert client.post("/api/render", json=body).status_code == 200
    assert started.wait(10)

    busy = client.post("/api/render", json=body)
    assert busy.status_code == 409
    assert busy.json()["detail"]["code"] == "RENDER_BUSY"

    assert client.post("/api/render/cancel").json() == {"status": "cancel_requested"}
    assert client.get("/api/render/progress").json()["cancel_requested"] is True
    release.set()

    state = _poll_until_done(client)
    assert state["status"] == "cancelled"
    assert state["reason"] == "GIF generation cancelled."


def test_cancel_without_render(client):
    assert client.post("/api/render/cancel").json() == {"status": "no_render_running"}


def test_png_sequence_render(client, red_image, tmp_path):
    body = {
        "params": {"source_image_path": red_image, "frame_count": 2, "working_size": 32},
        "output_path": str(tmp_path / "seq"),
        "png_sequence": True,
    }
    assert client.post("/api/render", json=body).status_code == 200
    assert _poll_until_done(client)["status"] == "completed"
    assert len(list((tmp_path / "seq").glob("red_frame_*.png"))) == 2


def test_concurrent_starts_admit_one(red_image, tmp_path, gate):
    started, release = gate
    body = _render_body(red_image, tmp_path, frame_count=40)
    barrier = threading.Barrier(2)
    codes = []

    def fire():
        local = TestClient(app)
        barrier.wait(5)
        codes.append(local.post("/api/render", json=body).status_code)

    threads = [threading.Thread(target=fire) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(30)

    assert sorted(codes) == [200, 409]
    assert started.wait(10)
    release.set()
    assert _poll_until_done(TestClient(app))["status"] == "completed"
