#!/usr/bin/env python3
"""
Hyperspace — Psychedelic Tunnel GIF Synthesizer
CLI entry point. Also importable as a library.

Usage:
    python hyperspace.py render photo.png -o tunnel.gif
    python hyperspace.py render photo.png -o tunnel.gif --preset hyperspace --params hue_speed=8
    python hyperspace.py render photo.png --png-dir frames/ --frames 24
    python hyperspace.py preview photo.png --frame 12 -o frame.png
    python hyperspace.py presets
    python hyperspace.py effects
    python hyperspace.py randomize --seed 7
    python hyperspace.py serve --port 8000
"""

import sys
import os
import json
import time
import argparse
import logging

# Add project root to path so imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from pydantic import ValidationError

from core.params import ParameterSet
from core.render import RenderJob, RenderStatus, preview_frame
from core.encoders import GifFileSink, PngSequenceSink
from core.image_io import save_frame
from core.safety import InputError, check_output_location
from effects import list_effects, CATEGORIES
from presets import list_presets

__version__ = "0.1.0"

POLL_INTERVAL = 0.1


def _parse_param_value(val: str):
    """Safely parse a CLI parameter value (number or string)."""
    # Reject NaN/Inf as standalone strings
    if val.lower().strip() in ('nan', 'inf', '-inf', '+inf', 'infinity', '-infinity'):
        raise ValueError(f"NaN/Inf not allowed: {val}")

    # Float
    if '.' in val or 'e' in val.lower():
        try:
            return float(val)
        except ValueError:
            return val

    # Integer
    try:
        return int(val)
    except (ValueError, TypeError):
        return val  # Keep as string (enum values like Horizontal)


def _parse_params(pairs) -> dict:
    """Turn ['key=value', ...] into a dict of parsed values."""
    params = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Expected key=value, got '{pair}'")
        key, val = pair.split("=", 1)
        params[key.strip()] = _parse_param_value(val.strip())
    return params


def build_params(args) -> ParameterSet:
    """ParameterSet from --preset, --params and the source path."""
    overrides = _parse_params(getattr(args, "params", None))
    if getattr(args, "frames", None):
        overrides["frame_count"] = args.frames
    overrides["source_image_path"] = args.image
    if getattr(args, "preset", None):
        return ParameterSet.from_preset(args.preset, **overrides)
    return ParameterSet(**overrides)


def _print_progress(percent, message):
    if percent is None:
        return
    bar = "#" * (percent // 5)
    print(f"\r  [{bar:20s}] {percent:3d}% {message:20s}", end="", flush=True)


def cmd_render(args):
    """Render the full animation to a GIF or PNG sequence."""
    params = build_params(args)
    if args.png_dir:
        sink = PngSequenceSink(args.png_dir, stem=os.path.splitext(os.path.basename(args.image))[0])
        target = args.png_dir
    else:
        output = check_output_location(args.output)
        sink = GifFileSink(output)
        target = str(output)

    print(f"Launching Hyperspace: {params.frame_count} frames -> {target}")
    job = RenderJob(params, sink).start()
    try:
        while job.running:
            for percent, message in job.drain_progress():
                _print_progress(percent, message)
            time.sleep(POLL_INTERVAL)
    except KeyboardInterrupt:
        print("\n  Cancelling after the current frame...")
        job.cancel()

    result = job.wait()
    for percent, message in job.drain_progress():
        _print_progress(percent, message)
    print()

    if result.status == RenderStatus.COMPLETED:
        print(f"Saved {result.frames_written} frames to: {result.output}")
        return 0
    if result.status == RenderStatus.CANCELLED:
        print(f"{result.reason} ({result.frames_written} frames written)")
        return 130
    print(result.reason, file=sys.stderr)
    return 1


def cmd_preview(args):
    """Render one frame to PNG."""
    params = build_params(args)
    frame = preview_frame(params, args.frame)
    save_frame(frame, args.output)
    print(f"Frame {args.frame}/{params.frame_count} saved to: {args.output}")
    return 0


def cmd_presets(args):
    """List built-in presets."""
    presets = list_presets(args.category)
    if not presets:
        print(f"No presets in category '{args.category}'.")
        return 0
    print(f"\n  PRESETS ({len(presets)})")
    print(f"  {'—' * 50}")
    for p in presets:
        print(f"    {p['name']:16s} [{p['category']:11s}] — {p['description']}")
    print()
    return 0


def cmd_effects(args):
    """List post effects in the order they run."""
    print(f"\n  POST CHAIN (applied in this order)")
    print(f"  {'—' * 50}")
    for i, e in enumerate(list_effects(), 1):
        cat = CATEGORIES.get(e["category"], e["category"])
        print(f"    {i}. {e['name']:10s} [{cat:10s}] — {e['description']}")
    print()
    return 0


def cmd_randomize(args):
    """Print a Cosmic Chaos parameter set as JSON."""
    params = ParameterSet.randomized(seed=args.seed)
    print(json.dumps(params.model_dump(mode="json"), indent=2))
    return 0


def cmd_serve(args):
    """Start the HTTP render server."""
    from server import start
    start(host=args.host, port=args.port)
    return 0


def _add_param_args(p):
    p.add_argument("image", help="Source image (png, jpg, bmp, ...)")
    p.add_argument("--preset", help="Start from a built-in preset (see 'presets')")
    p.add_argument("--params", nargs="*", help="Parameter overrides as key=value pairs")
    p.add_argument("--frames", type=int, help="Frame count (shortcut for --params frame_count=N)")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="hyperspace",
        description="Hyperspace — psychedelic tunnel GIFs from a single image",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log render details")
    sub = parser.add_subparsers(dest="command")

    # render
    p = sub.add_parser("render", help="Render the full animation")
    _add_param_args(p)
    p.add_argument("-o", "--output", default="output.gif", help="Output GIF path")
    p.add_argument("--png-dir", help="Write a PNG sequence to this directory instead of a GIF")

    # preview
    p = sub.add_parser("preview", help="Render a single frame to PNG")
    _add_param_args(p)
    p.add_argument("--frame", type=int, default=0, help="Frame index")
    p.add_argument("-o", "--output", default="preview.png", help="Output PNG path")

    # presets
    p = sub.add_parser("presets", help="List built-in presets")
    p.add_argument("--category", help="Filter by category")

    # effects
    sub.add_parser("effects", help="List post effects in chain order")

    # randomize
    p = sub.add_parser("randomize", help="Print a randomized (Cosmic Chaos) parameter set")
    p.add_argument("--seed", type=int, help="Random seed for a repeatable result")

    # serve
    p = sub.add_parser("serve", help="Start the HTTP render server")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "render": cmd_render,
        "preview": cmd_preview,
        "presets": cmd_presets,
        "effects": cmd_effects,
        "randomize": cmd_randomize,
        "serve": cmd_serve,
    }

    if args.command not in commands:
        parser.print_help()
        return 0
    try:
        return commands[args.command](args)
    except (InputError, ValidationError, ValueError, KeyError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
