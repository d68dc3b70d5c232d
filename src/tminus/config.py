"""Configuration loading: defaults → YAML overlay → environment → argparse overlay."""

from __future__ import annotations

import argparse
import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from tminus.models import FitStrategy


@dataclass(frozen=True)
class Range:
    """Inclusive integer range with a fallback value.

    Attributes:
        low: Smallest accepted value.
        high: Largest accepted value.
        default: Used when the request omits the field or it does not
            parse as an integer. Clamped like any other value.
    """

    low: int
    high: int
    default: int

    def clamp(self, value: int) -> int:
        return max(self.low, min(self.high, value))


@dataclass(frozen=True)
class ProfileConfig:
    """Bounds and defaults for one deployment profile.

    A profile is the fixed policy a request is resolved against. Still
    images allow a taller canvas than animations, since an animation
    multiplies every pixel by its frame count.

    Attributes:
        name: "still" or "animated". Used in logs and error reports.
        animated: Whether requests on this profile produce a FrameSequence.
        width: Canvas width range in pixels.
        height: Canvas height range in pixels.
        duration: Animated span in seconds (animated only).
        fps: Fractional cadence ticks per second (animated only).
        quality: Encoder quality factor, 1 best, 30 smallest (animated only).
        default_horizon_hours: Deadline used when the request has none or
            it does not parse: now + this many hours.
        default_tz: Zone for deadlines without an explicit offset.
        background: Default background color.
        foreground: Default digit and label color.
        accent: Default separator color.
        fonts: Default font family fallback list.
        fit: Default strategy for keeping numbers inside their cells.
        blink: Whether separators blink in animations.
        blink_period_seconds: Full blink cycle (lit for the first half).
        max_frames: Hard cap on frames per animation.
        max_total_pixels: Ceiling for frames * width * height. The resolver
            shortens the animation until it fits.
    """

    name: str = "still"
    animated: bool = False
    width: Range = Range(400, 2000, 800)
    height: Range = Range(120, 1200, 200)
    duration: Range = Range(1, 300, 180)
    fps: Range = Range(1, 10, 2)
    quality: Range = Range(1, 30, 10)
    default_horizon_hours: int = 24
    default_tz: str = "UTC"
    background: str = "#FFFFFF"
    foreground: str = "#111827"
    accent: str = "#6366F1"
    fonts: tuple[str, ...] = ("Arial", "Helvetica", "sans-serif")
    fit: FitStrategy = FitStrategy.BOX
    blink: bool = True
    blink_period_seconds: int = 2
    max_frames: int = 300
    # 150 frames of a 2000x500 canvas
    max_total_pixels: int = 150_000_000


STILL_PROFILE = ProfileConfig()

ANIMATED_PROFILE = ProfileConfig(
    name="animated",
    animated=True,
    height=Range(120, 800, 200),
)


@dataclass
class ServerConfig:
    """HTTP binding settings.

    Attributes:
        host: Interface to bind.
        port: TCP port. The PORT environment variable overrides the YAML value.
    """

    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class RenderSettings:
    """Rendering resources.

    Attributes:
        workers: Threads used to rasterize animation frames. 1 renders
            frames inline.
    """

    workers: int = 1


# CLI flag → request parameter name. CLI values are passed through the
# resolver like any untrusted request.
_PARAM_FLAGS = {
    "to": "to",
    "tz": "tz",
    "width": "w",
    "height": "h",
    "bg": "bg",
    "fg": "fg",
    "accent": "accent",
    "font": "font",
    "duration": "dur",
    "fps": "fps",
    "quality": "q",
    "fit": "fit",
}


@dataclass
class Config:
    """Top-level application configuration.

    Assembled from layers with increasing priority:
      1. Hardcoded defaults (dataclass field values)
      2. YAML file overlay (config.yaml or --config path)
      3. Environment (PORT)
      4. CLI argument overlay

    Attributes:
        still: Profile for single-frame PNG output.
        animated: Profile for looping GIF output.
        server: HTTP binding settings.
        render: Rendering resources.
        params: CLI-only: raw request parameters given on the command line.
        still_output: CLI-only: render a PNG instead of a GIF.
        out: CLI-only: output file path.
        serve: CLI-only: run the HTTP server.
        preview: CLI-only: play the animation in a desktop window.
        debug: CLI-only: enable debug-level logging.
    """

    still: ProfileConfig = STILL_PROFILE
    animated: ProfileConfig = ANIMATED_PROFILE
    server: ServerConfig = field(default_factory=ServerConfig)
    render: RenderSettings = field(default_factory=RenderSettings)
    # CLI-only flags (not persisted in YAML)
    params: dict[str, str] = field(default_factory=dict)
    still_output: bool = False
    out: str | None = None
    serve: bool = False
    preview: bool = False
    debug: bool = False

    def profile(self, animated: bool) -> ProfileConfig:
        return self.animated if animated else self.still


def _range_from_yaml(base: Range, value) -> Range:
    """A bare number replaces the default; a mapping may set low/high/default."""
    if isinstance(value, dict):
        return Range(
            low=int(value.get("low", base.low)),
            high=int(value.get("high", base.high)),
            default=int(value.get("default", base.default)),
        )
    return dataclasses.replace(base, default=int(value))


def _profile_from_yaml(base: ProfileConfig, data: dict) -> ProfileConfig:
    changes = {}
    for key in ("width", "height", "duration", "fps", "quality"):
        if key in data:
            changes[key] = _range_from_yaml(getattr(base, key), data[key])
    for key in (
        "default_horizon_hours",
        "default_tz",
        "background",
        "foreground",
        "accent",
        "blink",
        "blink_period_seconds",
        "max_frames",
        "max_total_pixels",
    ):
        if key in data:
            changes[key] = data[key]
    if "fonts" in data:
        fonts = data["fonts"]
        if isinstance(fonts, str):
            fonts = fonts.split(",")
        fonts = tuple(f.strip() for f in fonts if f.strip())
        if fonts:
            changes["fonts"] = fonts
    if "fit" in data:
        changes["fit"] = FitStrategy(data["fit"])
    return dataclasses.replace(base, **changes)


def _apply_yaml(config: Config, yaml_path: str) -> None:
    """Overlay YAML config values onto the Config object."""
    if not os.path.exists(yaml_path):
        return

    with open(yaml_path, "r") as f:
        data = yaml.safe_load(f)

    if not data:
        return

    if "still" in data:
        config.still = _profile_from_yaml(config.still, data["still"] or {})

    if "animated" in data:
        config.animated = _profile_from_yaml(config.animated, data["animated"] or {})

    if "server" in data:
        s = data["server"] or {}
        for key in ("host", "port"):
            if key in s:
                setattr(config.server, key, s[key])

    if "render" in data:
        r = data["render"] or {}
        if "workers" in r:
            config.render.workers = max(1, int(r["workers"]))


def _apply_env(config: Config) -> None:
    port = os.environ.get("PORT")
    if port and port.isdigit():
        config.server.port = int(port)


def _build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Countdown parameters mirror the HTTP query parameters and are kept as
    raw strings; validation happens in the resolver.
    """
    parser = argparse.ArgumentParser(
        prog="tminus",
        description="Countdown clock image renderer",
    )
    parser.add_argument("--config", type=str, help="Path to YAML config file")
    parser.add_argument("--to", type=str, help="Deadline, ISO 8601 (e.g. 2026-12-31T23:59:00)")
    parser.add_argument("--tz", type=str, help="Time zone for deadlines without an offset")
    parser.add_argument("--width", type=str, help="Canvas width in pixels")
    parser.add_argument("--height", type=str, help="Canvas height in pixels")
    parser.add_argument("--bg", type=str, help="Background color (hex)")
    parser.add_argument("--fg", type=str, help="Digit and label color (hex)")
    parser.add_argument("--accent", type=str, help="Separator color (hex)")
    parser.add_argument("--font", type=str, help="Comma-separated font family list")
    parser.add_argument("--duration", type=str, help="Animation length in seconds")
    parser.add_argument("--fps", type=str, help="Ticks per second (fractional cadence)")
    parser.add_argument("--quality", type=str, help="GIF quality factor, 1 (best) to 30")
    parser.add_argument("--fit", type=str, help="Number fitting: box or scale")
    parser.add_argument(
        "--still",
        action="store_true",
        default=False,
        help="Render a single PNG frame instead of a GIF",
    )
    parser.add_argument("--out", type=str, help="Output file path")
    parser.add_argument(
        "--serve",
        action="store_true",
        default=False,
        help="Run the HTTP server",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        default=False,
        help="Play the animation in a desktop window",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    return parser


def _apply_args(config: Config, args: argparse.Namespace) -> None:
    """Overlay CLI arguments onto the Config object."""
    for attr, param in _PARAM_FLAGS.items():
        value = getattr(args, attr)
        if value is not None:
            config.params[param] = value

    config.still_output = args.still
    config.out = args.out
    config.serve = args.serve
    config.preview = args.preview
    config.debug = args.debug


def load_config(
    yaml_path: str | None = None,
    cli_args: list[str] | None = None,
) -> Config:
    """Load config: defaults → YAML overlay → environment → argparse overlay.

    Args:
        yaml_path: Path to YAML config file. Defaults to config.yaml in project root.
        cli_args: CLI arguments list. None means use sys.argv.
    """
    config = Config()

    parser = _build_parser()
    args = parser.parse_args(cli_args if cli_args is not None else None)

    # Default YAML path: config.yaml in project root (three levels up from
    # this file). CLI --config overrides.
    if yaml_path is None:
        if args.config:
            yaml_path = args.config
        else:
            yaml_path = os.path.join(
                Path(__file__).resolve().parent.parent.parent, "config.yaml"
            )

    _apply_yaml(config, yaml_path)
    _apply_env(config)
    _apply_args(config, args)

    return config
