"""Turn raw request parameters into a bounded RenderConfig.

Every field falls back to a profile default; nothing here raises for
malformed input. Bad dates, non-numeric sizes and empty colors are all
absorbed into defaults and clamps.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

import pytz

from tminus.config import ProfileConfig, Range
from tminus.models import Animated, FitStrategy, RenderConfig, Static

logger = logging.getLogger(__name__)

# Longest font fallback list honored per request
MAX_FONT_FAMILIES = 8


def _get(params: Mapping, key: str) -> str:
    value = params.get(key)
    if value is None:
        return ""
    return str(value).strip()


def parse_int(raw: str, bounds: Range) -> int:
    """Parse and clamp an integer field. Unparseable input uses the default."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        value = bounds.default
    return bounds.clamp(value)


def normalize_color(raw: str, default: str) -> str:
    """Return "#RRGGBB" for input given with or without the leading "#".

    Three-digit shorthand is expanded. Anything else is passed through
    unchanged after the marker; the rasterizer rejects illegal hex.
    """
    value = raw.strip().lstrip("#")
    if not value:
        value = default.lstrip("#")
    if len(value) == 3:
        value = "".join(c * 2 for c in value)
    return f"#{value.upper()}"


def parse_fonts(raw: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Split a CSS-style family list ("Arial, 'DejaVu Sans', sans-serif").

    Names containing path separators are dropped and at most
    MAX_FONT_FAMILIES names are kept.
    """
    fonts = tuple(
        name.strip().strip("'\"").strip()
        for name in raw.split(",")
    )
    fonts = tuple(f for f in fonts if f and "/" not in f and "\\" not in f)
    return fonts[:MAX_FONT_FAMILIES] or default


def resolve_zone(raw: str, default: str):
    """Return a pytz zone for raw, or for default when raw is empty or unknown."""
    for name in (raw, default, "UTC"):
        if not name:
            continue
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            logger.debug("Unknown time zone %r, falling back", name)
    return pytz.utc


def parse_deadline(raw: str, zone) -> datetime | None:
    """Parse an ISO 8601 deadline, interpreting naive values in zone.

    Returns None when raw is empty or not a date.
    """
    if not raw:
        return None
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = zone.localize(dt)
    return dt


def _resolve_animation(
    params: Mapping, profile: ProfileConfig, width: int, height: int
) -> Animated:
    duration = parse_int(_get(params, "dur"), profile.duration)
    quality = parse_int(_get(params, "q"), profile.quality)

    # A present fps switches to fractional cadence; absent means one tick
    # per whole second.
    raw_fps = _get(params, "fps")
    fps = parse_int(raw_fps, profile.fps) if raw_fps else None

    ticks_per_second = fps or 1
    max_frames = profile.max_frames
    # Resource guard: cap frames so frames * width * height stays under
    # the ceiling before any rendering work begins.
    by_pixels = profile.max_total_pixels // (width * height)
    max_frames = max(1, min(max_frames, by_pixels))
    if duration * ticks_per_second > max_frames:
        clamped = max(1, max_frames // ticks_per_second)
        logger.debug(
            "Shortening %s animation from %ds to %ds (frame ceiling %d)",
            profile.name, duration, clamped, max_frames,
        )
        duration = clamped

    return Animated(
        duration_seconds=duration,
        fps=fps,
        quality=quality,
        blink=profile.blink,
        blink_period_seconds=max(1, profile.blink_period_seconds),
        max_frames=max_frames,
    )


def resolve(
    params: Mapping,
    profile: ProfileConfig,
    now: datetime | None = None,
) -> RenderConfig:
    """Resolve untrusted request parameters against a profile.

    Recognized keys: to, tz, w, h, bg, fg, accent, font, fit, and for
    animated profiles dur, fps, q. All optional.

    Args:
        params: Raw parameters, e.g. a query-string mapping.
        profile: Bounds and defaults to apply.
        now: Reference instant for the default deadline. Defaults to the
            current time.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    zone = resolve_zone(_get(params, "tz"), profile.default_tz)
    target = parse_deadline(_get(params, "to"), zone)
    if target is None:
        if _get(params, "to"):
            logger.debug("Unparseable deadline %r, using default horizon", _get(params, "to"))
        target = now.astimezone(zone) + timedelta(hours=profile.default_horizon_hours)

    width = parse_int(_get(params, "w"), profile.width)
    height = parse_int(_get(params, "h"), profile.height)

    try:
        fit = FitStrategy(_get(params, "fit").lower())
    except ValueError:
        fit = profile.fit

    if profile.animated:
        animation = _resolve_animation(params, profile, width, height)
    else:
        animation = Static()

    return RenderConfig(
        target=target,
        tz_name=zone.zone,
        width=width,
        height=height,
        background=normalize_color(_get(params, "bg"), profile.background),
        foreground=normalize_color(_get(params, "fg"), profile.foreground),
        accent=normalize_color(_get(params, "accent"), profile.accent),
        fonts=parse_fonts(_get(params, "font"), profile.fonts),
        fit=fit,
        animation=animation,
    )
