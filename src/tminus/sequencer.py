"""Frame sequencing for animated countdowns.

A sequence is computed from one captured "now". Tick i shows the
remaining time at start minus the tick's elapsed offset, so consecutive
values form an exact arithmetic progression and two builds from the same
start are identical. Nothing is sampled from the wall clock per frame.

The encoded GIF loops forever. Once real time moves past the rendered
window, a cached copy replays a stale countdown; callers that need live
values must re-render near display time and disable caching.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from tminus.clock import decompose, remaining_seconds
from tminus.layout import layout
from tminus.models import Animated, Frame, FrameSequence, RenderConfig, VisualFlags

logger = logging.getLogger(__name__)

# Loop count for countdown GIFs: 0 repeats forever
LOOP_FOREVER = 0


@dataclass(frozen=True)
class TickPlan:
    """Frame count and timing for one animation.

    Attributes:
        frame_count: Number of ticks.
        delay_ms: Display time of each frame.
        ticks_per_second: 1 for whole-second cadence, otherwise fps.
    """

    frame_count: int
    delay_ms: int
    ticks_per_second: int


@dataclass(frozen=True)
class RenderBudget:
    """Predictable cost of rendering a config, for host-side timeouts."""

    frame_count: int
    pixels_per_frame: int

    @property
    def total_pixels(self) -> int:
        return self.frame_count * self.pixels_per_frame


def plan_ticks(animation: Animated) -> TickPlan:
    """Derive frame count and per-frame delay from the animation settings."""
    if animation.fps is None:
        frames = animation.duration_seconds
        delay_ms = 1000
        tps = 1
    else:
        tps = animation.fps
        frames = animation.duration_seconds * tps
        delay_ms = round(1000 / tps)
    frames = max(1, min(animation.max_frames, frames))
    return TickPlan(frame_count=frames, delay_ms=delay_ms, ticks_per_second=tps)


def blink_schedule(tick: int, animation: Animated) -> VisualFlags:
    """Visual state for one tick.

    Separators are lit during the first half of every blink period and
    dimmed during the second half. Without blinking they are always lit.
    """
    if not animation.blink:
        return VisualFlags(separators_lit=True)
    tps = animation.fps or 1
    period = max(2, animation.blink_period_seconds * tps)
    return VisualFlags(separators_lit=(tick % period) * 2 < period)


def remaining_at(tick: int, start_remaining: int, ticks_per_second: int = 1) -> int:
    """Remaining whole seconds shown at tick, counted from the captured start."""
    return max(0, start_remaining - tick // ticks_per_second)


def render_budget(config: RenderConfig) -> RenderBudget:
    """Frames and pixels a config will cost to render."""
    frames = 1
    if isinstance(config.animation, Animated):
        frames = plan_ticks(config.animation).frame_count
    return RenderBudget(frame_count=frames, pixels_per_frame=config.width * config.height)


def build_sequence(
    config: RenderConfig,
    now: datetime | None = None,
    start_remaining: int | None = None,
) -> FrameSequence:
    """Lay out every tick of an animated countdown.

    Args:
        config: Resolved config with an Animated animation.
        now: Captured reference instant. Defaults to the current time.
        start_remaining: Remaining seconds at tick 0. Overrides now.

    Raises:
        ValueError: If config is not animated. Static output is laid out
            once by the caller.
    """
    animation = config.animation
    if not isinstance(animation, Animated):
        raise ValueError("build_sequence requires an animated config")

    if start_remaining is None:
        if now is None:
            now = datetime.now(timezone.utc)
        start_remaining = remaining_seconds(config.target, now)
    start_remaining = max(0, start_remaining)

    plan = plan_ticks(animation)
    logger.debug(
        "Sequencing %d frames at %d ms from %ds remaining",
        plan.frame_count, plan.delay_ms, start_remaining,
    )

    frames = []
    for tick in range(plan.frame_count):
        remaining = remaining_at(tick, start_remaining, plan.ticks_per_second)
        scene = layout(config, decompose(remaining), blink_schedule(tick, animation))
        frames.append(
            Frame(scene=scene, delay_ms=plan.delay_ms, tick=tick, remaining=remaining)
        )

    return FrameSequence(
        frames=tuple(frames),
        loop=LOOP_FOREVER,
        start_remaining=start_remaining,
    )
