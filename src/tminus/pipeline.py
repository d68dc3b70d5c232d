"""End-to-end rendering: RenderConfig → encoded image bytes."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone

from tminus.clock import decompose, remaining_seconds
from tminus.encoder import GIF_CONTENT_TYPE, PNG_CONTENT_TYPE, encode_sequence, encode_still
from tminus.errors import RenderError
from tminus.layout import layout
from tminus.models import Animated, FrameSequence, PixelBuffer, RenderConfig
from tminus.renderer import SceneRenderer
from tminus.sequencer import build_sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedImage:
    """Encoded output ready for a response body or a file."""

    body: bytes
    content_type: str
    frame_count: int = 1

    @property
    def extension(self) -> str:
        return ".gif" if self.content_type == GIF_CONTENT_TYPE else ".png"


def _rasterize_frames(
    sequence: FrameSequence,
    renderer: SceneRenderer | None,
    workers: int,
) -> list[PixelBuffer]:
    """Rasterize every frame, in tick order.

    With more than one worker each thread gets its own renderer, so font
    objects are never shared between threads.
    """
    if workers <= 1 or len(sequence) <= 1:
        renderer = renderer or SceneRenderer()
        return [renderer.render(f.scene, f.scene.width) for f in sequence.frames]

    local = threading.local()

    def _render(frame):
        if not hasattr(local, "renderer"):
            local.renderer = SceneRenderer()
        return local.renderer.render(frame.scene, frame.scene.width)

    # map() yields results in input order regardless of completion order
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(_render, sequence.frames))


def render_still(
    config: RenderConfig,
    now: datetime | None = None,
    renderer: SceneRenderer | None = None,
) -> RenderedImage:
    """Lay out, rasterize and encode one PNG frame."""
    if now is None:
        now = datetime.now(timezone.utc)
    renderer = renderer or SceneRenderer()
    remaining = remaining_seconds(config.target, now)
    scene = layout(config, decompose(remaining))
    try:
        buffer = renderer.render(scene, config.width)
        body = encode_still(buffer)
    except RenderError as e:
        e.profile = "still"
        raise
    except Exception as e:
        raise RenderError(f"Still render failed: {e}", profile="still") from e
    return RenderedImage(body=body, content_type=PNG_CONTENT_TYPE)


def render_animation(
    config: RenderConfig,
    now: datetime | None = None,
    renderer: SceneRenderer | None = None,
    workers: int = 1,
) -> RenderedImage:
    """Sequence, rasterize and encode a looping GIF.

    The whole sequence is encoded or the call fails; a partially built
    sequence is discarded.
    """
    if not isinstance(config.animation, Animated):
        raise ValueError("render_animation requires an animated config")
    sequence = build_sequence(config, now=now)
    try:
        buffers = _rasterize_frames(sequence, renderer, workers)
        body = encode_sequence(
            buffers,
            sequence.delays,
            loop=sequence.loop,
            quality=config.animation.quality,
        )
    except RenderError as e:
        e.profile = "animated"
        raise
    except Exception as e:
        raise RenderError(f"Animated render failed: {e}", profile="animated") from e
    return RenderedImage(body=body, content_type=GIF_CONTENT_TYPE, frame_count=len(sequence))


def render_countdown(
    config: RenderConfig,
    now: datetime | None = None,
    renderer: SceneRenderer | None = None,
    workers: int = 1,
) -> RenderedImage:
    """Render a resolved config as PNG (static) or GIF (animated).

    Raises:
        RenderError: If rasterizing or encoding fails. The error's profile
            attribute says which kind of output was being produced.
    """
    t0 = time.time()
    if isinstance(config.animation, Animated):
        result = render_animation(config, now=now, renderer=renderer, workers=workers)
    else:
        result = render_still(config, now=now, renderer=renderer)
    logger.info(
        "Rendered %s %dx%d, %d frame(s), %d bytes (%.2fs)",
        result.content_type, config.width, config.height,
        result.frame_count, len(result.body), time.time() - t0,
    )
    return result
