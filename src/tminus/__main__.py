"""Entry point for tminus."""

import logging
import sys
from pathlib import Path

from tminus.config import load_config

logger = logging.getLogger(__name__)


def run_render(config):
    """Render the countdown described by the CLI parameters to a file."""
    from tminus.pipeline import render_countdown
    from tminus.resolver import resolve

    animated = not config.still_output
    render_config = resolve(config.params, config.profile(animated))
    result = render_countdown(render_config, workers=config.render.workers)

    out = Path(config.out or f"countdown{result.extension}")
    out.write_bytes(result.body)
    print(f"Rendered {result.frame_count} frame(s) to: {out}")


def run_preview(config):
    """Play the countdown in a desktop window."""
    from datetime import datetime, timezone

    from tminus.clock import decompose, remaining_seconds
    from tminus.display import PreviewWindow
    from tminus.layout import layout
    from tminus.models import Animated
    from tminus.renderer import SceneRenderer
    from tminus.resolver import resolve
    from tminus.sequencer import build_sequence

    animated = not config.still_output
    render_config = resolve(config.params, config.profile(animated))
    renderer = SceneRenderer()

    if isinstance(render_config.animation, Animated):
        sequence = build_sequence(render_config)
        buffers = [renderer.render(f.scene, render_config.width) for f in sequence.frames]
        delays = sequence.delays
        loop = sequence.loop
    else:
        remaining = remaining_seconds(render_config.target, datetime.now(timezone.utc))
        buffers = [renderer.render(layout(render_config, decompose(remaining)))]
        # Hold the still frame until the window is closed
        delays = [100]
        loop = 0

    window = PreviewWindow(render_config.width, render_config.height)
    try:
        window.play(buffers, delays, loop)
    finally:
        window.close()


def run_serve(config):
    """Run the HTTP server."""
    from tminus.server import run_server

    run_server(config)


def main():
    """CLI entry point for the tminus application.

    Loads configuration (defaults -> YAML -> env -> CLI args), sets up
    logging to stderr, then dispatches to one of three modes:
      --serve:   run the HTTP server
      --preview: play the countdown in a pygame window
      (default): render a GIF (or PNG with --still) to --out
    """
    config = load_config()

    # Log to stderr so stdout carries only the result summary.
    level = logging.DEBUG if config.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    logger.debug("Config loaded: params=%s, debug=%s", config.params, config.debug)

    try:
        if config.serve:
            logger.info("Starting countdown server")
            run_serve(config)
        elif config.preview:
            logger.info("Starting preview")
            run_preview(config)
        else:
            run_render(config)
    except KeyboardInterrupt:
        print("\nShutting down.")
        sys.exit(0)
    except Exception as e:
        logger.error("Unexpected error: %s", e, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
