"""HTTP binding: query string → countdown image response."""

from __future__ import annotations

import logging

from flask import Blueprint, Flask, Response, current_app, request

from tminus.config import Config
from tminus.errors import RenderError
from tminus.pipeline import render_countdown
from tminus.resolver import resolve

logger = logging.getLogger(__name__)

# Output depends on the current time, so every response is stale at once.
NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

countdown_bp = Blueprint("countdown", __name__)


def _respond(animated: bool) -> Response:
    config: Config = current_app.config["TMINUS"]
    profile = config.profile(animated)
    render_config = resolve(request.args, profile)
    try:
        result = render_countdown(render_config, workers=config.render.workers)
    except RenderError as e:
        logger.error("Countdown %s render failed: %s", e.profile, e, exc_info=True)
        label = "GIF" if animated else "PNG"
        return Response(
            f"{label} error",
            status=500,
            mimetype="text/plain",
            headers=NO_CACHE_HEADERS,
        )
    return Response(result.body, mimetype=result.content_type, headers=NO_CACHE_HEADERS)


@countdown_bp.route("/countdown.gif")
@countdown_bp.route("/gif")
def countdown_gif():
    """Looping GIF counting down from the moment of the request."""
    return _respond(animated=True)


@countdown_bp.route("/countdown.png")
@countdown_bp.route("/png")
def countdown_png():
    """Single PNG frame for clients that do not animate GIFs."""
    return _respond(animated=False)


def create_app(config: Config | None = None) -> Flask:
    """Build the Flask app serving countdown images for config."""
    app = Flask(__name__)
    app.config["TMINUS"] = config or Config()
    app.register_blueprint(countdown_bp)
    return app


def run_server(config: Config) -> None:
    """Serve until interrupted."""
    app = create_app(config)
    logger.info("Countdown server on %s:%d", config.server.host, config.server.port)
    app.run(host=config.server.host, port=config.server.port)
