"""Generate assets/demo.gif and assets/demo.png from a fixed reference instant."""

from datetime import datetime, timezone
from pathlib import Path

from tminus.config import load_config
from tminus.pipeline import render_countdown
from tminus.resolver import resolve

# Pinned so the demo output is reproducible
NOW = datetime(2026, 12, 30, 21, 58, 50, tzinfo=timezone.utc)

PARAMS = {
    "to": "2027-01-01T00:00:00",
    "tz": "Europe/Berlin",
    "w": "800",
    "h": "200",
    "dur": "12",
    "bg": "111827",
    "fg": "F9FAFB",
    "accent": "F59E0B",
}

config = load_config(cli_args=[])
output_dir = Path(__file__).resolve().parent / "assets"
output_dir.mkdir(exist_ok=True)

for animated in (True, False):
    render_config = resolve(PARAMS, config.profile(animated), now=NOW)
    result = render_countdown(render_config, now=NOW, workers=config.render.workers)
    output_path = output_dir / f"demo{result.extension}"
    output_path.write_bytes(result.body)
    print(f"Generated {result.frame_count} frame(s), {len(result.body)} bytes")
    print(f"Saved to: {output_path}")
