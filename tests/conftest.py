"""Shared fixtures: a fixed reference instant and config factories."""

from datetime import datetime, timedelta, timezone

import pytest

from tminus.models import Animated, FitStrategy, RenderConfig, Static


@pytest.fixture
def now():
    """Captured reference instant used in place of the wall clock."""
    return datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_config(now):
    """Factory for RenderConfig with sensible defaults and keyword overrides."""

    def _make(
        remaining: int = 90125,
        width: int = 800,
        height: int = 200,
        fit: FitStrategy = FitStrategy.BOX,
        animation=None,
        **overrides,
    ) -> RenderConfig:
        fields = dict(
            target=now + timedelta(seconds=remaining),
            tz_name="UTC",
            width=width,
            height=height,
            background="#FFFFFF",
            foreground="#111827",
            accent="#6366F1",
            fonts=("Arial", "Helvetica", "sans-serif"),
            fit=fit,
            animation=animation if animation is not None else Static(),
        )
        fields.update(overrides)
        return RenderConfig(**fields)

    return _make


@pytest.fixture
def animated_config(make_config):
    """Small animated config: 5 whole-second ticks on a 400x120 canvas."""
    return make_config(
        width=400,
        height=120,
        animation=Animated(duration_seconds=5),
    )


@pytest.fixture
def sample_config_yaml(tmp_path):
    """Create a temporary YAML config file."""
    yaml_content = """still:
  width: 1000
  height: {low: 100, high: 1500, default: 300}
  background: "#000000"
  fonts: "DejaVu Sans, sans-serif"
  fit: scale

animated:
  duration: {low: 1, high: 120, default: 60}
  blink: false
  max_frames: 120

server:
  host: 127.0.0.1
  port: 8080

render:
  workers: 4
"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml_content)
    return str(config_file)
