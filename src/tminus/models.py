"""Value objects shared by the countdown pipeline."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from datetime import datetime

from PIL import Image

# Average advance of a digit or capital as a fraction of the font size.
# Used to estimate text width without loading a font, so layout stays
# renderer-agnostic.
DIGIT_ADVANCE_EM = 0.6
LABEL_ADVANCE_EM = 0.68
SEPARATOR_ADVANCE_EM = 0.4


class FitStrategy(str, enum.Enum):
    """How numeric text is kept inside its cell.

    BOX stretches or compresses each number to exactly the cell's inner
    width. SCALE picks a font size small enough for the widest number.
    """

    BOX = "box"
    SCALE = "scale"


@dataclass(frozen=True)
class Static:
    """Single-frame output. Carries no timing."""


@dataclass(frozen=True)
class Animated:
    """Looping animation settings, already clamped by the resolver.

    Attributes:
        duration_seconds: Wall-clock span the animation covers.
        fps: Ticks per second for fractional cadence, or None for one tick
            per whole second.
        quality: Encoder quality factor (1 is best, 30 is smallest output).
        blink: Whether the separators blink.
        blink_period_seconds: Full blink cycle. Separators are lit for the
            first half of each cycle.
        max_frames: Upper bound on the number of ticks.
    """

    duration_seconds: int = 180
    fps: int | None = None
    quality: int = 10
    blink: bool = True
    blink_period_seconds: int = 2
    max_frames: int = 300


Animation = Static | Animated


@dataclass(frozen=True)
class RenderConfig:
    """Everything needed to draw one countdown, resolved from a request.

    Attributes:
        target: Tz-aware instant the countdown runs toward.
        tz_name: Zone used to interpret the raw deadline string. Has no
            effect once target is resolved.
        width: Canvas width in pixels.
        height: Canvas height in pixels.
        background: Background color as "#RRGGBB".
        foreground: Digit and label color as "#RRGGBB".
        accent: Separator color as "#RRGGBB".
        fonts: Ordered font family fallback list, never empty.
        fit: Strategy keeping numbers inside their cells.
        animation: Static or Animated.
    """

    target: datetime
    tz_name: str
    width: int
    height: int
    background: str
    foreground: str
    accent: str
    fonts: tuple[str, ...]
    fit: FitStrategy = FitStrategy.BOX
    animation: Animation = field(default_factory=Static)

    @property
    def animated(self) -> bool:
        return isinstance(self.animation, Animated)


@dataclass(frozen=True)
class Decomposition:
    """Remaining duration split into days, hours, minutes and seconds."""

    days: int
    hours: int
    minutes: int
    seconds: int

    @property
    def total_seconds(self) -> int:
        return self.days * 86400 + self.hours * 3600 + self.minutes * 60 + self.seconds


@dataclass(frozen=True)
class VisualFlags:
    """Per-tick visual state. separators_lit=False dims the colons."""

    separators_lit: bool = True


@dataclass(frozen=True)
class Rect:
    """Filled rectangle."""

    x: int
    y: int
    width: int
    height: int
    color: str

    def effective_width(self) -> float:
        return self.width

    def to_dict(self) -> dict:
        return {
            "kind": "rect",
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "color": self.color,
        }


@dataclass(frozen=True)
class Text:
    """Text run centred on (x, y) at its natural width."""

    x: int
    y: int
    text: str
    size: int
    color: str
    opacity: float = 1.0
    bold: bool = False
    advance_em: float = DIGIT_ADVANCE_EM

    def effective_width(self) -> float:
        return len(self.text) * self.size * self.advance_em

    def to_dict(self) -> dict:
        return {
            "kind": "text",
            "x": self.x,
            "y": self.y,
            "text": self.text,
            "size": self.size,
            "color": self.color,
            "opacity": self.opacity,
            "bold": self.bold,
        }


@dataclass(frozen=True)
class FittedText:
    """Text run scaled horizontally to exactly fill a box.

    The box is (x, y, width, height); the glyphs are drawn at `size` and
    then stretched or compressed so their ink spans `width`, independent
    of character count.
    """

    x: int
    y: int
    width: int
    height: int
    text: str
    size: int
    color: str
    opacity: float = 1.0
    bold: bool = False

    def effective_width(self) -> float:
        return self.width

    def to_dict(self) -> dict:
        return {
            "kind": "fitted_text",
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "text": self.text,
            "size": self.size,
            "color": self.color,
            "opacity": self.opacity,
            "bold": self.bold,
        }


Primitive = Rect | Text | FittedText


@dataclass(frozen=True)
class Scene:
    """Renderer-agnostic description of one countdown image."""

    width: int
    height: int
    fonts: tuple[str, ...]
    primitives: tuple[Primitive, ...]

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "fonts": list(self.fonts),
            "primitives": [p.to_dict() for p in self.primitives],
        }

    def to_json(self) -> str:
        """Canonical JSON form; equal scenes give identical strings."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True)
class Frame:
    """One animation tick.

    Attributes:
        scene: What to draw.
        delay_ms: How long the frame stays on screen.
        tick: Index from the captured start instant.
        remaining: Remaining seconds shown by this frame.
    """

    scene: Scene
    delay_ms: int
    tick: int = 0
    remaining: int = 0


@dataclass(frozen=True)
class FrameSequence:
    """Ordered frames plus loop count (0 repeats forever)."""

    frames: tuple[Frame, ...]
    loop: int = 0
    start_remaining: int = 0

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def delays(self) -> list[int]:
        return [f.delay_ms for f in self.frames]


@dataclass(frozen=True)
class PixelBuffer:
    """Raw RGBA pixels of one rendered scene."""

    width: int
    height: int
    data: bytes

    @classmethod
    def from_image(cls, img: Image.Image) -> PixelBuffer:
        rgba = img.convert("RGBA")
        return cls(width=rgba.width, height=rgba.height, data=rgba.tobytes())

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.data)
