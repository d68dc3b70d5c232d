"""Countdown layout: RenderConfig + Decomposition → Scene.

The canvas is split into four equal cells (days, hours, minutes, seconds)
inside a horizontal margin. Each cell has a numeric band on top and a
label band below. Separators sit on the cell boundaries.

    |margin| DD : HH : MM : SS |margin|
            DAYS HOURS MINUTES SECONDS

All positions are integers derived only from the inputs, so the same
inputs always give the same Scene.
"""

from __future__ import annotations

from dataclasses import dataclass

from tminus.clock import unit_strings
from tminus.models import (
    DIGIT_ADVANCE_EM,
    LABEL_ADVANCE_EM,
    SEPARATOR_ADVANCE_EM,
    Animated,
    Decomposition,
    FitStrategy,
    FittedText,
    Rect,
    RenderConfig,
    Scene,
    Text,
    VisualFlags,
)

LABELS = ("DAYS", "HOURS", "MINUTES", "SECONDS")

# Horizontal margin on each side, as a fraction of canvas width
MARGIN_RATIO = 0.04
# Padding inside each cell, as a fraction of cell width. The gap between
# two cells' inner boxes holds the separator.
CELL_PAD_RATIO = 0.08

# Vertical bands as fractions of canvas height
DIGIT_BAND_TOP = 0.06
DIGIT_BAND_HEIGHT = 0.60
LABEL_BAND_TOP = 0.72
LABEL_BAND_HEIGHT = 0.22

# Height-derived font size candidates, as fractions of canvas height
DIGIT_SIZE_RATIO = 0.48
LABEL_SIZE_RATIO = 0.16

# Separator opacity during the dark half of a blink cycle
DIMMED_SEPARATOR_OPACITY = 0.25


@dataclass(frozen=True)
class Box:
    """Axis-aligned box in canvas pixels."""

    x: int
    y: int
    width: int
    height: int

    @property
    def center_x(self) -> int:
        return self.x + self.width // 2

    @property
    def center_y(self) -> int:
        return self.y + self.height // 2

    @property
    def right(self) -> int:
        return self.x + self.width


@dataclass(frozen=True)
class Grid:
    """Cell geometry for one canvas size.

    Attributes:
        cells: Full cell boxes, left to right.
        inner: Numeric boxes: cells minus padding, clipped to the digit band.
        labels: Label boxes: cells minus padding, clipped to the label band.
        boundaries: x positions of the three separators.
        gaps: Boxes between neighbouring inner boxes, clipped to the digit
            band. Each separator must fit inside its gap.
    """

    cells: tuple[Box, ...]
    inner: tuple[Box, ...]
    labels: tuple[Box, ...]
    boundaries: tuple[int, ...]
    gaps: tuple[Box, ...]


def grid(config: RenderConfig) -> Grid:
    """Compute cell boxes for the configured canvas."""
    width, height = config.width, config.height
    margin = round(width * MARGIN_RATIO)
    usable = width - 2 * margin
    cell_w = usable // 4
    # Spread any remainder evenly so the grid stays centred
    x0 = margin + (usable - 4 * cell_w) // 2
    pad = max(2, round(cell_w * CELL_PAD_RATIO))

    digit_top = round(height * DIGIT_BAND_TOP)
    digit_h = round(height * DIGIT_BAND_HEIGHT)
    label_top = round(height * LABEL_BAND_TOP)
    label_h = round(height * LABEL_BAND_HEIGHT)

    cells = tuple(Box(x0 + i * cell_w, 0, cell_w, height) for i in range(4))
    inner = tuple(Box(c.x + pad, digit_top, cell_w - 2 * pad, digit_h) for c in cells)
    labels = tuple(Box(c.x + pad, label_top, cell_w - 2 * pad, label_h) for c in cells)
    boundaries = tuple(x0 + i * cell_w for i in range(1, 4))
    gaps = tuple(
        Box(left.right, digit_top, right.x - left.right, digit_h)
        for left, right in zip(inner, inner[1:])
    )
    return Grid(
        cells=cells, inner=inner, labels=labels, boundaries=boundaries, gaps=gaps
    )


def fit_size(height_candidate: int, box_width: int, chars: int, advance_em: float) -> int:
    """Largest size satisfying both the height and the width candidate."""
    width_candidate = int(box_width / (max(1, chars) * advance_em))
    return max(1, min(height_candidate, width_candidate))


def _separator_opacity(config: RenderConfig, flags: VisualFlags) -> float:
    blinking = isinstance(config.animation, Animated) and config.animation.blink
    if not blinking or flags.separators_lit:
        return 1.0
    return DIMMED_SEPARATOR_OPACITY


def layout(
    config: RenderConfig,
    decomposition: Decomposition,
    flags: VisualFlags | None = None,
) -> Scene:
    """Build the Scene for one rendered instant."""
    if flags is None:
        flags = VisualFlags()
    g = grid(config)
    numbers = unit_strings(decomposition)
    height = config.height

    digit_h = g.inner[0].height
    height_candidate = min(int(height * DIGIT_SIZE_RATIO), digit_h)
    widest = max(len(n) for n in numbers)

    primitives = [Rect(0, 0, config.width, height, config.background)]

    if config.fit is FitStrategy.BOX:
        # Glyph height comes from the band; width is forced to the box.
        digit_size = max(1, height_candidate)
    else:
        digit_size = fit_size(height_candidate, g.inner[0].width, widest, DIGIT_ADVANCE_EM)

    # Colons are sized to the gap between inner boxes, not to the digits
    separator_size = fit_size(height_candidate, g.gaps[0].width, 1, SEPARATOR_ADVANCE_EM)
    opacity = _separator_opacity(config, flags)
    for i, (box, text) in enumerate(zip(g.inner, numbers)):
        if config.fit is FitStrategy.BOX:
            primitives.append(
                FittedText(
                    x=box.x,
                    y=box.y,
                    width=box.width,
                    height=box.height,
                    text=text,
                    size=digit_size,
                    color=config.foreground,
                    bold=True,
                )
            )
        else:
            primitives.append(
                Text(
                    x=box.center_x,
                    y=box.center_y,
                    text=text,
                    size=digit_size,
                    color=config.foreground,
                    bold=True,
                )
            )
        if i < len(g.gaps):
            primitives.append(
                Text(
                    x=g.gaps[i].center_x,
                    y=box.center_y,
                    text=":",
                    size=separator_size,
                    color=config.accent,
                    opacity=opacity,
                    bold=True,
                    advance_em=SEPARATOR_ADVANCE_EM,
                )
            )

    label_box_w = g.labels[0].width
    label_size = fit_size(
        min(int(height * LABEL_SIZE_RATIO), g.labels[0].height),
        label_box_w,
        max(len(label) for label in LABELS),
        LABEL_ADVANCE_EM,
    )
    for box, label in zip(g.labels, LABELS):
        primitives.append(
            Text(
                x=box.center_x,
                y=box.center_y,
                text=label,
                size=label_size,
                color=config.foreground,
                advance_em=LABEL_ADVANCE_EM,
            )
        )

    return Scene(
        width=config.width,
        height=height,
        fonts=config.fonts,
        primitives=tuple(primitives),
    )
