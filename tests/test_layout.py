"""Tests for the countdown layout engine."""

import pytest

from tminus.clock import decompose
from tminus.layout import DIMMED_SEPARATOR_OPACITY, LABELS, fit_size, grid, layout
from tminus.models import (
    Animated,
    Decomposition,
    FitStrategy,
    FittedText,
    Rect,
    Text,
    VisualFlags,
)


def _numbers(scene):
    """Numeric primitives (fitted or plain), excluding separators and labels."""
    return [
        p for p in scene.primitives
        if isinstance(p, (Text, FittedText)) and p.text not in LABELS and p.text != ":"
    ]


def _separators(scene):
    return [p for p in scene.primitives if isinstance(p, Text) and p.text == ":"]


def _labels(scene):
    return [p for p in scene.primitives if isinstance(p, Text) and p.text in LABELS]


class TestGrid:
    """Tests for cell geometry."""

    @pytest.mark.parametrize("width", [400, 800, 1001, 2000])
    def test_cells_inside_canvas(self, make_config, width):
        """Verify four equal cells fit inside the horizontal margins."""
        g = grid(make_config(width=width))
        assert len(g.cells) == 4
        assert len({c.width for c in g.cells}) == 1
        assert g.cells[0].x > 0
        assert g.cells[-1].right < width

    def test_inner_boxes_inside_cells(self, make_config):
        """Verify padded boxes lie strictly within their cells."""
        g = grid(make_config())
        for cell, inner in zip(g.cells, g.inner):
            assert cell.x < inner.x
            assert inner.right < cell.right

    def test_separators_on_boundaries(self, make_config):
        """Verify separators sit where one cell ends and the next begins."""
        g = grid(make_config())
        assert g.boundaries == tuple(c.right for c in g.cells[:3])

    def test_label_band_below_digits(self, make_config):
        """Verify the label band starts below the numeric band and ends inside the canvas."""
        config = make_config(height=120)
        g = grid(config)
        assert g.labels[0].y >= g.inner[0].y + g.inner[0].height
        assert g.labels[0].y + g.labels[0].height <= config.height


class TestLayout:
    """Tests for layout()."""

    def test_scene_matches_canvas(self, make_config):
        """Verify the scene has the config's size and starts with a full background rect."""
        config = make_config()
        scene = layout(config, decompose(90125))
        assert (scene.width, scene.height) == (800, 200)
        bg = scene.primitives[0]
        assert isinstance(bg, Rect)
        assert (bg.x, bg.y, bg.width, bg.height) == (0, 0, 800, 200)
        assert bg.color == "#FFFFFF"

    def test_primitive_counts(self, make_config):
        """Verify one background, four numbers, three separators and four labels."""
        scene = layout(make_config(), decompose(90125))
        assert len(scene.primitives) == 12
        assert len(_numbers(scene)) == 4
        assert len(_separators(scene)) == 3
        assert [p.text for p in _labels(scene)] == list(LABELS)

    def test_number_strings(self, make_config):
        """Verify numbers are zero-padded and ordered days to seconds."""
        scene = layout(make_config(), decompose(90125))
        assert [p.text for p in _numbers(scene)] == ["01", "01", "02", "05"]

    def test_box_strategy_is_default(self, make_config):
        """Verify numbers are fitted text runs under the default strategy."""
        scene = layout(make_config(), decompose(90125))
        assert all(isinstance(p, FittedText) for p in _numbers(scene))

    def test_scale_strategy_uses_plain_text(self, make_config):
        """Verify fit=scale produces plain text runs with a uniform size."""
        scene = layout(make_config(fit=FitStrategy.SCALE), decompose(90125))
        numbers = _numbers(scene)
        assert all(type(p) is Text for p in numbers)
        assert len({p.size for p in numbers}) == 1

    def test_colors(self, make_config):
        """Verify numbers and labels use the foreground, separators the accent."""
        scene = layout(make_config(), decompose(90125))
        assert {p.color for p in _numbers(scene)} == {"#111827"}
        assert {p.color for p in _labels(scene)} == {"#111827"}
        assert {p.color for p in _separators(scene)} == {"#6366F1"}

    def test_labels_centred_under_cells(self, make_config):
        """Verify each label is centred on its cell."""
        config = make_config()
        g = grid(config)
        for label, cell in zip(_labels(layout(config, decompose(0))), g.cells):
            assert abs(label.x - cell.center_x) <= 1

    def test_deterministic(self, make_config):
        """Verify identical inputs give byte-identical scene descriptions."""
        config = make_config()
        a = layout(config, decompose(90125), VisualFlags(separators_lit=False))
        b = layout(config, decompose(90125), VisualFlags(separators_lit=False))
        assert a == b
        assert a.to_json() == b.to_json()

    def test_fonts_carried(self, make_config):
        """Verify the font fallback list is passed to the scene."""
        scene = layout(make_config(fonts=("DejaVu Sans", "serif")), decompose(0))
        assert scene.fonts == ("DejaVu Sans", "serif")

    def test_to_dict_tags_kinds(self, make_config):
        """Verify the serialized scene tags every primitive with its kind."""
        data = layout(make_config(), decompose(0)).to_dict()
        kinds = [p["kind"] for p in data["primitives"]]
        assert kinds.count("rect") == 1
        assert kinds.count("fitted_text") == 4
        assert kinds.count("text") == 7


class TestNoOverflow:
    """Tests that numbers never exceed their cell's inner width."""

    @pytest.mark.parametrize("fit", [FitStrategy.BOX, FitStrategy.SCALE])
    @pytest.mark.parametrize("width", [400, 800, 2000])
    @pytest.mark.parametrize("days", [0, 99, 365, 10_000])
    def test_numbers_fit_cells(self, make_config, fit, width, days):
        """Verify every number's effective width is within its inner box."""
        config = make_config(width=width, fit=fit)
        g = grid(config)
        scene = layout(config, Decomposition(days=days, hours=23, minutes=59, seconds=59))
        for primitive, box in zip(_numbers(scene), g.inner):
            assert primitive.effective_width() <= box.width + 1e-6

    def test_three_digit_days_box(self, make_config):
        """Verify a 365-day count is fitted exactly to the days box."""
        config = make_config()
        g = grid(config)
        days = _numbers(layout(config, Decomposition(365, 0, 0, 0)))[0]
        assert days.text == "365"
        assert days.x == g.inner[0].x
        assert days.width == g.inner[0].width

    def test_three_digit_days_shrink_under_scale(self, make_config):
        """Verify wider day counts shrink the numeric size under fit=scale."""
        config = make_config(fit=FitStrategy.SCALE)
        two = _numbers(layout(config, Decomposition(12, 0, 0, 0)))[0].size
        three = _numbers(layout(config, Decomposition(365, 0, 0, 0)))[0].size
        assert three < two

    @pytest.mark.parametrize("width", [400, 800, 2000])
    def test_labels_fit(self, make_config, width):
        """Verify the longest label fits its label box."""
        config = make_config(width=width)
        g = grid(config)
        for label, box in zip(_labels(layout(config, decompose(0))), g.labels):
            assert label.effective_width() <= box.width + 1e-6

    @pytest.mark.parametrize("size", [(400, 120), (800, 200), (400, 800), (400, 1200), (2000, 800)])
    def test_separators_fit_gaps(self, make_config, size):
        """Verify each colon stays between the inner boxes of its neighbours."""
        config = make_config(width=size[0], height=size[1])
        g = grid(config)
        separators = _separators(layout(config, decompose(90125)))
        assert len(separators) == len(g.gaps) == 3
        for separator, gap, left, right in zip(separators, g.gaps, g.inner, g.inner[1:]):
            half = separator.effective_width() / 2
            assert separator.x - half >= left.right - 1e-6
            assert separator.x + half <= right.x + 1e-6
            assert gap.x == left.right
            assert gap.right == right.x

    def test_tall_canvas_shrinks_separators(self, make_config):
        """Verify a tall narrow canvas gets colons smaller than its digits."""
        config = make_config(width=400, height=800)
        scene = layout(config, decompose(90125))
        digit_size = _numbers(scene)[0].size
        assert {p.size for p in _separators(scene)} == {_separators(scene)[0].size}
        assert _separators(scene)[0].size < digit_size


class TestSeparatorBlink:
    """Tests for separator opacity."""

    def test_static_always_opaque(self, make_config):
        """Verify static output ignores the blink flag."""
        scene = layout(make_config(), decompose(0), VisualFlags(separators_lit=False))
        assert {p.opacity for p in _separators(scene)} == {1.0}

    def test_blinking_dims_when_unlit(self, make_config):
        """Verify unlit separators are dimmed when the animation blinks."""
        config = make_config(animation=Animated(duration_seconds=5, blink=True))
        dim = layout(config, decompose(0), VisualFlags(separators_lit=False))
        lit = layout(config, decompose(0), VisualFlags(separators_lit=True))
        assert {p.opacity for p in _separators(dim)} == {DIMMED_SEPARATOR_OPACITY}
        assert {p.opacity for p in _separators(lit)} == {1.0}

    def test_blink_disabled_opaque(self, make_config):
        """Verify separators stay opaque when blinking is disabled."""
        config = make_config(animation=Animated(duration_seconds=5, blink=False))
        scene = layout(config, decompose(0), VisualFlags(separators_lit=False))
        assert {p.opacity for p in _separators(scene)} == {1.0}


class TestFitSize:
    """Tests for fit_size()."""

    def test_height_bound(self):
        """Verify a wide box leaves the height candidate in charge."""
        assert fit_size(50, 1000, 2, 0.6) == 50

    def test_width_bound(self):
        """Verify more characters shrink the size to fit the box."""
        assert fit_size(100, 120, 3, 0.6) == 66

    def test_never_below_one(self):
        """Verify degenerate boxes still give a drawable size."""
        assert fit_size(50, 0, 4, 0.6) == 1
