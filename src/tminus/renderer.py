"""PIL-based scene rasterizer.

Draws a Scene (flat list of rectangles, text runs and fitted text runs)
onto an RGBA canvas of exactly the scene's size.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageColor, ImageDraw, ImageFont

from tminus.errors import RasterizeError
from tminus.models import FittedText, PixelBuffer, Rect, Scene, Text

logger = logging.getLogger(__name__)

# Project root (three levels up from this file)
_ROOT = Path(__file__).resolve().parent.parent.parent
_FONTS_DIR = _ROOT / "fonts"

# Generic and common family names → candidate font files, regular weight
# first then bold. Pillow searches the system font directories for bare
# filenames; project fonts/ is checked first.
_FAMILY_FILES = {
    "arial": (
        ("Arial.ttf", "arial.ttf", "LiberationSans-Regular.ttf"),
        ("Arial Bold.ttf", "arialbd.ttf", "LiberationSans-Bold.ttf"),
    ),
    "helvetica": (
        ("Helvetica.ttc", "LiberationSans-Regular.ttf"),
        ("Helvetica.ttc", "LiberationSans-Bold.ttf"),
    ),
    "sans-serif": (
        ("DejaVuSans.ttf", "LiberationSans-Regular.ttf", "FreeSans.ttf"),
        ("DejaVuSans-Bold.ttf", "LiberationSans-Bold.ttf", "FreeSansBold.ttf"),
    ),
    "serif": (
        ("DejaVuSerif.ttf", "LiberationSerif-Regular.ttf", "FreeSerif.ttf"),
        ("DejaVuSerif-Bold.ttf", "LiberationSerif-Bold.ttf", "FreeSerifBold.ttf"),
    ),
    "monospace": (
        ("DejaVuSansMono.ttf", "LiberationMono-Regular.ttf", "FreeMono.ttf"),
        ("DejaVuSansMono-Bold.ttf", "LiberationMono-Bold.ttf", "FreeMonoBold.ttf"),
    ),
}


# Substrings that would turn a family name into a filesystem path
_PATH_TOKENS = ("/", "\\", "..", "\0")


def _candidate_files(family: str, bold: bool) -> list[str]:
    # Family names come from requests; never let one address a file path
    if any(token in family for token in _PATH_TOKENS):
        return []
    known = _FAMILY_FILES.get(family.lower())
    if known is not None:
        return list(known[1] if bold else known[0])
    # Unknown family: guess "<Name>-Bold.ttf" / "<Name>.ttf", with and
    # without spaces ("DejaVu Sans" → "DejaVuSans.ttf").
    stems = [family, family.replace(" ", "")]
    suffix = "-Bold" if bold else ""
    return [f"{stem}{suffix}.ttf" for stem in dict.fromkeys(stems)]


def _parse_color(color: str, opacity: float = 1.0) -> tuple[int, int, int, int]:
    r, g, b = ImageColor.getrgb(color)[:3]
    return (r, g, b, round(255 * max(0.0, min(1.0, opacity))))


class SceneRenderer:
    """Rasterizes Scenes with Pillow.

    Fonts are resolved from the scene's family fallback list the first
    time a (families, size, weight) combination is needed and cached on
    the instance. When no family resolves, Pillow's built-in scalable
    font is used so rendering never depends on installed fonts.
    """

    def __init__(self, fonts_dir: Path | None = None) -> None:
        self.fonts_dir = fonts_dir or _FONTS_DIR
        self._fonts: dict[tuple, ImageFont.FreeTypeFont | ImageFont.ImageFont] = {}

    def _load_font(self, families: tuple[str, ...], size: int, bold: bool):
        key = (families, size, bold)
        font = self._fonts.get(key)
        if font is not None:
            return font

        for family in families:
            for filename in _candidate_files(family, bold):
                local = self.fonts_dir / filename
                path = str(local) if local.exists() else filename
                try:
                    font = ImageFont.truetype(path, size)
                except OSError:
                    continue
                logger.debug("Loaded font %s for %r at %dpx", path, family, size)
                break
            if font is not None:
                break

        if font is None:
            logger.debug("No font found for %s, using built-in font", ", ".join(families))
            font = ImageFont.load_default(size=size)

        self._fonts[key] = font
        return font

    def render(self, scene: Scene, target_width: int | None = None) -> PixelBuffer:
        """Rasterize a scene to an RGBA buffer of exactly its size.

        Args:
            scene: Scene to draw.
            target_width: Pixel width the caller expects. Must match the
                scene width.

        Raises:
            RasterizeError: On illegal colors, font failures, or a size
                mismatch.
        """
        if target_width is not None and target_width != scene.width:
            raise RasterizeError(
                f"Requested width {target_width}px does not match scene width {scene.width}px"
            )
        try:
            img = self.render_image(scene)
        except RasterizeError:
            raise
        except (ValueError, OSError) as e:
            raise RasterizeError(f"Could not rasterize scene: {e}") from e

        if img.size != (scene.width, scene.height):
            raise RasterizeError(
                f"Rendered {img.size[0]}x{img.size[1]}, expected {scene.width}x{scene.height}"
            )
        return PixelBuffer.from_image(img)

    def render_image(self, scene: Scene) -> Image.Image:
        """Rasterize a scene to a PIL RGBA image."""
        img = Image.new("RGBA", (scene.width, scene.height), (0, 0, 0, 0))
        for primitive in scene.primitives:
            if isinstance(primitive, Rect):
                self._draw_rect(img, primitive)
            elif isinstance(primitive, FittedText):
                self._draw_fitted_text(img, scene.fonts, primitive)
            elif isinstance(primitive, Text):
                self._draw_text(img, scene.fonts, primitive)
            else:
                raise RasterizeError(f"Unknown primitive {type(primitive).__name__}")
        return img

    def _draw_rect(self, img: Image.Image, rect: Rect) -> None:
        if rect.width <= 0 or rect.height <= 0:
            return
        draw = ImageDraw.Draw(img)
        draw.rectangle(
            [(rect.x, rect.y), (rect.x + rect.width - 1, rect.y + rect.height - 1)],
            fill=_parse_color(rect.color),
        )

    def _draw_text(self, img: Image.Image, families: tuple[str, ...], text: Text) -> None:
        """Draw a text run centred on (x, y)."""
        font = self._load_font(families, text.size, text.bold)
        fill = _parse_color(text.color, text.opacity)
        if text.opacity >= 1.0:
            ImageDraw.Draw(img).text((text.x, text.y), text.text, fill=fill, font=font, anchor="mm")
            return
        # Translucent text goes on its own layer; drawing straight onto the
        # canvas would replace the background alpha instead of blending.
        layer = Image.new("RGBA", img.size, (0, 0, 0, 0))
        ImageDraw.Draw(layer).text((text.x, text.y), text.text, fill=fill, font=font, anchor="mm")
        img.alpha_composite(layer)

    def _draw_fitted_text(
        self,
        img: Image.Image,
        families: tuple[str, ...],
        text: FittedText,
    ) -> None:
        """Draw a text run stretched or compressed to exactly the box width.

        The run is drawn onto a tight temporary strip at its natural size,
        then resized horizontally to the box width and centred vertically.
        """
        if not text.text or text.width <= 0 or text.height <= 0:
            return
        font = self._load_font(families, text.size, text.bold)
        bbox = font.getbbox(text.text)
        strip_w = bbox[2] - bbox[0]
        strip_h = bbox[3] - bbox[1]
        if strip_w <= 0 or strip_h <= 0:
            return

        strip = Image.new("RGBA", (strip_w, strip_h), (0, 0, 0, 0))
        ImageDraw.Draw(strip).text(
            (-bbox[0], -bbox[1]),
            text.text,
            fill=_parse_color(text.color, text.opacity),
            font=font,
        )
        out_h = min(strip_h, text.height)
        fitted = strip.resize((text.width, out_h), Image.Resampling.LANCZOS)

        y = text.y + (text.height - out_h) // 2
        img.alpha_composite(fitted, dest=(text.x, max(0, y)))


def render_scene(scene: Scene, target_width: int | None = None) -> PixelBuffer:
    """Rasterize one scene with a fresh renderer."""
    return SceneRenderer().render(scene, target_width)
