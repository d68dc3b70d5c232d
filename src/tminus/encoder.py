"""PNG and GIF encoders for rendered pixel buffers."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from io import BytesIO

from PIL import Image

from tminus.errors import EncodeError
from tminus.models import PixelBuffer

logger = logging.getLogger(__name__)

PNG_CONTENT_TYPE = "image/png"
GIF_CONTENT_TYPE = "image/gif"


def palette_size(quality: int) -> int:
    """GIF palette size for a quality factor.

    1-10 keeps the full 256 colors, 11-20 halves it, 21-30 quarters it.
    Fewer colors give smaller files with coarser anti-aliasing.
    """
    quality = max(1, min(30, quality))
    return 256 >> ((quality - 1) // 10)


def _flatten(buffer: PixelBuffer) -> Image.Image:
    """RGBA buffer → opaque RGB image. Transparent pixels become white."""
    img = buffer.to_image()
    background = Image.new("RGB", img.size, (255, 255, 255))
    background.paste(img, mask=img.getchannel("A"))
    return background


def encode_still(buffer: PixelBuffer) -> bytes:
    """Encode one buffer as PNG."""
    try:
        out = BytesIO()
        buffer.to_image().save(out, format="PNG", optimize=True)
    except (ValueError, OSError) as e:
        raise EncodeError(f"PNG encoding failed: {e}", profile="still") from e
    data = out.getvalue()
    logger.debug("Encoded %dx%d PNG, %d bytes", buffer.width, buffer.height, len(data))
    return data


def encode_sequence(
    buffers: Sequence[PixelBuffer],
    delays: Sequence[int],
    loop: int = 0,
    quality: int = 10,
) -> bytes:
    """Encode buffers as an animated GIF.

    Args:
        buffers: Frames in display order, all the same size.
        delays: Display time of each frame in milliseconds. GIF stores
            hundredths of a second.
        loop: Loop count, 0 repeats forever.
        quality: 1 (best) to 30 (smallest), see palette_size().

    Raises:
        EncodeError: If there are no frames, sizes or counts disagree, or
            Pillow fails. Nothing is returned in that case.
    """
    if not buffers:
        raise EncodeError("No frames to encode", profile="animated")
    if len(buffers) != len(delays):
        raise EncodeError(
            f"{len(buffers)} frames but {len(delays)} delays", profile="animated"
        )
    size = (buffers[0].width, buffers[0].height)
    if any((b.width, b.height) != size for b in buffers):
        raise EncodeError("Frames differ in size", profile="animated")

    colors = palette_size(quality)
    try:
        # Convert every frame to palette mode for reliable GIF saving
        frames = [
            _flatten(b).quantize(colors=colors, method=Image.Quantize.MEDIANCUT)
            for b in buffers
        ]
        out = BytesIO()
        frames[0].save(
            out,
            format="GIF",
            save_all=True,
            append_images=frames[1:],
            duration=list(delays),
            loop=loop,
        )
    except (ValueError, OSError) as e:
        raise EncodeError(f"GIF encoding failed: {e}", profile="animated") from e

    data = out.getvalue()
    logger.debug(
        "Encoded %d-frame %dx%d GIF (%d colors), %d bytes",
        len(frames), size[0], size[1], colors, len(data),
    )
    return data
