"""PNG encoding of the base raster and rendering of annotated snapshots."""

from __future__ import annotations

import io
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from casemap.core.config import EditorConfig
from casemap.core.errors import EncodingError
from casemap.utils.logging import log, log_performance

from .map_contour import Contour
from .map_logic import Point
from .map_raster import RasterImage


def _save_png(img: Image.Image) -> bytes:
    # no pnginfo: output depends on pixels only
    buf = io.BytesIO()
    img.save(buf, format="PNG", compress_level=6)
    return buf.getvalue()


def _to_image(raster: RasterImage) -> Image.Image:
    if raster.width == 0 or raster.height == 0:
        raise EncodingError(f"cannot encode empty raster {raster.width}x{raster.height}")
    return Image.frombytes("L", (raster.width, raster.height), raster.pixels)


@log_performance(threshold_ms=250.0)
def encode_png(raster: RasterImage) -> bytes:
    """
    栅格 → 8 位灰度 PNG

    Raises:
        EncodingError: width or height is zero.
    """
    png = _save_png(_to_image(raster))
    log.debug("encoded %dx%d raster to %d PNG bytes", raster.width, raster.height, len(png))
    return png


@dataclass(frozen=True, slots=True)
class MarkerGlyph:
    """A marker as drawn: image-pixel position and highlight state."""

    x: float
    y: float
    selected: bool = False
    locked: bool = False


@dataclass(frozen=True, slots=True)
class RulerGlyph:
    start: Point
    end: Optional[Point] = None
    distance: Optional[float] = None


class MapRenderer:
    """Draws base map, contours, markers and ruler the way the editor canvas shows them."""

    def __init__(self, config: EditorConfig) -> None:
        self.config = config
        self._font = ImageFont.load_default()

    def render(
        self,
        raster: RasterImage,
        contours: Sequence[Contour],
        markers: Iterable[MarkerGlyph],
        ruler: Optional[RulerGlyph] = None,
        scale: float = 1.0,
    ) -> bytes:
        """Return the composed snapshot as RGB PNG bytes."""
        base = _to_image(raster).convert("RGB")
        size = (max(1, round(raster.width * scale)), max(1, round(raster.height * scale)))
        if size != base.size:
            base = base.resize(size, Image.NEAREST)

        # 1. 轮廓（半透明蓝）
        if contours:
            overlay = Image.new("RGBA", size, (0, 0, 0, 0))
            self._draw_contours(ImageDraw.Draw(overlay), contours, scale)
            base = Image.alpha_composite(base.convert("RGBA"), overlay).convert("RGB")

        draw = ImageDraw.Draw(base)

        # 2. 标记点
        colors = self.config.colors
        r = self.config.marker_radius
        for m in markers:
            fill = colors.marker_locked if m.locked else colors.marker
            if m.selected:
                fill = colors.marker_selected
            x, y = m.x * scale, m.y * scale
            draw.ellipse([x - r, y - r, x + r, y + r], fill=tuple(fill),
                         outline=tuple(colors.marker_outline), width=2)

        # 3. 标尺
        if ruler is not None:
            self._draw_ruler(draw, ruler, scale)

        return _save_png(base)

    def _draw_contours(self, draw: ImageDraw.ImageDraw, contours: Sequence[Contour], scale: float) -> None:
        color = tuple(self.config.colors.contour)
        for contour in contours:
            pts = [(p.x * scale, p.y * scale) for p in contour]
            if len(pts) == 1:
                draw.point(pts[0], fill=color)
            else:
                draw.line(pts + [pts[0]], fill=color, width=1)

    def _draw_ruler(self, draw: ImageDraw.ImageDraw, ruler: RulerGlyph, scale: float) -> None:
        colors = self.config.colors
        rr = self.config.ruler_point_radius
        green = tuple(colors.ruler)
        outline = tuple(colors.marker_outline)

        sx, sy = ruler.start.x * scale, ruler.start.y * scale
        draw.ellipse([sx - rr, sy - rr, sx + rr, sy + rr], fill=green, outline=outline, width=2)
        if ruler.end is None:
            return

        ex, ey = ruler.end.x * scale, ruler.end.y * scale
        _dashed_line(draw, (sx, sy), (ex, ey), fill=green, width=3)
        draw.ellipse([ex - rr, ey - rr, ex + rr, ey + rr], fill=green, outline=outline, width=2)

        if ruler.distance is not None:
            mx, my = (sx + ex) / 2, (sy + ey) / 2
            text = f"{ruler.distance:.2f}m"
            draw.rectangle([mx - 40, my - 15, mx + 40, my + 5], fill=tuple(colors.label_background))
            left, top, right, bottom = draw.textbbox((0, 0), text, font=self._font)
            draw.text(
                (mx - (right - left) / 2, my - 5 - (bottom - top) / 2 - top),
                text,
                fill=tuple(colors.label_text),
                font=self._font,
            )


def _dashed_line(
    draw: ImageDraw.ImageDraw,
    p0: Tuple[float, float],
    p1: Tuple[float, float],
    *,
    fill,
    width: int,
    dash: float = 5.0,
    gap: float = 5.0,
) -> None:
    length = math.hypot(p1[0] - p0[0], p1[1] - p0[1])
    if length == 0:
        return
    ux, uy = (p1[0] - p0[0]) / length, (p1[1] - p0[1]) / length
    pos = 0.0
    while pos < length:
        end = min(pos + dash, length)
        draw.line(
            [(p0[0] + ux * pos, p0[1] + uy * pos), (p0[0] + ux * end, p0[1] + uy * end)],
            fill=fill,
            width=width,
        )
        pos = end + gap
