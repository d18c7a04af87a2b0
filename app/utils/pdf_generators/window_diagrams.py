# app/utils/pdf_generators/window_diagrams.py
"""
Schematic front elevations of each window type, built as reportlab Drawings.

Drawings use reportlab's own coordinate system (points, origin bottom-left).
The window is scaled to fit the box it is given while keeping its aspect
ratio. Anything that goes wrong while building a diagram produces a
placeholder outcome instead of failing the whole document.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from reportlab.graphics.shapes import Circle, Drawing, Line, Polygon, Rect, String
from reportlab.lib import colors

from app.constants.window_catalog import COLOR_OPTIONS, resolve_window_type

logger = logging.getLogger(__name__)

PLACEHOLDER_LABEL = "[Window Diagram]"

OUTLINE = colors.HexColor("#333333")
GLASS = colors.HexColor("#E6F3FF")
GLASS_DEEP = colors.HexColor("#CCE7FF")
GRILLE = colors.HexColor("#666666")
HARDWARE = colors.HexColor("#444444")
DEFAULT_FRAME = colors.HexColor("#F5F5F5")
PADDING = 6

DEFAULT_BAY_ANGLE = 30
MAX_BAY_ANGLE = 90
MAX_PANELS = 12
MAX_SLATS = 24
MAX_BLOCKS_PER_SIDE = 40
# nominal glass block edge
BLOCK_MM = 190


@dataclass(frozen=True)
class DiagramOutcome:
    drawing: Optional[Drawing] = None
    placeholder: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.drawing is not None

    @classmethod
    def rendered(cls, drawing: Drawing) -> "DiagramOutcome":
        return cls(drawing=drawing)

    @classmethod
    def fallback(cls, label: str = PLACEHOLDER_LABEL) -> "DiagramOutcome":
        return cls(placeholder=label)


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    w: float
    h: float

    @property
    def cx(self) -> float:
        return self.x + self.w / 2

    @property
    def cy(self) -> float:
        return self.y + self.h / 2

    @property
    def top(self) -> float:
        return self.y + self.h

    def inset(self, d: float) -> "Box":
        return Box(self.x + d, self.y + d, self.w - 2 * d, self.h - 2 * d)


def frame_color(spec):
    frame = spec.specifications.frame
    option = COLOR_OPTIONS.get(frame.color)
    if option:
        return colors.HexColor(option["hex"])
    if frame.custom_color.startswith("#"):
        try:
            return colors.HexColor(frame.custom_color)
        except ValueError:
            logger.debug("Ignoring custom frame colour %r", frame.custom_color)
    return DEFAULT_FRAME


def bay_angle(spec) -> float:
    """Angle used for both the side-light skew and its label; 0 means unset."""
    angle = spec.dimensions.bay_angle
    if angle <= 0:
        return DEFAULT_BAY_ANGLE
    return min(angle, MAX_BAY_ANGLE)


def panel_count(spec) -> int:
    return min(max(1, spec.specifications.panels), MAX_PANELS)


def block_grid(spec) -> tuple:
    cols = min(max(2, round(spec.dimensions.width / BLOCK_MM)), MAX_BLOCKS_PER_SIDE)
    rows = min(max(2, round(spec.dimensions.height / BLOCK_MM)), MAX_BLOCKS_PER_SIDE)
    return cols, rows


def fit_window(width_mm: float, height_mm: float, box_w: float, box_h: float) -> Box:
    """Largest rectangle with the window's aspect ratio centred in the drawing."""
    avail_w = box_w - 2 * PADDING
    avail_h = box_h - 2 * PADDING
    scale = min(avail_w / width_mm, avail_h / height_mm)
    w, h = width_mm * scale, height_mm * scale
    return Box((box_w - w) / 2, (box_h - h) / 2, w, h)


# -------------------------------
# Primitives
# -------------------------------
def _frame(d: Drawing, box: Box, spec) -> Box:
    """Outer frame; returns the glazed opening inside it."""
    d.add(Rect(box.x, box.y, box.w, box.h, fillColor=frame_color(spec), strokeColor=OUTLINE, strokeWidth=1.2))
    thickness = max(2.0, min(box.w, box.h) * 0.06)
    return box.inset(thickness)


def _pane(d: Drawing, box: Box, spec, fill=GLASS) -> None:
    d.add(Rect(box.x, box.y, box.w, box.h, fillColor=fill, strokeColor=OUTLINE, strokeWidth=0.6))
    if spec.specifications.grille.enabled:
        _grille(d, box, spec.specifications.grille)


def _grille(d: Drawing, box: Box, grille) -> None:
    style = grille.style
    if style == "prairie":
        inset_x, inset_y = box.w * 0.18, box.h * 0.18
        verticals = [box.x + inset_x, box.x + box.w - inset_x]
        horizontals = [box.y + inset_y, box.y + box.h - inset_y]
    elif style == "georgian":
        verticals = [box.x + box.w / 3, box.x + 2 * box.w / 3]
        horizontals = [box.cy]
    elif style == "colonial":
        cols = 4 if box.w > 80 else 3
        rows = 3 if box.h > 120 else 2
        verticals = [box.x + box.w * i / cols for i in range(1, cols)]
        horizontals = [box.y + box.h * j / rows for j in range(1, rows)]
    else:
        verticals = [box.cx]
        horizontals = [box.cy]

    for x in verticals:
        d.add(Line(x, box.y, x, box.top, strokeColor=GRILLE, strokeWidth=0.8))
    for y in horizontals:
        d.add(Line(box.x, y, box.x + box.w, y, strokeColor=GRILLE, strokeWidth=0.8))


def _handle(d: Drawing, x: float, y: float, size: float) -> None:
    d.add(Rect(x - size * 0.15, y - size / 2, size * 0.3, size, fillColor=HARDWARE, strokeColor=None))
    d.add(Circle(x, y, size * 0.22, fillColor=HARDWARE, strokeColor=None))


def _label(d: Drawing, x: float, y: float, text: str, size: float = 6) -> None:
    d.add(String(x, y, text, fontName="Helvetica-Bold", fontSize=size, fillColor=OUTLINE, textAnchor="middle"))


def _arrow(d: Drawing, x: float, y_from: float, y_to: float) -> None:
    d.add(Line(x, y_from, x, y_to, strokeColor=HARDWARE, strokeWidth=0.8))
    head = 3 if y_to > y_from else -3
    d.add(Polygon([x - 2.5, y_to - head, x + 2.5, y_to - head, x, y_to], fillColor=HARDWARE, strokeColor=None))


def _dashed(d: Drawing, x1, y1, x2, y2) -> None:
    d.add(Line(x1, y1, x2, y2, strokeColor=HARDWARE, strokeWidth=0.5, strokeDashArray=[3, 2]))


# -------------------------------
# Per-type elevations
# -------------------------------
def _draw_sliding(d, box, spec):
    opening = _frame(d, box, spec)
    panels = panel_count(spec)
    width = opening.w / panels
    for i in range(panels):
        pane = Box(opening.x + i * width, opening.y, width, opening.h)
        _pane(d, pane, spec)
        _handle(d, pane.x + pane.w - 4, pane.cy, min(10, pane.h * 0.2))
        _label(d, pane.cx, pane.y + 4, "S")
    d.add(Line(box.x, box.y + 1.5, box.x + box.w, box.y + 1.5, strokeColor=HARDWARE, strokeWidth=1.5))


def _draw_casement(d, box, spec):
    opening = _frame(d, box, spec)
    _pane(d, opening, spec)
    hinge_left = spec.specifications.lock_position != "left"
    hinge_x = opening.x if hinge_left else opening.x + opening.w
    handle_x = opening.x + opening.w - 4 if hinge_left else opening.x + 4
    for frac in (0.2, 0.5, 0.8):
        d.add(Rect(hinge_x - 1.5, opening.y + opening.h * frac - 3, 3, 6, fillColor=HARDWARE, strokeColor=None))
    far_x = opening.x + opening.w if hinge_left else opening.x
    _dashed(d, far_x, opening.y, hinge_x, opening.cy)
    _dashed(d, far_x, opening.top, hinge_x, opening.cy)
    _handle(d, handle_x, opening.cy, min(12, opening.h * 0.2))


def _draw_bay(d, box, spec):
    # Side lights drawn as foreshortened trapezoids; their depth follows the bay angle.
    angle = bay_angle(spec)
    side = box.w * 0.25
    skew = min(box.h * 0.15, side * angle / 90)
    centre = Box(box.x + side, box.y, box.w - 2 * side, box.h)
    fill = frame_color(spec)

    left = [box.x, box.y + skew, centre.x, centre.y, centre.x, centre.top, box.x, box.top - skew]
    right = [centre.x + centre.w, centre.y, box.x + box.w, box.y + skew,
             box.x + box.w, box.top - skew, centre.x + centre.w, centre.top]
    for points in (left, right):
        d.add(Polygon(points, fillColor=GLASS_DEEP, strokeColor=OUTLINE, strokeWidth=1.0))
    d.add(Rect(centre.x, centre.y, centre.w, centre.h, fillColor=fill, strokeColor=OUTLINE, strokeWidth=1.2))
    _pane(d, centre.inset(max(2.0, centre.w * 0.05)), spec)

    _label(d, box.x + side / 2, box.cy, "1/4")
    _label(d, centre.cx, centre.cy, "1/2")
    _label(d, box.x + box.w - side / 2, box.cy, "1/4")
    _label(d, centre.cx, box.y - 5 if box.y > 6 else box.y + 2, f"{angle:g} deg", size=5)


def _draw_hung(d, box, spec, single: bool):
    opening = _frame(d, box, spec)
    half = opening.h / 2
    lower = Box(opening.x, opening.y, opening.w, half)
    upper = Box(opening.x, opening.y + half, opening.w, half)
    _pane(d, upper, spec)
    _pane(d, lower, spec)
    d.add(Line(opening.x, opening.y + half, opening.x + opening.w, opening.y + half,
               strokeColor=OUTLINE, strokeWidth=2.0))
    _arrow(d, lower.cx, lower.y + lower.h * 0.25, lower.y + lower.h * 0.75)
    if single:
        _label(d, upper.cx, upper.cy, "FIXED")
    else:
        _arrow(d, upper.cx, upper.y + upper.h * 0.75, upper.y + upper.h * 0.25)


def _draw_double_hung(d, box, spec):
    _draw_hung(d, box, spec, single=False)


def _draw_single_hung(d, box, spec):
    _draw_hung(d, box, spec, single=True)


def _draw_awning(d, box, spec):
    opening = _frame(d, box, spec)
    _pane(d, opening, spec)
    for frac in (0.25, 0.75):
        d.add(Rect(opening.x + opening.w * frac - 3, opening.top - 1.5, 6, 3, fillColor=HARDWARE, strokeColor=None))
    _dashed(d, opening.x, opening.y, opening.cx, opening.top)
    _dashed(d, opening.x + opening.w, opening.y, opening.cx, opening.top)
    _handle(d, opening.cx, opening.y + 4, min(8, opening.w * 0.15))


def _draw_pivot(d, box, spec):
    opening = _frame(d, box, spec)
    _pane(d, opening, spec)
    _dashed(d, opening.cx, opening.y, opening.cx, opening.top)
    for y in (opening.y + 2, opening.top - 2):
        d.add(Circle(opening.cx, y, 1.8, fillColor=HARDWARE, strokeColor=None))


def _draw_louvered(d, box, spec):
    opening = _frame(d, box, spec)
    d.add(Rect(opening.x, opening.y, opening.w, opening.h, fillColor=GLASS, strokeColor=OUTLINE, strokeWidth=0.6))
    slats = min(max(3, spec.specifications.panels), MAX_SLATS)
    pitch = opening.h / slats
    for i in range(slats):
        y = opening.y + i * pitch
        d.add(Polygon(
            [opening.x, y + pitch * 0.2, opening.x + opening.w, y + pitch * 0.2,
             opening.x + opening.w, y + pitch * 0.8, opening.x, y + pitch * 0.6],
            fillColor=GLASS_DEEP, strokeColor=OUTLINE, strokeWidth=0.4,
        ))


def _draw_glass_block(d, box, spec):
    opening = _frame(d, box, spec)
    cols, rows = block_grid(spec)
    bw, bh = opening.w / cols, opening.h / rows
    for i in range(cols):
        for j in range(rows):
            block = Box(opening.x + i * bw, opening.y + j * bh, bw, bh).inset(0.6)
            d.add(Rect(block.x, block.y, block.w, block.h, fillColor=GLASS_DEEP, strokeColor=GRILLE, strokeWidth=0.4))


def _draw_metal(d, box, spec):
    opening = _frame(d, box, spec)
    d.add(Rect(opening.x, opening.y, opening.w, opening.h, fillColor=GLASS, strokeColor=OUTLINE, strokeWidth=0.6))
    for i in (1, 2):
        x = opening.x + opening.w * i / 3
        d.add(Line(x, opening.y, x, opening.top, strokeColor=OUTLINE, strokeWidth=1.6))
    d.add(Line(opening.x, opening.cy, opening.x + opening.w, opening.cy, strokeColor=OUTLINE, strokeWidth=1.6))


def _draw_fixed(d, box, spec):
    opening = _frame(d, box, spec)
    _pane(d, opening, spec)
    if resolve_window_type(spec.type) == "fixed":
        _label(d, opening.cx, opening.cy, "FIXED", size=7)


_BUILDERS = {
    "sliding": _draw_sliding,
    "casement": _draw_casement,
    "bay": _draw_bay,
    "fixed": _draw_fixed,
    "picture": _draw_fixed,
    "awning": _draw_awning,
    "double-hung": _draw_double_hung,
    "single-hung": _draw_single_hung,
    "pivot": _draw_pivot,
    "metal": _draw_metal,
    "louvered": _draw_louvered,
    "glass-block": _draw_glass_block,
}


def build_window_diagram(spec, width: float, height: float) -> DiagramOutcome:
    """
    Build the elevation for ``spec`` inside a ``width`` x ``height`` point box.

    Unknown window types are drawn as a plain glazed frame.
    """
    if spec.dimensions.width <= 0 or spec.dimensions.height <= 0:
        return DiagramOutcome.fallback()

    key = resolve_window_type(spec.type)
    builder = _BUILDERS.get(key, _draw_fixed)
    try:
        drawing = Drawing(width, height)
        box = fit_window(spec.dimensions.width, spec.dimensions.height, width, height)
        builder(drawing, box, spec)
    except (ArithmeticError, ValueError, TypeError) as exc:
        logger.warning("Diagram for window %s replaced by placeholder: %s", spec.id or spec.type, exc)
        return DiagramOutcome.fallback()
    return DiagramOutcome.rendered(drawing)
