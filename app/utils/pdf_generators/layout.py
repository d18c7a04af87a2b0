# app/utils/pdf_generators/layout.py
"""
Page geometry and the page cursor used by the quotation document.

All measurements are millimetres measured from the TOP of the page; ``Pen``
converts to reportlab's bottom-left point space at draw time. Tables and
paragraphs are measured with ``measure`` while planning and painted through
``Pen.flowable`` (wrapOn + drawOn) once their page is known.

Layout happens in two phases. ``PageCursor.emit`` decides, region by region,
where everything goes and when a page break is needed; nothing is drawn
while this happens. The finished ``DocumentPlan`` is then painted page by
page, at which point the total page count is already known for the footer.
"""

import html
import logging
from dataclasses import dataclass, field
from typing import List

from reportlab.graphics import renderPDF
from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.platypus import Paragraph

logger = logging.getLogger(__name__)

# -------------------------------
# Page geometry (mm)
# -------------------------------
PAGE_WIDTH = A4[0] / mm
PAGE_HEIGHT = A4[1] / mm
MARGIN = 25.4
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
CONTENT_BOTTOM = PAGE_HEIGHT - MARGIN
FOOTER_RULE_Y = PAGE_HEIGHT - 15
FOOTER_TEXT_Y = PAGE_HEIGHT - 8

SECTION_SPACING = 5

# -------------------------------
# Palette
# -------------------------------
PRIMARY = colors.Color(26 / 255, 82 / 255, 118 / 255)
SECONDARY = colors.Color(41 / 255, 128 / 255, 185 / 255)
ACCENT = colors.Color(231 / 255, 76 / 255, 60 / 255)
TEXT = colors.Color(44 / 255, 62 / 255, 80 / 255)
LABEL = colors.Color(60 / 255, 60 / 255, 60 / 255)
VALUE = colors.Color(40 / 255, 40 / 255, 40 / 255)
MUTED = colors.Color(120 / 255, 120 / 255, 120 / 255)
PLACEHOLDER = colors.Color(150 / 255, 150 / 255, 150 / 255)
LIGHT_GRAY = colors.Color(245 / 255, 245 / 255, 245 / 255)
ROW_GRAY = colors.Color(250 / 255, 250 / 255, 250 / 255)
BORDER_GRAY = colors.Color(200 / 255, 200 / 255, 200 / 255)
DIVIDER_GRAY = colors.Color(220 / 255, 220 / 255, 220 / 255)
GOLD = colors.Color(218 / 255, 165 / 255, 32 / 255)
WHITE = colors.white

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"

_STYLES = getSampleStyleSheet()


def fit_text(text: str, font: str, size: float, max_width_mm: float) -> str:
    """Trim ``text`` with an ellipsis so it fits in ``max_width_mm``."""
    text = " ".join(str(text).split())
    limit = max_width_mm * mm
    if stringWidth(text, font, size) <= limit:
        return text
    while text and stringWidth(text + "...", font, size) > limit:
        text = text[:-1]
    return text.rstrip() + "..." if text else ""


def paragraph_style(name: str, size: float = 8, font: str = FONT, color=VALUE, alignment: int = TA_LEFT) -> ParagraphStyle:
    return ParagraphStyle(
        name,
        parent=_STYLES["Normal"],
        fontName=font,
        fontSize=size,
        leading=size * 1.25,
        textColor=color,
        alignment=alignment,
    )


def cell(text, style: ParagraphStyle) -> Paragraph:
    """Table cell that wraps instead of overflowing its column."""
    return Paragraph(html.escape(str(text), quote=False), style)


def measure(flowable, width_mm: float) -> float:
    """Height in mm the flowable takes when laid out at ``width_mm``."""
    return flowable.wrap(width_mm * mm, PAGE_HEIGHT * mm)[1] / mm


class Pen:
    """Thin wrapper over a reportlab canvas taking top-origin millimetres."""

    def __init__(self, canvas):
        self.canvas = canvas

    @staticmethod
    def _y(top: float) -> float:
        return (PAGE_HEIGHT - top) * mm

    def rect(self, x, top, width, height, fill=None, stroke=None, line_width=0.3, radius=0):
        c = self.canvas
        c.saveState()
        if fill is not None:
            c.setFillColor(fill)
        if stroke is not None:
            c.setStrokeColor(stroke)
            c.setLineWidth(line_width)
        args = (x * mm, self._y(top + height), width * mm, height * mm)
        if radius:
            c.roundRect(*args, radius * mm, stroke=int(stroke is not None), fill=int(fill is not None))
        else:
            c.rect(*args, stroke=int(stroke is not None), fill=int(fill is not None))
        c.restoreState()

    def line(self, x1, y1, x2, y2, color=BORDER_GRAY, line_width=0.3):
        c = self.canvas
        c.saveState()
        c.setStrokeColor(color)
        c.setLineWidth(line_width)
        c.line(x1 * mm, self._y(y1), x2 * mm, self._y(y2))
        c.restoreState()

    def circle(self, x, y, radius, fill=LABEL):
        c = self.canvas
        c.saveState()
        c.setFillColor(fill)
        c.circle(x * mm, self._y(y), radius * mm, stroke=0, fill=1)
        c.restoreState()

    def text(self, x, baseline, value, size=9, font=FONT, color=TEXT, align="left"):
        c = self.canvas
        c.saveState()
        c.setFont(font, size)
        c.setFillColor(color)
        value = str(value)
        if align == "right":
            c.drawRightString(x * mm, self._y(baseline), value)
        elif align == "center":
            c.drawCentredString(x * mm, self._y(baseline), value)
        else:
            c.drawString(x * mm, self._y(baseline), value)
        c.restoreState()

    def drawing(self, drawing, x, top):
        renderPDF.draw(drawing, self.canvas, x * mm, self._y(top) - drawing.height)

    def flowable(self, flowable, x, top, width) -> float:
        """Lay out ``flowable`` at ``width`` mm and draw it with its top edge at ``top``."""
        _, height = flowable.wrapOn(self.canvas, width * mm, PAGE_HEIGHT * mm)
        flowable.drawOn(self.canvas, x * mm, self._y(top) - height)
        return height / mm


# -------------------------------
# Regions and the page cursor
# -------------------------------
class Region:
    """A self-contained block of the document with a height known before drawing."""

    name = "region"

    @property
    def height(self) -> float:
        raise NotImplementedError

    def draw(self, pen: Pen, top: float) -> None:
        raise NotImplementedError


@dataclass
class Placement:
    region: Region
    top: float


@dataclass
class PagePlan:
    number: int
    continued: bool
    content_top: float
    placements: List[Placement] = field(default_factory=list)

    @property
    def regions(self) -> List[Region]:
        return [p.region for p in self.placements]


@dataclass
class DocumentPlan:
    pages: List[PagePlan]

    @property
    def page_count(self) -> int:
        return len(self.pages)


class PageCursor:
    """
    Vertical write position across a sequence of pages.

    ``emit`` breaks to a new page first when the region does not fit in what
    is left of the current one. A page that has nothing on it yet is never
    abandoned, so a region taller than a whole page is placed at the top of
    a fresh page and allowed to overflow rather than producing blank pages.
    """

    def __init__(
        self,
        first_page_top: float,
        continuation_top: float,
        bottom: float = CONTENT_BOTTOM,
        spacing: float = SECTION_SPACING,
    ):
        self.continuation_top = continuation_top
        self.bottom = bottom
        self.spacing = spacing
        self.pages: List[PagePlan] = [PagePlan(number=1, continued=False, content_top=first_page_top)]
        self.y = first_page_top

    @property
    def current_page(self) -> PagePlan:
        return self.pages[-1]

    def remaining_height(self) -> float:
        return self.bottom - self.y

    def page_break(self) -> None:
        if not self.current_page.placements:
            return
        self.pages.append(
            PagePlan(
                number=len(self.pages) + 1,
                continued=True,
                content_top=self.continuation_top,
            )
        )
        self.y = self.continuation_top

    def emit(self, region: Region) -> Placement:
        needed = region.height
        if self.remaining_height() < needed:
            self.page_break()
            if self.remaining_height() < needed:
                logger.warning(
                    "%s needs %.1fmm but a page only holds %.1fmm; drawing it anyway",
                    region.name, needed, self.remaining_height(),
                )

        placement = Placement(region=region, top=self.y)
        self.current_page.placements.append(placement)
        self.y += needed + self.spacing
        return placement

    def finish(self) -> DocumentPlan:
        return DocumentPlan(pages=list(self.pages))
