# app/utils/pdf_generators/quotation_pdf.py
"""
Quotation document renderer.

The document is assembled from regions (quote info, client block,
introduction, one block per window, totals, terms). A PageCursor places
every region first; only then are the pages painted, each one finished
with a footer that already knows the final page count.

The renderer never fails on partial input: missing values print as N/A,
unknown window types keep their raw name, and a diagram that cannot be
built is replaced by a placeholder label. The one hard failure is a
quotation with no windows at all.
"""

import html
import io
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple

from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, Table, TableStyle

from app.constants.window_catalog import (
    FRAME_MATERIALS,
    GLASS_OPTIONS,
    LOCK_OPTIONS,
    WINDOW_TYPES,
    resolve_window_type,
)
from app.core import config
from app.services.billing.pricing_service import QuotationTotals, aggregate_totals, price_specification
from app.utils.decimal_utils import format_currency, format_number
from app.utils.pdf_generators.layout import (
    ACCENT,
    BORDER_GRAY,
    CONTENT_WIDTH,
    DIVIDER_GRAY,
    FONT,
    FONT_BOLD,
    FONT_ITALIC,
    FOOTER_RULE_Y,
    FOOTER_TEXT_Y,
    GOLD,
    LABEL,
    LIGHT_GRAY,
    MARGIN,
    MUTED,
    PAGE_WIDTH,
    PLACEHOLDER,
    PRIMARY,
    ROW_GRAY,
    SECONDARY,
    TEXT,
    VALUE,
    WHITE,
    DocumentPlan,
    PageCursor,
    Pen,
    Region,
    cell,
    fit_text,
    measure,
    paragraph_style,
)
from app.utils.pdf_generators.window_diagrams import DiagramOutcome, build_window_diagram

logger = logging.getLogger(__name__)

NA = "N/A"

FULL_HEADER_HEIGHT = 35
FULL_HEADER_BOTTOM = 42
CONTINUATION_HEADER_HEIGHT = 16
CONTINUATION_HEADER_BOTTOM = 24

RIGHT_EDGE = PAGE_WIDTH - MARGIN
COLUMN_GAP = 8
LEFT_COLUMN_WIDTH = CONTENT_WIDTH * 0.42
RIGHT_COLUMN_X = MARGIN + LEFT_COLUMN_WIDTH + COLUMN_GAP
RIGHT_COLUMN_WIDTH = CONTENT_WIDTH - LEFT_COLUMN_WIDTH - COLUMN_GAP
DIAGRAM_WIDTH = LEFT_COLUMN_WIDTH - 4
DIAGRAM_HEIGHT = DIAGRAM_WIDTH * 0.9

INTRODUCTION = (
    "Dear Sir/Madam,",
    "",
    "We are delighted that you are considering our range of Windows and Doors for your premises.",
    "Our products have gained rapid acceptance across India for their superior protection from",
    "noise, heat, rain, dust, and pollution.",
    "",
    "This proposal suggests designs that enhance comfort and aesthetics while improving your",
    "building's facade. Our offer includes:",
    "",
    "1. Window design, specifications, and pricing",
    "2. Terms and conditions",
    "",
    "We look forward to serving you.",
)


class EmptyQuotationError(ValueError):
    """Raised when a quotation has no window specifications to render."""


@dataclass(frozen=True)
class RenderedDocument:
    content: bytes
    file_name: str
    page_count: int


# -------------------------------
# Display helpers
# -------------------------------
def _text_or_na(value) -> str:
    if value is None:
        return NA
    text = str(value).strip()
    return text or NA


def format_window_type(value) -> str:
    key = resolve_window_type(value)
    if key:
        return WINDOW_TYPES[key]["name"]
    if isinstance(value, str) and value.strip():
        return value.strip()
    return "Custom Window"


def _option_label(table: dict, value) -> str:
    option = table.get(value) if isinstance(value, str) else None
    if option:
        return option["label"]
    if isinstance(value, str) and value.strip():
        return value.replace("-", " ").replace("_", " ").strip().title()
    return NA


def format_date(value) -> str:
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    return _text_or_na(value)


def window_title(spec) -> str:
    return spec.name.strip() or spec.location.strip() or format_window_type(spec.type)


def quotation_file_name(quotation_number: str, today: date) -> str:
    safe = re.sub(r"[^A-Za-z0-9._-]+", "-", str(quotation_number or "")).strip("-") or "quotation"
    return f"Quotation_{safe}_{today.isoformat()}.pdf"


def _section_bar(pen: Pen, x: float, top: float, width: float, height: float, title: str, size: float = 11):
    pen.rect(x, top, width, height, fill=SECONDARY)
    pen.rect(x, top, 4, height, fill=GOLD)
    pen.text(x + 8, top + height * 0.7, title, size=size, font=FONT_BOLD, color=WHITE)


# -------------------------------
# Page chrome
# -------------------------------
def draw_brand_header(pen: Pen, company) -> None:
    pen.rect(0, 0, PAGE_WIDTH, FULL_HEADER_HEIGHT, fill=PRIMARY)
    pen.rect(0, FULL_HEADER_HEIGHT - 2, PAGE_WIDTH, 2, fill=GOLD)

    words = _text_or_na(company.name).split()
    pen.text(MARGIN, 18, fit_text(words[0], FONT_BOLD, 24, 45), size=24, font=FONT_BOLD, color=WHITE)
    if len(words) > 1:
        pen.text(MARGIN, 25, fit_text(" ".join(words[1:]), FONT_BOLD, 10, 45), size=10, font=FONT_BOLD, color=GOLD)

    pen.text(MARGIN + 50, 14, "Windows & Doors", size=15, font=FONT_BOLD, color=WHITE)
    pen.text(MARGIN + 50, 21, "Quotation", size=10, color=WHITE)

    lines = (
        f"Phone: {_text_or_na(company.phone)}",
        f"Email: {_text_or_na(company.email)}",
        f"Web: {_text_or_na(company.website)}",
        f"GSTIN: {_text_or_na(company.gstin)}",
    )
    for i, line in enumerate(lines):
        pen.text(RIGHT_EDGE, 10 + i * 5, fit_text(line, FONT, 8, 60), size=8, color=WHITE, align="right")


def draw_continuation_header(pen: Pen, company, quotation_number: str) -> None:
    pen.rect(0, 0, PAGE_WIDTH, CONTINUATION_HEADER_HEIGHT, fill=PRIMARY)
    pen.rect(0, CONTINUATION_HEADER_HEIGHT - 1, PAGE_WIDTH, 1, fill=GOLD)
    pen.text(MARGIN, 10, fit_text(_text_or_na(company.name), FONT_BOLD, 12, 80), size=12, font=FONT_BOLD, color=WHITE)
    pen.text(
        RIGHT_EDGE, 10, f"Quotation {_text_or_na(quotation_number)} (continued)",
        size=9, color=WHITE, align="right",
    )


def draw_footer(pen: Pen, company, page_number: int, page_count: int, today: date) -> None:
    pen.line(MARGIN, FOOTER_RULE_Y, RIGHT_EDGE, FOOTER_RULE_Y, color=DIVIDER_GRAY)
    tagline = f"{_text_or_na(company.name)} - Crafted for Perfection"
    pen.text(MARGIN, FOOTER_TEXT_Y, fit_text(tagline, FONT_ITALIC, 8, 60), size=8, font=FONT_ITALIC, color=MUTED)
    pen.text(PAGE_WIDTH / 2, FOOTER_TEXT_Y, f"Page {page_number} of {page_count}", size=8, color=MUTED, align="center")
    pen.text(RIGHT_EDGE, FOOTER_TEXT_Y, format_date(today), size=8, color=MUTED, align="right")


# -------------------------------
# Regions
# -------------------------------
def _table(rows, widths_mm, commands) -> Table:
    table = Table(rows, colWidths=[w * mm for w in widths_mm])
    table.setStyle(TableStyle(commands))
    return table


class FlowableRegion(Region):
    """Region drawn by a single table spanning the content width."""

    def __init__(self, flowable, x: float = MARGIN, width: float = CONTENT_WIDTH):
        self.flowable = flowable
        self.x = x
        self.width = width
        self._height = measure(flowable, width)

    @property
    def height(self) -> float:
        return self._height

    def draw(self, pen: Pen, top: float) -> None:
        pen.flowable(self.flowable, self.x, top, self.width)


class QuoteInfoRegion(FlowableRegion):
    name = "quote info"

    def __init__(self, quotation_number, project, quotation_date):
        value = paragraph_style("quote-info-value", size=9)
        table = _table(
            [
                ["Quote No:", "Project:", "Date:"],
                [
                    cell(_text_or_na(quotation_number), value),
                    cell(_text_or_na(project), value),
                    cell(format_date(quotation_date), value),
                ],
            ],
            [CONTENT_WIDTH / 3] * 3,
            [
                ("BACKGROUND", (0, 0), (-1, -1), LIGHT_GRAY),
                ("BOX", (0, 0), (-1, -1), 0.5, BORDER_GRAY),
                ("FONT", (0, 0), (-1, 0), FONT_BOLD, 8, 10),
                ("TEXTCOLOR", (0, 0), (-1, 0), LABEL),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), 8),
                ("TOPPADDING", (0, 0), (-1, -1), 2),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
            ],
        )
        super().__init__(table)


class DividerRegion(Region):
    name = "divider"
    height = 3

    def draw(self, pen: Pen, top: float) -> None:
        pen.line(MARGIN, top + 1.5, RIGHT_EDGE, top + 1.5, color=DIVIDER_GRAY, line_width=0.5)


class ClientRegion(Region):
    name = "client"
    LINE = 5

    def __init__(self, client):
        self.client_name = _text_or_na(client.name)
        text_width = (CONTENT_WIDTH - 6) * mm
        lines: List[str] = []
        if client.address and client.address.strip():
            for part in client.address.splitlines():
                if part.strip():
                    lines.extend(simpleSplit(" ".join(part.split()), FONT, 10, text_width))
        else:
            lines.append(NA)
        lines = lines[:4]
        if client.city and client.city.strip():
            lines.append(client.city.strip())
        lines.append(f"Phone: {_text_or_na(client.phone)}")
        lines.append(f"Email: {_text_or_na(client.email)}")
        self.lines = [fit_text(line, FONT, 10, CONTENT_WIDTH - 6) for line in lines]

    @property
    def height(self) -> float:
        return 7 + 6 + len(self.lines) * self.LINE + 2

    def draw(self, pen: Pen, top: float) -> None:
        pen.rect(MARGIN, top, CONTENT_WIDTH, 6.5, fill=SECONDARY)
        pen.text(MARGIN + 3, top + 4.5, "To:", size=10, font=FONT_BOLD, color=WHITE)
        y = top + 12
        pen.text(MARGIN + 3, y, fit_text(self.client_name, FONT_BOLD, 11, CONTENT_WIDTH - 6),
                 size=11, font=FONT_BOLD, color=TEXT)
        for line in self.lines:
            y += self.LINE
            pen.text(MARGIN + 3, y, line, size=10, color=TEXT)


class IntroductionRegion(Region):
    name = "introduction"
    LINE = 5
    height = len(INTRODUCTION) * LINE

    def draw(self, pen: Pen, top: float) -> None:
        for i, line in enumerate(INTRODUCTION):
            if line:
                pen.text(MARGIN, top + 4 + i * self.LINE, line, size=10, color=TEXT)


class SpecificationRegion(Region):
    """
    One window: title bar, diagram column on the left, data column on the right.

    The right column is three tables (basic info, specification grid, pricing
    with its total row). They are measured when the region is built, so the
    region is placed as a single unit and never split across pages.
    """

    name = "specification"
    TITLE_HEIGHT = 10
    TITLE_GAP = 5
    BOTTOM_MARGIN = 3
    BLOCK_GAP = 5
    CAPTION_HEIGHT = 14

    def __init__(self, index: int, spec, diagram: DiagramOutcome):
        self.index = index
        self.spec = spec
        self.diagram = diagram
        self.priced = price_specification(spec)
        options = spec.specifications

        self.title = f"Window Specification {index}: {window_title(spec)}"
        self.basic_info: List[Tuple[str, str]] = [
            ("Window Type", format_window_type(spec.type)),
            ("Location", _text_or_na(spec.location)),
            ("Dimensions", self._dimension_label()),
        ]
        grille = options.grille
        self.specifications: List[Tuple[str, str]] = [
            ("Glass", _option_label(GLASS_OPTIONS, options.glass)),
            ("Frame", _option_label(FRAME_MATERIALS, options.frame.material)),
            ("Color", _text_or_na(options.frame.custom_color or options.frame.color).title()),
            ("Lock", _option_label(LOCK_OPTIONS, options.lock)),
            ("Opening", _text_or_na(options.opening_type).title()),
            ("Grille", grille.style.title() if grille.enabled and grille.style else "None"),
            ("Panels", str(options.panels)),
            ("Tracks", str(options.tracks)),
            ("Screen", "Yes" if options.screen_included else "No"),
            ("Motorized", "Yes" if options.motorized else "No"),
        ]
        self.pricing: List[Tuple[str, str]] = [
            ("Area", f"{format_number(self.priced.area_sqft)} Sq.Ft."),
            ("Base Price", format_currency(self.priced.adjusted_base_price)),
            ("Rate/Sq.Ft.", format_currency(self.priced.adjusted_sqft_price)),
            ("Quantity", f"{spec.pricing.quantity} Pcs"),
            ("Unit Price", format_currency(self.priced.unit_price)),
            ("Weight", f"{format_number(self.priced.weight_kg)} kg"),
        ]
        self.tables = [self._info_table(), self._grid_table(), self._pricing_table()]
        self.table_heights = [measure(t, RIGHT_COLUMN_WIDTH) for t in self.tables]

    def _dimension_label(self) -> str:
        d = self.spec.dimensions
        if d.width <= 0 or d.height <= 0:
            return NA
        return f"{d.width:g} × {d.height:g} mm"

    def _info_table(self) -> Table:
        label_width = RIGHT_COLUMN_WIDTH * 0.38
        value = paragraph_style("spec-info-value", size=8)
        return _table(
            [[label, cell(text, value)] for label, text in self.basic_info],
            [label_width, RIGHT_COLUMN_WIDTH - label_width],
            [
                ("BACKGROUND", (0, 0), (0, -1), LIGHT_GRAY),
                ("BACKGROUND", (1, 0), (1, -1), WHITE),
                ("GRID", (0, 0), (-1, -1), 0.3, BORDER_GRAY),
                ("FONT", (0, 0), (0, -1), FONT_BOLD, 8, 10),
                ("TEXTCOLOR", (0, 0), (0, -1), LABEL),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("TOPPADDING", (0, 0), (-1, -1), 5),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
            ],
        )

    def _grid_table(self) -> Table:
        value = paragraph_style("spec-grid-value", size=7)
        rows = [["Specifications", "", "", ""]]
        for i in range(0, len(self.specifications), 2):
            row = []
            for label, text in self.specifications[i:i + 2]:
                row.extend([label, cell(text, value)])
            rows.append(row + [""] * (4 - len(row)))
        half = RIGHT_COLUMN_WIDTH / 2
        return _table(
            rows,
            [half * 0.42, half * 0.58] * 2,
            [
                ("SPAN", (0, 0), (-1, 0)),
                ("BACKGROUND", (0, 0), (-1, 0), SECONDARY),
                ("FONT", (0, 0), (-1, 0), FONT_BOLD, 9, 11),
                ("TEXTCOLOR", (0, 0), (-1, 0), WHITE),
                ("TOPPADDING", (0, 0), (-1, 0), 6),
                ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                ("BACKGROUND", (0, 1), (-1, -1), ROW_GRAY),
                ("GRID", (0, 1), (-1, -1), 0.3, BORDER_GRAY),
                ("FONT", (0, 1), (0, -1), FONT_BOLD, 7, 9),
                ("FONT", (2, 1), (2, -1), FONT_BOLD, 7, 9),
                ("TEXTCOLOR", (0, 1), (-1, -1), LABEL),
                ("VALIGN", (0, 1), (-1, -1), "MIDDLE"),
                ("TOPPADDING", (0, 1), (-1, -1), 5),
                ("BOTTOMPADDING", (0, 1), (-1, -1), 5),
            ],
        )

    def _pricing_table(self) -> Table:
        rows = [["Pricing", ""]]
        rows.extend([label, text] for label, text in self.pricing)
        rows.append(["Total:", format_currency(self.priced.total_price)])
        return _table(
            rows,
            [RIGHT_COLUMN_WIDTH * 0.45, RIGHT_COLUMN_WIDTH * 0.55],
            [
                ("SPAN", (0, 0), (-1, 0)),
                ("BACKGROUND", (0, 0), (-1, 0), SECONDARY),
                ("FONT", (0, 0), (-1, 0), FONT_BOLD, 9, 11),
                ("TEXTCOLOR", (0, 0), (-1, 0), WHITE),
                ("TOPPADDING", (0, 0), (-1, 0), 6),
                ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                ("ROWBACKGROUNDS", (0, 1), (-1, -2), [ROW_GRAY, WHITE]),
                ("GRID", (0, 1), (-1, -2), 0.3, BORDER_GRAY),
                ("FONT", (0, 1), (-1, -2), FONT, 8, 10),
                ("FONT", (0, 1), (0, -2), FONT_BOLD, 8, 10),
                ("TEXTCOLOR", (0, 1), (0, -2), LABEL),
                ("TEXTCOLOR", (1, 1), (1, -2), VALUE),
                ("ALIGN", (1, 1), (1, -1), "RIGHT"),
                ("TOPPADDING", (0, 1), (-1, -2), 6),
                ("BOTTOMPADDING", (0, 1), (-1, -2), 6),
                ("BACKGROUND", (0, -1), (-1, -1), ACCENT),
                ("FONT", (0, -1), (-1, -1), FONT_BOLD, 10, 12),
                ("TEXTCOLOR", (0, -1), (-1, -1), WHITE),
                ("TOPPADDING", (0, -1), (-1, -1), 8),
                ("BOTTOMPADDING", (0, -1), (-1, -1), 8),
            ],
        )

    @property
    def left_height(self) -> float:
        return DIAGRAM_HEIGHT + self.CAPTION_HEIGHT

    @property
    def right_height(self) -> float:
        return sum(self.table_heights) + self.BLOCK_GAP * (len(self.tables) - 1)

    @property
    def height(self) -> float:
        return self.TITLE_HEIGHT + self.TITLE_GAP + max(self.left_height, self.right_height) + self.BOTTOM_MARGIN

    def draw(self, pen: Pen, top: float) -> None:
        pen.rect(MARGIN, top, CONTENT_WIDTH, self.TITLE_HEIGHT, fill=PRIMARY)
        pen.rect(MARGIN, top, 4, self.TITLE_HEIGHT, fill=GOLD)
        pen.text(MARGIN + 8, top + 7, fit_text(self.title, FONT_BOLD, 11, CONTENT_WIDTH - 12),
                 size=11, font=FONT_BOLD, color=WHITE)
        column_top = top + self.TITLE_HEIGHT + self.TITLE_GAP
        self._draw_left(pen, column_top)

        y = column_top
        for table in self.tables:
            y += pen.flowable(table, RIGHT_COLUMN_X, y, RIGHT_COLUMN_WIDTH) + self.BLOCK_GAP

    def _draw_left(self, pen: Pen, top: float) -> None:
        x = MARGIN + 2
        pen.rect(x, top, DIAGRAM_WIDTH, DIAGRAM_HEIGHT, fill=WHITE, stroke=BORDER_GRAY, radius=1.5)
        if self.diagram.ok:
            pen.drawing(self.diagram.drawing, x, top)
        else:
            pen.text(x + DIAGRAM_WIDTH / 2, top + DIAGRAM_HEIGHT / 2, self.diagram.placeholder,
                     size=10, font=FONT_ITALIC, color=PLACEHOLDER, align="center")

        caption_top = top + DIAGRAM_HEIGHT + 2
        pen.rect(x, caption_top, DIAGRAM_WIDTH, 6, fill=LIGHT_GRAY, radius=1)
        pen.text(x + DIAGRAM_WIDTH / 2, caption_top + 4.2, self._dimension_label(),
                 size=9, font=FONT_BOLD, color=PRIMARY, align="center")
        detail = f"{self.specifications[1][1]} | {self.specifications[0][1]}"
        pen.text(x + DIAGRAM_WIDTH / 2, caption_top + 10, fit_text(detail, FONT, 8, DIAGRAM_WIDTH),
                 size=8, color=MUTED, align="center")


class TotalsRegion(Region):
    name = "totals"
    TITLE_HEIGHT = 12
    TITLE_GAP = 5
    BOX_GAP = 2
    BOX_HEIGHT = 14
    COLUMN_WEIGHTS = (35, 25, 30, 30, 30, 30, 35)

    def __init__(self, totals: QuotationTotals):
        self.totals = totals
        scale = CONTENT_WIDTH / sum(self.COLUMN_WEIGHTS)
        headers = [
            "Component", "Area\n(Sq.Ft.)", "Basic Value\n(Rs.)", "Transport\n(Rs.)",
            "Taxable\n(Rs.)", f"GST\n({totals.gst_rate * 100:g}%)", "Grand Total\n(Rs.)",
        ]
        value = paragraph_style("summary-value", size=7.5, alignment=TA_CENTER)
        strong = paragraph_style("summary-total", size=7.5, font=FONT_BOLD, alignment=TA_CENTER)
        values = [
            f"{totals.component_count} Pcs",
            format_number(totals.total_area_sqft),
            format_number(totals.subtotal),
            format_number(totals.transport_cost),
            format_number(totals.taxable_amount),
            format_number(totals.gst_amount),
        ]
        row = [cell(text, value) for text in values] + [cell(format_number(totals.grand_total), strong)]
        self.table = _table(
            [headers, row],
            [w * scale for w in self.COLUMN_WEIGHTS],
            [
                ("BACKGROUND", (0, 0), (-1, 0), SECONDARY),
                ("FONT", (0, 0), (-1, 0), FONT_BOLD, 7, 9),
                ("TEXTCOLOR", (0, 0), (-1, 0), WHITE),
                ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("BACKGROUND", (0, 1), (-1, 1), ROW_GRAY),
                ("GRID", (0, 0), (-1, -1), 0.3, BORDER_GRAY),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ],
        )
        self.table_height = measure(self.table, CONTENT_WIDTH)

    @property
    def height(self) -> float:
        return self.TITLE_HEIGHT + self.TITLE_GAP + self.table_height + self.BOX_GAP + self.BOX_HEIGHT

    def draw(self, pen: Pen, top: float) -> None:
        pen.rect(MARGIN, top, CONTENT_WIDTH, self.TITLE_HEIGHT, fill=PRIMARY)
        pen.rect(MARGIN, top, 5, self.TITLE_HEIGHT, fill=GOLD)
        pen.text(MARGIN + 10, top + 8.5, "QUOTATION SUMMARY", size=13, font=FONT_BOLD, color=WHITE)

        y = top + self.TITLE_HEIGHT + self.TITLE_GAP
        y += pen.flowable(self.table, MARGIN, y, CONTENT_WIDTH) + self.BOX_GAP

        box_width = 80
        box_x = RIGHT_EDGE - box_width
        pen.rect(box_x, y, box_width, self.BOX_HEIGHT, fill=GOLD, radius=2)
        pen.text(box_x + 4, y + 6, "GRAND TOTAL:", size=10, font=FONT_BOLD, color=WHITE)
        pen.text(box_x + box_width - 4, y + 11, format_currency(self.totals.grand_total),
                 size=12, font=FONT_BOLD, color=WHITE, align="right")


class TermsRegion(Region):
    name = "terms"
    BAR_HEIGHT = 9
    BAR_GAP = 5
    SIGNATURE_GAP = 6
    SIGNATURE_HEIGHT = 26

    def __init__(self, company_name: str, validity_days: int):
        self.company_name = _text_or_na(company_name)
        self.terms = (
            "Payment: 50% advance, 50% on delivery",
            "Delivery: 15-20 working days from order confirmation",
            "Installation charges are separate and will be quoted upon request",
            "Warranty: 1 year on manufacturing defects",
            "Prices are subject to change without prior notice",
            f"This quotation is valid for {validity_days} days from the date of issue",
        )
        style = paragraph_style("term", size=10, color=LABEL)
        style.leftIndent = 5 * mm
        style.bulletIndent = 1.5 * mm
        style.bulletColor = SECONDARY
        rows = [
            [Paragraph(html.escape(f"{i}. {term}", quote=False), style, bulletText="•")]
            for i, term in enumerate(self.terms, start=1)
        ]
        self.table = _table(
            rows,
            [CONTENT_WIDTH - 4],
            [
                ("TOPPADDING", (0, 0), (-1, -1), 5),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
            ],
        )
        self.table_height = measure(self.table, CONTENT_WIDTH - 4)

    @property
    def height(self) -> float:
        return self.BAR_HEIGHT + self.BAR_GAP + self.table_height + self.SIGNATURE_GAP + self.SIGNATURE_HEIGHT

    def draw(self, pen: Pen, top: float) -> None:
        _section_bar(pen, MARGIN, top, CONTENT_WIDTH, self.BAR_HEIGHT, "Terms & Conditions")
        y = top + self.BAR_HEIGHT + self.BAR_GAP
        y += pen.flowable(self.table, MARGIN + 2, y, CONTENT_WIDTH - 4) + self.SIGNATURE_GAP

        box_width = 70
        box_x = RIGHT_EDGE - box_width
        pen.rect(box_x, y, box_width, self.SIGNATURE_HEIGHT - 1, stroke=BORDER_GRAY, radius=1.5)
        pen.text(box_x + 4, y + 6, fit_text(f"For {self.company_name}", FONT_BOLD, 10, box_width - 8),
                 size=10, font=FONT_BOLD, color=PRIMARY)
        pen.line(box_x + 4, y + 17, box_x + box_width - 4, y + 17, color=BORDER_GRAY)
        pen.text(box_x + 4, y + 22, "Authorized Signatory", size=9, color=MUTED)


# -------------------------------
# Assembly
# -------------------------------
def plan_quotation(quotation, validity_days: Optional[int] = None) -> DocumentPlan:
    """Place every region of ``quotation`` on pages without drawing anything."""
    specs: Sequence = quotation.window_specs
    if not specs:
        raise EmptyQuotationError("Quotation has no window specifications")

    totals = aggregate_totals(specs, quotation.transport_cost, quotation.gst_rate)
    if validity_days is None:
        validity_days = config.QUOTATION_VALIDITY_DAYS

    cursor = PageCursor(first_page_top=FULL_HEADER_BOTTOM, continuation_top=CONTINUATION_HEADER_BOTTOM)
    cursor.emit(QuoteInfoRegion(quotation.quotation_number, quotation.project, quotation.quotation_date))
    cursor.emit(DividerRegion())
    cursor.emit(ClientRegion(quotation.client_info))
    cursor.emit(DividerRegion())
    cursor.emit(IntroductionRegion())

    for index, spec in enumerate(specs, start=1):
        diagram = build_window_diagram(spec, DIAGRAM_WIDTH * mm, DIAGRAM_HEIGHT * mm)
        cursor.emit(SpecificationRegion(index, spec, diagram))

    cursor.emit(TotalsRegion(totals))
    cursor.emit(TermsRegion(quotation.company_details.name, validity_days))
    return cursor.finish()


def render_quotation_pdf(quotation, today: Optional[date] = None) -> RenderedDocument:
    """
    Render ``quotation`` (a QuotationDocument) to PDF bytes.

    Raises EmptyQuotationError when there are no windows; everything else
    degrades to placeholders.
    """
    today = today or date.today()
    plan = plan_quotation(quotation)
    company = quotation.company_details

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"Quotation {quotation.quotation_number}")
    pdf.setAuthor(_text_or_na(company.name))
    pdf.setSubject(f"Windows & Doors quotation for {quotation.client_info.name}")
    pen = Pen(pdf)

    for page in plan.pages:
        if page.continued:
            draw_continuation_header(pen, company, quotation.quotation_number)
        else:
            draw_brand_header(pen, company)
        for placement in page.placements:
            placement.region.draw(pen, placement.top)
        # reportlab cannot revisit a finished page; the plan already fixed the page count
        draw_footer(pen, company, page.number, plan.page_count, today)
        pdf.showPage()

    pdf.save()
    content = buffer.getvalue()
    logger.info(
        "Rendered quotation %s: %d window(s), %d page(s)",
        quotation.quotation_number, len(quotation.window_specs), plan.page_count,
    )
    return RenderedDocument(
        content=content,
        file_name=quotation_file_name(quotation.quotation_number, today),
        page_count=plan.page_count,
    )
