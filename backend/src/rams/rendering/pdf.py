"""PDF rendering of approved reports (ReportLab).

Uses the built-in Japanese CID font so CJK text renders without
shipping font files.
"""

from collections.abc import Sequence
from datetime import datetime, tzinfo
from functools import lru_cache
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.platypus import (
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from ..models import ReportWithParties, utcnow
from .common import DOCUMENT_TITLE, ensure_printable, format_timestamp, report_sections

FONT_NAME = "HeiseiKakuGo-W5"
PAGE_W, PAGE_H = A4
MARGIN = 18 * mm
LABEL_WIDTH = 40 * mm
C_HEADER_BG = "#f2f2f2"
C_GRID = "#999999"


@lru_cache(maxsize=1)
def _register_font() -> str:
    pdfmetrics.registerFont(UnicodeCIDFont(FONT_NAME))
    return FONT_NAME


@lru_cache(maxsize=1)
def _get_styles():
    font = _register_font()
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        "ReportTitle", parent=styles["Title"], fontName=font, fontSize=16, alignment=TA_CENTER,
    ))
    styles.add(ParagraphStyle(
        "Section", parent=styles["Heading2"], fontName=font, fontSize=11, spaceBefore=8, spaceAfter=4,
    ))
    styles.add(ParagraphStyle(
        "Cell", parent=styles["Normal"], fontName=font, fontSize=9, leading=12,
    ))
    styles.add(ParagraphStyle(
        "Block", parent=styles["Normal"], fontName=font, fontSize=10, leading=14,
    ))
    styles.add(ParagraphStyle(
        "Footer", parent=styles["Normal"], fontName=font, fontSize=8, alignment=TA_RIGHT,
        textColor=colors.HexColor("#555555"),
    ))
    return styles


def _text(value: str | None) -> str:
    """Escape markup and keep line breaks."""
    return escape(value or "").replace("\n", "<br/>")


def _field_table(rows: list[tuple[str, str]], styles) -> Table:
    data = [
        [Paragraph(_text(label), styles["Cell"]), Paragraph(_text(value), styles["Cell"])]
        for label, value in rows
    ]
    table = Table(data, colWidths=[LABEL_WIDTH, PAGE_W - 2 * MARGIN - LABEL_WIDTH])
    table.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor(C_GRID)),
        ("BACKGROUND", (0, 0), (0, -1), colors.HexColor(C_HEADER_BG)),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return table


def _text_block(value: str, styles) -> Table:
    table = Table(
        [[Paragraph(_text(value), styles["Block"])]],
        colWidths=[PAGE_W - 2 * MARGIN],
    )
    table.setStyle(TableStyle([
        ("BOX", (0, 0), (-1, -1), 0.5, colors.HexColor(C_GRID)),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]))
    return table


def _signature_boxes(signatures: list[tuple[str, str]], styles) -> Table:
    box = 32 * mm
    header = [Paragraph(_text(role), styles["Cell"]) for role, _ in signatures]
    names = [Paragraph(_text(name), styles["Cell"]) for _, name in signatures]
    table = Table([header, names], colWidths=[box] * len(signatures), rowHeights=[7 * mm, box - 7 * mm])
    table.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("VALIGN", (0, 1), (-1, 1), "BOTTOM"),
    ]))
    table.hAlign = "RIGHT"
    return table


def _build_report(report: ReportWithParties, tz: tzinfo, printed: str, styles) -> list:
    sections = report_sections(report, tz)
    elements: list = [
        Paragraph(_text(DOCUMENT_TITLE), styles["ReportTitle"]),
        Spacer(1, 4 * mm),
        Paragraph("Basic information", styles["Section"]),
        _field_table(sections["basic"], styles),
        Paragraph("Processing information", styles["Section"]),
        _field_table(sections["processing"], styles),
        Paragraph("Inquiry", styles["Section"]),
        _text_block(sections["inquiry"], styles),
        Paragraph("Response", styles["Section"]),
        _text_block(sections["response"], styles),
    ]
    if sections["escalation_reason"] is not None:
        elements.append(Paragraph("Escalation reason", styles["Section"]))
        elements.append(_text_block(sections["escalation_reason"], styles))
    elements.append(Spacer(1, 8 * mm))
    elements.append(_signature_boxes(sections["signatures"], styles))
    elements.append(Spacer(1, 6 * mm))
    elements.append(Paragraph(_text(f"Printed {printed}"), styles["Footer"]))
    return elements


def _build_document(elements: list, title: str) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        title=title,
    )
    doc.build(elements)
    return buffer.getvalue()


def render_report_pdf(
    report: ReportWithParties,
    tz: tzinfo,
    printed_at: datetime | None = None,
) -> bytes:
    """Render one approved report to PDF bytes.

    Raises:
        NotPrintableError: If the report is not approved.
    """
    ensure_printable(report)
    styles = _get_styles()
    printed = format_timestamp(printed_at or utcnow(), tz)
    return _build_document(
        _build_report(report, tz, printed, styles),
        f"{DOCUMENT_TITLE} {report.report_number}",
    )


def render_bulk_pdf(
    reports: Sequence[ReportWithParties],
    bank_code: str,
    tz: tzinfo,
    printed_at: datetime | None = None,
) -> bytes:
    """Render several approved reports into one PDF, one report per page."""
    for report in reports:
        ensure_printable(report)
    styles = _get_styles()
    printed = format_timestamp(printed_at or utcnow(), tz)
    elements: list = []
    for index, report in enumerate(reports):
        if index:
            elements.append(PageBreak())
        elements.extend(_build_report(report, tz, printed, styles))
    return _build_document(elements, f"{DOCUMENT_TITLE} {bank_code}")
