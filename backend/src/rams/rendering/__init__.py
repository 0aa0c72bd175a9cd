"""Printable output for approved reports: HTML, PDF and the PDF archive."""

from .archive import PdfArchive, validate_bulk_selection
from .common import ensure_printable
from .html import render_bulk_html, render_report_html
from .pdf import render_bulk_pdf, render_report_pdf

__all__ = [
    "PdfArchive",
    "ensure_printable",
    "render_bulk_html",
    "render_bulk_pdf",
    "render_report_html",
    "render_report_pdf",
    "validate_bulk_selection",
]
