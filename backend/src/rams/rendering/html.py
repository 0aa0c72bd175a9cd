"""Printable HTML rendering of approved reports (Jinja2, autoescaped)."""

from collections.abc import Sequence
from datetime import datetime, tzinfo

from jinja2 import DictLoader, Environment, StrictUndefined

from ..models import ReportWithParties, utcnow
from .common import DOCUMENT_TITLE, ensure_printable, format_timestamp, report_sections

_STYLE = """
body { font-family: "Hiragino Kaku Gothic ProN", "Noto Sans JP", sans-serif; font-size: 11pt; margin: 20mm; }
h1 { text-align: center; font-size: 18pt; margin-bottom: 4mm; }
h2 { font-size: 12pt; border-bottom: 1px solid #333; margin-top: 6mm; }
table.fields { width: 100%; border-collapse: collapse; }
table.fields th { width: 30%; text-align: left; background: #f2f2f2; }
table.fields th, table.fields td { border: 1px solid #999; padding: 2mm; }
.text-block { border: 1px solid #999; padding: 3mm; white-space: pre-wrap; min-height: 20mm; }
.signatures { display: flex; justify-content: flex-end; gap: 6mm; margin-top: 10mm; }
.signature { border: 1px solid #333; width: 35mm; height: 30mm; text-align: center; }
.signature .role { border-bottom: 1px solid #333; padding: 1mm; }
footer { margin-top: 8mm; font-size: 9pt; text-align: right; color: #555; }
.report { page-break-after: always; }
.report:last-child { page-break-after: auto; }
@media print { body { margin: 0; } }
"""

_TEMPLATES = {
    "base.html": """<!DOCTYPE html>
<html lang="ja">
<head>
<meta charset="utf-8">
<title>{% block title %}{{ title }}{% endblock %}</title>
<style>{{ style | safe }}</style>
</head>
<body>
{% block body %}{% endblock %}
<footer>Printed {{ printed_at }}</footer>
</body>
</html>
""",
    "report_body.html": """<section class="report">
<h1>{{ title }}</h1>
<h2>Basic information</h2>
<table class="fields">
{% for label, value in report.basic %}<tr><th>{{ label }}</th><td>{{ value }}</td></tr>
{% endfor %}</table>
<h2>Processing information</h2>
<table class="fields">
{% for label, value in report.processing %}<tr><th>{{ label }}</th><td>{{ value }}</td></tr>
{% endfor %}</table>
<h2>Inquiry</h2>
<div class="text-block">{{ report.inquiry }}</div>
<h2>Response</h2>
<div class="text-block">{{ report.response }}</div>
{% if report.escalation_reason is not none %}
<h2>Escalation reason</h2>
<div class="text-block">{{ report.escalation_reason }}</div>
{% endif %}
<div class="signatures">
{% for role, name in report.signatures %}<div class="signature"><div class="role">{{ role }}</div><div>{{ name }}</div></div>
{% endfor %}</div>
</section>
""",
    "report.html": """{% extends "base.html" %}
{% block title %}{{ title }} {{ report.report_number }}{% endblock %}
{% block body %}{% include "report_body.html" %}{% endblock %}
""",
    "bulk.html": """{% extends "base.html" %}
{% block title %}{{ title }} ({{ bank_code }}, {{ reports | length }} reports){% endblock %}
{% block body %}{% for report in reports %}{% include "report_body.html" %}{% endfor %}{% endblock %}
""",
}

_env = Environment(
    loader=DictLoader(_TEMPLATES),
    autoescape=True,
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_report_html(
    report: ReportWithParties,
    tz: tzinfo,
    printed_at: datetime | None = None,
) -> str:
    """Render one approved report as a printable HTML page.

    Raises:
        NotPrintableError: If the report is not approved.
    """
    ensure_printable(report)
    return _env.get_template("report.html").render(
        title=DOCUMENT_TITLE,
        style=_STYLE,
        report=report_sections(report, tz),
        printed_at=format_timestamp(printed_at or utcnow(), tz),
    )


def render_bulk_html(
    reports: Sequence[ReportWithParties],
    bank_code: str,
    tz: tzinfo,
    printed_at: datetime | None = None,
) -> str:
    """Render several approved reports into one HTML document, one per page."""
    for report in reports:
        ensure_printable(report)
    return _env.get_template("bulk.html").render(
        title=DOCUMENT_TITLE,
        style=_STYLE,
        bank_code=bank_code,
        reports=[report_sections(r, tz) for r in reports],
        printed_at=format_timestamp(printed_at or utcnow(), tz),
    )
