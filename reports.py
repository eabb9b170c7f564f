"""Monthly PDF report.

Rows are laid out onto pages here rather than left to the PDF engine so the
"Page X of Y" footer can be filled once every page is known. Heights are in
millimetres and overestimate rendered rows, so WeasyPrint never splits a page
itself.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from fastapi.templating import Jinja2Templates

from models import Transaction
from periods import Month

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

REPORT_TITLE = "Smart Finance Tracker - Monthly Report"


@dataclass(frozen=True)
class PageGeometry:
    page_height_mm: float = 297.0
    margin_mm: float = 16.0
    footer_mm: float = 10.0
    table_header_mm: float = 9.0
    report_header_mm: float = 34.0
    summary_panel_mm: float = 42.0
    row_mm: float = 7.5
    wrapped_line_mm: float = 4.5
    description_chars_per_line: int = 48
    category_chars_per_line: int = 25

    @property
    def page_body_mm(self) -> float:
        return (
            self.page_height_mm
            - 2 * self.margin_mm
            - self.footer_mm
            - self.table_header_mm
        )

    @property
    def first_page_body_mm(self) -> float:
        return self.page_body_mm - self.report_header_mm - self.summary_panel_mm


@dataclass(frozen=True)
class ReportRow:
    date: str
    description: str
    category: str
    amount_cents: int

    @classmethod
    def from_transaction(cls, txn: Transaction) -> "ReportRow":
        category = txn.category
        if txn.subcategory and txn.subcategory != txn.category:
            category = f"{txn.category} / {txn.subcategory}"
        return cls(
            date=txn.date.strftime("%d %b"),
            description=txn.description,
            category=category,
            amount_cents=txn.amount_cents,
        )


@dataclass
class ReportPage:
    number: int
    total: int = 0
    rows: list[ReportRow] = field(default_factory=list)

    @property
    def is_first(self) -> bool:
        return self.number == 1

    @property
    def is_last(self) -> bool:
        return self.number == self.total

    @property
    def footer(self) -> str:
        return f"Page {self.number} of {self.total}"


def _wrapped_lines(text: str, chars_per_line: int) -> int:
    return max(1, math.ceil(len(text) / chars_per_line))


def row_height(row: ReportRow, geometry: PageGeometry) -> float:
    lines = max(
        _wrapped_lines(row.description, geometry.description_chars_per_line),
        _wrapped_lines(row.category, geometry.category_chars_per_line),
    )
    return geometry.row_mm + (lines - 1) * geometry.wrapped_line_mm


def layout_pages(
    rows: Sequence[ReportRow], geometry: Optional[PageGeometry] = None
) -> list[ReportPage]:
    """Split ``rows`` into pages; always returns at least one page."""
    geometry = geometry or PageGeometry()
    pages: list[ReportPage] = [ReportPage(number=1)]
    budget = geometry.first_page_body_mm
    used = 0.0

    for row in rows:
        height = row_height(row, geometry)
        current = pages[-1]
        if current.rows and used + height > budget:
            pages.append(ReportPage(number=len(pages) + 1))
            budget = geometry.page_body_mm
            used = 0.0
        pages[-1].rows.append(row)
        used += height

    for page in pages:
        page.total = len(pages)
    return pages


def format_money(cents: int, symbol: str = "₹", signed: bool = True) -> str:
    sign = "-" if signed and cents < 0 else ""
    return f"{sign}{symbol}{abs(cents) / 100:,.2f}"


def sign_class(value: float) -> str:
    if value > 0:
        return "positive"
    if value < 0:
        return "negative"
    return "neutral"


def render_report_html(
    month: Month,
    transactions: Sequence[Transaction],
    summary: dict[str, float],
    *,
    generated_at: datetime,
    currency_symbol: str = "₹",
    geometry: Optional[PageGeometry] = None,
) -> tuple[str, list[ReportPage]]:
    geometry = geometry or PageGeometry()
    rows = [ReportRow.from_transaction(txn) for txn in transactions]
    pages = layout_pages(rows, geometry)

    def money(amount: float) -> str:
        return format_money(round(amount * 100), currency_symbol)

    html = templates.env.get_template("report.html").render(
        title=REPORT_TITLE,
        month=month,
        generated_at=generated_at,
        summary=summary,
        net_class=sign_class(summary["net"]),
        pages=pages,
        geometry=geometry,
        money=money,
        cents=lambda value: format_money(value, currency_symbol),
    )
    return html, pages


def report_css(geometry: PageGeometry) -> str:
    page_inner_mm = geometry.page_height_mm - 2 * geometry.margin_mm
    return f"""
        @page {{
            size: A4;
            margin: {geometry.margin_mm}mm;
        }}
        :root {{
            --text: #0f172a;
            --muted: #64748b;
            --border: #e2e8f0;
            --panel: #f8fafc;
            --panel-strong: #f1f5f9;
            --positive: #16a34a;
            --negative: #dc2626;
        }}
        html, body {{
            margin: 0;
            padding: 0;
        }}
        body {{
            font-family: "DejaVu Sans", Roboto, Helvetica, Arial, sans-serif;
            font-size: 10pt;
            line-height: 1.35;
            color: var(--text);
        }}
        .page {{
            position: relative;
            height: {page_inner_mm}mm;
            break-after: page;
            page-break-after: always;
        }}
        .page:last-child {{
            break-after: auto;
            page-break-after: auto;
        }}
        .header {{
            height: {geometry.report_header_mm - 4}mm;
            border-bottom: 1px solid var(--border);
            margin-bottom: 4mm;
        }}
        .title {{
            font-size: 17pt;
            font-weight: 700;
            letter-spacing: -0.02em;
        }}
        .meta {{
            margin-top: 2mm;
            font-size: 9.5pt;
            color: var(--muted);
        }}
        .summary {{
            height: {geometry.summary_panel_mm - 6}mm;
            display: flex;
            gap: 10px;
            margin-bottom: 6mm;
        }}
        .kpi-card {{
            flex: 1;
            border: 1px solid var(--border);
            background: var(--panel);
            border-radius: 10px;
            padding: 8px 12px;
        }}
        .kpi-label {{
            font-size: 8.5pt;
            font-weight: 700;
            text-transform: uppercase;
            letter-spacing: 0.05em;
            color: var(--muted);
            margin-bottom: 2mm;
        }}
        .kpi-value {{
            font-size: 15pt;
            font-weight: 800;
            white-space: nowrap;
        }}
        .positive {{
            color: var(--positive);
        }}
        .negative {{
            color: var(--negative);
        }}
        .neutral {{
            color: var(--text);
        }}
        table {{
            width: 100%;
            border-collapse: collapse;
            font-size: 9pt;
        }}
        thead th {{
            height: {geometry.table_header_mm - 3}mm;
            text-align: left;
            font-size: 8pt;
            font-weight: 800;
            text-transform: uppercase;
            letter-spacing: 0.06em;
            color: var(--muted);
            background: var(--panel-strong);
            padding: 4px 6px;
            border-bottom: 1px solid var(--border);
        }}
        tbody td {{
            padding: 4px 6px;
            border-bottom: 1px solid var(--border);
            vertical-align: top;
        }}
        tbody tr.striped td {{
            background: #f5f8fc;
        }}
        .cell-right {{
            text-align: right;
            white-space: nowrap;
        }}
        .cell-muted {{
            color: var(--muted);
        }}
        .empty {{
            text-align: center;
            color: var(--muted);
            padding: 10px;
        }}
        .footer {{
            position: absolute;
            bottom: 0;
            left: 0;
            right: 0;
            height: {geometry.footer_mm - 4}mm;
            text-align: center;
            font-size: 8.5pt;
            color: var(--muted);
        }}
    """


def write_pdf(html: str, geometry: Optional[PageGeometry] = None) -> bytes:
    try:
        from weasyprint import CSS, HTML
        from weasyprint.text.fonts import FontConfiguration
    except (ImportError, OSError) as exc:
        raise RuntimeError(
            "PDF export requires WeasyPrint system dependencies; "
            "install them for your OS and retry."
        ) from exc

    geometry = geometry or PageGeometry()
    font_config = FontConfiguration()
    css = CSS(string=report_css(geometry), font_config=font_config)
    return HTML(string=html).write_pdf(stylesheets=[css], font_config=font_config)
