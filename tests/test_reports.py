import re
from datetime import date, datetime

from models import Transaction
from periods import Month
from reports import (
    PageGeometry,
    ReportRow,
    format_money,
    layout_pages,
    render_report_html,
    report_css,
    row_height,
)

SUMMARY = {"total_income": 2000.0, "total_expenses": 18.25, "net": 1981.75}


def _rows(count: int, description: str = "Lunch") -> list[ReportRow]:
    return [
        ReportRow(date="01 Mar", description=description, category="Food", amount_cents=-500)
        for _ in range(count)
    ]


def test_empty_report_still_has_one_page() -> None:
    pages = layout_pages([])
    assert len(pages) == 1
    assert pages[0].rows == []
    assert pages[0].footer == "Page 1 of 1"


def test_rows_flow_onto_following_pages() -> None:
    geometry = PageGeometry()
    first_capacity = int(geometry.first_page_body_mm // geometry.row_mm)
    later_capacity = int(geometry.page_body_mm // geometry.row_mm)

    pages = layout_pages(_rows(first_capacity + later_capacity + 1), geometry)

    assert [len(p.rows) for p in pages] == [first_capacity, later_capacity, 1]
    assert [p.footer for p in pages] == ["Page 1 of 3", "Page 2 of 3", "Page 3 of 3"]
    assert pages[0].is_first and not pages[0].is_last
    assert pages[-1].is_last


def test_long_descriptions_take_more_room() -> None:
    geometry = PageGeometry()
    short = layout_pages(_rows(40), geometry)
    long = layout_pages(_rows(40, "x" * (geometry.description_chars_per_line * 3)), geometry)
    assert len(long) > len(short)


def test_long_categories_take_more_room() -> None:
    geometry = PageGeometry()
    rows = [
        ReportRow(
            date="01 Mar",
            description="Lunch",
            category="x" * (geometry.category_chars_per_line * 4),
            amount_cents=-500,
        )
        for _ in range(20)
    ]
    pages = layout_pages(rows, geometry)

    assert len(pages) > 1
    for page in pages:
        budget = geometry.first_page_body_mm if page.is_first else geometry.page_body_mm
        assert sum(row_height(r, geometry) for r in page.rows) <= budget

    mock_row = ReportRow(
        date="01 Mar",
        description="Public Transport",
        category="Transport / Public Transport",
        amount_cents=-500,
    )
    assert row_height(mock_row, geometry) > geometry.row_mm


def test_format_money() -> None:
    assert format_money(-1275) == "-₹12.75"
    assert format_money(123456789) == "₹1,234,567.89"
    assert format_money(-500, "$", signed=False) == "$5.00"


def test_report_row_joins_subcategory() -> None:
    txn = Transaction(
        date=date(2025, 3, 4),
        description="Uber Ride",
        amount_cents=-1275,
        category="Transport",
        subcategory="Uber",
    )
    row = ReportRow.from_transaction(txn)
    assert row.date == "04 Mar"
    assert row.category == "Transport / Uber"


def test_render_empty_month_html() -> None:
    html, pages = render_report_html(
        Month(2025, 3),
        [],
        {"total_income": 0.0, "total_expenses": 0.0, "net": 0.0},
        generated_at=datetime(2025, 4, 1, 9, 30),
    )
    assert len(pages) == 1
    assert "Smart Finance Tracker - Monthly Report" in html
    assert "No transactions recorded for Mar 25" in html
    assert "Page 1 of 1" in html
    assert "01 Mar 2025 to 31 Mar 2025" in html


def test_render_html_has_summary_and_escaped_rows() -> None:
    txns = [
        Transaction(
            date=date(2025, 3, 1),
            description="Monthly Salary",
            amount_cents=200_000,
            category="Salary",
            subcategory="Monthly Salary",
        ),
        Transaction(
            date=date(2025, 3, 2),
            description="<b>Pizza</b>",
            amount_cents=-1_825,
            category="Food",
            subcategory="Pizza",
        ),
    ]
    html, _ = render_report_html(
        Month(2025, 3),
        txns,
        SUMMARY,
        generated_at=datetime(2025, 4, 1, 9, 30),
        currency_symbol="$",
    )
    assert "$2,000.00" in html
    assert "$1,981.75" in html
    assert "-$18.25" in html
    assert "&lt;b&gt;Pizza&lt;/b&gt;" in html
    assert html.count('<section class="page">') == 1
    assert 'class="striped"' in html


def test_report_css_keeps_pages_separate() -> None:
    css = report_css(PageGeometry())

    page_rule = re.search(r"\.page\s*\{[^}]*\}", css, re.DOTALL)
    assert page_rule
    assert "break-after: page;" in page_rule.group(0)

    amount_rule = re.search(r"\.cell-right\s*\{[^}]*\}", css, re.DOTALL)
    assert amount_rule
    assert "white-space: nowrap;" in amount_rule.group(0)
