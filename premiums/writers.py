"""Output writers for report results (PDF, Excel)."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pandas as pd

from .filters import DisplayResult
from .formatter import format_display_frame, report_filename, subtitle


logger = logging.getLogger(__name__)

# slate palette
HEADER_FILL = (71, 85, 105)
STRIPE_FILL = (248, 250, 252)
TOTAL_FILL = (226, 232, 240)
TOTAL_TEXT = (15, 23, 42)


def _generated_stamp(generated_at: datetime | None, timezone: str) -> str:
    tz = ZoneInfo(timezone)
    ts = generated_at.astimezone(tz) if generated_at else datetime.now(tz)
    return f"{ts:%B} {ts.day}, {ts:%Y} {ts:%I:%M:%S %p} {ts.tzname()}"


# ---------------------------------------------------------------------------
# PDF writer (reportlab) – landscape table, header repeated on every page
# ---------------------------------------------------------------------------


def write_pdf(
    result: DisplayResult,
    output_dir: Path,
    *,
    title: str = "Monthly Agent Premiums Report",
    generated_at: datetime | None = None,
    timezone: str = "America/New_York",
) -> Path:
    """Render *result* to ``<output_dir>/agent-premiums-YYYY-MM.pdf``."""

    from reportlab.lib import colors
    from reportlab.lib.pagesizes import A4, landscape
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.lib.units import mm
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

    def rgb(c):
        return colors.Color(*(v / 255 for v in c))

    output_dir.mkdir(parents=True, exist_ok=True)
    pdf_path = output_dir / report_filename(result, ".pdf")

    doc = SimpleDocTemplate(
        str(pdf_path),
        pagesize=landscape(A4),
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=title,
    )
    styles = getSampleStyleSheet()
    elements = [
        Paragraph(title, styles["Heading1"]),
        Paragraph(subtitle(result), styles["Heading3"]),
        Paragraph(f"Generated: {_generated_stamp(generated_at, timezone)}", styles["Normal"]),
        Spacer(1, 6 * mm),
    ]

    frame = format_display_frame(result)
    table_data = [list(frame.columns)] + frame.values.tolist()
    width = doc.width
    table = Table(
        table_data,
        colWidths=[0.2 * width, 0.4 * width, 0.2 * width, 0.2 * width],
        repeatRows=1,
    )
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), rgb(HEADER_FILL)),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 11),
                ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
                ("FONTSIZE", (0, 1), (-1, -1), 10),
                ("ROWBACKGROUNDS", (0, 1), (-1, -2), [colors.white, rgb(STRIPE_FILL)]),
                ("ALIGN", (2, 0), (3, -1), "RIGHT"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                # totals row
                ("BACKGROUND", (0, -1), (-1, -1), rgb(TOTAL_FILL)),
                ("TEXTCOLOR", (0, -1), (-1, -1), rgb(TOTAL_TEXT)),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ]
        )
    )
    elements.append(table)
    doc.build(elements)

    logger.info("Wrote %s (%d agents)", pdf_path.name, len(result.rows))
    return pdf_path


# ---------------------------------------------------------------------------
# Excel writer (openpyxl backend)
# ---------------------------------------------------------------------------


def _product_frame(result: DisplayResult) -> pd.DataFrame:
    records = [
        {"Agent Name": row.agent_name, "Product": product, "Count": row.product_counts[product]}
        for row in result.rows
        for product in row.products
    ]
    return pd.DataFrame(records, columns=["Agent Name", "Product", "Count"])


def _autofit(worksheet) -> None:
    MIN_W, MAX_W = 8, 60
    for column_cells in worksheet.columns:
        header = column_cells[0].value or ""
        length = len(str(header))
        for cell in column_cells[1:500]:  # up to 500 rows
            if cell.value is not None:
                length = max(length, len(str(cell.value)))
        width = min(max(length + 2, MIN_W), MAX_W)
        worksheet.column_dimensions[column_cells[0].column_letter].width = width


def write_excel(result: DisplayResult, output_dir: Path) -> Path:
    """Write the summary table and per-agent product counts to a workbook."""

    output_dir.mkdir(parents=True, exist_ok=True)
    out_path = output_dir / report_filename(result, ".xlsx")

    sheets = {
        "Summary": format_display_frame(result),
        "Products": _product_frame(result),
    }
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        for sheet_name, frame in sheets.items():
            frame.to_excel(writer, sheet_name=sheet_name, index=False)
            _autofit(writer.sheets[sheet_name])

    logger.info("Wrote %s", out_path.name)
    return out_path
