"""CSV and PDF export of grid rows."""

from __future__ import annotations

import csv
from io import StringIO
from typing import Sequence

from fpdf import FPDF


def rows_to_csv(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def _latin1(value: object) -> str:
    # Core PDF fonts only cover latin-1.
    return str(value).encode("latin-1", "replace").decode("latin-1")


def rows_to_pdf(title: str, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> bytes:
    """Render a titled table as a PDF document."""
    pdf = FPDF(orientation="L" if len(headers) > 4 else "P")
    pdf.set_title(_latin1(title))
    pdf.add_page()
    pdf.set_font("Helvetica", style="B", size=14)
    pdf.cell(0, 10, _latin1(title), new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", size=9)
    with pdf.table() as table:
        heading = table.row()
        for header in headers:
            heading.cell(_latin1(header))
        for values in rows:
            row = table.row()
            for value in values:
                row.cell(_latin1(value))
    return bytes(pdf.output())
