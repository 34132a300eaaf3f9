"""
Report Engine — PDF export of a project estimate.

Layout (A4 portrait):
  - Header bar with project name, client and producer
  - Project metrics block (cost, expenses, net profit, profitability, final profit)
  - One table per section: service, description, qty, est/act totals, profitability
  - Section running total under each table
  - Footer with export date and page number

Output saved to DOWNLOAD_DIR under a per-export unique name and the path
returned for FileResponse.
"""
import os
import uuid
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas as rl_canvas

from app import config
from app.services.calculations import section_total
from app.services.estimate_editor import EstimateEditor
from app.services.formatters import format_date, format_number

logger = logging.getLogger("estimates-report")

HEADER_RGB = (0.12, 0.16, 0.24)
ACCENT_RGB = (0.58, 0.64, 0.72)
POSITIVE_RGB = (0.18, 0.49, 0.20)
NEGATIVE_RGB = (0.72, 0.11, 0.11)

# (title, x offset cm, right-aligned)
_COLUMNS = [
    ("Service", 0.0, False),
    ("Description", 3.6, False),
    ("Qty", 9.6, True),
    ("Total (est)", 12.2, True),
    ("Total (act)", 15.0, True),
    ("Profit %", 17.2, True),
]
_ROW_HEIGHT = 0.55 * cm
_BOTTOM_MARGIN = 2.0 * cm


def _ensure_dir(directory: str) -> None:
    os.makedirs(directory, exist_ok=True)


def _clip(text: Any, limit: int) -> str:
    text = "" if text is None else str(text)
    return text if len(text) <= limit else text[: limit - 1] + "…"


def _draw_header(c, page_w, page_h, project: Dict[str, Any]):
    c.setFillColorRGB(*HEADER_RGB)
    c.rect(0, page_h - 3 * cm, page_w, 3 * cm, fill=1, stroke=0)
    c.setFillColorRGB(1, 1, 1)
    c.setFont("Helvetica-Bold", 14)
    c.drawString(1.5 * cm, page_h - 1.5 * cm, _clip(project.get("project_name") or "Untitled project", 60))
    c.setFont("Helvetica", 9)
    c.drawString(
        1.5 * cm,
        page_h - 2.1 * cm,
        f"Client: {project.get('client_name') or '-'}   |   Producer: {project.get('producer') or '-'}",
    )
    created = format_date(project.get("creation_date"))
    if created:
        c.drawRightString(page_w - 1.5 * cm, page_h - 2.1 * cm, f"Created {created}")
    c.setStrokeColorRGB(*ACCENT_RGB)
    c.setLineWidth(2)
    c.line(0, page_h - 3 * cm, page_w, page_h - 3 * cm)
    c.setLineWidth(1)
    c.setStrokeColorRGB(0, 0, 0)


def _draw_footer(c, page_w, page_num: int, exported_at: str):
    c.setFillColorRGB(0.5, 0.5, 0.5)
    c.setFont("Helvetica", 7)
    c.drawString(1.5 * cm, 0.8 * cm, f"Estimate exported {exported_at}")
    c.drawRightString(page_w - 1.5 * cm, 0.8 * cm, f"Page {page_num}")
    c.setStrokeColorRGB(0.7, 0.7, 0.7)
    c.line(1.5 * cm, 1.2 * cm, page_w - 1.5 * cm, 1.2 * cm)


class ReportEngine:

    def __init__(self, download_dir: Optional[str] = None):
        self.download_dir = download_dir or config.DOWNLOAD_DIR

    def generate_estimate_pdf(self, project: Dict[str, Any], editor: EstimateEditor) -> str:
        """Render the estimate of ``project`` and return the PDF path."""
        _ensure_dir(self.download_dir)
        stamp = datetime.now().strftime("%Y%m%d%H%M%S")
        filename = f"Estimate_{project.get('id', 'draft')}_{stamp}_{uuid.uuid4().hex[:8]}.pdf"
        path = os.path.join(self.download_dir, filename)
        page_w, page_h = A4
        exported_at = datetime.now().strftime("%d %b %Y, %H:%M")

        c = rl_canvas.Canvas(path, pagesize=A4)
        c.setTitle(f"Estimate: {project.get('project_name') or ''}")
        page = 1
        try:
            _draw_header(c, page_w, page_h, project)
            _draw_footer(c, page_w, page, exported_at)
            y = self._draw_metrics(c, page_w, page_h - 4.2 * cm, editor)

            if not editor.sections:
                c.setFont("Helvetica-Oblique", 10)
                c.setFillColorRGB(0.4, 0.4, 0.4)
                c.drawString(1.5 * cm, y, "No sections in this estimate yet.")

            for section in editor.sections.values():
                # Title, header row and at least one data row must fit together
                if y - 3 * _ROW_HEIGHT < _BOTTOM_MARGIN:
                    c.showPage()
                    page += 1
                    _draw_header(c, page_w, page_h, project)
                    _draw_footer(c, page_w, page, exported_at)
                    y = page_h - 4.2 * cm
                y, page = self._draw_section(c, page_w, page_h, y, section, project, page, exported_at)
        finally:
            c.save()

        logger.info(f"Estimate PDF written: {path} ({page} page(s))")
        return path

    def _draw_metrics(self, c, page_w, y: float, editor: EstimateEditor) -> float:
        m = editor.metrics
        c.setFillColorRGB(*HEADER_RGB)
        c.setFont("Helvetica-Bold", 11)
        c.drawString(1.5 * cm, y, "PROJECT METRICS")
        y -= 0.3 * cm
        c.setStrokeColorRGB(*ACCENT_RGB)
        c.line(1.5 * cm, y, page_w - 1.5 * cm, y)
        y -= 0.6 * cm

        rows = [
            ("Total Project Cost", format_number(m.total_project_cost)),
            ("Total Expenses", format_number(m.total_expenses)),
            ("Net Profit", format_number(m.net_profit)),
            ("Profitability", f"{m.profitability}%"),
            ("Final Profit", format_number(m.final_profit)),
        ]
        c.setFont("Helvetica", 10)
        for label, value in rows:
            c.setFillColorRGB(0.2, 0.2, 0.2)
            c.drawString(1.5 * cm, y, label)
            if label in ("Net Profit", "Profitability", "Final Profit"):
                c.setFillColorRGB(*(POSITIVE_RGB if m.net_profit >= 0 else NEGATIVE_RGB))
            c.drawRightString(page_w - 1.5 * cm, y, value)
            y -= 0.55 * cm
        return y - 0.6 * cm

    def _draw_table_header(self, c, y: float) -> float:
        c.setFont("Helvetica-Bold", 8)
        c.setFillColorRGB(0.3, 0.3, 0.3)
        for title, x, right in _COLUMNS:
            if right:
                c.drawRightString(1.5 * cm + x * cm + 2.2 * cm, y, title)
            else:
                c.drawString(1.5 * cm + x * cm, y, title)
        return y - _ROW_HEIGHT

    def _draw_section(
        self, c, page_w, page_h, y: float, section: Dict[str, Any],
        project: Dict[str, Any], page: int, exported_at: str,
    ):
        c.setFillColorRGB(*HEADER_RGB)
        c.setFont("Helvetica-Bold", 11)
        c.drawString(1.5 * cm, y, section["title"].upper())
        y -= _ROW_HEIGHT
        y = self._draw_table_header(c, y)

        c.setFont("Helvetica", 8)
        for row in section["rows"]:
            if y < _BOTTOM_MARGIN:
                c.showPage()
                page += 1
                _draw_header(c, page_w, page_h, project)
                _draw_footer(c, page_w, page, exported_at)
                y = self._draw_table_header(c, page_h - 4.2 * cm)
                c.setFont("Helvetica", 8)
            values: List[str] = [
                _clip(row.get("service"), 22),
                _clip(row.get("description"), 34),
                _clip(row.get("qty"), 10),
                format_number(row.get("totalEst", 0)),
                format_number(row.get("totalAct", 0)),
                f"{row.get('profitability', 0)}%",
            ]
            c.setFillColorRGB(0.15, 0.15, 0.15)
            for (title, x, right), value in zip(_COLUMNS, values):
                if right:
                    c.drawRightString(1.5 * cm + x * cm + 2.2 * cm, y, value)
                else:
                    c.drawString(1.5 * cm + x * cm, y, value)
            y -= _ROW_HEIGHT

        c.setFont("Helvetica-Bold", 9)
        c.setFillColorRGB(*HEADER_RGB)
        c.drawRightString(
            page_w - 1.5 * cm, y,
            f"Section total (act): {format_number(section_total(section['rows']))}",
        )
        return y - 1.0 * cm, page
