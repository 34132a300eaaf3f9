"""
test_report_engine.py — PDF export of an estimate.

Only the file output is checked (PDF magic bytes, unique name, page breaks); the
drawing itself is reportlab's concern.
"""

import os
import re

from app.services.estimate_editor import EstimateEditor
from app.services.report_engine import ReportEngine


PROJECT = {
    "id": 12,
    "project_name": "Spring Launch Event",
    "client_name": "Acme Corp",
    "producer": "Dana",
}


class TestReportEngine:

    def test_writes_pdf(self, tmp_path, stored_estimate):
        editor = EstimateEditor.from_storage(stored_estimate)
        path = ReportEngine(str(tmp_path)).generate_estimate_pdf(PROJECT, editor)
        assert os.path.dirname(path) == str(tmp_path)
        assert re.fullmatch(r"Estimate_12_\d{14}_[0-9a-f]{8}\.pdf", os.path.basename(path))
        with open(path, "rb") as fh:
            assert fh.read(4) == b"%PDF"

    def test_repeated_exports_do_not_share_a_file(self, tmp_path, stored_estimate):
        engine = ReportEngine(str(tmp_path))
        editor = EstimateEditor.from_storage(stored_estimate)
        first = engine.generate_estimate_pdf(PROJECT, editor)
        second = engine.generate_estimate_pdf(PROJECT, editor)
        assert first != second
        assert os.path.exists(first) and os.path.exists(second)

    def test_empty_estimate(self, tmp_path):
        path = ReportEngine(str(tmp_path)).generate_estimate_pdf({"id": 3}, EstimateEditor())
        assert os.path.getsize(path) > 0

    def test_creates_missing_directory(self, tmp_path):
        target = tmp_path / "nested" / "exports"
        path = ReportEngine(str(target)).generate_estimate_pdf(PROJECT, EstimateEditor())
        assert os.path.exists(path)

    def test_long_estimate_spans_pages(self, tmp_path):
        editor = EstimateEditor()
        for section_id in ("pre-production", "production", "show-execution"):
            editor.add_section(section_id)
            for _ in range(40):
                index = editor.add_row(section_id)
                editor.update_row_fields(section_id, index, {
                    "service": "Freelance crew member with a long service name",
                    "qty": "3",
                    "priceEst": "1200",
                    "priceAct": "950",
                })
        path = ReportEngine(str(tmp_path)).generate_estimate_pdf(PROJECT, editor)
        with open(path, "rb") as fh:
            content = fh.read()
        pages = re.findall(rb"/Type\s*/Page\b", content)
        assert len(pages) >= 2
