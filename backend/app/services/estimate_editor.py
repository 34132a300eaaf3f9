"""
EstimateEditor — the caller-owned working copy of a project's estimate.

Holds the section mapping (section id → {id, title, rows}) and keeps the
project metrics in step with it: every mutation recomputes metrics from the
full mapping, never incrementally.

Storage form (projects.estimate_json)::

    [
      {
        "sectionId": "production",
        "rows": [[service, description, duration, unit, qty, priceEst,
                  discount, factor, cr, priceAct], ...],
        "providersData": [[{"name": ..., "percentage": ...}], ...]
      },
      ...
    ]
"""
import json
import logging
from typing import Any, Dict, List, Optional, Union

from app.config import (
    EDITABLE_ROW_FIELDS,
    MULTIPLIER_FIELDS,
    NEW_SECTION_ROWS,
    SECTION_ORDER,
    SECTION_TITLES,
    STORED_ROW_FIELDS,
    UNKNOWN_SECTION_TITLE,
    empty_row,
)
from app.services.calculations import (
    ProjectMetrics,
    check_providers,
    project_totals,
    recalculate_row,
    section_total,
    touches_calculation,
)

logger = logging.getLogger("estimates-api.editor")


class EstimateEditError(ValueError):
    """Raised for edits that address a missing section/row or break an invariant."""


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def non_blank_providers(providers: Any) -> List[Dict[str, Any]]:
    """Entries with a name or a percentage; blank editor lines are ignored."""
    return [
        dict(p) for p in providers or []
        if isinstance(p, dict) and (str(p.get("name") or "").strip() or p.get("percentage"))
    ]


def _row_from_storage(values: Any, providers: Any) -> Dict[str, Any]:
    row = empty_row()
    if isinstance(values, (list, tuple)):
        for name, value in zip(STORED_ROW_FIELDS, values):
            row[name] = _text(value)
    for name in MULTIPLIER_FIELDS:
        if not row[name]:
            row[name] = "1"
    if not isinstance(providers, list):
        providers = []
    row["providers"] = [dict(p) for p in providers if isinstance(p, dict)]
    return recalculate_row(row)


class EstimateEditor:

    def __init__(self, sections: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self.sections: Dict[str, Dict[str, Any]] = {}
        for section_id, section in (sections or {}).items():
            self.sections[section_id] = {
                "id": section_id,
                "title": section.get("title") or SECTION_TITLES.get(section_id, UNKNOWN_SECTION_TITLE),
                "rows": [recalculate_row({**empty_row(), **r}) for r in section.get("rows", [])],
            }
        self.metrics: ProjectMetrics = project_totals(self.sections)

    # ------------------------------------------------------------------
    # Storage round-trip
    # ------------------------------------------------------------------

    @classmethod
    def from_storage(cls, data: Union[str, List[Dict[str, Any]], None]) -> "EstimateEditor":
        if isinstance(data, str):
            data = json.loads(data) if data.strip() else []
        editor = cls()
        if data and not isinstance(data, list):
            logger.warning(f"stored estimate is a {type(data).__name__}, not a list; loading empty")
            data = []
        for section in data or []:
            if not isinstance(section, dict):
                logger.warning(f"stored section of type {type(section).__name__} skipped")
                continue
            section_id = section.get("sectionId")
            if not section_id:
                logger.warning("stored section without sectionId skipped")
                continue
            providers_data = section.get("providersData")
            if not isinstance(providers_data, list):
                providers_data = []
            stored_rows = section.get("rows")
            if not isinstance(stored_rows, list):
                stored_rows = []
            rows = []
            for index, values in enumerate(stored_rows):
                providers = providers_data[index] if index < len(providers_data) else []
                rows.append(_row_from_storage(values, providers))
            editor.sections[section_id] = {
                "id": section_id,
                "title": SECTION_TITLES.get(section_id, UNKNOWN_SECTION_TITLE),
                "rows": rows,
            }
        editor._recompute()
        return editor

    def to_storage(self) -> List[Dict[str, Any]]:
        stored = []
        for section in self.sections.values():
            stored.append({
                "sectionId": section["id"],
                "rows": [[row.get(name, "") for name in STORED_ROW_FIELDS] for row in section["rows"]],
                "providersData": [list(row.get("providers") or []) for row in section["rows"]],
            })
        return stored

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def available_sections(self) -> List[Dict[str, str]]:
        return [
            {"id": section_id, "title": SECTION_TITLES[section_id]}
            for section_id in SECTION_ORDER
            if section_id not in self.sections
        ]

    def section_total(self, section_id: str) -> int:
        return section_total(self._section(section_id)["rows"])

    def snapshot(self) -> Dict[str, Any]:
        return {
            "sections": {
                section_id: {**section, "total": section_total(section["rows"])}
                for section_id, section in self.sections.items()
            },
            "metrics": self.metrics.as_dict(),
            "availableSections": self.available_sections(),
        }

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def add_section(self, section_id: str) -> Dict[str, Any]:
        if section_id not in SECTION_TITLES:
            raise EstimateEditError(f"Unknown section '{section_id}'")
        if section_id in self.sections:
            raise EstimateEditError(f"Section '{section_id}' already added")
        section = {
            "id": section_id,
            "title": SECTION_TITLES[section_id],
            "rows": [empty_row() for _ in range(NEW_SECTION_ROWS)],
        }
        self.sections[section_id] = section
        self._recompute()
        return section

    def remove_section(self, section_id: str) -> None:
        self._section(section_id)
        del self.sections[section_id]
        self._recompute()

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def add_row(self, section_id: str) -> int:
        rows = self._section(section_id)["rows"]
        rows.append(empty_row())
        self._recompute()
        return len(rows) - 1

    def remove_row(self, section_id: str, index: int) -> None:
        """Delete a row; a section's only row is blanked instead."""
        rows = self._section(section_id)["rows"]
        self._check_index(section_id, rows, index)
        if len(rows) == 1:
            rows[0] = empty_row()
        else:
            del rows[index]
        self._recompute()

    def update_row(self, section_id: str, index: int, field: str, value: Any) -> Dict[str, Any]:
        return self.update_row_fields(section_id, index, {field: value})

    def update_row_fields(self, section_id: str, index: int, data: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._section(section_id)["rows"]
        self._check_index(section_id, rows, index)
        unknown = set(data) - EDITABLE_ROW_FIELDS
        if unknown:
            raise EstimateEditError(f"Fields not editable: {', '.join(sorted(unknown))}")
        if "providers" in data:
            providers = data["providers"]
            if providers is not None and not isinstance(providers, list):
                raise EstimateEditError("providers must be a list")
            result = check_providers(non_blank_providers(providers))
            if not result.valid:
                raise EstimateEditError(result.message)
            data = {**data, "providers": list(providers or [])}
        row = {**rows[index], **data}
        if touches_calculation(data):
            row = recalculate_row(row)
        rows[index] = row
        self._recompute()
        return row

    def update_providers(self, section_id: str, index: int, providers: List[Dict[str, Any]]) -> Dict[str, Any]:
        return self.update_row_fields(section_id, index, {"providers": providers})

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _section(self, section_id: str) -> Dict[str, Any]:
        section = self.sections.get(section_id)
        if section is None:
            raise EstimateEditError(f"Section '{section_id}' not in estimate")
        return section

    @staticmethod
    def _check_index(section_id: str, rows: List[Any], index: int) -> None:
        if not 0 <= index < len(rows):
            raise EstimateEditError(f"Row {index} out of range for section '{section_id}'")

    def _recompute(self) -> None:
        self.metrics = project_totals(self.sections)
