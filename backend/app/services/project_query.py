"""
Project list query builder for the React-Admin simple REST contract.

Translates the ``filter``, ``sort`` and ``range`` query parameters into a
SQLAlchemy select over the projects table. Only real columns of the table
can be filtered or sorted on; anything else is logged and ignored.

Filter semantics:
  - id: scalar → equality, list → IN
  - <column>_gte / <column>_lte → inclusive range bound, value converted to
    the column type (ISO date text for creation_date); unconvertible values
    are ignored
  - string value → case-insensitive substring match
  - any other value → equality
"""
import json
import logging
import operator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from sqlalchemy import DateTime, Integer, Numeric, String, Select, cast, func, select

from app.config import DEFAULT_SORT_FIELD, DEFAULT_SORT_ORDER
from app.models.orm_models import Project

logger = logging.getLogger("estimates-api.projects")

_COLUMNS = Project.__table__.columns


@dataclass
class ListQuery:
    conditions: List[Any] = field(default_factory=list)
    sort_field: str = DEFAULT_SORT_FIELD
    sort_order: str = DEFAULT_SORT_ORDER
    start: int = 0
    end: Optional[int] = None

    def select_rows(self) -> Select:
        column = _COLUMNS[self.sort_field]
        stmt = select(Project).where(*self.conditions)
        stmt = stmt.order_by(column.desc() if self.sort_order == "DESC" else column.asc(), Project.id.desc())
        if self.start:
            stmt = stmt.offset(self.start)
        if self.end is not None:
            stmt = stmt.limit(max(self.end - self.start + 1, 0))
        return stmt

    def select_count(self) -> Select:
        return select(func.count(Project.id)).where(*self.conditions)


def _load_json(raw: Optional[str], name: str) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Error parsing {name}: {e}")
        return None


def _coerce(column, value: Any) -> Any:
    """Bring a range-bound value to the column's Python type; raises ValueError/TypeError."""
    if isinstance(column.type, DateTime):
        if isinstance(value, datetime):
            bound = value
        else:
            bound = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        if column.type.timezone and bound.tzinfo is None:
            bound = bound.replace(tzinfo=timezone.utc)
        return bound
    if isinstance(column.type, Integer):
        return int(value)
    if isinstance(column.type, Numeric):
        return float(value)
    return value


def _condition(name: str, value: Any):
    if name == "id":
        if isinstance(value, list):
            return Project.id.in_(value)
        return Project.id == value

    for suffix, op in (("_gte", operator.ge), ("_lte", operator.le)):
        if name.endswith(suffix):
            real = name[: -len(suffix)]
            if real not in _COLUMNS:
                return None
            return op(_COLUMNS[real], _coerce(_COLUMNS[real], value))

    if name not in _COLUMNS:
        return None
    column = _COLUMNS[name]
    if isinstance(value, str):
        if not isinstance(column.type, String):
            return cast(column, String).ilike(f"%{value}%")
        return column.ilike(f"%{value}%")
    return column == value


def parse_filter(raw: Optional[str]) -> List[Any]:
    filters = _load_json(raw, "filter")
    if not isinstance(filters, dict):
        return []
    conditions = []
    for name, value in filters.items():
        # React-Admin sends empty values for cleared inputs
        if value is None or value == "" or value == []:
            continue
        if isinstance(value, dict):
            logger.warning(f"Ignoring nested filter on '{name}'")
            continue
        try:
            cond = _condition(name, value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring filter '{name}' with unusable value {value!r}: {e}")
            continue
        if cond is None:
            logger.warning(f"Ignoring filter on unknown field '{name}'")
            continue
        conditions.append(cond)
    return conditions


def parse_sort(raw: Optional[str]) -> Tuple[str, str]:
    parsed = _load_json(raw, "sort")
    if not isinstance(parsed, list) or len(parsed) != 2:
        return DEFAULT_SORT_FIELD, DEFAULT_SORT_ORDER
    sort_field, order = parsed
    if not isinstance(sort_field, str) or sort_field not in _COLUMNS:
        logger.warning(f"Ignoring sort on unknown field '{sort_field}'")
        return DEFAULT_SORT_FIELD, DEFAULT_SORT_ORDER
    return sort_field, "DESC" if str(order).upper() == "DESC" else "ASC"


def parse_range(raw: Optional[str]) -> Tuple[int, Optional[int]]:
    parsed = _load_json(raw, "range")
    if not isinstance(parsed, list) or len(parsed) != 2:
        return 0, None
    try:
        start, end = int(parsed[0]), int(parsed[1])
    except (TypeError, ValueError):
        return 0, None
    if start < 0 or end < start:
        return 0, None
    return start, end


def build_list_query(
    filter_param: Optional[str] = None,
    sort_param: Optional[str] = None,
    range_param: Optional[str] = None,
) -> ListQuery:
    sort_field, sort_order = parse_sort(sort_param)
    start, end = parse_range(range_param)
    return ListQuery(
        conditions=parse_filter(filter_param),
        sort_field=sort_field,
        sort_order=sort_order,
        start=start,
        end=end,
    )


def content_range(start: int, returned: int, total: int, resource: str = "projects") -> str:
    """'projects 0-9/42'; an empty page is 'projects */42'."""
    if returned == 0:
        return f"{resource} */{total}"
    return f"{resource} {start}-{start + returned - 1}/{total}"
