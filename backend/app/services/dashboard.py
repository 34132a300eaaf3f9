"""Portfolio summary over all projects for the dashboard landing page."""
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping

from app.config import DEFAULT_STATUS
from app.services.formatters import format_date, profitability_color, round_half_away, status_color

# (label, upper bound exclusive); the last band is open-ended
PROFITABILITY_BANDS: List[tuple] = [
    ("Negative (<0%)", 0),
    ("Low (0-25%)", 25),
    ("Medium-Low (25-50%)", 50),
    ("Medium (50-75%)", 75),
    ("Medium-High (75-100%)", 100),
    ("High (>100%)", None),
]

RECENT_PROJECTS: int = 5


def _num(project: Mapping[str, Any], key: str) -> float:
    return float(project.get(key) or 0)


def profitability_band(profitability: float) -> str:
    for label, upper in PROFITABILITY_BANDS:
        if upper is None or profitability < upper:
            return label
    return PROFITABILITY_BANDS[-1][0]


def _share(count: int, total: int) -> int:
    return round_half_away(count / total * 100) if total else 0


def summarize_projects(projects: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Totals, average profitability and distributions across ``projects``,
    which must be ordered newest first.

    The average only counts projects with booked revenue.
    """
    projects = list(projects)
    total = len(projects)

    priced = [p for p in projects if _num(p, "total_project_cost") > 0]
    avg_profitability = (
        round_half_away(sum(_num(p, "profitability") for p in priced) / len(priced)) if priced else 0
    )

    statuses = Counter(p.get("status") or DEFAULT_STATUS for p in projects)
    bands = Counter(profitability_band(_num(p, "profitability")) for p in projects)

    return {
        "total_projects": total,
        "total_revenue": sum(_num(p, "total_project_cost") for p in projects),
        "total_profit": sum(_num(p, "final_profit") for p in projects),
        "average_profitability": avg_profitability,
        "status_breakdown": [
            {"status": status, "count": count, "value": _share(count, total)}
            for status, count in statuses.items()
        ],
        "profitability_ranges": [
            {"range": label, "count": bands.get(label, 0), "value": _share(bands.get(label, 0), total)}
            for label, _ in PROFITABILITY_BANDS
        ],
        "recent_projects": [
            {
                "id": p.get("id"),
                "project_name": p.get("project_name"),
                "client_name": p.get("client_name"),
                "status": p.get("status") or DEFAULT_STATUS,
                "status_color": status_color(p.get("status") or DEFAULT_STATUS),
                "created": format_date(p.get("creation_date")),
                "total_project_cost": _num(p, "total_project_cost"),
                "net_profit": _num(p, "net_profit"),
                "profitability": _num(p, "profitability"),
                "profitability_color": profitability_color(_num(p, "profitability")),
            }
            for p in projects[:RECENT_PROJECTS]
        ],
    }
