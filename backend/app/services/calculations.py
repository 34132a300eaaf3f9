"""
Estimate calculations — row totals, section totals, project metrics and
provider percentage checks.

Every function here is pure: it reads the rows it is given and returns new
values. Rows are plain dicts in wire form (camelCase keys) or any object
exposing the same attributes.

Rounding: percentages round half away from zero.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from app.config import CALCULATION_FIELDS, PROVIDER_TOTAL_ERROR, PROVIDER_TOTAL_PCT
from app.services.formatters import parse_number, round_half_away

# parseInt semantics: optional sign, then leading digits
_LEADING_INT = re.compile(r"^\s*[-+]?\d+")


def _field(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _rows_of(section: Any) -> List[Any]:
    rows = section.get("rows") if isinstance(section, Mapping) else getattr(section, "rows", None)
    return list(rows or [])


# ---------------------------------------------------------------------------
# Row calculator
# ---------------------------------------------------------------------------

def estimated_total(row: Any) -> int:
    """qty × priceEst."""
    return parse_number(_field(row, "qty")) * parse_number(_field(row, "priceEst"))


def actual_total(row: Any) -> int:
    """
    qty × discount × factor × cr × priceAct.

    A multiplier that is blank or parses to 0 counts as 1, so an untouched
    discount/factor/cr never zeroes the actual total.
    """
    qty = parse_number(_field(row, "qty"))
    discount = parse_number(_field(row, "discount")) or 1
    factor = parse_number(_field(row, "factor")) or 1
    cr = parse_number(_field(row, "cr")) or 1
    price_act = parse_number(_field(row, "priceAct"))
    return qty * discount * factor * cr * price_act


def profitability(est_total: float, act_total: float) -> int:
    """
    Signed margin of the estimate over the actual cost, in whole percent.

    No revenue but some cost is a flat -100; nothing booked at all is 0.
    """
    if est_total > 0:
        return round_half_away((est_total - act_total) / est_total * 100)
    if act_total > 0:
        return -100
    return 0


def recalculate_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of ``row`` with totalEst, totalAct and profitability re-derived."""
    updated = dict(row)
    est = estimated_total(updated)
    act = actual_total(updated)
    updated["totalEst"] = est
    updated["totalAct"] = act
    updated["profitability"] = profitability(est, act)
    return updated


def touches_calculation(fields: Iterable[str]) -> bool:
    return any(f in CALCULATION_FIELDS for f in fields)


# ---------------------------------------------------------------------------
# Section & project aggregation
# ---------------------------------------------------------------------------

def section_total(rows: Iterable[Any]) -> int:
    """Running total shown under a section table: Σ totalAct."""
    return sum(parse_number(_field(row, "totalAct")) for row in rows)


def section_totals(rows: Iterable[Any]) -> Tuple[int, int]:
    """(Σ totalEst, Σ totalAct) for one section."""
    est_total = 0
    act_total = 0
    for row in rows:
        est_total += parse_number(_field(row, "totalEst"))
        act_total += parse_number(_field(row, "totalAct"))
    return est_total, act_total


@dataclass(frozen=True)
class ProjectMetrics:
    total_project_cost: int = 0
    total_expenses: int = 0
    net_profit: int = 0
    profitability: int = 0
    # Same as net_profit until bonuses are deducted
    final_profit: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "totalProjectCost": self.total_project_cost,
            "totalExpenses": self.total_expenses,
            "netProfit": self.net_profit,
            "profitability": self.profitability,
            "finalProfit": self.final_profit,
        }

    def as_columns(self) -> Dict[str, int]:
        """Keyed by the projects table column names."""
        return {
            "total_project_cost": self.total_project_cost,
            "total_expenses": self.total_expenses,
            "net_profit": self.net_profit,
            "profitability": self.profitability,
            "final_profit": self.final_profit,
        }


def project_totals(sections: Mapping[str, Any]) -> ProjectMetrics:
    """Aggregate every row of every section into the project metrics."""
    total_project_cost = 0
    total_expenses = 0
    for section in sections.values():
        est, act = section_totals(_rows_of(section))
        total_project_cost += est
        total_expenses += act

    net_profit = total_project_cost - total_expenses

    if total_project_cost > 0:
        pct = round_half_away(net_profit / total_project_cost * 100)
    elif total_expenses > 0:
        pct = -100
    else:
        pct = 0

    return ProjectMetrics(
        total_project_cost=total_project_cost,
        total_expenses=total_expenses,
        net_profit=net_profit,
        profitability=pct,
        final_profit=net_profit,
    )


# ---------------------------------------------------------------------------
# Provider percentages
# ---------------------------------------------------------------------------

def percentage_of(provider: Any) -> int:
    """Integer percentage of one provider entry; missing or junk reads as 0."""
    raw = _field(provider, "percentage")
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float)):
        return int(raw)
    match = _LEADING_INT.match(str(raw))
    return int(match.group(0)) if match else 0


def providers_total(providers: Optional[Iterable[Any]]) -> int:
    return sum(percentage_of(p) for p in (providers or []))


def validate_providers(providers: Optional[Iterable[Any]]) -> bool:
    """True for no providers, otherwise only when the percentages sum to 100."""
    providers = list(providers or [])
    if not providers:
        return True
    return providers_total(providers) == PROVIDER_TOTAL_PCT


@dataclass(frozen=True)
class ProviderValidation:
    valid: bool
    total: int
    message: str = ""


def check_providers(providers: Optional[Iterable[Any]]) -> ProviderValidation:
    providers = list(providers or [])
    total = providers_total(providers)
    if validate_providers(providers):
        return ProviderValidation(valid=True, total=total)
    return ProviderValidation(valid=False, total=total, message=PROVIDER_TOTAL_ERROR)
