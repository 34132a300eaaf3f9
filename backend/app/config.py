"""
Application configuration — single source of truth for the section catalogue,
project status choices, estimate row layout, updatable columns and
environment-derived settings.

Import from here in routes and services rather than hardcoding values.
"""
from __future__ import annotations

import os


# ── Environment ───────────────────────────────────────────────────────────────
DATABASE_URL: str = os.getenv("DATABASE_URL", "")
DB_RESET_ON_STARTUP: bool = os.getenv("DB_RESET_ON_STARTUP", "").lower() in ("1", "true", "yes")

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "changethis_use_a_real_secret_in_production_64chars")
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

# The dashboard ships a single shared operator account
ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "setup")
ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "setup")

CORS_ORIGINS: list[str] = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if o.strip()
]

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON: bool = os.getenv("LOG_FORMAT", "json").lower() != "text"

DOWNLOAD_DIR: str = os.getenv("DOWNLOAD_DIR", "/tmp/estimates")


# ── Project statuses ──────────────────────────────────────────────────────────
DEFAULT_STATUS: str = "New"
PROJECT_STATUSES: list[str] = ["New", "In Progress", "Cancelled", "Complete"]


# ── Estimate sections ─────────────────────────────────────────────────────────
# Canonical display order; the editor offers sections in this order.
SECTION_ORDER: list[str] = [
    "pre-production",
    "production",
    "show-execution",
    "project-teams",
    "extra-expenses",
    "equipment-rental",
]

SECTION_TITLES: dict[str, str] = {
    "pre-production":   "Pre Production",
    "production":       "Production",
    "show-execution":   "Show Execution",
    "project-teams":    "Project Teams",
    "extra-expenses":   "Extra Expenses",
    "equipment-rental": "Equipment Rental",
}

UNKNOWN_SECTION_TITLE: str = "Unknown Section"

COMMON_HEADERS: list[str] = [
    "Service",
    "Description",
    "Duration",
    "Unit",
    "Qty",
    "Price (est)",
    "Total (est)",
    "Discount",
    "Factor",
    "CR",
    "Providers",
    "Price (act)",
    "Total (act)",
    "Profitability %",
]

# Rows created by add_section()
NEW_SECTION_ROWS: int = 4


# ── Estimate rows ─────────────────────────────────────────────────────────────
# Positional layout of a stored row: [service, description, ..., priceAct]
STORED_ROW_FIELDS: list[str] = [
    "service",
    "description",
    "duration",
    "unit",
    "qty",
    "priceEst",
    "discount",
    "factor",
    "cr",
    "priceAct",
]

# Editing any of these re-derives totalEst / totalAct / profitability
CALCULATION_FIELDS: frozenset[str] = frozenset(
    {"qty", "priceEst", "discount", "factor", "cr", "priceAct"}
)

# Blank or zero multipliers are read as 1
MULTIPLIER_FIELDS: tuple[str, ...] = ("discount", "factor", "cr")

EDITABLE_ROW_FIELDS: frozenset[str] = frozenset(STORED_ROW_FIELDS) | {"providers"}

PROVIDER_TOTAL_PCT: int = 100
PROVIDER_TOTAL_ERROR: str = "Total percentage must equal 100%"


def empty_row() -> dict:
    """A fresh row: blank text, identity multipliers, zeroed totals."""
    return {
        "service": "",
        "description": "",
        "duration": "",
        "unit": "",
        "qty": "",
        "priceEst": "",
        "totalEst": 0,
        "discount": "1",
        "factor": "1",
        "cr": "1",
        "providers": [],
        "priceAct": "",
        "totalAct": 0,
        "profitability": 0,
    }


# ── Projects table ────────────────────────────────────────────────────────────
METRIC_COLUMNS: list[str] = [
    "total_project_cost",
    "total_expenses",
    "net_profit",
    "profitability",
    "final_profit",
]

# PUT /api/projects/{id} writes only these columns
UPDATABLE_COLUMNS: frozenset[str] = frozenset(
    {
        "project_name",
        "client_name",
        "producer",
        "status",
        "total_bonuses",
        "estimate_json",
        *METRIC_COLUMNS,
    }
)

DEFAULT_SORT_FIELD: str = "creation_date"
DEFAULT_SORT_ORDER: str = "DESC"
