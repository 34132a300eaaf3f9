"""
ProviderAllocation — editing session for the providers that share a row's
actual cost.

Lifecycle::

    EDITING ──edit──▶ VALID (Σ% = 100) / INVALID (Σ% ≠ 100)
       │                          │
       └──cancel()──▶ CANCELLED   └──save()──▶ SAVED

save() emits only fully specified providers (name set AND percentage > 0).
"""
import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from app.config import PROVIDER_TOTAL_ERROR, PROVIDER_TOTAL_PCT
from app.services.calculations import percentage_of, validate_providers

logger = logging.getLogger("estimates-api.providers")

_DIGITS_RE = re.compile(r"^\d+$")


class AllocationState(str, Enum):
    EDITING = "EDITING"
    VALID = "VALID"
    INVALID = "INVALID"
    SAVED = "SAVED"
    CANCELLED = "CANCELLED"


def _blank() -> Dict[str, Any]:
    return {"name": "", "percentage": ""}


class ProviderAllocation:

    def __init__(self, providers: Optional[List[Dict[str, Any]]] = None) -> None:
        initial = [dict(p) for p in (providers or [])]
        self.providers: List[Dict[str, Any]] = initial or [_blank()]
        self.state = AllocationState.EDITING
        self.error = ""
        self.saved: Optional[List[Dict[str, Any]]] = None
        self._refresh()

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def total_percentage(self) -> int:
        return sum(percentage_of(p) for p in self.providers)

    @property
    def closed(self) -> bool:
        return self.state in (AllocationState.SAVED, AllocationState.CANCELLED)

    def _touched(self) -> bool:
        return any(p.get("name") or p.get("percentage") for p in self.providers)

    def _refresh(self) -> None:
        if self.closed:
            return
        if not self._touched():
            self.error = ""
            self.state = AllocationState.EDITING
        elif self.total_percentage != PROVIDER_TOTAL_PCT:
            self.error = PROVIDER_TOTAL_ERROR
            self.state = AllocationState.INVALID
        else:
            self.error = ""
            self.state = AllocationState.VALID

    def _require_open(self) -> None:
        if self.closed:
            raise RuntimeError(f"Provider allocation already {self.state.value.lower()}")

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def add_provider(self) -> None:
        self._require_open()
        self.providers.append(_blank())
        self._refresh()

    def remove_provider(self, index: int) -> None:
        """Drop one entry; the list never becomes empty."""
        self._require_open()
        del self.providers[index]
        if not self.providers:
            self.providers.append(_blank())
        self._refresh()

    def set_name(self, index: int, name: str) -> None:
        self._require_open()
        self.providers[index]["name"] = name
        self._refresh()

    def set_percentage(self, index: int, value: str) -> bool:
        """Accepts digits only; returns False (state unchanged) for anything else."""
        self._require_open()
        text = "" if value is None else str(value)
        if text and not _DIGITS_RE.match(text):
            return False
        self.providers[index]["percentage"] = text
        self._refresh()
        return True

    # ------------------------------------------------------------------
    # Outcomes
    # ------------------------------------------------------------------

    def filled(self) -> List[Dict[str, Any]]:
        return [
            {"name": str(p.get("name") or "").strip(), "percentage": percentage_of(p)}
            for p in self.providers
            if str(p.get("name") or "").strip() and percentage_of(p) > 0
        ]

    def save(self) -> Optional[List[Dict[str, Any]]]:
        """
        Return the filtered provider list and close, or None when the filled
        entries do not add up to 100 (the session stays open as INVALID).
        """
        self._require_open()
        filtered = self.filled()
        if filtered and not validate_providers(filtered):
            self.error = PROVIDER_TOTAL_ERROR
            self.state = AllocationState.INVALID
            logger.debug("provider allocation rejected", extra={"total_pct": self.total_percentage})
            return None
        self.saved = filtered
        self.error = ""
        self.state = AllocationState.SAVED
        return filtered

    def cancel(self) -> None:
        self._require_open()
        self.state = AllocationState.CANCELLED
