from typing import Any, List, Optional, Union
from pydantic import BaseModel, Field


class ProviderEntry(BaseModel):
    """One party sharing a row's actual cost. Percentage may arrive as text from the editor."""
    name: str = ""
    percentage: Optional[Union[int, str]] = None


class StoredSection(BaseModel):
    """
    One section in storage form, as kept in projects.estimate_json.

    rows[i] is positional: service, description, duration, unit, qty,
    priceEst, discount, factor, cr, priceAct.
    """
    sectionId: str = Field(..., description="e.g. pre-production, production")
    rows: List[List[Any]] = Field(default_factory=list)
    providersData: List[List[ProviderEntry]] = Field(default_factory=list)


class RowEdit(BaseModel):
    sectionId: str
    rowIndex: int = Field(..., ge=0)
    field: str
    value: Any = None


class EstimateEditRequest(BaseModel):
    sections: List[StoredSection] = Field(default_factory=list)
    edit: RowEdit


class ProviderCheckRequest(BaseModel):
    providers: List[ProviderEntry] = Field(default_factory=list)


class ProviderCheckResponse(BaseModel):
    valid: bool
    total: int
    message: str = ""


def sections_to_storage(sections: List[StoredSection]) -> List[dict]:
    return [s.model_dump() for s in sections]
