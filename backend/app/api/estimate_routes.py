"""
Estimate Routes — the estimate editor's server side.

GET  /api/projects/{id}/estimate          — stored estimate, recalculated, with metrics
PUT  /api/projects/{id}/estimate          — validate, recalculate and persist an estimate
GET  /api/projects/{id}/estimate/pdf      — PDF export
POST /api/estimates/calculate             — stateless recalculation of posted sections
POST /api/estimates/edit                  — apply one cell edit to posted sections
POST /api/estimates/providers/validate    — provider percentage check
GET  /api/sections                        — section catalogue
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app import config
from app.api.deps import get_current_user, get_project_or_404
from app.db import get_db
from app.models.estimate_schema import (
    EstimateEditRequest,
    ProviderCheckRequest,
    ProviderCheckResponse,
    StoredSection,
    sections_to_storage,
)
from app.models.orm_models import Project
from app.services.calculations import check_providers
from app.services.estimate_editor import EstimateEditError, EstimateEditor, non_blank_providers
from app.services.report_engine import ReportEngine

router = APIRouter(prefix="/api", tags=["Estimates"])
logger = logging.getLogger("estimates-editor-routes")


def _editor_for(sections: List[StoredSection]) -> EstimateEditor:
    seen = set()
    for section in sections:
        if section.sectionId not in config.SECTION_TITLES:
            raise HTTPException(status_code=400, detail=f"Unknown section '{section.sectionId}'")
        if section.sectionId in seen:
            raise HTTPException(status_code=400, detail=f"Duplicate section '{section.sectionId}'")
        seen.add(section.sectionId)
    return EstimateEditor.from_storage(sections_to_storage(sections))


def _first_invalid_row(editor: EstimateEditor):
    for section_id, section in editor.sections.items():
        for index, row in enumerate(section["rows"]):
            result = check_providers(non_blank_providers(row.get("providers")))
            if not result.valid:
                return section_id, index, result
    return None


@router.get("/sections")
async def list_sections(user: dict = Depends(get_current_user)):
    return {
        "sections": [{"id": s, "title": config.SECTION_TITLES[s]} for s in config.SECTION_ORDER],
        "headers": config.COMMON_HEADERS,
    }


@router.get("/projects/{project_id}/estimate")
async def get_estimate(
    user: dict = Depends(get_current_user),
    project: Project = Depends(get_project_or_404),
):
    editor = EstimateEditor.from_storage(project.estimate_json)
    return {"projectId": project.id, **editor.snapshot()}


@router.put("/projects/{project_id}/estimate")
async def save_estimate(
    sections: List[StoredSection],
    user: dict = Depends(get_current_user),
    project: Project = Depends(get_project_or_404),
    db: AsyncSession = Depends(get_db),
):
    editor = _editor_for(sections)
    invalid = _first_invalid_row(editor)
    if invalid:
        section_id, index, result = invalid
        raise HTTPException(
            status_code=400,
            detail={"message": result.message, "sectionId": section_id, "rowIndex": index, "total": result.total},
        )

    project.estimate_json = editor.to_storage()
    for column, value in editor.metrics.as_columns().items():
        setattr(project, column, value)
    await db.flush()
    await db.refresh(project)

    logger.info(
        f"Estimate saved for project {project.id}: {len(editor.sections)} sections, "
        f"profitability {editor.metrics.profitability}%",
        extra={"project_id": project.id},
    )
    return project.to_dict()


@router.get("/projects/{project_id}/estimate/pdf")
async def export_estimate_pdf(
    user: dict = Depends(get_current_user),
    project: Project = Depends(get_project_or_404),
):
    editor = EstimateEditor.from_storage(project.estimate_json)
    path = ReportEngine(config.DOWNLOAD_DIR).generate_estimate_pdf(project.to_dict(), editor)
    logger.info(f"Estimate PDF exported for project {project.id}", extra={"project_id": project.id})
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=f"estimate_{project.id}.pdf",
    )


@router.post("/estimates/calculate")
async def calculate_estimate(
    sections: List[StoredSection],
    user: dict = Depends(get_current_user),
):
    return _editor_for(sections).snapshot()


@router.post("/estimates/edit")
async def edit_estimate(
    req: EstimateEditRequest,
    user: dict = Depends(get_current_user),
):
    """Apply one cell edit and return the updated sections with fresh metrics."""
    editor = _editor_for(req.sections)
    edit = req.edit
    try:
        if edit.field == "providers":
            if not isinstance(edit.value or [], list):
                raise EstimateEditError("providers must be a list")
            editor.update_providers(edit.sectionId, edit.rowIndex, edit.value or [])
        else:
            editor.update_row(edit.sectionId, edit.rowIndex, edit.field, edit.value)
    except EstimateEditError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {**editor.snapshot(), "storage": editor.to_storage()}


@router.post("/estimates/providers/validate", response_model=ProviderCheckResponse)
async def validate_provider_split(
    req: ProviderCheckRequest,
    user: dict = Depends(get_current_user),
):
    providers = non_blank_providers([p.model_dump() for p in req.providers])
    result = check_providers(providers)
    return ProviderCheckResponse(valid=result.valid, total=result.total, message=result.message)
