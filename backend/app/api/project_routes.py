"""
Projects CRUD routes — React-Admin simple REST contract.

GET    /api/projects        — list with filter / sort / range, Content-Range header
GET    /api/projects/{id}   — one project
POST   /api/projects        — create (project_name, client_name, producer required)
PUT    /api/projects/{id}   — partial update of allow-listed columns
DELETE /api/projects/{id}   — delete
"""
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app import config
from app.api.deps import get_current_user, get_project_or_404
from app.db import get_db
from app.models.estimate_schema import StoredSection, sections_to_storage
from app.models.orm_models import Project
from app.services.project_query import build_list_query, content_range

router = APIRouter(prefix="/api/projects", tags=["Projects"])
logger = logging.getLogger("estimates-projects")


class ProjectCreateRequest(BaseModel):
    project_name: Optional[str] = None
    client_name: Optional[str] = None
    producer: Optional[str] = None
    status: str = config.DEFAULT_STATUS


def _check_status(status: Any) -> None:
    if status not in config.PROJECT_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status '{status}'. Expected one of: {', '.join(config.PROJECT_STATUSES)}",
        )


def _clean_update(body: Dict[str, Any]) -> Dict[str, Any]:
    """Keep allow-listed columns only; estimate_json may arrive as a JSON string."""
    ignored = sorted(set(body) - config.UPDATABLE_COLUMNS)
    if ignored:
        logger.info(f"Ignoring non-updatable fields: {', '.join(ignored)}")

    data = {k: v for k, v in body.items() if k in config.UPDATABLE_COLUMNS}
    if "status" in data:
        _check_status(data["status"])
    if isinstance(data.get("estimate_json"), str):
        try:
            data["estimate_json"] = json.loads(data["estimate_json"]) if data["estimate_json"].strip() else None
        except ValueError:
            raise HTTPException(status_code=400, detail="estimate_json is not valid JSON")
    if data.get("estimate_json") is not None:
        data["estimate_json"] = _stored_sections(data["estimate_json"])
    return data


def _stored_sections(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        raise HTTPException(status_code=400, detail="estimate_json must be a list of estimate sections")
    try:
        sections = [StoredSection.model_validate(section) for section in value]
    except ValidationError as e:
        logger.info(f"Rejected estimate_json: {e.error_count()} validation error(s)")
        raise HTTPException(status_code=400, detail="estimate_json must be a list of estimate sections")
    return sections_to_storage(sections)


@router.get("")
async def list_projects(
    response: Response,
    filter_param: Optional[str] = Query(None, alias="filter"),
    sort_param: Optional[str] = Query(None, alias="sort"),
    range_param: Optional[str] = Query(None, alias="range"),
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    query = build_list_query(filter_param, sort_param, range_param)
    total = await db.scalar(query.select_count()) or 0
    result = await db.execute(query.select_rows())
    projects = result.scalars().all()

    response.headers["Content-Range"] = content_range(query.start, len(projects), total)
    response.headers["Access-Control-Expose-Headers"] = "Content-Range"
    return [p.to_dict() for p in projects]


@router.get("/{project_id}")
async def get_project(
    user: dict = Depends(get_current_user),
    project: Project = Depends(get_project_or_404),
):
    return project.to_dict()


@router.post("", status_code=201)
async def create_project(
    req: ProjectCreateRequest,
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    if not (req.project_name and req.client_name and req.producer):
        raise HTTPException(status_code=400, detail="Missing required fields")
    _check_status(req.status)

    project = Project(
        project_name=req.project_name,
        client_name=req.client_name,
        producer=req.producer,
        status=req.status,
    )
    db.add(project)
    await db.flush()
    await db.refresh(project)
    logger.info(f"Project created: {project.id}", extra={"project_id": project.id})
    return project.to_dict()


@router.put("/{project_id}")
async def update_project(
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    project: Project = Depends(get_project_or_404),
    db: AsyncSession = Depends(get_db),
):
    data = _clean_update(body)
    if not data:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    for key, value in data.items():
        setattr(project, key, value)
    await db.flush()
    await db.refresh(project)
    logger.info(
        f"Project {project.id} updated: {', '.join(sorted(data))}",
        extra={"project_id": project.id},
    )
    return project.to_dict()


@router.delete("/{project_id}")
async def delete_project(
    user: dict = Depends(get_current_user),
    project: Project = Depends(get_project_or_404),
    db: AsyncSession = Depends(get_db),
):
    project_id = project.id
    await db.delete(project)
    await db.flush()
    logger.info(f"Project deleted: {project_id}", extra={"project_id": project_id})
    return {"message": "Project deleted successfully", "id": project_id}
