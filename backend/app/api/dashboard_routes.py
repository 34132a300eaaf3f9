"""Dashboard summary — portfolio totals and distributions over all projects."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.db import get_db
from app.models.orm_models import Project
from app.services.dashboard import summarize_projects

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])
logger = logging.getLogger("estimates-dashboard")


@router.get("/summary")
async def get_dashboard_summary(
    db: AsyncSession = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    result = await db.execute(
        select(Project).order_by(Project.creation_date.desc(), Project.id.desc())
    )
    projects = [p.to_dict() for p in result.scalars().all()]
    logger.debug(f"Dashboard summary over {len(projects)} projects")
    return summarize_projects(projects)
