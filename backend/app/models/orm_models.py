"""ORM Models for the Estimates backend — SQLAlchemy 2.0"""
from datetime import datetime
from typing import Any, Optional
from sqlalchemy import JSON, String, Integer, Numeric, DateTime, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from app.db import Base


def _money():
    return Numeric(14, 2, asdecimal=False)


# ── PROJECTS ──────────────────────────────────────────────────────────────────
class Project(Base):
    __tablename__ = "projects"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    creation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    producer: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="New", server_default="New")
    # Metrics written by the estimate editor on save
    total_project_cost: Mapped[float] = mapped_column(_money(), default=0, server_default="0")
    total_expenses: Mapped[float] = mapped_column(_money(), default=0, server_default="0")
    total_bonuses: Mapped[float] = mapped_column(_money(), default=0, server_default="0")
    net_profit: Mapped[float] = mapped_column(_money(), default=0, server_default="0")
    profitability: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    final_profit: Mapped[float] = mapped_column(_money(), default=0, server_default="0")
    # Storage form of the estimate sections (see services.estimate_editor)
    estimate_json: Mapped[Optional[Any]] = mapped_column(JSON().with_variant(JSONB(), "postgresql"))

    __table_args__ = (
        Index("ix_projects_creation_date", "creation_date"),
        Index("ix_projects_status", "status"),
    )

    def to_dict(self) -> dict:
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}
