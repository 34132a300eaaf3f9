"""
Production Estimates API
FastAPI backend over async SQLAlchemy: projects CRUD in React-Admin simple REST
form, the estimate calculation engine, dashboard summary and PDF export.
"""
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

load_dotenv()

from app import config  # noqa: E402
from app.db import Base, close_db, init_db  # noqa: E402
from app.services.logging_config import setup_logging  # noqa: E402
from app.services.middleware import RequestTimingMiddleware, SecurityHeadersMiddleware  # noqa: E402

setup_logging(level=config.LOG_LEVEL, json_output=config.LOG_JSON)
logger = logging.getLogger("estimates-api")

# Startup validation
for var in ["DATABASE_URL", "JWT_SECRET_KEY"]:
    if not os.getenv(var):
        logger.warning(f"MISSING env var: {var}, running in dev mode")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield
    await close_db()


app = FastAPI(
    title="Production Estimates API",
    version="1.0.0",
    description="Project estimates, profitability metrics and provider splits",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With", "X-Request-ID"],
    expose_headers=["Content-Range", "X-Request-ID"],
)
app.add_middleware(SecurityHeadersMiddleware)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware)

# Routers
from app.api.auth_routes import router as auth_router  # noqa: E402
from app.api.project_routes import router as project_router  # noqa: E402
from app.api.estimate_routes import router as estimate_router  # noqa: E402
from app.api.dashboard_routes import router as dashboard_router  # noqa: E402

app.include_router(auth_router)
app.include_router(project_router)
app.include_router(estimate_router)
app.include_router(dashboard_router)


def _operation_name(request: Request) -> str:
    route = request.scope.get("route")
    name = getattr(route, "name", None) or request.url.path.strip("/").replace("/", " ")
    return name.replace("_", " ")


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    operation = _operation_name(request)
    logger.error(
        f"Unhandled error in {request.method} {request.url.path}: {exc}",
        exc_info=exc,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Server error", "message": f"Failed to {operation}. Please try again."},
    )


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/schema")
async def get_table_schema():
    """Column list of the projects table, as the admin UI expects it."""
    table = Base.metadata.tables["projects"]
    return [
        {
            "column_name": column.name,
            "data_type": str(column.type).lower(),
            "is_nullable": "YES" if column.nullable else "NO",
        }
        for column in table.columns
    ]


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
