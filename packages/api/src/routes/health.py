# This project was developed with assistance from AI tools.
"""Liveness and database health."""

from db import DatabaseService, get_db_service
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .. import __version__

router = APIRouter()


class HealthItem(BaseModel):
    name: str
    status: str
    message: str
    version: str | None = None


@router.get("/", response_model=list[HealthItem])
async def health(db_service: DatabaseService = Depends(get_db_service)) -> list[HealthItem]:
    """API and database status. Always 200; inspect each item's status."""
    db_ok = await db_service.health_check()
    dialect = db_service.engine.dialect.name
    return [
        HealthItem(name="API", status="healthy", message="API is running", version=__version__),
        HealthItem(
            name="Database",
            status="healthy" if db_ok else "unhealthy",
            message=f"{dialect} connection {'ok' if db_ok else 'failed'}",
        ),
    ]
