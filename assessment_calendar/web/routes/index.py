from __future__ import annotations

from fastapi import APIRouter

from assessment_calendar.infrastructure.config import get_settings
from assessment_calendar.web.schemas import ServiceIndex

router = APIRouter(tags=["index"])

ENDPOINTS = {
    "GET /api/calendar": "Get all assessments",
    "GET /api/calendar/:date": "Get assessments by date",
    "POST /api/calendar": "Create new assessment",
    "PUT /api/calendar/:id": "Update assessment",
    "DELETE /api/calendar/:id": "Delete assessment",
    "GET /api/health": "Health check",
}


@router.get("/", response_model=ServiceIndex)
async def service_index() -> ServiceIndex:
    settings = get_settings()
    return ServiceIndex(
        message="Calendar API Server",
        version=settings.app.version,
        endpoints=ENDPOINTS,
    )
