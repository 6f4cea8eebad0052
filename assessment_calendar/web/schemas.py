from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class Assessment(BaseModel):
    id: int = Field(..., serialization_alias="ID")
    name: str
    description: str = ""
    submit_date: str
    color: str


class AssessmentListResponse(BaseModel):
    success: bool = True
    data: list[Assessment]
    message: str


class AssessmentResponse(BaseModel):
    success: bool = True
    data: Assessment
    message: str


class HealthResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    error: Optional[str] = None

    def to_content(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ServiceIndex(BaseModel):
    message: str
    version: str
    endpoints: dict[str, str]
