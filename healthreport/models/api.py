"""
API Request/Response Schemas
"""
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ReportRequest(BaseModel):
    """Request to generate (or fetch the cached) report for a session."""
    session_id: str = Field(..., min_length=1, max_length=128, pattern=r"^[A-Za-z0-9_-]+$")

    class Config:
        json_schema_extra = {"example": {"session_id": "session_001"}}


class ReportResponse(BaseModel):
    success: bool = True
    message: str = "PDF report generated successfully"
    session_id: str
    assessment_id: str
    file_name: str
    download_url: str


class SessionSummary(BaseModel):
    session_id: str
    assessment_id: Optional[str] = None
    timestamp: Optional[Any] = None
    accuracy: Optional[float] = None


class AssessmentTypeSummary(BaseModel):
    assessment_type_id: str
    title: str
    sections: List[str]


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    assessment_types: int
