"""
Health Report Engine - FastAPI Application

API endpoints for:
- Listing stored assessment sessions and configured assessment types
- Generating per-session PDF reports (cached per session)
- Previewing assembled report content as JSON
- Downloading generated reports
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool

from healthreport import __version__
from healthreport.config import Settings
from healthreport.core.registry import ReportDefinitionRegistry
from healthreport.core.reports.pipeline import ReportPipeline
from healthreport.core.reports.renderer import ReportlabRenderer
from healthreport.models import (
    AssessmentTypeSummary,
    HealthResponse,
    ReportRequest,
    ReportResponse,
    SessionSummary,
)
from healthreport.services import JsonAssessmentRepository, ReportService
from healthreport.utils import (
    ArtifactIOError,
    ArtifactNotFoundError,
    ConfigMissingError,
    DataMissingError,
    InvalidFileNameError,
    RenderFailureError,
    ReportEngineError,
    get_logger,
    setup_logging,
)

logger = get_logger(__name__)


def build_report_service(settings: Settings) -> ReportService:
    """Wire registry, repository and pipeline from settings."""
    registry = ReportDefinitionRegistry.from_file(settings.definitions_path)
    repository = JsonAssessmentRepository(settings.assessments_path)
    pipeline = ReportPipeline(
        output_dir=settings.output_dir,
        renderer=ReportlabRenderer(),
        naming=settings.naming_scheme,
        settle_delay=settings.settle_delay,
        timeout=settings.render_timeout,
    )
    return ReportService(repository, registry, pipeline)


# ---- Application Lifespan ----

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load settings and definitions: startup → yield → shutdown."""
    settings = Settings.from_env()
    setup_logging(level=settings.log_level, log_file=settings.log_file)

    app.state.settings = settings
    app.state.report_service = build_report_service(settings)

    logger.info(f"Report output directory: {settings.output_dir}")
    logger.info("API ready to accept requests")
    yield
    logger.info("Health Report API shut down.")


# ---- FastAPI Application ----

app = FastAPI(
    title="Health Report API",
    description="PDF report generation for stored health assessments",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_report_service(request: Request) -> ReportService:
    service = getattr(request.app.state, "report_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Report service not initialised")
    return service


def _download_url(request: Request, file_name: str) -> str:
    settings = getattr(request.app.state, "settings", None)
    prefix = settings.download_prefix if settings else "/api/v1/reports/download"
    return f"{prefix.rstrip('/')}/{file_name}"


_STATUS_CODES = {
    DataMissingError: 404,
    ConfigMissingError: 404,
    ArtifactNotFoundError: 404,
    InvalidFileNameError: 400,
    RenderFailureError: 500,
    ArtifactIOError: 500,
}


def _http_error(e: ReportEngineError) -> HTTPException:
    status_code = _STATUS_CODES.get(type(e), 500)
    if status_code >= 500:
        logger.error(f"{e.code}: {e.message}")
    else:
        logger.warning(f"{e.code}: {e.message}")
    return HTTPException(status_code=status_code, detail=e.to_dict())


# ---- API Endpoints ----

@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    service = get_report_service(request)
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now().isoformat(),
        assessment_types=len(service.registry),
    )


@app.get("/api/v1/sessions", response_model=List[SessionSummary], tags=["Sessions"])
async def list_sessions(request: Request):
    """Stored assessment sessions available for reporting."""
    service = get_report_service(request)
    return [SessionSummary(**summary) for summary in service.list_sessions()]


@app.get("/api/v1/assessment-types", response_model=List[AssessmentTypeSummary], tags=["Reference"])
async def list_assessment_types(request: Request):
    """Assessment types with a report definition."""
    service = get_report_service(request)
    return [
        AssessmentTypeSummary(
            assessment_type_id=definition.assessment_type_id,
            title=definition.title,
            sections=[section.title for section in definition.sections],
        )
        for definition in service.registry
    ]


@app.post("/api/v1/reports/generate", response_model=ReportResponse, tags=["Reports"])
async def generate_report(payload: ReportRequest, request: Request):
    """
    Generate the PDF report for a session.

    Repeat requests for the same session return the stored file.
    """
    service = get_report_service(request)
    try:
        result = await run_in_threadpool(service.generate, payload.session_id)
    except ReportEngineError as e:
        raise _http_error(e)

    artifact = result.artifact
    return ReportResponse(
        message="PDF report already exists" if artifact.reused else "PDF report generated successfully",
        session_id=payload.session_id,
        assessment_id=result.assessment_type_id,
        file_name=artifact.file_name,
        download_url=_download_url(request, artifact.file_name),
    )


@app.get("/api/v1/reports/preview/{session_id}", tags=["Reports"])
async def preview_report(session_id: str, request: Request):
    """Assembled report content as JSON, without rendering a PDF."""
    service = get_report_service(request)
    try:
        document = service.build_document(session_id)
    except ReportEngineError as e:
        raise _http_error(e)
    return document.to_dict()


@app.get("/api/v1/reports/download/{file_name}", tags=["Reports"])
async def download_report(file_name: str, request: Request):
    """
    Download a generated PDF report.
    """
    service = get_report_service(request)
    try:
        path = service.pipeline.resolve_artifact(file_name)
    except ReportEngineError as e:
        raise _http_error(e)

    return FileResponse(
        path=str(path),
        media_type="application/pdf",
        filename=file_name,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("healthreport.main:app", host="0.0.0.0", port=8000)
