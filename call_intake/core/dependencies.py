"""FastAPI dependencies for the ingestion pipeline."""

from fastapi import Request

from call_intake.core.config import settings
from call_intake.services.call_analyzer import CallAnalyzer
from call_intake.services.crm import CrmForwarder
from call_intake.services.pipeline import IngestionPipeline


def build_pipeline() -> IngestionPipeline:
    """Wire the pipeline's collaborators from settings. Called once at startup."""
    return IngestionPipeline(
        analyzer=CallAnalyzer.from_settings(),
        forwarder=CrmForwarder.from_settings(),
        database_check_enabled=settings.DATABASE_CHECK_ENABLED,
    )


def get_pipeline(request: Request) -> IngestionPipeline:
    """The pipeline built in the app lifespan.

    Tests replace it through app.dependency_overrides.
    """
    return request.app.state.pipeline
