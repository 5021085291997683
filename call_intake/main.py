from contextlib import asynccontextmanager
from fastapi import FastAPI
from call_intake.api.router import api_router
from call_intake.core.config import settings
from call_intake.core.database import engine
from call_intake.core.dependencies import build_pipeline
from call_intake.core.logging_config import configure_logging

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    configure_logging()
    # Collaborators are built once and shared, read-only, by every request
    app.state.pipeline = build_pipeline()
    yield
    await engine.dispose()


app = FastAPI(
    title="Call Intake API",
    description="End-of-call webhook receiver: caller records and CRM forwarding",
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "ok", "service": "call-intake-api", "version": VERSION, "env": settings.APP_ENV}
