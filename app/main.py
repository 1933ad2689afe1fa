from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import settings
from app.core.exceptions import PipelineError, pipeline_error_handler
from app.core.logging import configure_logging
from app.api.v1 import pipeline, candidates, placements
import structlog
import uuid

configure_logging(settings.app_env)

app = FastAPI(
    title="Recruitment Pipeline API",
    description="Candidate pipeline, GDPR retention and placement back office",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(PipelineError, pipeline_error_handler)


@app.middleware("http")
async def bind_request_id(request: Request, call_next):
    """Tag every log line of a request with its request id"""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# Include API routers
app.include_router(pipeline.router, prefix="/api/v1/pipeline", tags=["Pipeline"])
app.include_router(candidates.router, prefix="/api/v1/candidates", tags=["Candidates"])
app.include_router(placements.router, prefix="/api/v1/placements", tags=["Placements"])


@app.get("/healthz")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "version": "1.0.0"}


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": "Recruitment Pipeline API", "docs": "/docs"}
