"""
FastAPI application for the Sitemap Finder
"""
from fastapi import FastAPI, BackgroundTasks, HTTPException, Query
from fastapi.responses import Response
from fastapi.middleware.cors import CORSMiddleware
from typing import List, Optional, Dict
from datetime import datetime
import uuid

from sitemap_config import log
from sitemap_errors import SitemapError
from api.models import (
    SitemapFetchRequest,
    SitemapFetchResponse,
    FilterRequest,
    FilterResponse,
    FilterPreviewRequest,
    FilterPreviewResponse,
    PatternValidationRequest,
    PatternValidationResponse,
    ExportRequest,
    JobResponse,
    JobStatus,
)
from api.services import (
    SitemapService,
    FilterService,
    ExportService,
    error_payload,
    error_status,
)

app = FastAPI(
    title="Sitemap Finder API",
    description="API for locating, parsing, filtering and exporting website sitemaps",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services
sitemap_service = SitemapService()
filter_service = FilterService()
export_service = ExportService()

# Job tracking (in-memory only)
job_status: Dict[str, JobStatus] = {}


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "name": "Sitemap Finder API",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "fetch": "/api/v1/sitemap/fetch",
            "jobs": "/api/v1/sitemap/jobs",
            "filter": "/api/v1/filter",
            "preview": "/api/v1/filter/preview",
            "validate": "/api/v1/filter/validate",
            "export": "/api/v1/export",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


# ============================================================================
# SITEMAP ENDPOINTS
# ============================================================================

@app.post("/api/v1/sitemap/fetch", response_model=SitemapFetchResponse)
async def fetch_sitemap(request: SitemapFetchRequest):
    """
    Locate the sitemap for a URL and return its page records.

    A sitemap index is answered with 409 and the list of child sitemaps,
    one of which can be fetched explicitly.
    """
    try:
        return await sitemap_service.fetch(request.url, timeout=request.timeout)
    except SitemapError as e:
        raise HTTPException(status_code=error_status(e), detail=error_payload(e))


@app.post("/api/v1/sitemap/jobs", response_model=JobResponse)
async def start_fetch_job(
    request: SitemapFetchRequest,
    background_tasks: BackgroundTasks,
):
    """
    Start sitemap discovery in the background.

    Poll /api/v1/jobs/{job_id} for progress and the result.
    """
    job_id = f"fetch_{uuid.uuid4().hex[:12]}"

    job_status[job_id] = JobStatus(
        job_id=job_id,
        url=request.url,
        status="pending",
        created_at=datetime.utcnow(),
        progress=0,
        status_message="Initializing...",
    )

    background_tasks.add_task(
        _run_fetch,
        job_id=job_id,
        request=request,
    )

    return JobResponse(
        job_id=job_id,
        message="Sitemap discovery started",
        status="running",
    )


async def _run_fetch(job_id: str, request: SitemapFetchRequest):
    """Background task for sitemap discovery"""
    job = job_status[job_id]
    job.status = "running"

    def on_progress(status: str, percent: int) -> None:
        job.progress = percent
        job.status_message = status

    try:
        result = await sitemap_service.fetch(request.url, on_progress=on_progress, timeout=request.timeout)
        job.status = "completed"
        job.progress = 100
        job.status_message = "Complete!"
        job.result = result
    except SitemapError as e:
        log("api", f"Job {job_id} failed: {type(e).__name__}")
        job.status = "failed"
        job.progress = 0
        job.status_message = ""
        job.error = error_payload(e)
    except Exception as e:
        log("api", f"Job {job_id} crashed: {type(e).__name__}: {e}")
        job.status = "failed"
        job.error = {"type": type(e).__name__, "message": str(e)}
    finally:
        job.completed_at = datetime.utcnow()


# ============================================================================
# FILTER ENDPOINTS
# ============================================================================

@app.post("/api/v1/filter", response_model=FilterResponse)
async def filter_records(request: FilterRequest):
    """Apply include/exclude keyword and pattern criteria"""
    kept = filter_service.apply(request.records, request.spec)
    return FilterResponse(total=len(request.records), matched=len(kept), records=kept)


@app.post("/api/v1/filter/preview", response_model=FilterPreviewResponse)
async def preview_records(request: FilterPreviewRequest):
    """Match count and first matching URLs, plus any invalid pattern messages"""
    return filter_service.preview(request.records, request.spec, limit=request.limit)


@app.post("/api/v1/filter/validate", response_model=PatternValidationResponse)
async def validate_pattern(request: PatternValidationRequest):
    error = filter_service.validate_pattern(request.pattern)
    return PatternValidationResponse(valid=error is None, error=error)


# ============================================================================
# EXPORT ENDPOINTS
# ============================================================================

@app.post("/api/v1/export")
async def export_records(request: ExportRequest):
    """Download records as XLSX, CSV or JSON"""
    if not request.records:
        raise HTTPException(status_code=400, detail="No URLs to export")
    body, media_type = export_service.render(request.records, request.format)
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": export_service.content_disposition(request.filename, request.format)},
    )


# ============================================================================
# JOB ENDPOINTS
# ============================================================================

@app.get("/api/v1/jobs/{job_id}", response_model=JobStatus)
async def get_job_status(job_id: str):
    """Get status of a specific job"""
    if job_id not in job_status:
        raise HTTPException(status_code=404, detail="Job not found")
    return job_status[job_id]


@app.get("/api/v1/jobs", response_model=List[JobStatus])
async def list_jobs(
    status: Optional[str] = Query(None, description="Filter by status"),
    limit: int = Query(50, ge=1, le=500),
):
    """List all jobs"""
    jobs = list(job_status.values())

    if status:
        jobs = [j for j in jobs if j.status == status]

    # Sort by created_at descending
    jobs.sort(key=lambda x: x.created_at, reverse=True)

    return jobs[:limit]


@app.delete("/api/v1/jobs/{job_id}")
async def delete_job(job_id: str):
    """Delete a job from tracking"""
    if job_id not in job_status:
        raise HTTPException(status_code=404, detail="Job not found")

    del job_status[job_id]
    return {"message": "Job deleted", "job_id": job_id}
