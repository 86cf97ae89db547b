"""
Pydantic models for API requests and responses
"""
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any, Literal
from datetime import datetime

from sitemap_models import FilterSpec, PageRecord


# ============================================================================
# REQUEST MODELS
# ============================================================================

class SitemapFetchRequest(BaseModel):
    """Request model for sitemap discovery + parsing"""
    url: str = Field(..., description="Website, page or sitemap URL")
    timeout: Optional[float] = Field(None, ge=1.0, le=120.0, description="Per-request timeout in seconds")

    class Config:
        json_schema_extra = {
            "example": {
                "url": "example.com",
                "timeout": 15.0,
            }
        }


class FilterRequest(BaseModel):
    """Request model for filtering previously fetched records"""
    records: List[PageRecord] = Field(default_factory=list)
    spec: FilterSpec = Field(default_factory=FilterSpec)


class FilterPreviewRequest(FilterRequest):
    limit: int = Field(10, ge=0, le=1000, description="Number of matching URLs to include in the preview")


class PatternValidationRequest(BaseModel):
    pattern: str = Field("", description="Regular expression to check")


class ExportRequest(BaseModel):
    """Request model for exporting records"""
    records: List[PageRecord] = Field(default_factory=list)
    format: Literal["xlsx", "csv", "json"] = Field("xlsx", description="File format")
    filename: Optional[str] = Field(None, description="Download file name (default: sitemap_urls.<format>)")


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class SitemapFetchResponse(BaseModel):
    url: str
    sitemap_url: str
    total: int
    records: List[PageRecord]


class FilterResponse(BaseModel):
    total: int
    matched: int
    records: List[PageRecord]


class FilterPreviewResponse(BaseModel):
    total: int
    matched: int
    preview: List[str]
    errors: Dict[str, str] = Field(default_factory=dict)


class PatternValidationResponse(BaseModel):
    valid: bool
    error: Optional[str] = None


class JobResponse(BaseModel):
    job_id: str
    message: str
    status: Literal["running", "completed", "failed"]


class JobStatus(BaseModel):
    """Job status model"""
    job_id: str
    type: Literal["fetch"] = "fetch"
    url: str
    status: Literal["pending", "running", "completed", "failed"]
    progress: int = Field(0, ge=0, le=100, description="Progress percentage")
    status_message: str = ""
    created_at: datetime
    completed_at: Optional[datetime] = None
    result: Optional[SitemapFetchResponse] = None
    error: Optional[Dict[str, Any]] = None
