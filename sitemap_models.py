"""
Value objects shared by discovery, parsing, filtering and export.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class PageRecord(BaseModel):
    """One <url> entry of a sitemap"""
    location: str = Field(..., min_length=1, description="Absolute page URL (<loc>)")
    last_modified: Optional[str] = Field(None, description="<lastmod>, passed through verbatim")
    change_frequency: Optional[str] = Field(None, description="<changefreq>")
    priority: Optional[str] = Field(None, description="<priority>, kept as text")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "location": "https://www.example.com/blog/hello-world",
                "last_modified": "2024-05-01",
                "change_frequency": "weekly",
                "priority": "0.8",
            }
        }


class FilterSpec(BaseModel):
    """Include/exclude criteria; an empty field is an inactive criterion"""
    include_keywords: str = Field("", description="Whitespace-separated tokens that must all appear")
    include_pattern: str = Field("", description="Case-insensitive regex that must match")
    exclude_keywords: str = Field("", description="Whitespace-separated tokens that must not appear")
    exclude_pattern: str = Field("", description="Case-insensitive regex that must not match")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "include_keywords": "blog",
                "include_pattern": "/20(23|24)/",
                "exclude_keywords": "tag category",
                "exclude_pattern": "\\?page=",
            }
        }

    @property
    def is_empty(self) -> bool:
        return not (self.include_keywords or self.include_pattern or self.exclude_keywords or self.exclude_pattern)


class SitemapResource(BaseModel):
    """Raw response of the candidate location that answered successfully"""
    url: str
    content: bytes
    content_type: str = ""
    attempts: List[str] = Field(default_factory=list, description="Candidate URLs tried, in order")

    class Config:
        frozen = True
