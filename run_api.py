#!/usr/bin/env python3
"""
Simple script to run the FastAPI server
"""
import uvicorn

from sitemap_config import API_HOST, API_PORT

if __name__ == "__main__":
    uvicorn.run(
        "api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=True,  # Set to False for production
        log_level="info",
    )
