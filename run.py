#!/usr/bin/env python3
"""Startup script for deployment."""
import uvicorn

from sammilan.config import settings

if __name__ == "__main__":
    print(f"Starting Sammilan API on {settings.host}:{settings.port}")
    uvicorn.run(
        "sammilan.main:app",
        host=settings.host,
        port=settings.port,
        log_level="info"
    )
