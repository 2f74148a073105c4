"""
BrezelScraper Deployment Tooling

This package holds the deployment helpers for the BrezelScraper stack
(Google Maps scraper backend and its web frontend) together with a small
FastAPI application that reports build metadata.

Packages:
- api: FastAPI routers and services
- core: Application settings
- schemas: Pydantic schemas for responses
- cli: Command-line management commands
- utils: Environment files, docker, health polling and logging helpers

Usage:
    # Run the API server
    uvicorn brezel.main:app --port 8080

    # Deploy to staging
    python scripts/deploy/staging_release.py

Environment Variables:
    VERSION: Release version reported by the version endpoint
    BUILD_DATE: Build timestamp reported by the version endpoint
    GIT_COMMIT: Commit hash (only the first 7 characters are exposed)
    ENVIRONMENT: Deployment environment name (default: development)
    LOG_LEVEL: Logging level (default: INFO)
"""

__version__ = "0.1.0"
