"""
Brezel Core Package

This package contains application configuration for the FastAPI backend.

Modules:
- settings: pydantic-settings based application and build settings

Environment Variables:
    API_PREFIX: Prefix for versioned API routes (default: /api/v1)
    CORS_ORIGINS: Comma-separated extra origins allowed by CORS
"""
