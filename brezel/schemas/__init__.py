"""
Brezel Pydantic Schemas

This package contains Pydantic models for response validation
in the FastAPI application.

Schemas:
- version_schema: Build metadata and health check schemas
"""
