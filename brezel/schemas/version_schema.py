"""
Version and Health Schemas.
"""
from __future__ import annotations

from pydantic import BaseModel, Field


class VersionResponse(BaseModel):
    """
    Build metadata exposed by the version endpoint.

    The full commit hash and interpreter version are intentionally absent.
    """
    version: str = Field("", description="Release version")
    build_date: str = Field("", description="Build timestamp")
    git_commit_short: str = Field(
        "",
        max_length=7,
        description="Commit hash shortened to 7 characters",
    )
    environment: str = Field("development", description="Deployment environment")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field("ok", description="Service status")
