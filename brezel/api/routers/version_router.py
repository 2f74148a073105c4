"""
Version API Router.
"""
import logging
import traceback

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from brezel.core.settings import settings
from brezel.schemas.version_schema import VersionResponse
from brezel.api.services.version_service import (
    encode_version_info,
    get_version_info,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.api_prefix, tags=["version"])


@router.get("/version", response_model=VersionResponse)
def get_version():
    """
    Get build metadata.

    This endpoint does not require authentication.
    Exposes version, build_date, git_commit_short (7 chars) and environment.
    """
    try:
        body = encode_version_info(get_version_info())
    except Exception as e:
        logger.error(f"Error encoding version response: {e}")
        logger.error(traceback.format_exc())
        raise HTTPException(status_code=500, detail="Failed to encode response")
    return Response(content=body, media_type="application/json")
