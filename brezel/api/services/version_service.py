"""
Version Service.

Assembles build metadata from the process environment.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

from brezel.core.settings import BuildSettings
from brezel.schemas.version_schema import VersionResponse

logger = logging.getLogger(__name__)

SHORT_COMMIT_LENGTH = 7


def shorten_commit(commit: Optional[str]) -> str:
    """
    Shorten a commit hash to its first 7 characters.

    Hashes of 7 characters or fewer are returned unchanged.
    """
    if not commit:
        return ""
    if len(commit) > SHORT_COMMIT_LENGTH:
        return commit[:SHORT_COMMIT_LENGTH]
    return commit


def get_version_info() -> VersionResponse:
    """
    Read build metadata from the environment.

    Values are read on every call so a restarted process or a test that
    changes the environment sees the current values.
    """
    build = BuildSettings()
    return VersionResponse(
        version=build.version,
        build_date=build.build_date,
        git_commit_short=shorten_commit(build.git_commit),
        environment=build.environment,
    )


def encode_version_info(info: VersionResponse) -> str:
    """Serialize version info to a JSON string in declared field order."""
    return json.dumps(info.model_dump())
