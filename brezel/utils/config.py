"""
Deployment configuration management.

This module provides centralized configuration loading for the
deployment scripts.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

REGISTRY = "ghcr.io"
BACKEND_IMAGE = "yasseen-salama/google-maps-scraper"
FRONTEND_IMAGE = "yasseen-salama/scraper-webapp"
DEFAULT_GITHUB_USER = "yasseen-salama"

REQUIRED_STAGING_VARS = (
    "DSN",
    "CLERK_API_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
)


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}") from None


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {value!r}") from None


@dataclass
class DeployConfig:
    """
    Configuration container for the deployment scripts.

    Values come from the process environment (and a local .env loaded by
    python-dotenv) with defaults matching the staging server layout.
    """

    # Registry
    registry: str = REGISTRY
    backend_image: str = BACKEND_IMAGE
    frontend_image: str = FRONTEND_IMAGE
    github_user: str = DEFAULT_GITHUB_USER
    github_token: str = ""

    # Deployment target
    environment: str = "staging"
    project_dir: Path = field(default_factory=Path.cwd)
    compose_file: str = "docker-compose.yaml"
    staging_compose_file: str = "docker-compose.staging.yaml"
    dev_compose_file: str = "docker-compose.dev.yaml"
    local_image: str = "brezel-staging-test"

    # Containers
    backend_container: str = "brezelscraper-backend"
    frontend_container: str = "brezelscraper-frontend"
    backend_service: str = "backend"

    # Health checks
    backend_port: int = 8080
    frontend_port: int = 3000
    health_max_attempts: int = 30
    health_interval: float = 2.0
    frontend_max_attempts: int = 10

    # Build
    no_cache: bool = False

    # Retention
    env_backups_to_keep: int = 10
    image_backups_to_keep: int = 5

    @property
    def backend_health_url(self) -> str:
        return f"http://localhost:{self.backend_port}/health"

    @property
    def frontend_url(self) -> str:
        return f"http://localhost:{self.frontend_port}"

    @property
    def status_url(self) -> str:
        return f"http://localhost:{self.backend_port}/api/v1/status"

    def image_ref(self, image: str, tag: Optional[str] = None) -> str:
        """Full registry reference, e.g. ``ghcr.io/owner/name:staging``."""
        return f"{self.registry}/{image}:{tag or self.environment}"

    @classmethod
    def from_env(cls, project_dir: Optional[Path] = None) -> "DeployConfig":
        """
        Create a DeployConfig instance from environment variables.

        Variables already set in the environment win over the project's
        .env file.

        Args:
            project_dir: Project root (default: current directory)

        Returns:
            DeployConfig instance with values from environment
        """
        project_dir = Path(project_dir) if project_dir else Path.cwd()
        load_dotenv(project_dir / ".env")

        return cls(
            registry=os.getenv("REGISTRY", REGISTRY),
            backend_image=os.getenv("BACKEND_IMAGE", BACKEND_IMAGE),
            frontend_image=os.getenv("FRONTEND_IMAGE", FRONTEND_IMAGE),
            github_user=os.getenv("GITHUB_USER") or DEFAULT_GITHUB_USER,
            github_token=os.getenv("GITHUB_TOKEN", ""),
            project_dir=project_dir,
            health_max_attempts=_env_int("HEALTH_MAX_ATTEMPTS", 30),
            health_interval=_env_float("HEALTH_INTERVAL", 2.0),
            no_cache=os.getenv("NO_CACHE", "0") == "1",
        )
