#!/usr/bin/env python3
"""
Deploy pre-built images to the staging server.

Pulls the backend and frontend images published by CI to the GitHub
Container Registry, restarts the compose stack and waits for the backend
health check. Any failure after the .env backup was taken restores the
previous .env and brings the old stack back up.

Based on deploy-staging.sh.

Usage:
    python staging_release.py
    python staging_release.py --project-dir /opt/brezelscraper

Environment Variables:
    GITHUB_TOKEN: Token for ghcr.io (public images only when unset)
    GITHUB_USER: Registry user (default: yasseen-salama)
    LOG_LEVEL: Logging level (default: INFO)
"""

import argparse
import getpass
import logging
import sys
import time
import traceback
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from brezel.utils.config import DeployConfig
from brezel.utils.docker import CommandError, Docker
from brezel.utils.env_file import (
    EnvFileError,
    backup_env_file,
    configure_concurrency,
    ensure_env_file,
    prune_backups,
    restore_latest_backup,
)
from brezel.utils.health import wait_for_http
from brezel.utils.logging_setup import setup_logging
from brezel.utils.system import cpu_count, server_ip

logger = logging.getLogger(__name__)

STARTUP_WAIT_SECONDS = 10
COMPOSE_DOWN_TIMEOUT = 30
FALLBACK_TAG = "develop"


class DeploymentError(Exception):
    """Raised when a deployment step fails."""


def current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


class StagingRelease:
    """
    Registry-based staging deployment.

    Attributes:
        backup_created: Set once .env has been backed up; failures after this
            point trigger a rollback.
    """

    def __init__(
        self,
        config: DeployConfig,
        docker: Optional[Docker] = None,
        startup_wait: float = STARTUP_WAIT_SECONDS,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.config = config
        self.docker = docker or Docker(config.project_dir)
        self.startup_wait = startup_wait
        self.sleep = sleep or time.sleep
        self.backup_created = False

    @property
    def env_path(self) -> Path:
        return self.config.project_dir / ".env"

    @property
    def compose_file(self) -> str:
        return self.config.compose_file

    def validate(self) -> None:
        """Check the compose file is present before touching anything."""
        if not (self.config.project_dir / self.compose_file).exists():
            logger.error("Are you in the correct directory?")
            raise DeploymentError(f"docker-compose file not found: {self.compose_file}")

    def login(self) -> None:
        if not self.config.github_token:
            logger.warning("GITHUB_TOKEN not set. Will attempt to pull public images only.")
            return
        logger.info("Logging in to GitHub Container Registry...")
        try:
            self.docker.login(self.config.registry, self.config.github_user, self.config.github_token)
        except CommandError as e:
            raise DeploymentError("Failed to login to GitHub Container Registry") from e

    def prepare_env(self) -> None:
        """Ensure .env exists, back it up and tune it for this host."""
        logger.info("Configuring environment variables...")
        example = self.config.project_dir / ".env.example"
        if not self.env_path.exists():
            logger.warning("No .env file found")
        try:
            if ensure_env_file(self.env_path, example):
                logger.info("Created .env from template")
        except EnvFileError as e:
            raise DeploymentError("No .env or .env.example file found") from e

        backup = backup_env_file(self.env_path)
        self.backup_created = True
        logger.info(f"Created backup: {backup.name}")

        cores = cpu_count()
        logger.info(f"Server has {cores} CPU cores")
        if cores == 1:
            logger.warning("Configuring for single-core server...")
            configure_concurrency(self.env_path, cores)

    def pull_images(self) -> None:
        config = self.config
        backend = config.image_ref(config.backend_image)

        logger.info("Pulling backend Docker image...")
        if not self.docker.pull(backend, check=False):
            logger.warning(f"Failed to pull {config.environment} tag, trying {FALLBACK_TAG} tag...")
            fallback = config.image_ref(config.backend_image, FALLBACK_TAG)
            if not self.docker.pull(fallback, check=False):
                logger.error("Ensure images are built and pushed by CI/CD pipeline")
                raise DeploymentError("Failed to pull backend image from registry")
            self.docker.tag(fallback, backend)

        logger.info("Pulling frontend Docker image...")
        if not self.docker.pull(config.image_ref(config.frontend_image), check=False):
            logger.warning(f"Failed to pull frontend {config.environment} image")
            logger.warning("Deployment will continue with backend only")

    def restart_stack(self) -> None:
        logger.info("Checking current deployment status...")
        if self.docker.compose_service_running(self.compose_file, self.config.backend_service):
            logger.info("Current backend is running - will perform rolling update")
        else:
            logger.info("No existing deployment found")

        logger.info("Pulling latest images...")
        self.docker.compose_pull(self.compose_file)

        logger.info("Stopping current containers...")
        self.docker.compose_down(self.compose_file, timeout=COMPOSE_DOWN_TIMEOUT)

        logger.info("Cleaning up old images...")
        self.docker.image_prune()

        logger.info("Starting services with docker compose...")
        self.docker.compose_up(self.compose_file, env_file=".env")

    def wait_for_backend(self) -> None:
        logger.info("Waiting for containers to initialize...")
        self.sleep(self.startup_wait)

        logger.info("Performing health checks...")
        attempts = self.config.health_max_attempts
        healthy = wait_for_http(
            self.config.backend_health_url,
            max_attempts=attempts,
            interval=self.config.health_interval,
            on_attempt=lambda attempt, total: logger.debug(f"Health attempt {attempt}/{total}"),
            sleep=self.sleep,
        )
        if healthy:
            logger.info("Backend is healthy!")
            return

        logger.error(f"Backend failed to become healthy after {attempts} attempts")
        logger.error("Container logs:")
        print(self.docker.compose_logs(self.compose_file, self.config.backend_service, tail=100))
        raise DeploymentError("Backend health check failed")

    def verify_containers(self) -> None:
        logger.info("Verifying all containers...")
        status = self.docker.compose_ps(self.compose_file)
        if "Up" not in status and "running" not in status:
            print(status)
            raise DeploymentError("Some containers failed to start")

    def print_summary(self) -> None:
        ip = server_ip()
        port = self.config.backend_port
        logger.info("Deployment completed successfully!")
        print("========================================")
        print(f"Environment:     {self.config.environment}")
        print(f"Backend API:     http://{ip}:{port}")
        print(f"Health Check:    http://{ip}:{port}/health")
        print(f"API Docs:        http://{ip}:{port}/api/docs")
        print(f"Frontend App:    http://{ip}:{self.config.frontend_port}")
        print()
        print("Running containers:")
        print(self.docker.compose_ps(self.compose_file))

    def run(self) -> None:
        """Execute every deployment step in order."""
        logger.info(f"Starting deployment to {self.config.environment} server")
        logger.info(f"Time: {datetime.now()}")
        logger.info(f"User: {current_user()}")

        self.validate()
        self.login()
        self.prepare_env()
        self.pull_images()
        self.restart_stack()
        self.wait_for_backend()
        self.verify_containers()
        self.print_summary()

        logger.info("Cleaning up old backups...")
        prune_backups(self.config.project_dir, keep=self.config.env_backups_to_keep)
        logger.info(f"Deployment completed at {datetime.now()}")

    def rollback(self) -> bool:
        """Restore the previous .env and bring the stack back up."""
        logger.error("Deployment failed! Attempting to restore previous state...")
        try:
            if not restore_latest_backup(self.env_path):
                logger.error("No .env backup available; nothing to restore")
                return False
            self.docker.compose_up(self.compose_file, check=False)
        except OSError as e:
            logger.error(f"Rollback failed: {e}")
            return False
        return True


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Deploy pre-built images to the staging server"
    )
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory holding docker-compose.yaml and .env (default: current directory)",
    )
    parser.add_argument(
        "--compose-file",
        default="docker-compose.yaml",
        help="Compose file name (default: docker-compose.yaml)",
    )

    args = parser.parse_args(argv)

    setup_logging(color=True)

    release = None
    try:
        config = DeployConfig.from_env(project_dir=args.project_dir)
        config.compose_file = args.compose_file
        release = StagingRelease(config)
        release.run()
        return 0
    except (DeploymentError, CommandError, EnvFileError, ValueError) as e:
        logger.error(str(e))
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        logger.error(traceback.format_exc())

    if release is not None and release.backup_created:
        release.rollback()
    return 1


if __name__ == "__main__":
    sys.exit(main())
