#!/usr/bin/env python3
"""
Build and deploy the staging stack on the current host.

Runs pre-flight checks (docker daemon, busy ports, .env.staging and its
required secrets), tunes CONCURRENCY for the host's CPU count, builds the
backend image, starts the staging compose stack and waits for the backend
and frontend to respond. A failure after pre-flight brings the stack down.

Based on deploy.sh.

Usage:
    python smart_deploy.py
    NO_CACHE=1 python smart_deploy.py

Environment Variables:
    NO_CACHE: Set to 1 to build with --no-cache
    LOG_LEVEL: Logging level (default: INFO)
"""

import argparse
import json
import logging
import sys
import time
import traceback
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from brezel.utils.config import REQUIRED_STAGING_VARS, DeployConfig
from brezel.utils.docker import CommandError, Docker
from brezel.utils.env_file import (
    EnvFileError,
    configure_concurrency,
    ensure_env_file,
    extract_db_host,
    get_value,
    missing_required,
)
from brezel.utils.health import fetch_json, wait_for_http
from brezel.utils.logging_setup import setup_logging
from brezel.utils.system import cpu_count, optimal_concurrency, port_in_use, server_ip

logger = logging.getLogger(__name__)

STARTUP_WAIT_SECONDS = 5
ENV_FILE = ".env.staging"
ENV_EXAMPLE = ".env.staging.example"
BACKUP_TAG_PREFIX = "backup-"

TROUBLESHOOTING = [
    "Check database connectivity from container",
    f"Verify {ENV_FILE} DSN uses host.docker.internal",
    "Check container logs: docker logs brezelscraper-backend",
    "Test: docker exec brezelscraper-backend ping host.docker.internal",
]


class DeploymentError(Exception):
    """Raised when a deployment step fails."""


class SmartDeploy:
    """
    Build-based staging deployment.

    Attributes:
        preflight_passed: Set once pre-flight checks succeed; failures after
            this point stop the staging stack.
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
        self.preflight_passed = False
        self.cpu_cores = 1

    @property
    def env_path(self) -> Path:
        return self.config.project_dir / ENV_FILE

    @property
    def compose_file(self) -> str:
        return self.config.staging_compose_file

    def stop_stack(self) -> None:
        self.docker.compose_down(self.compose_file, check=False)

    # Pre-flight

    def check_docker(self) -> None:
        if not self.docker.info():
            raise DeploymentError("Docker daemon is not running")

    def free_ports(self) -> None:
        for port in (self.config.backend_port, self.config.frontend_port):
            if port_in_use(port):
                logger.warning(f"Port {port} is already in use. Stopping existing services...")
                self.stop_stack()

    def check_env_file(self) -> None:
        try:
            ensure_env_file(self.env_path, self.config.project_dir / ENV_EXAMPLE)
        except EnvFileError as e:
            raise DeploymentError(str(e)) from e

        missing = missing_required(self.env_path, REQUIRED_STAGING_VARS)
        if missing:
            logger.error(f"Required variables missing or empty in {ENV_FILE}:")
            for var in missing:
                logger.error(f"   - {var}")
            raise DeploymentError(f"Missing required variables: {', '.join(missing)}")

    def preflight(self) -> None:
        logger.info("Running pre-flight checks...")
        self.check_docker()
        self.free_ports()
        self.check_env_file()
        self.preflight_passed = True
        logger.info("Pre-flight checks passed")

    # Configuration

    def configure(self) -> None:
        self.cpu_cores = cpu_count()
        optimal = optimal_concurrency(self.cpu_cores)
        logger.info("System Analysis:")
        logger.info(f"   CPU Cores: {self.cpu_cores}")
        logger.info(f"   Optimal Concurrency: {optimal}")

        logger.info("Configuring environment...")
        if self.cpu_cores == 1:
            logger.info("Single core server detected - setting explicit concurrency")
        else:
            logger.info("Multi-core server detected - using auto-detection")
        explicit = configure_concurrency(
            self.env_path, self.cpu_cores, auto_detect_on_multicore=True
        )

        logger.info("Current configuration:")
        logger.info(f"   Database: {extract_db_host(get_value(self.env_path, 'DSN'))}")
        if explicit is not None:
            logger.info(f"   Concurrency: {explicit} (explicit)")
        else:
            logger.info(f"   Concurrency: Auto-detected ({optimal})")

    # Build and start

    def build(self) -> None:
        logger.info("Building Docker image...")
        if self.config.no_cache:
            logger.warning("Building with --no-cache")
        self.docker.build(self.config.local_image, no_cache=self.config.no_cache)

    def start(self) -> None:
        logger.info("Stopping existing containers...")
        self.stop_stack()

        image = self.config.local_image
        if self.docker.image_exists(image):
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            backup = f"{image}:{BACKUP_TAG_PREFIX}{stamp}"
            if self.docker.tag(f"{image}:latest", backup, check=False):
                logger.info(f"Created backup tag: {backup}")

        logger.info("Starting app...")
        self.docker.compose_up(self.compose_file, env_file=ENV_FILE)

    # Health

    def dump_backend_diagnostics(self) -> None:
        logger.error("Debugging information:")
        print("Container status:")
        print(self.docker.ps(name_filter="brezel"))
        print("Recent backend logs:")
        print(self.docker.logs(self.config.backend_container, tail=50))
        print("Recent frontend logs:")
        print(self.docker.logs(self.config.frontend_container, tail=50))
        logger.error("Troubleshooting suggestions:")
        for number, hint in enumerate(TROUBLESHOOTING, start=1):
            print(f"   {number}. {hint}")

    def wait_for_backend(self) -> None:
        logger.info("Waiting for application startup...")
        self.sleep(self.startup_wait)

        logger.info("Monitoring startup process...")
        healthy = wait_for_http(
            self.config.backend_health_url,
            max_attempts=self.config.health_max_attempts,
            interval=self.config.health_interval,
            on_attempt=lambda attempt, total: logger.info(f"   Startup attempt {attempt}/{total}..."),
            sleep=self.sleep,
        )
        if not healthy:
            logger.error("Backend failed to start")
            self.dump_backend_diagnostics()
            raise DeploymentError("Backend health check failed")
        logger.info("Backend is healthy!")

    def check_frontend(self) -> bool:
        logger.info("Testing frontend health...")
        healthy = wait_for_http(
            self.config.frontend_url,
            max_attempts=self.config.frontend_max_attempts,
            interval=self.config.health_interval,
            sleep=self.sleep,
        )
        if healthy:
            logger.info("Frontend is responding!")
        else:
            logger.warning("Frontend may not be fully ready yet")
            print(self.docker.logs(self.config.frontend_container, tail=20))
        return healthy

    def check_connectivity(self) -> bool:
        logger.info("Testing backend-frontend connectivity...")
        url = f"http://{self.config.backend_container}:{self.config.backend_port}/health"
        result = self.docker.exec(
            self.config.frontend_container, "sh", "-c", f"wget -q -O- {url}"
        )
        if result.returncode == 0:
            logger.info("Frontend can reach backend")
            return True
        logger.warning("Frontend cannot reach backend")
        return False

    # Report

    def print_report(self) -> None:
        config = self.config
        ip = server_ip()
        container_cpus = self.docker.exec(config.backend_container, "nproc")
        container_cpus = (container_cpus.stdout or "").strip() if container_cpus.returncode == 0 else "unknown"

        logger.info("Deployment Successful!")
        logger.info("Server Info:")
        print(f"   Server IP: {ip}")
        print(f"   Host CPUs: {self.cpu_cores}")
        print(f"   Container CPUs: {container_cpus}")
        print(f"   Deployment Time: {datetime.now()}")

        logger.info("Application URLs:")
        print(f"   Backend API:    http://{ip}:{config.backend_port}/")
        print(f"   Frontend:       http://{ip}:{config.frontend_port}/")
        print(f"   Health Check:   http://{ip}:{config.backend_port}/health")
        print(f"   API Status:     http://{ip}:{config.backend_port}/api/v1/status")

        logger.info("Application Status:")
        status = fetch_json(config.status_url)
        if isinstance(status, (dict, list)):
            print(json.dumps(status, indent=2))
        elif status is not None:
            print(status)

        logger.info("Management Commands:")
        print(f"   Backend logs:   docker logs {config.backend_container} -f")
        print(f"   Frontend logs:  docker logs {config.frontend_container} -f")
        print(f"   All logs:       docker compose -f {self.compose_file} logs -f")
        print(f"   Restart:        docker compose -f {self.compose_file} restart")
        print(f"   Stop:           docker compose -f {self.compose_file} down")

        logger.info("Current Resource Usage:")
        print(self.docker.stats(config.backend_container, config.frontend_container))

        logger.info(f"Your application is ready and optimized for {self.cpu_cores} CPU core(s).")

    def prune_backup_images(self) -> List[str]:
        """Remove backup image tags beyond the newest few."""
        logger.info("Cleaning up old backup images...")
        backups = [
            ref for ref in self.docker.list_images(self.config.local_image)
            if ref.split(":", 1)[-1].startswith(BACKUP_TAG_PREFIX)
        ]
        # Timestamped tags sort chronologically
        backups.sort(reverse=True)
        stale = backups[self.config.image_backups_to_keep:]
        if stale:
            self.docker.rmi(*stale)
        return stale

    def run(self) -> None:
        """Execute every deployment step in order."""
        logger.info("Starting smart deploy...")
        self.preflight()
        self.configure()
        self.build()
        self.start()
        self.wait_for_backend()
        self.check_frontend()
        self.check_connectivity()
        self.print_report()
        self.prune_backup_images()


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Build and deploy the staging stack on this host"
    )
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory holding the Dockerfile, compose file and .env.staging",
    )

    args = parser.parse_args(argv)

    setup_logging(color=True)

    deploy = None
    try:
        config = DeployConfig.from_env(project_dir=args.project_dir)
        deploy = SmartDeploy(config)
        deploy.run()
        return 0
    except (DeploymentError, CommandError, EnvFileError, ValueError) as e:
        logger.error(str(e))
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        logger.error(traceback.format_exc())

    if deploy is not None and deploy.preflight_passed:
        logger.error("Deployment failed. Cleaning up...")
        deploy.stop_stack()
    return 1


if __name__ == "__main__":
    sys.exit(main())
