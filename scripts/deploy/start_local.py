#!/usr/bin/env python3
"""
Start the scraper stack locally with Docker.

Loads the backend environment (.env.development, falling back to .env),
loads the frontend environment from the sibling webapp checkout for the
Clerk build keys, points the DSN at the Docker host alias and runs the dev
compose stack in the foreground.

Based on start_local.sh.

Usage:
    python start_local.py
    python start_local.py --frontend-dir ../google-maps-scraper-webapp
"""

import argparse
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values, load_dotenv

from brezel.utils.config import DeployConfig
from brezel.utils.docker import Docker
from brezel.utils.env_file import rewrite_dsn_for_docker
from brezel.utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_FRONTEND_DIR = Path("../google-maps-scraper-webapp")


def load_backend_env(project_dir: Path) -> Optional[Path]:
    """
    Load the backend environment into os.environ.

    Returns:
        The file that was loaded, or None if neither exists
    """
    for name in (".env.development", ".env"):
        candidate = project_dir / name
        if candidate.exists():
            load_dotenv(candidate, override=True)
            return candidate
    return None


def load_frontend_env(frontend_dir: Path) -> Optional[Path]:
    """
    Load the frontend environment and stage it for the Docker build.

    ``.env.development`` is copied to ``.env`` because the frontend image
    build reads ``.env``.
    """
    if not frontend_dir.is_dir():
        return None

    dev_env = frontend_dir / ".env.development"
    plain_env = frontend_dir / ".env"
    if dev_env.exists():
        logger.info("Loading frontend .env.development...")
        load_dotenv(dev_env, override=True)
        shutil.copyfile(dev_env, plain_env)
        keys = ", ".join(dotenv_values(plain_env).keys())
        logger.debug(f"Frontend .env keys: {keys}")
        return dev_env
    if plain_env.exists():
        logger.info("Loading frontend .env...")
        load_dotenv(plain_env, override=True)
        return plain_env
    return None


def docker_environment() -> Dict[str, str]:
    """Current environment with DSN rewritten for containers."""
    env = dict(os.environ)
    if env.get("DSN"):
        env["DSN"] = rewrite_dsn_for_docker(env["DSN"])
    return env


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Start the scraper stack locally with Docker"
    )
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=Path.cwd(),
        help="Backend checkout (default: current directory)",
    )
    parser.add_argument(
        "--frontend-dir",
        type=Path,
        default=None,
        help=f"Frontend checkout (default: {DEFAULT_FRONTEND_DIR} relative to the project)",
    )

    args = parser.parse_args(argv)

    setup_logging()

    project_dir = args.project_dir
    if load_backend_env(project_dir) is None:
        logger.error("No .env.development or .env file found.")
        return 1

    frontend_dir = args.frontend_dir or project_dir / DEFAULT_FRONTEND_DIR
    load_frontend_env(frontend_dir)

    env = docker_environment()
    if "DSN" in env:
        os.environ["DSN"] = env["DSN"]

    logger.info("Starting Google Maps Scraper with Docker...")
    logger.info(f"Using DSN: {env.get('DSN', '')}")

    config = DeployConfig(project_dir=project_dir)
    docker = Docker(project_dir)
    result = docker.compose_up(
        config.dev_compose_file,
        detach=False,
        build=True,
        check=False,
        env=env,
    )
    return result.returncode


if __name__ == "__main__":
    sys.exit(main())
