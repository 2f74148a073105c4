#!/usr/bin/env python3
"""
Collect Docker diagnostics into debug_output.txt.

Captures container status, the staging compose logs and a verbose request
to the backend health endpoint. Individual failures are recorded in the
output instead of aborting the dump.

Based on debug_docker.sh.

Usage:
    python debug_docker.py
    python debug_docker.py --output /tmp/debug_output.txt
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

import requests

from brezel.utils.config import DeployConfig
from brezel.utils.docker import Docker
from brezel.utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "debug_output.txt"


def describe_health(url: str, timeout: float = 10.0) -> str:
    """Verbose description of a GET request, in the spirit of ``curl -v``."""
    lines = [f"> GET {url}"]
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        lines.append(f"* Request failed: {e}")
        return "\n".join(lines)

    lines.append(f"< HTTP {response.status_code} {response.reason}")
    for name, value in response.headers.items():
        lines.append(f"< {name}: {value}")
    lines.append("")
    lines.append(response.text)
    return "\n".join(lines)


def collect(docker: Docker, config: DeployConfig) -> List[str]:
    """Build the diagnostics report sections."""
    ps = docker.run("ps", "-a", check=False)
    logs = docker.compose_logs(config.staging_compose_file)
    return [
        "--- Docker PS ---",
        (ps.stdout or "") + (ps.stderr or ""),
        "--- Docker Logs ---",
        logs,
        "--- Curl Health ---",
        describe_health(config.backend_health_url),
        "--- Done ---",
    ]


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Collect Docker diagnostics"
    )
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory holding docker-compose.staging.yaml",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help=f"Report file (default: {DEFAULT_OUTPUT} in the project directory)",
    )

    args = parser.parse_args(argv)

    setup_logging()

    config = DeployConfig(project_dir=args.project_dir)
    output = args.output or args.project_dir / DEFAULT_OUTPUT

    sections = collect(Docker(args.project_dir), config)
    output.write_text("\n".join(section.rstrip("\n") for section in sections) + "\n")
    logger.info(f"Diagnostics written to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
