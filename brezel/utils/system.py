"""
Host probes used by the deployment scripts.
"""

import logging
import os
import socket
import subprocess

logger = logging.getLogger(__name__)


def cpu_count() -> int:
    """Number of CPUs available to this process (at least 1)."""
    try:
        return max(1, len(os.sched_getaffinity(0)))
    except (AttributeError, OSError):
        return max(1, os.cpu_count() or 1)


def optimal_concurrency(cpu_cores: int) -> int:
    """Half the cores, never below one."""
    return max(1, cpu_cores // 2)


def port_in_use(port: int, host: str = "127.0.0.1", timeout: float = 0.5) -> bool:
    """True if something accepts TCP connections on ``host:port``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.settimeout(timeout)
        return sock.connect_ex((host, port)) == 0


def server_ip() -> str:
    """First address reported by ``hostname -I``, or ``localhost``."""
    try:
        result = subprocess.run(
            ["hostname", "-I"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"hostname -I failed: {e}")
        return "localhost"
    addresses = result.stdout.split() if result.returncode == 0 else []
    return addresses[0] if addresses else "localhost"
