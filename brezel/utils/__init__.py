"""
Brezel Utility Library.

This package provides reusable helpers for the deployment scripts.

Modules:
--------
logging_setup
    Logging configuration utilities.
config
    Deployment configuration loaded from the environment.
env_file
    .env file editing, validation and backups.
docker
    docker / docker compose subprocess wrapper.
health
    HTTP health polling.
system
    CPU, port and host address probes.
"""

from brezel.utils.logging_setup import setup_logging, get_logger
from brezel.utils.config import DeployConfig, REQUIRED_STAGING_VARS
from brezel.utils.env_file import (
    EnvFileError,
    ensure_env_file,
    get_value,
    missing_required,
    set_value,
    delete_key,
    configure_concurrency,
    backup_env_file,
    restore_latest_backup,
    prune_backups,
    extract_db_host,
    rewrite_dsn_for_docker,
)
from brezel.utils.docker import CommandError, Docker, run_command
from brezel.utils.health import check_http, wait_for_http, fetch_json
from brezel.utils.system import cpu_count, optimal_concurrency, port_in_use, server_ip

__all__ = [
    # logging_setup
    "setup_logging",
    "get_logger",
    # config
    "DeployConfig",
    "REQUIRED_STAGING_VARS",
    # env_file
    "EnvFileError",
    "ensure_env_file",
    "get_value",
    "missing_required",
    "set_value",
    "delete_key",
    "configure_concurrency",
    "backup_env_file",
    "restore_latest_backup",
    "prune_backups",
    "extract_db_host",
    "rewrite_dsn_for_docker",
    # docker
    "CommandError",
    "Docker",
    "run_command",
    # health
    "check_http",
    "wait_for_http",
    "fetch_json",
    # system
    "cpu_count",
    "optimal_concurrency",
    "port_in_use",
    "server_ip",
]
