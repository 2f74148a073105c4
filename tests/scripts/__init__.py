"""
Brezel Script Tests

This package contains tests for the deployment scripts:
- deploy/: staging_release, smart_deploy, start_local, debug_docker

Docker, registry and HTTP calls are mocked; env-file handling runs
against temporary directories.
"""
