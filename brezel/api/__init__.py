"""
Brezel API Package

This package contains the FastAPI application components.

Subpackages:
- routers: FastAPI route definitions
- services: Response assembly logic
"""
