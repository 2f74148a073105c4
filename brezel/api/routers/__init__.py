"""
Brezel API Routers

Routers:
- health_router: Health check endpoint
- version_router: Build metadata endpoint
"""

from .health_router import router as health_router
from .version_router import router as version_router

__all__ = [
    "health_router",
    "version_router",
]
