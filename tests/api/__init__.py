"""
Brezel API Tests

Tests for the build-metadata service and the health and version routers.
"""
