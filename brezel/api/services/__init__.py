"""
Brezel API Services

Services:
- version_service: Build metadata assembly for the version endpoint
"""
