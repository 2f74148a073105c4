"""
Brezel Tests

Test Organization:
- api/: Tests for the version service and FastAPI routers
- scripts/: Tests for the deployment scripts
  - deploy/: staging_release, smart_deploy, start_local, debug_docker
- test_*.py: Tests for brezel.utils and the management CLI

Running Tests:
    # Run all tests
    pytest tests/

    # Run only script tests
    pytest tests/scripts/
"""
