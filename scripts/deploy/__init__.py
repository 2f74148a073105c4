"""
BrezelScraper Deployment Scripts

This package contains scripts for deploying and running the scraper stack.

Scripts:
- staging_release: Pull CI-built images and deploy to staging with rollback
- smart_deploy: Build locally and deploy to staging with pre-flight checks
- start_local: Run the dev compose stack against a host database
- debug_docker: Dump container status, logs and health to a file

Environment Variables:
    GITHUB_TOKEN: Token for the GitHub Container Registry
    GITHUB_USER: Registry user name
    NO_CACHE: Set to 1 to build images with --no-cache
    LOG_LEVEL: Logging level
"""
