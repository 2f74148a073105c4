#!/usr/bin/env python3
"""
Unit tests for scripts/deploy/smart_deploy.py

Tests pre-flight checks, CONCURRENCY tuning and the build-based staging
deployment.
"""

import pytest
from pathlib import Path
from unittest.mock import MagicMock, patch

import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent.parent / "scripts"))

from deploy.smart_deploy import (
    DeploymentError,
    SmartDeploy,
    main,
)
from brezel.utils.config import DeployConfig
from brezel.utils.env_file import get_value


@pytest.fixture
def config(temp_dir):
    return DeployConfig(project_dir=temp_dir, health_max_attempts=3, health_interval=0)


@pytest.fixture
def deploy(config, mock_docker):
    return SmartDeploy(config, docker=mock_docker, startup_wait=0, sleep=MagicMock())


@pytest.fixture(autouse=True)
def quiet_host():
    with patch("deploy.smart_deploy.port_in_use", return_value=False), \
         patch("deploy.smart_deploy.server_ip", return_value="10.0.0.1"), \
         patch("deploy.smart_deploy.fetch_json", return_value={"status": "running"}), \
         patch("deploy.smart_deploy.cpu_count", return_value=4):
        yield


class TestPreflight:
    """Tests for pre-flight checks."""

    def test_docker_not_running(self, deploy, mock_docker, temp_file, staging_env_content):
        temp_file(".env.staging", staging_env_content)
        mock_docker.info.return_value = False

        with pytest.raises(DeploymentError, match="Docker daemon"):
            deploy.preflight()
        assert deploy.preflight_passed is False

    def test_busy_port_stops_stack(self, deploy, mock_docker, temp_file, staging_env_content):
        temp_file(".env.staging", staging_env_content)

        with patch("deploy.smart_deploy.port_in_use", side_effect=lambda port: port == 8080):
            deploy.preflight()

        mock_docker.compose_down.assert_called_once_with("docker-compose.staging.yaml", check=False)

    def test_copies_example_and_proceeds(self, deploy, temp_dir, temp_file, staging_env_content):
        temp_file(".env.staging.example", staging_env_content)

        deploy.preflight()

        assert (temp_dir / ".env.staging").read_text() == staging_env_content
        assert deploy.preflight_passed is True

    def test_no_env_and_no_example(self, deploy):
        with pytest.raises(DeploymentError, match="example not found"):
            deploy.preflight()

    @pytest.mark.parametrize(
        "var",
        ["DSN", "CLERK_API_KEY", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET"],
    )
    def test_missing_required_variable(self, deploy, temp_file, staging_env_content, var):
        content = "\n".join(
            line for line in staging_env_content.splitlines()
            if not line.startswith(f"{var}=")
        )
        temp_file(".env.staging", content)

        with pytest.raises(DeploymentError, match=var):
            deploy.preflight()

    @pytest.mark.parametrize(
        "var",
        ["DSN", "CLERK_API_KEY", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET"],
    )
    def test_empty_required_variable_fails_before_build(
        self, deploy, mock_docker, temp_file, staging_env_content, var
    ):
        content = "\n".join(
            f"{var}=" if line.startswith(f"{var}=") else line
            for line in staging_env_content.splitlines()
        )
        temp_file(".env.staging", content)

        with pytest.raises(DeploymentError):
            deploy.run()

        mock_docker.build.assert_not_called()
        mock_docker.compose_up.assert_not_called()


class TestConfigure:
    """Tests for CONCURRENCY configuration."""

    def test_single_core_uncomments(self, deploy, temp_dir, temp_file, staging_env_content):
        temp_file(".env.staging", staging_env_content)

        with patch("deploy.smart_deploy.cpu_count", return_value=1):
            deploy.configure()

        lines = (temp_dir / ".env.staging").read_text().splitlines()
        assert "CONCURRENCY=1" in lines
        assert "# CONCURRENCY=4" not in lines

    def test_multi_core_removes_explicit_value(self, deploy, temp_dir, temp_file, staging_env_content):
        temp_file(".env.staging", staging_env_content + "CONCURRENCY=3\n")

        deploy.configure()

        assert get_value(temp_dir / ".env.staging", "CONCURRENCY") is None
        assert deploy.cpu_cores == 4


class TestBuildAndStart:
    """Tests for image build and stack start."""

    def test_build_uses_cache_by_default(self, deploy, mock_docker):
        deploy.build()

        mock_docker.build.assert_called_once_with("brezel-staging-test", no_cache=False)

    def test_build_no_cache(self, deploy, mock_docker):
        deploy.config.no_cache = True

        deploy.build()

        mock_docker.build.assert_called_once_with("brezel-staging-test", no_cache=True)

    def test_start_tags_backup_when_image_exists(self, deploy, mock_docker):
        mock_docker.image_exists.return_value = True

        deploy.start()

        source, backup = mock_docker.tag.call_args[0]
        assert source == "brezel-staging-test:latest"
        assert backup.startswith("brezel-staging-test:backup-")
        mock_docker.compose_up.assert_called_once_with(
            "docker-compose.staging.yaml", env_file=".env.staging"
        )

    def test_start_without_existing_image(self, deploy, mock_docker):
        deploy.start()

        mock_docker.tag.assert_not_called()


class TestHealth:
    """Tests for health checks."""

    @patch("deploy.smart_deploy.wait_for_http", return_value=False)
    def test_backend_failure_dumps_diagnostics(self, mock_wait, deploy, mock_docker):
        with pytest.raises(DeploymentError):
            deploy.wait_for_backend()

        logged = [c[0][0] for c in mock_docker.logs.call_args_list]
        assert logged == ["brezelscraper-backend", "brezelscraper-frontend"]

    @patch("deploy.smart_deploy.wait_for_http", return_value=False)
    def test_frontend_failure_only_warns(self, mock_wait, deploy, mock_docker):
        assert deploy.check_frontend() is False

        mock_docker.logs.assert_called_once_with("brezelscraper-frontend", tail=20)

    def test_connectivity(self, deploy, mock_docker):
        assert deploy.check_connectivity() is True

        args = mock_docker.exec.call_args[0]
        assert args[0] == "brezelscraper-frontend"
        assert "http://brezelscraper-backend:8080/health" in args[-1]

    def test_connectivity_failure(self, deploy, mock_docker):
        mock_docker.exec.return_value = MagicMock(returncode=1, stdout="")

        assert deploy.check_connectivity() is False


class TestPruneBackupImages:
    """Tests for backup image cleanup."""

    def test_keeps_newest_five(self, deploy, mock_docker):
        mock_docker.list_images.return_value = ["brezel-staging-test:latest"] + [
            f"brezel-staging-test:backup-202401{day:02d}_120000" for day in range(1, 9)
        ]

        stale = deploy.prune_backup_images()

        assert stale == [
            "brezel-staging-test:backup-20240103_120000",
            "brezel-staging-test:backup-20240102_120000",
            "brezel-staging-test:backup-20240101_120000",
        ]
        mock_docker.rmi.assert_called_once_with(*stale)

    def test_nothing_to_prune(self, deploy, mock_docker):
        mock_docker.list_images.return_value = ["brezel-staging-test:latest"]

        assert deploy.prune_backup_images() == []
        mock_docker.rmi.assert_not_called()


class TestMain:
    """Tests for main()."""

    @pytest.fixture(autouse=True)
    def no_logging_setup(self):
        with patch("deploy.smart_deploy.setup_logging"), \
             patch("brezel.utils.config.load_dotenv"):
            yield

    def test_success(self, temp_dir):
        with patch.object(SmartDeploy, "run"):
            assert main(["--project-dir", str(temp_dir)]) == 0

    def test_preflight_failure_skips_cleanup(self, temp_dir):
        def fail(self):
            raise DeploymentError("Docker daemon is not running")

        with patch.object(SmartDeploy, "run", fail), \
             patch.object(SmartDeploy, "stop_stack") as mock_stop:
            assert main(["--project-dir", str(temp_dir)]) == 1
        mock_stop.assert_not_called()

    def test_failure_after_preflight_stops_stack(self, temp_dir):
        def fail(self):
            self.preflight_passed = True
            raise DeploymentError("Backend health check failed")

        with patch.object(SmartDeploy, "run", fail), \
             patch.object(SmartDeploy, "stop_stack") as mock_stop:
            assert main(["--project-dir", str(temp_dir)]) == 1
        mock_stop.assert_called_once()

    def test_unexpected_error_after_preflight_stops_stack(self, temp_dir):
        """Should clean up after an exception type the steps do not raise themselves."""
        def fail(self):
            self.preflight_passed = True
            raise PermissionError("read-only .env.staging")

        with patch.object(SmartDeploy, "run", fail), \
             patch.object(SmartDeploy, "stop_stack") as mock_stop:
            assert main(["--project-dir", str(temp_dir)]) == 1
        mock_stop.assert_called_once()

    def test_invalid_config_value_exits_cleanly(self, temp_dir, monkeypatch):
        monkeypatch.setenv("HEALTH_MAX_ATTEMPTS", "abc")

        with patch.object(SmartDeploy, "run") as mock_run, \
             patch.object(SmartDeploy, "stop_stack") as mock_stop:
            assert main(["--project-dir", str(temp_dir)]) == 1
        mock_run.assert_not_called()
        mock_stop.assert_not_called()


@patch("deploy.smart_deploy.wait_for_http", return_value=True)
def test_full_run(mock_wait, deploy, mock_docker, temp_file, staging_env_content):
    """Should run every step in order on a healthy host."""
    temp_file(".env.staging", staging_env_content)

    deploy.run()

    mock_docker.build.assert_called_once()
    mock_docker.compose_up.assert_called_once()
    mock_docker.stats.assert_called_once_with("brezelscraper-backend", "brezelscraper-frontend")
