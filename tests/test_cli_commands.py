"""
Tests for the management CLI.
"""
import json
import os
from unittest.mock import patch

import pytest

from brezel.cli.commands import main


class TestVersionCommand:
    """Tests for the version command."""

    def test_prints_json(self, clean_build_env, capsys):
        clean_build_env.setenv("VERSION", "3.1.0")
        clean_build_env.setenv("GIT_COMMIT", "abcdef0123456")

        assert main(["version"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["version"] == "3.1.0"
        assert data["git_commit_short"] == "abcdef0"
        assert data["environment"] == "development"


class TestHealthcheckCommand:
    """Tests for the healthcheck command."""

    @patch("brezel.cli.commands.wait_for_http", return_value=True)
    def test_healthy(self, mock_wait):
        assert main(["healthcheck", "--url", "http://backend:8080/health", "--attempts", "3"]) == 0

        args, kwargs = mock_wait.call_args
        assert args[0] == "http://backend:8080/health"
        assert kwargs["max_attempts"] == 3

    @patch("brezel.cli.commands.wait_for_http", return_value=False)
    def test_unhealthy(self, mock_wait):
        assert main(["healthcheck"]) == 1


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out


@pytest.mark.skipif(not os.supports_bytes_environ, reason="needs a bytes environment")
def test_version_with_undecodable_commit(clean_build_env, capsys):
    """Should print valid JSON when GIT_COMMIT is not valid UTF-8."""
    clean_build_env.setitem(os.environb, b"GIT_COMMIT", b"abc\xff")

    assert main(["version"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["git_commit_short"] == "abc�"


@patch("brezel.cli.commands.encode_version_info", side_effect=TypeError("not serializable"))
def test_version_encoding_failure(mock_encode, clean_build_env, capsys):
    """Should exit 1 without a traceback escaping."""
    assert main(["version"]) == 1
    assert capsys.readouterr().out == ""
