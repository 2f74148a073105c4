"""
Tests for HTTP health polling.
"""
from unittest.mock import MagicMock, patch

import requests

from brezel.utils.health import check_http, fetch_json, wait_for_http

URL = "http://localhost:8080/health"


def response(status_code=200, json_data=None, text=""):
    resp = MagicMock(status_code=status_code, text=text)
    if json_data is None:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = json_data
    return resp


class TestCheckHttp:
    """Tests for check_http."""

    @patch("brezel.utils.health.requests.get")
    def test_ok(self, mock_get):
        mock_get.return_value = response(200)

        assert check_http(URL) is True
        mock_get.assert_called_once_with(URL, timeout=5.0)

    @patch("brezel.utils.health.requests.get")
    def test_redirect_counts_as_success(self, mock_get):
        mock_get.return_value = response(302)

        assert check_http(URL) is True

    @patch("brezel.utils.health.requests.get")
    def test_server_error(self, mock_get):
        mock_get.return_value = response(503)

        assert check_http(URL) is False

    @patch("brezel.utils.health.requests.get", side_effect=requests.ConnectionError("refused"))
    def test_connection_error(self, mock_get):
        assert check_http(URL) is False


class TestWaitForHttp:
    """Tests for wait_for_http."""

    @patch("brezel.utils.health.check_http")
    def test_immediate_success(self, mock_check):
        mock_check.return_value = True
        sleep = MagicMock()

        assert wait_for_http(URL, max_attempts=30, sleep=sleep) is True
        sleep.assert_not_called()

    @patch("brezel.utils.health.check_http")
    def test_success_after_retries(self, mock_check):
        mock_check.side_effect = [False, False, True]
        sleep = MagicMock()
        on_attempt = MagicMock()

        assert wait_for_http(URL, max_attempts=5, interval=2, sleep=sleep, on_attempt=on_attempt) is True
        assert mock_check.call_count == 3
        assert sleep.call_count == 2
        sleep.assert_called_with(2)
        on_attempt.assert_any_call(1, 5)
        on_attempt.assert_any_call(2, 5)

    @patch("brezel.utils.health.check_http")
    def test_exhausts_budget(self, mock_check):
        mock_check.return_value = False
        sleep = MagicMock()

        assert wait_for_http(URL, max_attempts=30, interval=2, sleep=sleep) is False
        assert mock_check.call_count == 30
        # No sleep after the final attempt
        assert sleep.call_count == 29


class TestFetchJson:
    """Tests for fetch_json."""

    @patch("brezel.utils.health.requests.get")
    def test_json_body(self, mock_get):
        mock_get.return_value = response(json_data={"status": "running"})

        assert fetch_json(URL) == {"status": "running"}

    @patch("brezel.utils.health.requests.get")
    def test_text_body(self, mock_get):
        mock_get.return_value = response(text="plain")

        assert fetch_json(URL) == "plain"

    @patch("brezel.utils.health.requests.get", side_effect=requests.Timeout("slow"))
    def test_request_failure(self, mock_get):
        assert fetch_json(URL) is None
