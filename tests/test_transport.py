"""
Tests for HTTP client selection and the curl, wget and requests transports.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest
import requests

from sb0_installer import transport as transport_module
from sb0_installer.exceptions import ConfigurationError, NetworkError, NoHttpClientError
from sb0_installer.transport import (
    CurlTransport,
    RequestsTransport,
    WgetTransport,
    auth_args,
    auth_headers,
    get_user_agent,
    select_transport,
)

pytestmark = pytest.mark.unit

URL = "https://github.com/terminal-use/sb0-cli/releases/download/v1.0.0/sb0-linux-x64"


def _which_from(available):
    return lambda name: f"/usr/bin/{name}" if name in available else None


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(
        args=[], returncode=returncode, stdout=stdout, stderr=stderr
    )


class TestAuthArguments:
    def test_curl_header(self):
        assert auth_args("curl", "tok") == ["-H", "Authorization: token tok"]

    def test_wget_header(self):
        assert auth_args("wget", "tok") == ["--header=Authorization: token tok"]

    @pytest.mark.parametrize("token", [None, ""])
    def test_no_token_no_arguments(self, token):
        assert auth_args("curl", token) == []
        assert auth_args("wget", token) == []

    def test_unknown_client(self):
        with pytest.raises(ValueError):
            auth_args("httpie", "tok")

    def test_requests_headers(self):
        assert auth_headers("tok") == {"Authorization": "token tok"}
        assert auth_headers(None) == {}


class TestSelectTransport:
    def test_auto_prefers_curl(self, make_config):
        selected = select_transport(make_config(token="t"), which=_which_from({"curl", "wget"}))

        assert isinstance(selected, CurlTransport)
        assert selected.executable == "/usr/bin/curl"
        assert selected.token == "t"

    def test_auto_falls_back_to_wget(self, make_config):
        selected = select_transport(make_config(), which=_which_from({"wget"}))
        assert isinstance(selected, WgetTransport)

    def test_auto_without_clients_is_fatal(self, make_config):
        with pytest.raises(NoHttpClientError) as exc_info:
            select_transport(make_config(), which=_which_from(set()))
        assert str(exc_info.value) == "Neither curl nor wget found. Please install one of them."

    def test_explicit_client_must_exist(self, make_config):
        with pytest.raises(NoHttpClientError):
            select_transport(make_config(http_client="wget"), which=_which_from({"curl"}))

    def test_explicit_client_skips_preference(self, make_config):
        selected = select_transport(
            make_config(http_client="wget"), which=_which_from({"curl", "wget"})
        )
        assert isinstance(selected, WgetTransport)

    def test_requests_is_always_available(self, make_config):
        which = MagicMock(return_value=None)
        selected = select_transport(make_config(http_client="requests", token="t"), which=which)

        assert isinstance(selected, RequestsTransport)
        assert selected.token == "t"
        which.assert_not_called()

    def test_unknown_client(self, make_config):
        with pytest.raises(ConfigurationError):
            select_transport(make_config(http_client="httpie"), which=_which_from({"curl"}))


class TestCurlTransport:
    def test_fetch_command_and_output(self):
        with patch(
            "sb0_installer.transport.subprocess.run",
            return_value=_completed(stdout='{"tag_name": "v1.0.0"}'),
        ) as mock_run:
            body = CurlTransport(token="tok", executable="/usr/bin/curl").fetch(URL)

        assert body == '{"tag_name": "v1.0.0"}'
        command = mock_run.call_args[0][0]
        assert command == ["/usr/bin/curl", "-fsSL", "-H", "Authorization: token tok", URL]

    def test_download_command_without_token(self):
        with patch(
            "sb0_installer.transport.subprocess.run", return_value=_completed()
        ) as mock_run:
            CurlTransport().download(URL, "/tmp/out")

        assert mock_run.call_args[0][0] == ["curl", "-fsSL", "-o", "/tmp/out", URL]

    def test_nonzero_exit_raises_network_error(self):
        with patch(
            "sb0_installer.transport.subprocess.run",
            return_value=_completed(returncode=22, stderr="curl: (22) 404\n"),
        ):
            with pytest.raises(NetworkError) as exc_info:
                CurlTransport().download(URL, "/tmp/out")

        error = exc_info.value
        assert error.url == URL
        assert error.details == "curl: (22) 404"
        assert error.auth_hint is True

    def test_missing_executable_raises_network_error(self):
        with patch(
            "sb0_installer.transport.subprocess.run", side_effect=FileNotFoundError("curl")
        ):
            with pytest.raises(NetworkError):
                CurlTransport().fetch(URL)


class TestWgetTransport:
    def test_fetch_command(self):
        with patch(
            "sb0_installer.transport.subprocess.run", return_value=_completed(stdout="x")
        ) as mock_run:
            WgetTransport(token="tok").fetch(URL)

        assert mock_run.call_args[0][0] == [
            "wget",
            "-qO-",
            "--header=Authorization: token tok",
            URL,
        ]

    def test_download_command(self):
        with patch(
            "sb0_installer.transport.subprocess.run", return_value=_completed()
        ) as mock_run:
            WgetTransport(token="tok").download(URL, "/tmp/out")

        assert mock_run.call_args[0][0] == [
            "wget",
            "-q",
            "--header=Authorization: token tok",
            "-O",
            "/tmp/out",
            URL,
        ]

    def test_failure(self):
        with patch(
            "sb0_installer.transport.subprocess.run", return_value=_completed(returncode=8)
        ):
            with pytest.raises(NetworkError) as exc_info:
                WgetTransport().fetch(URL)
        assert "status 8" in str(exc_info.value)


class TestRequestsTransport:
    def test_session_has_retries_and_user_agent(self):
        session = RequestsTransport._build_session()

        retries = session.get_adapter("https://github.com").max_retries
        assert retries.total == 5
        assert 503 in retries.status_forcelist
        assert session.headers["User-Agent"].startswith("sb0-installer/")

    def test_fetch_sends_api_and_auth_headers(self):
        session = MagicMock()
        session.get.return_value.text = '{"tag_name": "v1.0.0"}'

        body = RequestsTransport(token="tok", session=session).fetch(URL)

        assert body == '{"tag_name": "v1.0.0"}'
        headers = session.get.call_args.kwargs["headers"]
        assert headers["Authorization"] == "token tok"
        assert headers["Accept"] == "application/vnd.github+json"

    def test_fetch_http_error(self):
        response = MagicMock(status_code=404)
        session = MagicMock()
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError(
            "404 Client Error", response=response
        )

        with pytest.raises(NetworkError) as exc_info:
            RequestsTransport(session=session).fetch(URL)
        assert exc_info.value.status_code == 404

    def test_fetch_connection_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(NetworkError) as exc_info:
            RequestsTransport(session=session).fetch(URL)
        assert exc_info.value.status_code is None

    def test_download_streams_chunks(self, tmp_path):
        response = MagicMock()
        response.iter_content.return_value = [b"ab", b"", b"cd"]
        session = MagicMock()
        session.get.return_value.__enter__.return_value = response
        destination = tmp_path / "sb0"

        RequestsTransport(token="tok", session=session).download(URL, str(destination))

        assert destination.read_bytes() == b"abcd"
        kwargs = session.get.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["headers"] == {"Authorization": "token tok"}

    def test_download_http_error(self, tmp_path):
        response = MagicMock(status_code=404)
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
        session = MagicMock()
        session.get.return_value.__enter__.return_value = response

        with pytest.raises(NetworkError) as exc_info:
            RequestsTransport(session=session).download(URL, str(tmp_path / "sb0"))
        assert exc_info.value.status_code == 404


def test_user_agent_is_cached(monkeypatch):
    monkeypatch.setattr(transport_module, "_USER_AGENT_CACHE", None)
    first = get_user_agent()
    assert get_user_agent() is first
