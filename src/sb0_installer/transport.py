"""
HTTP transports for the installer.

Three interchangeable clients implement the same two operations: `fetch`
reads a small document into memory (used for the release listing) and
`download` streams a release asset to disk. The shell clients wrap `curl` and
`wget`; the native client uses a retrying `requests` session.
"""

import importlib.metadata
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry  # type: ignore

from sb0_installer.config import InstallerConfig
from sb0_installer.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONNECT_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    GITHUB_API_TIMEOUT,
    GITHUB_API_VERSION,
    HTTP_CLIENT_AUTO,
    HTTP_CLIENT_CURL,
    HTTP_CLIENT_REQUESTS,
    HTTP_CLIENT_WGET,
    MSG_NO_HTTP_CLIENT,
    RETRY_STATUS_FORCELIST,
    SHELL_HTTP_CLIENTS,
)
from sb0_installer.exceptions import ConfigurationError, NetworkError, NoHttpClientError
from sb0_installer.log_utils import logger

_USER_AGENT_CACHE = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for native HTTP requests.

    Returns:
        The string `sb0-installer/{version}`, where `{version}` is the installed package version or `unknown`.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("sb0-installer")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"
        _USER_AGENT_CACHE = f"sb0-installer/{app_version}"

    return _USER_AGENT_CACHE


def auth_args(client: str, token: Optional[str]) -> List[str]:
    """
    Build the command-line arguments that add GitHub authentication to a shell client.

    Parameters:
        client (str): "curl" or "wget".
        token (Optional[str]): GitHub token; an empty or missing token yields no arguments.

    Returns:
        List[str]: e.g. `["-H", "Authorization: token T"]` for curl or
        `["--header=Authorization: token T"]` for wget.
    """
    if not token:
        return []
    if client == HTTP_CLIENT_CURL:
        return ["-H", f"Authorization: token {token}"]
    if client == HTTP_CLIENT_WGET:
        return [f"--header=Authorization: token {token}"]
    raise ValueError(f"Unknown shell HTTP client: {client}")


def auth_headers(token: Optional[str]) -> Dict[str, str]:
    """Return the Authorization header mapping for the native client, if a token is set."""
    if not token:
        return {}
    return {"Authorization": f"token {token}"}


class HttpTransport(ABC):
    """Capability interface for the two HTTP operations the installer needs."""

    name = "abstract"

    def __init__(self, token: Optional[str] = None) -> None:
        self.token = token

    @abstractmethod
    def fetch(self, url: str) -> str:
        """
        Read the body at `url` into memory.

        Raises:
            NetworkError: If the request fails for any reason.
        """

    @abstractmethod
    def download(self, url: str, destination: str) -> None:
        """
        Stream the body at `url` into the file `destination`.

        Raises:
            NetworkError: If the request fails for any reason.
        """


class _ShellTransport(HttpTransport):
    """Common subprocess handling for the curl and wget transports."""

    executable = ""

    def __init__(self, token: Optional[str] = None, executable: Optional[str] = None):
        super().__init__(token)
        self.executable = executable or self.name

    def _auth_args(self) -> List[str]:
        return auth_args(self.name, self.token)

    def _run(self, command: List[str], url: str) -> str:
        # The token is part of the command line, so only the URL is logged
        logger.debug(f"Running {self.name} for {url}")
        try:
            result = subprocess.run(
                command, capture_output=True, text=True, check=False
            )
        except OSError as e:
            raise NetworkError(
                f"Could not run {self.name}", url=url, details=str(e)
            ) from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise NetworkError(
                f"{self.name} exited with status {result.returncode}",
                url=url,
                details=stderr or None,
            )
        return result.stdout


class CurlTransport(_ShellTransport):
    name = HTTP_CLIENT_CURL

    def fetch(self, url: str) -> str:
        return self._run([self.executable, "-fsSL", *self._auth_args(), url], url)

    def download(self, url: str, destination: str) -> None:
        self._run(
            [self.executable, "-fsSL", *self._auth_args(), "-o", destination, url],
            url,
        )


class WgetTransport(_ShellTransport):
    name = HTTP_CLIENT_WGET

    def fetch(self, url: str) -> str:
        return self._run([self.executable, "-qO-", *self._auth_args(), url], url)

    def download(self, url: str, destination: str) -> None:
        self._run(
            [self.executable, "-q", *self._auth_args(), "-O", destination, url],
            url,
        )


class RequestsTransport(HttpTransport):
    """
    Native transport backed by a `requests.Session`.

    Connection, read and retryable status errors (408, 429 and 5xx) are retried
    with exponential backoff by urllib3 before the final status is raised.
    """

    name = HTTP_CLIENT_REQUESTS

    def __init__(
        self,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(token)
        self.session = session or self._build_session()

    @staticmethod
    def _build_session() -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=DEFAULT_CONNECT_RETRIES,
            connect=DEFAULT_CONNECT_RETRIES,
            read=DEFAULT_CONNECT_RETRIES,
            status=DEFAULT_CONNECT_RETRIES,
            backoff_factor=DEFAULT_BACKOFF_FACTOR,
            status_forcelist=list(RETRY_STATUS_FORCELIST),
            allowed_methods=frozenset({"GET", "HEAD"}),
            raise_on_status=False,
            respect_retry_after_header=True,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.headers["User-Agent"] = get_user_agent()
        return session

    def _headers(self, api: bool = False) -> Dict[str, str]:
        headers = auth_headers(self.token)
        if api:
            headers["Accept"] = "application/vnd.github+json"
            headers["X-GitHub-Api-Version"] = GITHUB_API_VERSION
        return headers

    @staticmethod
    def _network_error(error: requests.RequestException, url: str) -> NetworkError:
        response = getattr(error, "response", None)
        status_code = response.status_code if response is not None else None
        if status_code is not None:
            message = f"HTTP {status_code} while requesting {url}"
        else:
            message = f"Request failed for {url}"
        return NetworkError(
            message, url=url, status_code=status_code, details=str(error)
        )

    def fetch(self, url: str) -> str:
        logger.debug(f"Making GitHub API request: {url}")
        try:
            response = self.session.get(
                url, headers=self._headers(api=True), timeout=GITHUB_API_TIMEOUT
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise self._network_error(e, url) from e
        return response.text

    def download(self, url: str, destination: str) -> None:
        logger.debug(f"Downloading {url} to {destination}")
        downloaded_bytes = 0
        try:
            with self.session.get(
                url,
                headers=self._headers(),
                stream=True,
                timeout=DEFAULT_REQUEST_TIMEOUT,
            ) as response:
                response.raise_for_status()
                with open(destination, "wb") as file:
                    for chunk in response.iter_content(chunk_size=DEFAULT_CHUNK_SIZE):
                        if chunk:
                            file.write(chunk)
                            downloaded_bytes += len(chunk)
        except requests.RequestException as e:
            raise self._network_error(e, url) from e
        except OSError as e:
            raise NetworkError(
                f"Could not write download to {destination}", url=url, details=str(e)
            ) from e
        logger.debug(f"Finished downloading {url}: {downloaded_bytes} bytes")


_SHELL_TRANSPORTS = {
    HTTP_CLIENT_CURL: CurlTransport,
    HTTP_CLIENT_WGET: WgetTransport,
}


def select_transport(
    config: InstallerConfig,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> HttpTransport:
    """
    Choose the HTTP transport for this run.

    In "auto" mode curl is preferred and wget is the fallback. A specific shell
    client must be present on the search path. The native "requests" client is
    always available.

    Parameters:
        config (InstallerConfig): Supplies the client preference and the GitHub token.
        which (Callable[[str], Optional[str]]): Executable lookup, `shutil.which` by default.

    Returns:
        HttpTransport: A transport carrying the configured token.

    Raises:
        NoHttpClientError: If no acceptable shell client is installed.
        ConfigurationError: If the client preference is unknown.
    """
    preference = config.http_client

    if preference == HTTP_CLIENT_REQUESTS:
        logger.debug("Using native requests HTTP client")
        return RequestsTransport(token=config.token)

    if preference == HTTP_CLIENT_AUTO:
        candidates = SHELL_HTTP_CLIENTS
    elif preference in _SHELL_TRANSPORTS:
        candidates = (preference,)
    else:
        raise ConfigurationError(f"Unknown HTTP client: {preference}")

    for name in candidates:
        executable = which(name)
        if executable:
            logger.debug(f"Using {name} HTTP client at {executable}")
            return _SHELL_TRANSPORTS[name](token=config.token, executable=executable)

    if preference == HTTP_CLIENT_AUTO:
        raise NoHttpClientError(MSG_NO_HTTP_CLIENT)
    raise NoHttpClientError(f"{preference} not found. Please install it.")
