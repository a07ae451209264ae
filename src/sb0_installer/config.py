"""
Installer configuration, read once from the environment at startup.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from sb0_installer.constants import (
    ASSETS_VERSION_FILE,
    BINARY_NAME,
    DEFAULT_GITHUB_REPO,
    DEFAULT_INSTALL_SUBDIR,
    ENV_DATA_DIR,
    ENV_GITHUB_REPO,
    ENV_GITHUB_TOKEN,
    ENV_HTTP_CLIENT,
    ENV_INSTALL_DIR,
    ENV_TEMPLATE_DIR,
    ENV_VERSION,
    ENV_WHEELS_DIR,
    HTTP_CLIENT_AUTO,
    HTTP_CLIENT_CHOICES,
    INSTALL_LOCK_FILE,
    TEMPLATES_DIR_NAME,
    WHEELS_DIR_NAME,
)
from sb0_installer.exceptions import ConfigurationError
from sb0_installer.platforms import default_data_dir


def _env_value(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Return the stripped value of `name`, treating empty strings as unset."""
    value = environ.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def get_effective_github_token(
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """
    Read the GitHub token from the environment.

    Parameters:
        environ (Optional[Mapping[str, str]]): Environment to read; defaults to `os.environ`.

    Returns:
        Optional[str]: The token with surrounding whitespace removed, or `None` if it is unset or blank.
    """
    environ = os.environ if environ is None else environ
    return _env_value(environ, ENV_GITHUB_TOKEN)


@dataclass(frozen=True)
class InstallerConfig:
    """Settings shared by every pipeline stage."""

    repo: str
    install_dir: str
    data_dir: str
    wheels_dir: str
    templates_dir: str
    token: Optional[str] = None
    requested_version: Optional[str] = None
    http_client: str = HTTP_CLIENT_AUTO

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        version: Optional[str] = None,
    ) -> "InstallerConfig":
        """
        Build the configuration from environment overrides.

        Parameters:
            environ (Optional[Mapping[str, str]]): Environment mapping; defaults to `os.environ`.
            version (Optional[str]): Version requested on the command line; wins over SB0_VERSION.

        Returns:
            InstallerConfig: The populated configuration.

        Raises:
            ConfigurationError: If SB0_HTTP_CLIENT names an unknown client.
        """
        environ = os.environ if environ is None else environ

        home = environ.get("HOME", "")
        install_dir = _env_value(environ, ENV_INSTALL_DIR) or os.path.join(
            home or os.sep, DEFAULT_INSTALL_SUBDIR
        )
        data_dir = _env_value(environ, ENV_DATA_DIR) or default_data_dir(home)

        http_client = (_env_value(environ, ENV_HTTP_CLIENT) or HTTP_CLIENT_AUTO).lower()
        if http_client not in HTTP_CLIENT_CHOICES:
            raise ConfigurationError(
                f"Invalid {ENV_HTTP_CLIENT} value: {http_client}",
                details=f"expected one of {', '.join(HTTP_CLIENT_CHOICES)}",
            )

        requested = version if version else _env_value(environ, ENV_VERSION)

        return cls(
            repo=_env_value(environ, ENV_GITHUB_REPO) or DEFAULT_GITHUB_REPO,
            install_dir=install_dir,
            data_dir=data_dir,
            wheels_dir=_env_value(environ, ENV_WHEELS_DIR)
            or os.path.join(data_dir, WHEELS_DIR_NAME),
            templates_dir=_env_value(environ, ENV_TEMPLATE_DIR)
            or os.path.join(data_dir, TEMPLATES_DIR_NAME),
            token=get_effective_github_token(environ),
            requested_version=requested,
            http_client=http_client,
        )

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    @property
    def binary_path(self) -> str:
        return os.path.join(self.install_dir, BINARY_NAME)

    @property
    def marker_path(self) -> str:
        return os.path.join(self.data_dir, ASSETS_VERSION_FILE)

    @property
    def lock_path(self) -> str:
        return os.path.join(self.data_dir, INSTALL_LOCK_FILE)
