"""
Constants and configuration values for the sb0 installer.

This module contains the hardcoded names, URLs, timeouts, and other constants
used throughout the installer.
"""

# Release hosting
DEFAULT_GITHUB_REPO = "terminal-use/sb0-cli"
GITHUB_API_BASE = "https://api.github.com/repos"
GITHUB_RELEASES_BASE = "https://github.com"
LATEST_RELEASE_URL_TEMPLATE = GITHUB_API_BASE + "/{repo}/releases/latest"
RELEASE_DOWNLOAD_URL_TEMPLATE = (
    GITHUB_RELEASES_BASE + "/{repo}/releases/download/{version}/{filename}"
)
GITHUB_API_VERSION = "2022-11-28"

# Network timeouts (in seconds) and retry settings for the native client
GITHUB_API_TIMEOUT = 10
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_CONNECT_RETRIES = 5
DEFAULT_BACKOFF_FACTOR = 0.3
RETRY_STATUS_FORCELIST = (408, 429, 500, 502, 503, 504)
DEFAULT_CHUNK_SIZE = 8192

# HTTP client names
HTTP_CLIENT_AUTO = "auto"
HTTP_CLIENT_CURL = "curl"
HTTP_CLIENT_WGET = "wget"
HTTP_CLIENT_REQUESTS = "requests"
SHELL_HTTP_CLIENTS = (HTTP_CLIENT_CURL, HTTP_CLIENT_WGET)
HTTP_CLIENT_CHOICES = (
    HTTP_CLIENT_AUTO,
    HTTP_CLIENT_CURL,
    HTTP_CLIENT_WGET,
    HTTP_CLIENT_REQUESTS,
)

# Binary and asset names
BINARY_NAME = "sb0"
APP_NAME = "sb0"
BINARY_ASSET_TEMPLATE = "sb0-{platform}"
WHEELS_ASSET_TEMPLATE = "sb0-wheels-{version}.tar.gz"
TEMPLATES_ASSET_TEMPLATE = "sb0-templates-{version}.tar.gz"
EXECUTABLE_PERMISSIONS = 0o755

# Asset kinds
ASSET_BINARY = "binary"
ASSET_WHEELS = "wheels"
ASSET_TEMPLATES = "templates"

# Data directory layout
WHEELS_DIR_NAME = "wheels"
TEMPLATES_DIR_NAME = "templates"
ASSETS_VERSION_FILE = "assets-version"
INSTALL_LOCK_FILE = ".install.lock"
TEMP_DIR_PREFIX = "sb0-"
FALLBACK_DATA_DIR = "/tmp/sb0"
MACOS_DATA_SUBDIR = "Library/Application Support/sb0"
LINUX_DATA_SUBDIR = ".local/share/sb0"
DEFAULT_INSTALL_SUBDIR = ".local/bin"

# Release tag pattern, matched against the whole tag (leading "v" required)
VERSION_REGEX_PATTERN = r"v[0-9]+\.[0-9]+\.[0-9]+([-.][0-9A-Za-z._-]+)?"

# Environment variable names
ENV_GITHUB_REPO = "GITHUB_REPO"
ENV_INSTALL_DIR = "INSTALL_DIR"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_VERSION = "SB0_VERSION"
ENV_DATA_DIR = "SB0_DATA_DIR"
ENV_WHEELS_DIR = "SB0_WHEELS_DIR"
ENV_TEMPLATE_DIR = "SB0_TEMPLATE_DIR"
ENV_HTTP_CLIENT = "SB0_HTTP_CLIENT"
LOG_LEVEL_ENV_VAR = "SB0_INSTALLER_LOG_LEVEL"

# Logging configuration
LOGGER_NAME = "sb0_installer"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# User-facing messages
MSG_TOKEN_HINT = (
    "If this is a private repository, set GITHUB_TOKEN environment variable"
)
MSG_NO_HTTP_CLIENT = "Neither curl nor wget found. Please install one of them."

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
