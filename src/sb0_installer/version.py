"""
Release version resolution.

A version is either supplied by the user (normalized and validated locally,
without touching the network) or read from the repository's latest release.
"""

import json
import re
from typing import Optional

from packaging.version import InvalidVersion, Version

from sb0_installer.config import InstallerConfig
from sb0_installer.constants import LATEST_RELEASE_URL_TEMPLATE, VERSION_REGEX_PATTERN
from sb0_installer.exceptions import (
    NetworkError,
    ReleaseLookupError,
    VersionFormatError,
)
from sb0_installer.log_utils import logger
from sb0_installer.transport import HttpTransport

VERSION_RX = re.compile(VERSION_REGEX_PATTERN)


def normalize_version(version: str) -> str:
    """Prefix `version` with "v" unless it already starts with one."""
    version = version.strip()
    if not version.startswith("v"):
        version = f"v{version}"
    return version


def validate_version(version: str) -> str:
    """
    Check a release tag against the release version pattern.

    Returns:
        str: The tag, unchanged.

    Raises:
        VersionFormatError: If the tag does not look like `v1.2.3` or `v1.2.3-rc.1`.
    """
    if not VERSION_RX.fullmatch(version):
        raise VersionFormatError(version)
    return version


def plain_version(version: str) -> str:
    """Return the tag without its leading "v" (v2.0.0 -> 2.0.0)."""
    return version[1:] if version.startswith("v") else version


def latest_release_url(repo: str) -> str:
    return LATEST_RELEASE_URL_TEMPLATE.format(repo=repo)


def parse_latest_tag(body: str) -> str:
    """
    Extract `tag_name` from a GitHub "latest release" response body.

    Unknown fields are ignored.

    Raises:
        ReleaseLookupError: If the body is not a JSON object or has no usable `tag_name`.
    """
    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as e:
        raise ReleaseLookupError(
            "Failed to parse release version", details="response is not valid JSON"
        ) from e

    if not isinstance(payload, dict):
        raise ReleaseLookupError(
            "Failed to parse release version", details="response is not a JSON object"
        )

    tag = payload.get("tag_name")
    if not isinstance(tag, str) or not tag:
        raise ReleaseLookupError(
            "Failed to parse release version", details="tag_name missing from response"
        )
    return tag


def get_latest_version(repo: str, transport: HttpTransport) -> str:
    """
    Fetch and validate the tag of the repository's latest release.

    Raises:
        ReleaseLookupError: If the listing cannot be fetched (with the token hint enabled) or parsed.
        VersionFormatError: If the published tag does not match the version pattern.
    """
    url = latest_release_url(repo)
    try:
        body = transport.fetch(url)
    except NetworkError as e:
        raise ReleaseLookupError(
            "Failed to get latest release version", details=str(e), auth_hint=True
        ) from e

    return validate_version(parse_latest_tag(body))


def resolve_version(config: InstallerConfig, transport: HttpTransport) -> str:
    """
    Resolve the release tag to install.

    An explicitly requested version is normalized and validated without any
    network access; otherwise the latest release tag is fetched.

    Returns:
        str: A validated tag with a leading "v".
    """
    if config.requested_version:
        return validate_version(normalize_version(config.requested_version))

    logger.debug(f"No version requested; looking up latest release of {config.repo}")
    return get_latest_version(config.repo, transport)


def describe_upgrade(previous: Optional[str], new: str) -> str:
    """
    Classify the change between the recorded assets version and the new one.

    Parameters:
        previous (Optional[str]): Plain version from the assets-version marker, if any.
        new (str): Plain or v-prefixed version being installed.

    Returns:
        str: "fresh install", "reinstall", "upgrade", "downgrade", or "replace"
        when the recorded version cannot be compared.
    """
    if not previous:
        return "fresh install"
    previous_plain = plain_version(previous.strip())
    new_plain = plain_version(new)
    if previous_plain == new_plain:
        return "reinstall"
    try:
        old_v = Version(previous_plain)
        new_v = Version(new_plain)
    except InvalidVersion:
        return "replace"
    if new_v > old_v:
        return "upgrade"
    if new_v < old_v:
        return "downgrade"
    return "reinstall"
