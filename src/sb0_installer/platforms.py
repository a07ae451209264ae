"""
Host platform detection and platform-dependent default locations.
"""

import os
import platform
from typing import Optional

import platformdirs

from sb0_installer.constants import (
    APP_NAME,
    FALLBACK_DATA_DIR,
    LINUX_DATA_SUBDIR,
    MACOS_DATA_SUBDIR,
)
from sb0_installer.exceptions import UnsupportedPlatformError

_ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def detect_os(system: Optional[str] = None) -> str:
    """
    Map a kernel name to the release OS name.

    Parameters:
        system (Optional[str]): Kernel name as reported by `uname -s`; defaults to `platform.system()`.

    Returns:
        str: "linux" or "macos".

    Raises:
        UnsupportedPlatformError: For any other kernel name.
    """
    system = platform.system() if system is None else system
    if system.startswith("Linux"):
        return "linux"
    if system.startswith("Darwin"):
        return "macos"
    raise UnsupportedPlatformError(f"Unsupported operating system: {system}")


def detect_arch(machine: Optional[str] = None) -> str:
    """
    Map a machine hardware name to the release architecture name.

    Raises:
        UnsupportedPlatformError: For anything other than x86_64/amd64/aarch64/arm64.
    """
    machine = platform.machine() if machine is None else machine
    arch = _ARCH_ALIASES.get(machine)
    if arch is None:
        raise UnsupportedPlatformError(f"Unsupported architecture: {machine}")
    return arch


def detect_platform(system: Optional[str] = None, machine: Optional[str] = None) -> str:
    """
    Compute the `{os}-{arch}` platform tag used in binary asset names.

    Both arguments default to the running host, so the function can be called
    with no arguments.

    Returns:
        str: e.g. "linux-x64" or "macos-arm64".
    """
    return f"{detect_os(system)}-{detect_arch(machine)}"


def default_data_dir(home: Optional[str] = None, system: Optional[str] = None) -> str:
    """
    Return the platform default base directory for sb0 data.

    Parameters:
        home (Optional[str]): Home directory; defaults to $HOME of the running process.
        system (Optional[str]): Kernel name; defaults to `platform.system()`.

    Without a home directory the data lives under /tmp/sb0. For the real home
    directory platformdirs supplies the per-user data location, which honours
    XDG_DATA_HOME. Any other home gets ~/Library/Application Support/sb0 on
    macOS and ~/.local/share/sb0 elsewhere.
    """
    home = os.environ.get("HOME", "") if home is None else home
    if not home:
        return FALLBACK_DATA_DIR
    if os.path.normpath(home) == os.path.normpath(os.path.expanduser("~")):
        return platformdirs.user_data_dir(APP_NAME, appauthor=False)

    system = platform.system() if system is None else system
    if system.startswith("Darwin"):
        return os.path.join(home, MACOS_DATA_SUBDIR)
    return os.path.join(home, LINUX_DATA_SUBDIR)
