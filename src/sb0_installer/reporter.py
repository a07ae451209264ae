"""
Post-install environment checks.
"""

import os
from typing import Optional

from sb0_installer.log_utils import logger


def path_contains(directory: str, search_path: str) -> bool:
    """
    Check whether `directory` is one of the entries of `search_path`.

    Entries are compared whole, so /opt/bin does not match /opt/bin2.
    """
    return directory in search_path.split(os.pathsep)


def report_path(install_dir: str, search_path: Optional[str] = None) -> bool:
    """
    Warn, with a suggested shell profile line, when `install_dir` is not on the search path.

    Parameters:
        install_dir (str): Directory holding the installed binary.
        search_path (Optional[str]): Search path to inspect; defaults to $PATH.

    Returns:
        bool: `True` if the directory is already on the search path.
    """
    search_path = os.environ.get("PATH", "") if search_path is None else search_path
    if path_contains(install_dir, search_path):
        return True

    logger.warning(f"{install_dir} is not in your PATH")
    logger.info(
        "Add the following to your shell profile (~/.bashrc, ~/.zshrc, etc.):"
    )
    logger.info(f'  export PATH="{install_dir}:$PATH"')
    return False
