"""
Archive extraction for the wheels and templates release assets.
"""

import os
import tarfile
import zlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from sb0_installer.exceptions import ExtractionError
from sb0_installer.log_utils import logger


class ArchiveExtractor(ABC):
    """Capability interface for unpacking an archive into a directory."""

    @abstractmethod
    def extract(self, archive_path: str, destination: str) -> List[Path]:
        """
        Unpack `archive_path` into the existing directory `destination`.

        Returns:
            List[Path]: Regular files written under `destination`.

        Raises:
            ExtractionError: If the archive is corrupt, unsafe, or cannot be written.
        """


def is_safe_member_name(member_name: str) -> bool:
    """
    Determine whether an archive member name is safe to extract.

    Returns:
        `True` if the name contains no absolute path, parent-directory reference or null byte.
    """
    if not member_name or member_name.startswith(("/", "\\")):
        return False
    if "\x00" in member_name:
        return False
    normalized = os.path.normpath(member_name)
    if os.path.isabs(normalized):
        return False
    return normalized != ".." and not normalized.startswith(f"..{os.sep}")


def _extract_members(
    tar: tarfile.TarFile, destination: str, members: List[tarfile.TarInfo]
) -> None:
    """
    Extract `members` with tarfile's "data" filter where the interpreter has it.

    Interpreters without extraction filters (before 3.10.12 and 3.11.4) get
    the closest equivalent: device and fifo members are skipped and links must
    stay inside the archive.
    """
    if hasattr(tarfile, "data_filter"):
        tar.extractall(destination, members=members, filter="data")
        return

    selected = []
    for member in members:
        if member.isdev() or member.isfifo():
            logger.debug(f"Skipping special archive member {member.name}")
            continue
        if member.issym() or member.islnk():
            # Hard link targets are archive paths; symlinks resolve from their directory
            target = member.linkname
            if member.issym():
                target = os.path.join(os.path.dirname(member.name), member.linkname)
            if is_safe_member_name(target):
                selected.append(member)
                continue
            raise ExtractionError(
                "Refusing to extract link",
                details=f"{member.name!r} points to {member.linkname!r}",
            )
        selected.append(member)
    tar.extractall(destination, members=selected)


class TarArchiveExtractor(ArchiveExtractor):
    """
    Extract gzip-compressed tarballs with the standard library `tarfile` module.

    Member names are checked before anything is written, and extraction runs
    with tarfile's "data" filter, which also rejects links pointing outside the
    destination and strips special files and unsafe permission bits. Without
    that filter, links are checked by hand and special files are skipped.
    """

    def extract(self, archive_path: str, destination: str) -> List[Path]:
        name = os.path.basename(archive_path)
        try:
            with tarfile.open(archive_path, "r:gz") as tar:
                members = tar.getmembers()
                for member in members:
                    if not is_safe_member_name(member.name):
                        raise ExtractionError(
                            f"Refusing to extract {name}",
                            archive_path=archive_path,
                            details=f"unsafe member path {member.name!r}",
                        )
                _extract_members(tar, destination, members)
        except (tarfile.TarError, EOFError, zlib.error, OSError) as e:
            raise ExtractionError(
                f"Could not extract {name}", archive_path=archive_path, details=str(e)
            ) from e

        extracted = [
            Path(destination) / member.name for member in members if member.isfile()
        ]
        logger.debug(f"Extracted {len(extracted)} files from {name} into {destination}")
        return extracted
