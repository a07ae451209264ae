"""
Release asset installation.

Each of the three assets of a release (the sb0 binary, the wheels archive and
the templates archive) goes through the same steps: download into a fresh
temporary directory, move or extract into place, and remove the temporary
directory whether or not the step succeeded. Once both archives are in place
the plain version is recorded in the assets-version marker file.

Assets installed earlier in a run are left in place when a later asset fails.
"""

import contextlib
import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from sb0_installer.archive import ArchiveExtractor, TarArchiveExtractor
from sb0_installer.config import InstallerConfig
from sb0_installer.constants import (
    ASSET_BINARY,
    ASSET_TEMPLATES,
    ASSET_WHEELS,
    BINARY_ASSET_TEMPLATE,
    BINARY_NAME,
    EXECUTABLE_PERMISSIONS,
    RELEASE_DOWNLOAD_URL_TEMPLATE,
    TEMP_DIR_PREFIX,
    TEMPLATES_ASSET_TEMPLATE,
    WHEELS_ASSET_TEMPLATE,
)
from sb0_installer.exceptions import (
    AssetDownloadError,
    ExtractionError,
    InstallFileError,
    InstallLockedError,
    NetworkError,
)
from sb0_installer.log_utils import logger
from sb0_installer.transport import HttpTransport
from sb0_installer.version import describe_upgrade, plain_version


@dataclass
class AssetSpec:
    """Describes one downloadable release asset and where it is installed."""

    kind: str
    """One of "binary", "wheels", "templates" """

    label: str
    """Human readable name used in log and error messages"""

    filename: str
    """Asset file name on the release page"""

    target: str
    """Installed file (binary) or versioned directory (archives)"""


@dataclass
class InstallResult:
    """Locations written by a successful installation."""

    version: str
    binary_path: str
    wheels_dir: str
    templates_dir: str
    marker_path: str
    previous_version: Optional[str] = None


def release_asset_url(repo: str, version: str, filename: str) -> str:
    """Build the download URL of a release asset."""
    return RELEASE_DOWNLOAD_URL_TEMPLATE.format(
        repo=repo, version=version, filename=filename
    )


def build_asset_specs(
    config: InstallerConfig, version: str, platform_tag: str
) -> List[AssetSpec]:
    """
    Describe the three assets of `version` in installation order.

    Parameters:
        config (InstallerConfig): Supplies the install and data directories.
        version (str): Validated release tag with a leading "v".
        platform_tag (str): `{os}-{arch}` tag selecting the binary.

    Returns:
        List[AssetSpec]: binary, wheels archive, templates archive.
    """
    plain = plain_version(version)
    return [
        AssetSpec(
            kind=ASSET_BINARY,
            label="binary",
            filename=BINARY_ASSET_TEMPLATE.format(platform=platform_tag),
            target=config.binary_path,
        ),
        AssetSpec(
            kind=ASSET_WHEELS,
            label="wheels archive",
            filename=WHEELS_ASSET_TEMPLATE.format(version=plain),
            target=os.path.join(config.wheels_dir, plain),
        ),
        AssetSpec(
            kind=ASSET_TEMPLATES,
            label="templates archive",
            filename=TEMPLATES_ASSET_TEMPLATE.format(version=plain),
            target=os.path.join(config.templates_dir, plain),
        ),
    ]


def _atomic_write(file_path: str, content: str) -> None:
    """
    Replace `file_path` with `content` through a temporary file in the same directory.

    Raises:
        InstallFileError: If the temporary file cannot be written or moved into place.
    """
    try:
        temp_fd, temp_path = tempfile.mkstemp(
            dir=os.path.dirname(file_path), prefix="tmp-", suffix=".tmp"
        )
    except OSError as e:
        raise InstallFileError(
            f"Could not write {os.path.basename(file_path)}",
            path=file_path,
            details=str(e),
        ) from e

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as temp_f:
            temp_f.write(content)
        os.replace(temp_path, file_path)
    except OSError as e:
        raise InstallFileError(
            f"Could not write {os.path.basename(file_path)}",
            path=file_path,
            details=str(e),
        ) from e
    finally:
        if os.path.exists(temp_path):
            with contextlib.suppress(OSError):
                os.remove(temp_path)


def remove_temp_dir(tmp_dir: str) -> None:
    """Remove a temporary download directory, logging rather than raising on failure."""
    try:
        shutil.rmtree(tmp_dir)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove temporary directory {tmp_dir}: {e}")


@contextlib.contextmanager
def install_lock(lock_path: str) -> Iterator[None]:
    """
    Hold an exclusive lock file for the duration of the block.

    Raises:
        InstallLockedError: If the lock file already exists.
    """
    try:
        fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except FileExistsError as e:
        raise InstallLockedError(
            "Another sb0 installation is in progress",
            path=lock_path,
            details=f"remove {lock_path} if no installer is running",
        ) from e
    except OSError as e:
        raise InstallFileError(
            "Could not create install lock", path=lock_path, details=str(e)
        ) from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as lock_file:
            lock_file.write(str(os.getpid()))
        yield
    finally:
        try:
            os.remove(lock_path)
        except FileNotFoundError:
            pass


class AssetInstaller:
    """
    Download and install the assets of one release.

    Parameters:
        config (InstallerConfig): Target directories and repository.
        transport (HttpTransport): Client used for every download.
        extractor (Optional[ArchiveExtractor]): Archive unpacker; tar.gz by default.
        temp_root (Optional[str]): Parent directory for temporary download directories;
            the system temporary directory by default.
    """

    def __init__(
        self,
        config: InstallerConfig,
        transport: HttpTransport,
        extractor: Optional[ArchiveExtractor] = None,
        temp_root: Optional[str] = None,
    ) -> None:
        self.config = config
        self.transport = transport
        self.extractor = extractor or TarArchiveExtractor()
        self.temp_root = temp_root

    def prepare_data_dir(self) -> None:
        """Create the base data directory if it does not exist."""
        try:
            os.makedirs(self.config.data_dir, exist_ok=True)
        except OSError as e:
            raise InstallFileError(
                "Could not create data directory",
                path=self.config.data_dir,
                details=str(e),
            ) from e

    def download_asset(self, spec: AssetSpec, version: str) -> Tuple[str, str]:
        """
        Download one asset into a fresh temporary directory.

        Returns:
            Tuple[str, str]: The temporary directory and the downloaded file inside it.

        Raises:
            AssetDownloadError: If the transport fails; the temporary directory is removed first.
            InstallFileError: If the temporary directory cannot be created.
        """
        try:
            tmp_dir = tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX, dir=self.temp_root)
        except OSError as e:
            raise InstallFileError(
                f"Could not create temporary directory for {spec.label}",
                path=self.temp_root or tempfile.gettempdir(),
                details=str(e),
            ) from e
        # The binary is stored under its final name so it can be moved as-is
        local_name = BINARY_NAME if spec.kind == ASSET_BINARY else spec.filename
        download_path = os.path.join(tmp_dir, local_name)
        url = release_asset_url(self.config.repo, version, spec.filename)

        try:
            self.transport.download(url, download_path)
        except NetworkError as e:
            remove_temp_dir(tmp_dir)
            raise AssetDownloadError(
                f"Failed to download {spec.label}",
                asset=spec.kind,
                url=url,
                details=str(e),
            ) from e

        return tmp_dir, download_path

    def install_binary(self, spec: AssetSpec, tmp_dir: str, download_path: str) -> None:
        """Move the downloaded binary into the install directory and make it executable."""
        install_dir = os.path.dirname(spec.target)
        try:
            if not os.path.isdir(install_dir):
                logger.info(f"Creating install directory: {install_dir}")
                os.makedirs(install_dir, exist_ok=True)

            logger.info(f"Installing to {spec.target}")
            shutil.move(download_path, spec.target)
            os.chmod(spec.target, EXECUTABLE_PERMISSIONS)
        except OSError as e:
            raise InstallFileError(
                f"Failed to install {spec.label}", path=spec.target, details=str(e)
            ) from e
        finally:
            remove_temp_dir(tmp_dir)

    def install_archive(
        self, spec: AssetSpec, tmp_dir: str, download_path: str
    ) -> None:
        """
        Replace the versioned target directory with the archive's contents.

        Any previous directory for the same version is removed first so files
        from an earlier install never survive.
        """
        logger.info(f"Installing {spec.label} to {spec.target}")
        try:
            if os.path.lexists(spec.target):
                if os.path.isdir(spec.target) and not os.path.islink(spec.target):
                    shutil.rmtree(spec.target)
                else:
                    os.remove(spec.target)
            os.makedirs(spec.target)
            self.extractor.extract(download_path, spec.target)
        except ExtractionError as e:
            raise ExtractionError(
                f"Failed to extract {spec.label}",
                archive_path=download_path,
                details=str(e),
            ) from e
        except OSError as e:
            raise InstallFileError(
                f"Failed to prepare {spec.label} directory",
                path=spec.target,
                details=str(e),
            ) from e
        finally:
            remove_temp_dir(tmp_dir)

    def install_asset(self, spec: AssetSpec, version: str) -> None:
        if spec.kind == ASSET_BINARY:
            logger.info(f"Downloading {BINARY_NAME} {version} ({spec.filename})...")
        else:
            logger.info(f"Downloading {spec.label} ({spec.filename})...")

        tmp_dir, download_path = self.download_asset(spec, version)
        if spec.kind == ASSET_BINARY:
            self.install_binary(spec, tmp_dir, download_path)
        else:
            self.install_archive(spec, tmp_dir, download_path)

    def read_assets_version(self) -> Optional[str]:
        """Return the version recorded by the last complete install, or None."""
        try:
            with open(self.config.marker_path, "r", encoding="utf-8") as f:
                recorded = f.read().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.debug(f"Could not read {self.config.marker_path}: {e}")
            return None
        return recorded or None

    def write_assets_version(self, version: str) -> str:
        """
        Record the plain version in the assets-version marker file.

        The file holds the version with no trailing newline and is replaced atomically.

        Returns:
            str: Path of the marker file.

        Raises:
            InstallFileError: If the marker cannot be written.
        """
        self.prepare_data_dir()
        marker = self.config.marker_path
        _atomic_write(marker, plain_version(version))
        logger.debug(f"Recorded assets version {plain_version(version)} in {marker}")
        return marker

    def run(self, version: str, platform_tag: str) -> InstallResult:
        """
        Install every asset of `version`, then record the assets version.

        The install lock is held for the whole sequence.

        Returns:
            InstallResult: The paths that were written.
        """
        self.prepare_data_dir()
        specs = build_asset_specs(self.config, version, platform_tag)

        with install_lock(self.config.lock_path):
            previous = self.read_assets_version()
            if previous:
                logger.info(
                    f"Previously installed assets version: {previous}"
                    f" ({describe_upgrade(previous, version)})"
                )

            for spec in specs:
                self.install_asset(spec, version)

            marker = self.write_assets_version(version)

        binary, wheels, templates = specs
        return InstallResult(
            version=version,
            binary_path=binary.target,
            wheels_dir=wheels.target,
            templates_dir=templates.target,
            marker_path=marker,
            previous_version=previous,
        )
