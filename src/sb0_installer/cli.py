# src/sb0_installer/cli.py

import argparse
import sys
from typing import List, Optional

from sb0_installer import log_utils
from sb0_installer.archive import ArchiveExtractor
from sb0_installer.config import InstallerConfig
from sb0_installer.constants import (
    BINARY_NAME,
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    MSG_TOKEN_HINT,
)
from sb0_installer.exceptions import InstallerError, UsageError
from sb0_installer.installer import AssetInstaller, InstallResult
from sb0_installer.platforms import detect_platform
from sb0_installer.reporter import report_path
from sb0_installer.transport import HttpTransport, select_transport
from sb0_installer.version import resolve_version

ENVIRONMENT_HELP = """\
Environment overrides:
  GITHUB_REPO      Repository to download from (default: terminal-use/sb0-cli)
  GITHUB_TOKEN     Personal access token for private releases
  INSTALL_DIR      Installation directory (default: ~/.local/bin)
  SB0_VERSION      Same as --version
  SB0_DATA_DIR     Base directory for sb0 data (default: platform specific)
  SB0_WHEELS_DIR   Override wheel storage directory (default: $SB0_DATA_DIR/wheels)
  SB0_TEMPLATE_DIR Override template storage directory (default: $SB0_DATA_DIR/templates)
  SB0_HTTP_CLIENT  HTTP client: auto, curl, wget or requests (default: auto)
  SB0_INSTALLER_LOG_LEVEL  Console log level (default: INFO)
"""


class _HelpRequested(Exception):
    pass


class _HelpAction(argparse.Action):
    """Stop parsing as soon as -h/--help is seen."""

    def __init__(
        self,
        option_strings,
        dest=argparse.SUPPRESS,
        default=argparse.SUPPRESS,
        help=None,
    ):
        super().__init__(
            option_strings=option_strings,
            dest=dest,
            default=default,
            nargs=0,
            help=help,
        )

    def __call__(self, parser, namespace, values, option_string=None):
        raise _HelpRequested()


class _InstallerArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _InstallerArgumentParser(
        prog="sb0-install",
        description="Install the sb0 CLI and its wheels and templates.",
        epilog=ENVIRONMENT_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-v",
        "--version",
        metavar="VERSION",
        help="Install a specific sb0 release tag (with or without leading v)",
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        help="Console log level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "-h", "--help", action=_HelpAction, help="Show this help message"
    )
    return parser


_HELP_OPTIONS = ("-h", "--help")
# Options taking the next token as their value, mapped to their long form
_VALUE_OPTIONS = {
    "-v": "--version",
    "--version": "--version",
    "--log-level": "--log-level",
}


def _scan_tokens(argv: List[str]) -> List[str]:
    """
    Walk the raw arguments left to right and rewrite them for argparse.

    Each value option consumes the following token verbatim, even one starting
    with "-", and is passed on as `--option=value`. Scanning stops at the first
    -h/--help. Joined forms such as `--version=1.2.3` or `-v1.2.3` are not
    accepted.

    Raises:
        UsageError: For an option missing its value or any other token.
    """
    tokens = []
    index = 0
    while index < len(argv):
        token = argv[index]
        if token in _HELP_OPTIONS:
            tokens.append("--help")
            break
        if token in _VALUE_OPTIONS:
            if index + 1 >= len(argv):
                raise UsageError(f"Missing value for {token}")
            tokens.append(f"{_VALUE_OPTIONS[token]}={argv[index + 1]}")
            index += 2
            continue
        raise UsageError(f"Unknown option: {token}")
    return tokens


def parse_args(
    parser: argparse.ArgumentParser, argv: Optional[List[str]] = None
) -> argparse.Namespace:
    """
    Parse installer arguments.

    Raises:
        UsageError: For a flag missing its value or any unrecognized token.
        _HelpRequested: When -h/--help is encountered.
    """
    argv = sys.argv[1:] if argv is None else list(argv)
    return parser.parse_args(_scan_tokens(argv))


def run_install(
    config: InstallerConfig,
    transport: HttpTransport,
    extractor: Optional[ArchiveExtractor] = None,
    platform_tag: Optional[str] = None,
    search_path: Optional[str] = None,
    temp_root: Optional[str] = None,
) -> InstallResult:
    """
    Run the install pipeline after the HTTP client has been chosen.

    Stages run in order: data directory, platform detection, version resolution,
    asset installation, PATH report. The first failing stage raises.

    Parameters:
        config (InstallerConfig): Run configuration.
        transport (HttpTransport): HTTP client used for the release lookup and downloads.
        extractor (Optional[ArchiveExtractor]): Archive unpacker override.
        platform_tag (Optional[str]): Platform override; detected from the host when omitted.
        search_path (Optional[str]): Search path for the PATH report; $PATH when omitted.
        temp_root (Optional[str]): Parent directory for temporary downloads.

    Returns:
        InstallResult: Paths written by the installation.
    """
    installer = AssetInstaller(
        config, transport, extractor=extractor, temp_root=temp_root
    )
    installer.prepare_data_dir()

    platform_tag = platform_tag or detect_platform()
    log_utils.logger.info(f"Detected platform: {platform_tag}")

    version = resolve_version(config, transport)
    log_utils.logger.info(f"Using version: {version}")

    result = installer.run(version, platform_tag)
    report_path(config.install_dir, search_path)

    log_utils.logger.info(f"Successfully installed {BINARY_NAME}!")
    log_utils.logger.info(f"Run '{BINARY_NAME} --help' to get started")
    return result


def report_error(error: InstallerError, config: Optional[InstallerConfig]) -> None:
    """
    Log a pipeline failure with any remediation hints.

    The token hint is shown for network failures whenever no token is configured,
    since a private repository and a plain network failure look the same here.
    """
    log_utils.logger.error(str(error))
    if error.auth_hint and (config is None or not config.has_token):
        log_utils.logger.error(MSG_TOKEN_HINT)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the sb0 installer command-line interface.

    Parses arguments, builds the configuration from the environment, selects an
    HTTP client and runs the install pipeline.

    Returns:
        int: 0 on success or when help was shown, 1 on any failure, 130 when interrupted.
    """
    parser = build_parser()
    try:
        args = parse_args(parser, argv)
    except _HelpRequested:
        parser.print_help()
        return EXIT_SUCCESS
    except UsageError as e:
        log_utils.logger.error(str(e))
        parser.print_help()
        return EXIT_FAILURE

    if args.log_level:
        log_utils.set_log_level(args.log_level)

    config = None
    try:
        config = InstallerConfig.from_env(version=args.version)
        log_utils.logger.info(f"Installing {BINARY_NAME}...")
        transport = select_transport(config)
        run_install(config, transport)
    except InstallerError as e:
        report_error(e, config)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        log_utils.logger.error("Installation interrupted")
        return EXIT_INTERRUPTED

    return EXIT_SUCCESS


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
