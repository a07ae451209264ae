import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from sb0_installer.constants import LOG_DATE_FORMAT, LOG_LEVEL_ENV_VAR, LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


def _resolve_level(level_name: str):
    level = getattr(logging, level_name.upper(), None)
    return level if isinstance(level, int) else None


def set_log_level(level_name: str) -> None:
    """
    Set the log level for the installer logger and all attached handlers.

    If `level_name` is not a valid logging level name (e.g., "DEBUG", "INFO"), a warning
    is logged and the current configuration is left unchanged.

    Parameters:
        level_name (str): Case-insensitive name of the desired logging level.
    """
    level = _resolve_level(level_name)
    if level is None:
        logger.warning(f"Invalid log level name: {level_name}. Using current level.")
        return

    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)

    logger.debug(f"Log level set to {logging.getLevelName(level)}")


def _initialize_logger() -> None:
    """
    Initialize the installer logger with a console RichHandler writing to stderr.

    Existing handlers are removed, propagation to the root logger is disabled, and the
    initial level is read from the environment variable named by LOG_LEVEL_ENV_VAR
    (defaults to "INFO"; invalid values fall back to INFO with a warning).
    """
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_level=True,
        show_path=False,
        markup=False,
        log_time_format=LOG_DATE_FORMAT,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    requested = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    initial_level = _resolve_level(requested)
    if initial_level is None:
        initial_level = logging.INFO
        logger.setLevel(initial_level)
        console_handler.setLevel(initial_level)
        logger.warning(f"Invalid {LOG_LEVEL_ENV_VAR}={requested}; defaulting to INFO.")
        return

    logger.setLevel(initial_level)
    console_handler.setLevel(initial_level)


# Initialize the logger when the module is imported
_initialize_logger()
