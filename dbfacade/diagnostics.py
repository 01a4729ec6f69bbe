"""Diagnostic reporting for fatal connection failures."""

import inspect
import logging
from datetime import datetime
from pathlib import Path
from typing import NoReturn, Optional, Union

from dbfacade.config.models import EnvironmentSettings

logger = logging.getLogger(__name__)

USER_MESSAGE = "Connection failed. Details have been logged."
UNKNOWN_FUNCTION = "unknown"

_PACKAGE_DIR = Path(__file__).resolve().parent


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """Configure root logging the way the command line tool expects it."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def calling_function_name() -> str:
    """Name of the nearest function on the stack that lives outside this package.

    Returns "unknown" when the stack cannot be inspected or holds no such frame.
    """
    frame = inspect.currentframe()
    try:
        while frame is not None:
            filename = frame.f_code.co_filename
            try:
                inside = Path(filename).resolve().is_relative_to(_PACKAGE_DIR)
            except (OSError, ValueError):
                inside = False
            if not inside:
                name = frame.f_code.co_name
                return UNKNOWN_FUNCTION if name == "<module>" else name
            frame = frame.f_back
        return UNKNOWN_FUNCTION
    finally:
        del frame


class DiagnosticSink:
    """Writes connection failure reports to an append-only file and the process log.

    With ``terminate`` enabled (the default) a report ends the request path by
    raising SystemExit with a short user-facing message.
    """

    def __init__(
        self,
        error_log_path: Optional[Union[str, Path]] = None,
        terminate: Optional[bool] = None,
        settings: Optional[EnvironmentSettings] = None,
    ) -> None:
        settings = settings or EnvironmentSettings()
        self.error_log_path = Path(error_log_path or settings.error_log_path)
        self.terminate = settings.terminate_on_connection_failure if terminate is None else terminate

    def format_message(
        self,
        error: BaseException,
        driver: str,
        function_name: Optional[str] = None,
        source: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> str:
        """Build the multi-line report for a failed connection attempt."""
        timestamp = timestamp or datetime.now()
        return (
            f"[{timestamp:%Y-%m-%d %H:%M:%S}] Error while establishing the database connection:\n"
            f"File: {source or __file__}\n"
            f"Driver: {driver}\n"
            f"Function: {function_name or UNKNOWN_FUNCTION}\n"
            f"Error: {error}\n"
        )

    def write(self, message: str) -> None:
        """Append a message to the error log file and emit it on the process log."""
        self.error_log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.error_log_path, 'a', encoding='utf-8') as file:
            file.write(message)
        logger.error(message.rstrip("\n"))

    def report(
        self,
        error: BaseException,
        driver: str,
        function_name: Optional[str] = None,
        source: Optional[str] = None,
    ) -> str:
        """Format and write a report, returning the message that was written."""
        message = self.format_message(
            error,
            driver,
            function_name=function_name or calling_function_name(),
            source=source,
        )
        self.write(message)
        return message

    def fail(
        self,
        error: BaseException,
        driver: str,
        function_name: Optional[str] = None,
        source: Optional[str] = None,
    ) -> NoReturn:
        """Report the error, then terminate the request path.

        Raises:
            SystemExit: When termination is enabled.
            The original error: When termination is disabled.
        """
        self.report(error, driver, function_name=function_name, source=source)
        if self.terminate:
            raise SystemExit(USER_MESSAGE) from error
        raise error
