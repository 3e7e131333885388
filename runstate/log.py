import logging
import sys
from types import TracebackType

import structlog
from structlog.typing import EventDict

from runstate._version import __version__
from runstate.config import settings
from runstate.exceptions import ContainerLoadError, RootDirectoryError

LOGGING_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def add_kv_pairs_to_msg(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    A custom processor to add key-value pairs to the 'msg' field.
    """
    event_dict["env"] = settings.ENV
    event_dict["version"] = __version__

    if method_name not in ["info", "warning", "error", "critical", "exception"]:
        return event_dict

    msg_field = event_dict.get("msg", "")
    kv_pairs = {k: v for k, v in event_dict.items() if k not in ["msg", "timestamp", "level"]}
    if kv_pairs:
        additional_info = ", ".join(f"{k}={v}" for k, v in kv_pairs.items())
        msg_field += f" | {additional_info}"

    event_dict["msg"] = msg_field
    return event_dict


def add_filename_section(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add a fixed-width, bracketed filename:lineno section after the log level for console logs.
    """
    filename = event_dict.get("filename", "")
    lineno = event_dict.get("lineno", "")
    padded = f"[{filename:<24}:{lineno:<4}]" if filename else "[unknown        ]"
    event_dict["file"] = padded
    event_dict.pop("filename", None)
    event_dict.pop("lineno", None)
    return event_dict


class CustomConsoleRenderer(structlog.dev.ConsoleRenderer):
    """
    Show the bracketed filename:lineno section after the log level for console logs.
    """

    def __init__(self, colors: bool = True) -> None:
        super().__init__(sort_keys=False, colors=colors)
        self._colors = colors

    def __call__(self, logger: logging.Logger, name: str, event_dict: EventDict) -> str:
        file_section = event_dict.pop("file", "")
        if file_section and self._colors:
            file_section = f"\x1b[90m{file_section}\x1b[0m"
        rendered = super().__call__(logger, name, event_dict)
        first_bracket = rendered.find("]")

        if first_bracket != -1:
            return rendered[: first_bracket + 1] + f" {file_section}" + rendered[first_bracket + 1 :]
        return f"{file_section} {rendered}"


def add_error_processor(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    A custom processor extending error logs with the error type, category and a stable hash
    """
    exc_info = event_dict.get("exc_info")
    if not exc_info:
        return event_dict

    if exc_info is True:
        exc_info = sys.exc_info()
    elif isinstance(exc_info, BaseException):
        exc_info = (type(exc_info), exc_info, exc_info.__traceback__)

    if isinstance(exc_info, tuple) and len(exc_info) >= 2:
        exc_type = exc_info[0]
        exc_traceback: TracebackType | None = exc_info[2] if len(exc_info) >= 3 else None

        if exc_type is not None:
            event_dict["error_type"] = f"{exc_type.__module__}.{exc_type.__name__}"
            event_dict["error_category"] = _categorize_exception(exc_type)
            if exc_traceback is not None:
                event_dict["exception_hash"] = _generate_exception_hash(exc_type, exc_traceback)

    return event_dict


def _generate_exception_hash(exc_type: type, tb: TracebackType) -> str:
    """
    Hash the exception type and the filename:lineno:function of every frame.

    Messages are left out so the same failure at the same place always hashes the same.
    """
    import hashlib  # noqa: PLC0415
    from pathlib import Path  # noqa: PLC0415

    hasher = hashlib.sha256()
    hasher.update(f"{exc_type.__module__}.{exc_type.__name__}".encode())

    current_tb: TracebackType | None = tb
    while current_tb is not None:
        code = current_tb.tb_frame.f_code
        hasher.update(f"{Path(code.co_filename).name}:{current_tb.tb_lineno}:{code.co_name}".encode())
        current_tb = current_tb.tb_next

    return hasher.hexdigest()[:16]


def _categorize_exception(exc_type: type) -> str:
    """
    Categorize an exception into STATE, IO, BUG, or ERROR.

    STATE: A container's persisted state is missing or unreadable
    IO: The state root or a state file could not be accessed
    BUG: Programming errors indicating bugs
    ERROR: Everything else
    """
    bug_exceptions = (
        ZeroDivisionError,
        AttributeError,
        TypeError,
        KeyError,
        IndexError,
        NameError,
        AssertionError,
        NotImplementedError,
        RecursionError,
        UnboundLocalError,
    )

    try:
        if issubclass(exc_type, ContainerLoadError):
            return "STATE"
        if issubclass(exc_type, (RootDirectoryError, OSError)):
            return "IO"
        if issubclass(exc_type, bug_exceptions):
            return "BUG"
    except TypeError:
        pass

    return "ERROR"


def setup_logger(log_level: str | None = None) -> None:
    """
    Setup structlog. Logs go to stderr, stdout is reserved for the report.
    """
    renderer = structlog.processors.JSONRenderer() if settings.JSON_LOGGING else CustomConsoleRenderer(
        colors=sys.stderr.isatty()
    )
    additional_processors = (
        [
            structlog.processors.EventRenamer("msg"),
            add_kv_pairs_to_msg,
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.PATHNAME,
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                }
            ),
        ]
        if settings.JSON_LOGGING
        else [
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                }
            ),
            add_filename_section,
        ]
    )
    level = (log_level or settings.LOG_LEVEL).upper()
    log_level_val = LOGGING_LEVEL_MAP.get(level, logging.WARNING)

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(log_level_val),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_error_processor,
            structlog.processors.format_exc_info,
        ]
        + additional_processors
        + [renderer],
    )
