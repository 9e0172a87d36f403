"""Console logging for arduswift commands.

All modules log through the ``arduswift`` logger hierarchy. ``setup_logging``
installs console handlers that render records with short bracketed tags:

    [step] 2) Read config + select board
    [info] board      : due
    [cmd ] swiftc -target armv7-none-none-eabi ...
    [ ok ] done

Errors go to stderr, everything else to stdout. Colors are only emitted when
the stream is a TTY.
"""

import logging
import os
import shlex
import sys
from typing import Iterable, Optional, TextIO

LOGGER_NAME = "arduswift"
VERBOSE_ENV = "ARDUINO_SWIFT_VERBOSE"

_verbose = False


class Colors:
    """ANSI color codes shared by the log formatter and the CLI."""

    RESET = "\033[0m"
    DIM = "\033[2m"
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"


# tag -> (prefix, color)
_TAGS = {
    "step": ("[step] ", Colors.WHITE),
    "ok": ("[ ok ] ", Colors.GREEN),
    "fail": ("[fail] ", Colors.RED),
    "cmd": ("[cmd ] ", Colors.CYAN),
    "sep": ("", Colors.DIM),
    "plain": ("", None),
}

_LEVELS = {
    logging.DEBUG: ("[dbg ] ", Colors.DIM),
    logging.INFO: ("[info] ", Colors.BLUE),
    logging.WARNING: ("[warn] ", Colors.YELLOW),
    logging.ERROR: ("[err ] ", Colors.RED),
    logging.CRITICAL: ("[err ] ", Colors.RED),
}


class ConsoleFormatter(logging.Formatter):
    """Formats records as ``[tag] message`` with optional ANSI colors."""

    def __init__(self, use_color: bool = False):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        tag = getattr(record, "tag", None)
        if tag in _TAGS:
            prefix, color = _TAGS[tag]
        else:
            prefix, color = _LEVELS.get(record.levelno, ("", None))

        message = record.getMessage()
        if record.exc_info and _verbose:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if self.use_color and color and prefix:
            return f"{color}{prefix}{Colors.RESET}{message}"
        if self.use_color and color:
            return f"{color}{message}{Colors.RESET}"
        return f"{prefix}{message}"


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.max_level


class _StdStreamHandler(logging.StreamHandler):
    """StreamHandler that looks up ``sys.stdout``/``sys.stderr`` on every emit."""

    def __init__(self, stream_name: str):
        logging.Handler.__init__(self)
        self._stream_name = stream_name

    @property
    def stream(self) -> TextIO:  # type: ignore[override]
        return getattr(sys, self._stream_name)


def verbose_from_env() -> bool:
    """Return True when ARDUINO_SWIFT_VERBOSE is set to anything but 0."""
    value = os.environ.get(VERBOSE_ENV, "")
    return bool(value) and value != "0"


def is_verbose() -> bool:
    return _verbose


def _isatty(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def setup_logging(
    verbose: bool = False,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> logging.Logger:
    """Install console handlers on the ``arduswift`` logger.

    Calling this more than once replaces the previous handlers.

    Args:
        verbose: Show debug records and forward tool output to the console
        stdout: Stream for info/warning records (default: sys.stdout)
        stderr: Stream for error records (default: sys.stderr)

    Returns:
        The configured ``arduswift`` logger
    """
    global _verbose
    _verbose = verbose or verbose_from_env()

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    out_handler: logging.StreamHandler
    if stdout is not None:
        out_handler = logging.StreamHandler(stdout)
    else:
        out_handler = _StdStreamHandler("stdout")
    out_handler.setFormatter(ConsoleFormatter(use_color=_isatty(out_handler.stream)))
    out_handler.addFilter(_MaxLevelFilter(logging.ERROR))

    err_handler: logging.StreamHandler
    if stderr is not None:
        err_handler = logging.StreamHandler(stderr)
    else:
        err_handler = _StdStreamHandler("stderr")
    err_handler.setFormatter(ConsoleFormatter(use_color=_isatty(err_handler.stream)))
    err_handler.setLevel(logging.ERROR)

    logger.addHandler(out_handler)
    logger.addHandler(err_handler)
    logger.setLevel(logging.DEBUG if _verbose else logging.INFO)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child of the ``arduswift`` logger."""
    if name.startswith(LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


_log = get_logger("build_log")


def format_cmd(cmd: Iterable[str]) -> str:
    """Render an argument list as a copy-pasteable shell command."""
    return " ".join(shlex.quote(str(part)) for part in cmd)


def log_cmd(cmd: Iterable[str]) -> None:
    _log.info(format_cmd(cmd), extra={"tag": "cmd"})


def log_step_begin(name: str) -> None:
    _log.info(name or "(step)", extra={"tag": "step"})


def log_step_ok() -> None:
    _log.info("done", extra={"tag": "ok"})


def log_step_fail(name: str) -> None:
    _log.info(name, extra={"tag": "fail"})


def log_sep() -> None:
    _log.info("-" * 60, extra={"tag": "sep"})


def log_lines(lines: Iterable[str]) -> None:
    """Echo raw lines (e.g. a tool log tail) between separators."""
    log_sep()
    for line in lines:
        _log.info(line, extra={"tag": "plain"})
    log_sep()
