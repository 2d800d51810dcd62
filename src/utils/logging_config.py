"""Logging setup shared by the CLI and the library.

One call to setup_logging() configures the root logger:
    - stderr console handler, level names coloured when stderr is a TTY
    - optional file handler, plain or JSON lines, optionally rotated
    - python warnings routed to the "py.warnings" logger
    - noisy third-party loggers (e.g. PIL) raised to WARNING

Records carry context fields set with push_context() (app, style,
mask_source, ...). The fields live in a contextvars variable, so they are
local to the thread that pushed them.

Line formats:
    human: 2025-10-28T13:45:12.345Z | INFO     | app=outline style=simple | Outline pass complete
    json:  {"t": "2025-10-28T13:45:12.345000+00:00", "lvl": "INFO", "name": "...", "app": "outline", "msg": "..."}

Calling setup_logging() again swaps out the handlers it installed before;
handlers attached by anyone else (pytest, embedding apps) are not touched.
"""

import contextvars
import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

_context: contextvars.ContextVar = contextvars.ContextVar('outline_log_context', default={})

# Handlers owned by setup_logging(), removed by reset_logging()
_installed_handlers: List[logging.Handler] = []

FORMAT_MODES = ("human", "json")


class ContextFormatter(logging.Formatter):
    """Render records as human-readable lines or JSON objects, with context."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt_mode: str = "human", use_color: bool = True, tz: str = "UTC"):
        super().__init__()
        if fmt_mode not in FORMAT_MODES:
            raise ValueError(f"Unknown format mode {fmt_mode!r}, expected one of {FORMAT_MODES}")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()
        self.tz = tz

    def _timestamp(self, record: logging.LogRecord) -> datetime:
        if self.tz == "UTC":
            return datetime.fromtimestamp(record.created, tz=timezone.utc)
        return datetime.fromtimestamp(record.created)

    def format(self, record: logging.LogRecord) -> str:
        ts = self._timestamp(record)
        fields = _context.get()
        message = record.getMessage()
        exc_text = self.formatException(record.exc_info) if record.exc_info else None

        if self.fmt_mode == "json":
            payload = {'t': ts.isoformat(), 'lvl': record.levelname, 'name': record.name, 'pid': os.getpid()}
            payload.update(fields)
            payload['msg'] = message
            if exc_text:
                payload['exc'] = exc_text
            return json.dumps(payload, default=str)

        level = f"{record.levelname:<8}"
        if self.use_color and record.levelname in self.COLORS:
            level = f"{self.COLORS[record.levelname]}{level}{self.RESET}"

        columns = [ts.strftime('%Y-%m-%dT%H:%M:%S.') + f"{ts.microsecond // 1000:03d}Z", level]
        if fields:
            columns.append(' '.join(f"{key}={value}" for key, value in fields.items()))
        columns.append(message)

        line = ' | '.join(columns)
        return f"{line}\n{exc_text}" if exc_text else line


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    rotate: Optional[Dict[str, Any]] = None,
    tz: str = "UTC",
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None
) -> List[logging.Handler]:
    """Configure the root logger; safe to call repeatedly.

    Parameters
    ----------
    log_level : str
        Root level name ("DEBUG", "INFO", ...)
    log_file : str, optional
        Also write to this file (parent directories are created)
    json : bool
        JSON lines instead of human lines in the file
    color : bool
        Colour level names on the console
    to_stderr : bool
        Attach the console handler
    rotate : dict, optional
        ``{"mode": "size", "max_bytes": ..., "backup_count": ...}`` or
        ``{"mode": "time", "when": "D", "interval": 1, "backup_count": ...}``
    tz : str
        "UTC" or "local" timestamps
    capture_warnings : bool
        Route ``warnings.warn`` through logging
    quiet_libs : list[str], optional
        Logger names raised to WARNING
    context : dict, optional
        Fields pushed with push_context() right away

    Returns
    -------
    list[logging.Handler]
        The handlers that were attached
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper()))

    handlers: List[logging.Handler] = []
    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("human", use_color=color, tz=tz))
        handlers.append(console)
    if log_file:
        handlers.append(_file_handler(Path(log_file), rotate, json, tz))

    for handler in handlers:
        root.addHandler(handler)
        _installed_handlers.append(handler)

    if context:
        push_context(**context)
    for name in quiet_libs or ():
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.captureWarnings(capture_warnings)

    return handlers


def reset_logging() -> None:
    """Remove and close the handlers installed by setup_logging()."""
    root = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root.removeHandler(handler)
        handler.close()


def _file_handler(
    log_path: Path,
    rotate: Optional[Dict[str, Any]],
    json_lines: bool,
    tz: str
) -> logging.Handler:
    log_path.parent.mkdir(parents=True, exist_ok=True)

    mode = (rotate or {}).get('mode')
    if rotate is None:
        handler = logging.FileHandler(log_path)
    elif mode in (None, 'size'):
        handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=rotate.get('max_bytes', 10_000_000),
            backupCount=rotate.get('backup_count', 3)
        )
    elif mode == 'time':
        handler = logging.handlers.TimedRotatingFileHandler(
            log_path,
            when=rotate.get('when', 'D'),
            interval=rotate.get('interval', 1),
            backupCount=rotate.get('backup_count', 7)
        )
    else:
        raise ValueError(f"Unknown rotation mode {mode!r}, expected 'size' or 'time'")

    handler.setFormatter(ContextFormatter("json" if json_lines else "human", use_color=False, tz=tz))
    return handler


def get_logger(name: str) -> logging.Logger:
    """Shorthand for logging.getLogger(name)."""
    return logging.getLogger(name)


def push_context(**fields) -> None:
    """Attach fields to every record logged from this thread from now on.

    Examples
    --------
    >>> push_context(app="outline", style="simple")
    >>> logger.info("Rendered")  # ... | app=outline style=simple | Rendered
    """
    _context.set({**_context.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Drop the given context fields, or all of them when ``keys`` is None."""
    if keys is None:
        _context.set({})
        return
    _context.set({k: v for k, v in _context.get().items() if k not in keys})


def install_excepthook() -> None:
    """Send uncaught exceptions (other than Ctrl+C) to the log at CRITICAL."""
    def _log_uncaught(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logging.getLogger(__name__).critical(
            "Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = _log_uncaught
