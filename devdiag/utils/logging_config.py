"""Logging configuration for the dev diagnostics tool."""

import logging
import sys
import threading
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional


@dataclass
class LogEntry:
    """One captured log record."""
    timestamp: datetime
    level: str
    logger_name: str
    message: str

    def format(self) -> str:
        ts = self.timestamp.strftime("%H:%M:%S.%f")[:-3]
        return f"[{ts}] [{self.level:8}] {self.logger_name}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat(),
            'level': self.level,
            'logger': self.logger_name,
            'message': self.message,
        }


class LogBuffer:
    """
    Bounded, thread-safe window of recent log records.

    Reports pull the slice of records written while a run was in progress.
    """

    def __init__(self, max_entries: int = 5000):
        self._entries: Deque[LogEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def resize(self, max_entries: int) -> None:
        with self._lock:
            self._entries = deque(self._entries, maxlen=max_entries)

    def add(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def entries(self, since: Optional[datetime] = None,
                until: Optional[datetime] = None) -> List[LogEntry]:
        """Entries whose timestamp falls in [since, until]."""
        with self._lock:
            entries = list(self._entries)

        if since is not None:
            entries = [e for e in entries if e.timestamp >= since]
        if until is not None:
            entries = [e for e in entries if e.timestamp <= until]
        return entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_log_buffer: Optional[LogBuffer] = None


def get_log_buffer() -> LogBuffer:
    """Get the process-wide log buffer."""
    global _log_buffer
    if _log_buffer is None:
        _log_buffer = LogBuffer()
    return _log_buffer


class BufferHandler(logging.Handler):
    """Logging handler that feeds a LogBuffer."""

    def __init__(self, buffer: LogBuffer):
        super().__init__()
        self.buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        self.buffer.add(LogEntry(
            timestamp=datetime.fromtimestamp(record.created),
            level=record.levelname,
            logger_name=record.name,
            message=self.format(record)
        ))


def setup_logging(level: int = logging.INFO,
                  log_file: Optional[Path] = None,
                  max_entries: int = 5000) -> LogBuffer:
    """
    Set up logging for the application.

    Records go to stderr, to the in-memory buffer used by reports, and
    optionally to a file.

    Args:
        level: Minimum log level to capture
        log_file: Optional file path to also write logs to
        max_entries: How many records the in-memory buffer keeps

    Returns:
        The LogBuffer instance
    """
    buffer = get_log_buffer()
    buffer.resize(max_entries)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)-8s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    buffer_handler = BufferHandler(buffer)
    buffer_handler.setLevel(level)
    buffer_handler.setFormatter(logging.Formatter('%(message)s'))
    root_logger.addHandler(buffer_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # urllib3 logs every connection attempt at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))

    return buffer


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)


@contextmanager
def log_group(logger: logging.Logger, title: str,
              level: int = logging.INFO) -> Iterator[Callable[..., None]]:
    """
    Write a titled, indented block of log lines.

    Yields a ``line(msg, *args)`` function; every line it logs is indented
    under the title. The block is closed with a rule line even when the body
    raises.
    """
    logger.log(level, "== %s ==", title)

    def line(msg: str, *args) -> None:
        logger.log(level, "  " + msg, *args)

    try:
        yield line
    finally:
        logger.log(level, "== end %s ==", title)
