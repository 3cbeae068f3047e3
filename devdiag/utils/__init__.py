"""Utility modules."""

from .logging_config import setup_logging, get_logger, get_log_buffer, log_group
from .config import Config

__all__ = ["setup_logging", "get_logger", "get_log_buffer", "log_group", "Config"]
