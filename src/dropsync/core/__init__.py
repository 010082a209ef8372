"""Core module - Shared configuration and formatting."""

from dropsync.core.config import ServerConfig
from dropsync.core.formatting import format_size, format_timestamp

__all__ = [
    # Config
    "ServerConfig",
    # Formatting
    "format_size",
    "format_timestamp",
]
