"""
Structured logging subsystem.

- JSON logging in production, coloured console in development
- ContextVar-based contextual logging (`LogContext`)
- Setup and teardown helpers for the global logging system
"""

from longevity.core.logging.logger import (
    LogContext,
    LoggerConfig,
    clear_log_context,
    current_log_context,
    get_logger,
    get_logging_health,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "get_logging_health",
    "LogContext",
    "current_log_context",
    "clear_log_context",
    "LoggerConfig",
]
