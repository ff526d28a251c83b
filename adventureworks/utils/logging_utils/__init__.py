"""
Convenience accessors for the structured logging facility.

Usage:
    from adventureworks.utils.logging_utils import get_logger, log_context
    log = get_logger("route")
    with log_context(route="products.list"):
        log.info("product listed", extra={"count": len(rows)})
"""

from .manager import (
    ContextAwareFormatter,
    LoggerManager,
    get_logger,
    init_logger,
    log_context,
    shutdown_logger,
)

__all__ = [
    "ContextAwareFormatter",
    "LoggerManager",
    "get_logger",
    "init_logger",
    "log_context",
    "shutdown_logger",
]
