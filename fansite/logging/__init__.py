"""Application logging utilities."""

from fansite.logging.db_handler import AsyncDBLogHandler

__all__ = ["AsyncDBLogHandler"]
