"""Core shared helpers for quiz-tracker commands."""

from __future__ import annotations

from .logging import (
    LOG_FILENAME,
    LOGGER_NAME,
    JsonLogFormatter,
    configure_logger,
)
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "LOGGER_NAME",
    "LOG_FILENAME",
    "configure_logger",
    "JsonLogFormatter",
    "ensure_workspace",
    "WorkspaceLayout",
    "WorkspaceError",
    "WORKSPACE_ENV",
]
