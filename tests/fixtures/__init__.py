"""Shared testing fixtures for the quiz-tracker test suite."""

from .quiz import (  # noqa: F401
    SequentialIds,
    local_ms,
    make_question,
    make_quiz,
    make_result,
)
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "SequentialIds",
    "WorkspaceBuilder",
    "build_tree",
    "local_ms",
    "make_question",
    "make_quiz",
    "make_result",
]
