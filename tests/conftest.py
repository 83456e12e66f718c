from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

ROOT = TESTS_DIR.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fixtures import SequentialIds, WorkspaceBuilder  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Keep every test away from the real home workspace and .env files."""

    monkeypatch.setenv("QUIZ_TRACKER_DATA_HOME", str(tmp_path / "workspace"))
    for key in (
        "QUIZ_TRACKER_CONFIG",
        "QUIZ_TRACKER_LOG_LEVEL",
        "QUIZ_TRACKER_HISTORY_LIMIT",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("quiz_tracker")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to the per-test workspace directory."""

    return WorkspaceBuilder(tmp_path / "workspace")


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()
