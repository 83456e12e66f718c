"""JSON file persistence for quizzes, results and user statistics."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar

from .models import Quiz, QuizResult, UserStats
from .stats import record_result

__all__ = [
    "StoreError",
    "QuizStore",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUIZZES_FILENAME = "quizzes.json"
RESULTS_FILENAME = "results.json"
STATS_FILENAME = "stats.json"
_LOCK_FILENAME = ".lock"
_LOCK_TIMEOUT_SECONDS = 5.0


class StoreError(RuntimeError):
    """Raised when persisted quiz data cannot be read or written."""


class QuizStore:
    """Own the persisted quizzes, results and the single stats record.

    Every mutating call holds an exclusive lock file for its whole
    read-modify-write cycle, so results are folded into the stats one at a
    time in the order they are saved.
    """

    def __init__(
        self, root: Path, *, lock_timeout: float = _LOCK_TIMEOUT_SECONDS
    ) -> None:
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock_timeout = lock_timeout

    @property
    def root(self) -> Path:
        return self._root

    # Quizzes

    def load_quizzes(self) -> List[Quiz]:
        path = self._root / QUIZZES_FILENAME
        return _decode_all(Quiz.from_dict, path, self._read_list(path))

    def load_quiz_by_id(self, quiz_id: str) -> Optional[Quiz]:
        for quiz in self.load_quizzes():
            if quiz.id == quiz_id:
                return quiz
        return None

    def save_quiz(self, quiz: Quiz) -> None:
        path = self._root / QUIZZES_FILENAME
        with _StoreLock(self._lock_path, self._lock_timeout):
            quizzes = self._read_list(path)
            quizzes.append(quiz.to_dict())
            _atomic_write_json(path, quizzes)
        logger.info(
            "Saved quiz",
            extra={"quiz_id": quiz.id, "questions": len(quiz.questions)},
        )

    def delete_quiz(self, quiz_id: str) -> bool:
        """Remove a quiz; results that reference it are kept."""

        path = self._root / QUIZZES_FILENAME
        with _StoreLock(self._lock_path, self._lock_timeout):
            quizzes = self._read_list(path)
            remaining = [
                item
                for item in quizzes
                if not (isinstance(item, dict) and item.get("id") == quiz_id)
            ]
            if len(remaining) == len(quizzes):
                return False
            _atomic_write_json(path, remaining)
        logger.info("Deleted quiz", extra={"quiz_id": quiz_id})
        return True

    # Results and stats

    def load_results(self) -> List[QuizResult]:
        path = self._root / RESULTS_FILENAME
        return _decode_all(QuizResult.from_dict, path, self._read_list(path))

    def save_result(
        self, result: QuizResult, *, now: Optional[int] = None
    ) -> UserStats:
        """Persist ``result`` and the stats it produces.

        The stats update runs before anything is written, so an invalid
        result leaves both files untouched. ``results.json`` is written first
        and is the record of truth: if the stats write then fails, the
        :class:`StoreError` is raised and ``quiz-tracker stats --rebuild``
        recounts the stats from the saved results.
        """

        recorded_at = now if now is not None else int(time.time() * 1000)
        results_path = self._root / RESULTS_FILENAME
        with _StoreLock(self._lock_path, self._lock_timeout):
            stats = record_result(self._read_stats(), result, recorded_at)
            results = self._read_list(results_path)
            results.append(result.to_dict())
            _atomic_write_json(results_path, results)
            _atomic_write_json(self._root / STATS_FILENAME, stats.to_dict())
        logger.info(
            "Saved quiz result",
            extra={
                "result_id": result.id,
                "quiz_id": result.quiz_id,
                "score": result.score,
                "total_questions": result.total_questions,
            },
        )
        return stats

    def load_stats(self) -> UserStats:
        return self._read_stats()

    def replace_stats(self, stats: UserStats) -> None:
        with _StoreLock(self._lock_path, self._lock_timeout):
            _atomic_write_json(self._root / STATS_FILENAME, stats.to_dict())
        logger.info("Replaced user stats")

    # Internals

    @property
    def _lock_path(self) -> Path:
        return self._root / _LOCK_FILENAME

    def _read_stats(self) -> UserStats:
        payload = _read_json(self._root / STATS_FILENAME)
        if payload is None:
            return UserStats.empty()
        if not isinstance(payload, dict):
            raise StoreError(
                f"Expected an object in {self._root / STATS_FILENAME}"
            )
        try:
            return UserStats.from_dict(payload)
        except (TypeError, ValueError) as exc:
            raise StoreError(f"Invalid stats record: {exc}") from exc

    def _read_list(self, path: Path) -> List[Any]:
        payload = _read_json(path)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise StoreError(f"Expected a list in {path}")
        return payload


class _StoreLock:
    """Simple filesystem lock using exclusive file creation."""

    def __init__(self, path: Path, timeout: float) -> None:
        self._path = path
        self._timeout = timeout

    def __enter__(self) -> "_StoreLock":
        deadline = time.time() + self._timeout
        while True:
            try:
                fd = os.open(
                    self._path,
                    os.O_CREAT | os.O_EXCL | os.O_WRONLY,
                )
                os.close(fd)
                break
            except FileExistsError:
                if time.time() > deadline:
                    raise StoreError(
                        f"Timed out waiting for store lock: {self._path}"
                    )
                time.sleep(0.05)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self._path.unlink(missing_ok=True)


def _decode_all(
    factory: Callable[[Any], T], path: Path, items: List[Any]
) -> List[T]:
    try:
        return [factory(item) for item in items]
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise StoreError(f"Invalid record in {path}: {exc}") from exc


def _read_json(path: Path) -> Any:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise StoreError(f"Failed to parse store file: {path}") from exc
    except OSError as exc:
        raise StoreError(f"Failed to read store file: {path}") from exc


def _atomic_write_json(path: Path, payload: Any) -> None:
    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        encoding="utf-8",
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with handle:
            json.dump(
                payload, handle, indent=2, ensure_ascii=False, allow_nan=False
            )
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, path)
    except (OSError, ValueError) as exc:
        Path(handle.name).unlink(missing_ok=True)
        raise StoreError(f"Failed to write store file: {path}") from exc
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
