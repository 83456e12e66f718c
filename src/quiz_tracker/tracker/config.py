"""Configuration loader for the quiz-tracker commands."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from quiz_tracker.core import workspace as workspace_mod

CONFIG_FILENAME = "tracker.toml"
CONFIG_ENV = "QUIZ_TRACKER_CONFIG"
ENV_PREFIX = "QUIZ_TRACKER_"

_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_HISTORY_LIMIT = 20

_KNOWN_SETTINGS = {
    "logging": {"level"},
    "session": {"show_explanations"},
    "history": {"limit"},
}

CONFIG_TEMPLATE = """\
# quiz-tracker configuration

[logging]
# One of DEBUG, INFO, WARNING, ERROR
level = "INFO"

[session]
# Show the explanation after each answered question
show_explanations = true

[history]
# Number of results shown by `quiz-tracker history`
limit = 20
"""


class TrackerConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class TrackerConfig:
    """Fully resolved configuration for a command run."""

    log_level: str
    show_explanations: bool
    history_limit: int


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    log_level: Optional[str] = None
    history_limit: Optional[int] = None


@dataclass(frozen=True)
class LoadResult:
    """Result of loading configuration, including workspace context."""

    config: TrackerConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    default_path = layout.path_for("config") / CONFIG_FILENAME

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=default_path,
    )

    file_values: Mapping[str, Any] = {}
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        file_values = _read_settings(requested_path)
    elif requested_path != default_path:
        raise TrackerConfigError(f"Config file not found: {requested_path}")

    log_level = _resolve_log_level(
        _pick_first(
            overrides.log_level,
            _parse_env_string(env_map, "LOG_LEVEL"),
            file_values.get("logging.level", _DEFAULT_LOG_LEVEL),
        )
    )
    history_limit = _resolve_history_limit(
        _pick_first(
            overrides.history_limit,
            _parse_env_string(env_map, "HISTORY_LIMIT"),
            file_values.get("history.limit", _DEFAULT_HISTORY_LIMIT),
        )
    )
    show_explanations = file_values.get("session.show_explanations", True)
    if not isinstance(show_explanations, bool):
        raise TrackerConfigError(
            "session.show_explanations must be true or false."
        )

    config = TrackerConfig(
        log_level=log_level,
        show_explanations=show_explanations,
        history_limit=history_limit,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def write_config_template(
    layout: workspace_mod.WorkspaceLayout, *, overwrite: bool = False
) -> Path:
    """Write the default ``tracker.toml`` into the workspace config dir."""

    path = layout.path_for("config") / CONFIG_FILENAME
    if path.exists() and not overwrite:
        raise TrackerConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def _read_settings(path: Path) -> Mapping[str, Any]:
    """Return the settings in ``path`` keyed by dotted name.

    Only the sections and keys of the template are accepted, so a typo in
    ``tracker.toml`` fails loudly instead of being ignored.
    """

    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise TrackerConfigError(f"Failed to parse {path}: {exc}") from exc
    except OSError as exc:
        raise TrackerConfigError(f"Cannot read {path}: {exc}") from exc

    settings: dict[str, Any] = {}
    for section, values in document.items():
        known = _KNOWN_SETTINGS.get(section)
        if known is None:
            raise TrackerConfigError(f"Unknown config section [{section}].")
        if not isinstance(values, dict):
            raise TrackerConfigError(f"[{section}] must be a table.")
        for key, value in values.items():
            if key not in known:
                raise TrackerConfigError(
                    f"Unknown configuration key '{section}.{key}'."
                )
            settings[f"{section}.{key}"] = value
    return settings


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _resolve_log_level(candidate: object) -> str:
    if not isinstance(candidate, str) or not candidate.strip():
        raise TrackerConfigError("logging.level must be a non-empty string.")
    return candidate.strip().upper()


def _resolve_history_limit(candidate: object) -> int:
    if isinstance(candidate, bool):
        raise TrackerConfigError("history.limit must be an integer.")
    try:
        limit = int(candidate)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise TrackerConfigError("history.limit must be an integer.") from exc
    if limit < 0:
        raise TrackerConfigError("history.limit must be zero or positive.")
    return limit


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
