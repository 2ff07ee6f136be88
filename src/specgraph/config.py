"""Where specgraph keeps its settings, and how the effective settings are chosen.

An :class:`~specgraph.models.EngineConfig` is assembled from up to five
layers, later ones winning:

1. built-in defaults
2. the user file, ``config.json`` in :func:`get_config_dir`
3. a project file, ``./specgraph.json``, holding any subset of the fields
4. ``SPECGRAPH_EXPORT_VERSION`` / ``SPECGRAPH_DEFAULT_TAG``
5. ``--export-version`` / ``--default-tag`` on the command line

Linux and the BSDs follow the XDG base directories; other platforms keep
everything under ``~/.specgraph``. The user file is replaced atomically so
an interrupted ``config set`` never leaves half a file behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specgraph.exceptions import ConfigError
from specgraph.models import EngineConfig

_APP_NAME = "specgraph"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "specgraph.json"

ENV_EXPORT_VERSION = "SPECGRAPH_EXPORT_VERSION"
ENV_DEFAULT_TAG = "SPECGRAPH_DEFAULT_TAG"

_ENV_FIELDS = {
    "export_version": ENV_EXPORT_VERSION,
    "default_tag": ENV_DEFAULT_TAG,
}


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: tuple[str, ...]) -> Path:
    if _is_xdg_platform():
        base = Path(os.environ.get(xdg_var) or Path.home().joinpath(*xdg_default))
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/specgraph`` (``~/.config/specgraph``) or ``~/.specgraph``."""
    return _app_dir("XDG_CONFIG_HOME", (".config",))


def get_data_dir() -> Path:
    """``$XDG_DATA_HOME/specgraph`` (``~/.local/share/specgraph``) or ``~/.specgraph``.

    Crash logs are written to its ``logs`` subdirectory.
    """
    return _app_dir("XDG_DATA_HOME", (".local", "share"))


# --- Atomic writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a synced temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


# --- Config files ---


def global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def _read_json_object(path: Path, label: str) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} at {path}: expected a JSON object")
    return data


def load_global_config() -> EngineConfig:
    """Read the user file, or return defaults when there is none.

    Raises:
        ConfigError: If the file is not a JSON object of valid settings.
    """
    path = global_config_path()
    if not path.is_file():
        return EngineConfig()
    data = _read_json_object(path, "global config")
    try:
        return EngineConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: EngineConfig) -> Path:
    path = global_config_path()
    _atomic_write(path, json.dumps(config.model_dump(mode="json"), indent=2) + "\n")
    return path


def load_project_config() -> Optional[dict[str, Any]]:
    """Return the raw ``./specgraph.json`` object, or ``None`` if absent.

    Values are not validated here; :func:`resolve_config` validates the
    merged result, and unknown keys are dropped at that point.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return _read_json_object(path, "project config")


# --- Effective config ---


def resolve_config(
    cli_export_version: Optional[str] = None,
    cli_default_tag: Optional[str] = None,
) -> EngineConfig:
    """Merge every layer into the configuration a command should run with.

    Empty environment variables are treated as unset.

    Raises:
        ConfigError: If a file is unreadable or the merged values are invalid.
    """
    merged = load_global_config().model_dump()
    merged.update(load_project_config() or {})
    merged.update({
        field: os.environ[var] for field, var in _ENV_FIELDS.items() if os.environ.get(var)
    })
    cli = {"export_version": cli_export_version, "default_tag": cli_default_tag}
    merged.update({field: value for field, value in cli.items() if value is not None})

    try:
        return EngineConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
