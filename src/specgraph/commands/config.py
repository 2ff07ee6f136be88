"""``specgraph config`` -- inspect and edit the user configuration file.

``show`` prints the user file as stored, ``effective`` prints what a command
would actually run with once ``./specgraph.json`` and ``SPECGRAPH_*``
variables are layered on top. ``set`` and ``reset`` rewrite the user file.
"""

from __future__ import annotations

import json
from typing import Any

import typer
from pydantic import ValidationError

from specgraph.exceptions import InvalidUsageError, SpecgraphError
from specgraph.models import EngineConfig
from specgraph.output import error, format_document, info, success


config_app = typer.Typer(no_args_is_help=True)


def _updated_config(current: EngineConfig, key: str, raw: str) -> EngineConfig:
    """Return *current* with *key* set from its command-line spelling *raw*.

    String fields take *raw* verbatim; list and mapping fields parse it as
    JSON.

    Raises:
        InvalidUsageError: For an unknown key, unparseable JSON, or a value
            the config model rejects.
    """
    data: dict[str, Any] = current.model_dump(mode="json")
    if key not in data:
        known = ", ".join(sorted(data))
        raise InvalidUsageError(f"Unknown config key: {key} (known keys: {known})")

    value: Any = raw
    if isinstance(data[key], (list, dict)):
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            raise InvalidUsageError(f"Expected a JSON value for {key}, got: {raw}") from None
    data[key] = value

    try:
        return EngineConfig.model_validate(data)
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        raise InvalidUsageError(f"Invalid value for {key}: {messages}") from None


@config_app.command("show")
def config_show() -> None:
    """Print the user configuration file.

    Example::

        specgraph config show
    """
    from specgraph.config import global_config_path, load_global_config

    config = load_global_config()
    info(f"Config file: {global_config_path()}")
    format_document(config.model_dump(mode="json"))


@config_app.command("effective")
def config_effective() -> None:
    """Print the configuration after project file and environment overrides."""
    from specgraph.config import resolve_config

    format_document(resolve_config().model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key, e.g. 'default_tag'."),
    value: str = typer.Argument(help="Value to set; JSON for list and mapping keys."),
) -> None:
    """Set one configuration value in the user file.

    Exits with code 2 when the key is unknown or the value is rejected.

    Example::

        specgraph config set default_tag Misc
        specgraph config set upload_keywords '["upload", "import"]'
    """
    from specgraph.config import load_global_config, save_global_config

    try:
        new_config = _updated_config(load_global_config(), key, value)
    except SpecgraphError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    path = save_global_config(new_config)
    success(f"Set {key} = {value} in {path}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Restore every setting in the user file to its default."""
    from specgraph.config import save_global_config

    if not force and not typer.confirm("Reset configuration to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(EngineConfig())
    success("Configuration reset to defaults.")
