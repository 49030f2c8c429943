"""Load optional operator settings from a YAML config file.

The file holds an ``operators`` block::

    operators:
      disabled_capabilities: [R2]
      log_capability_checks: true

A missing file is not an error; the defaults are used.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from .capabilities import Capability

CONFIG_FILE = "todo_manager.yaml"
SETTINGS_BLOCK = "operators"


class OperatorsSettings(BaseModel):
    """Tunables for an operator bundle."""

    # Treated as absent even when the source implements them.
    disabled_capabilities: list[Capability] = Field(default_factory=list)
    log_capability_checks: bool = False


def _load_yaml_with_error(path: Path) -> tuple[dict[str, Any], str | None]:
    if not path.exists():
        return {}, None
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        return {}, f"{path.name}: {exc.__class__.__name__}: {exc}"
    except yaml.YAMLError as exc:
        return {}, f"{path.name}: YAMLError: {exc}"
    if data is None:
        return {}, None
    if not isinstance(data, dict):
        return {}, f"{path.name}: expected object, got {type(data).__name__}"
    return data, None


def get_operators_config(config: dict[str, Any]) -> dict[str, Any]:
    """Extract the ``operators`` block, or an empty dict if not present."""
    raw = config.get(SETTINGS_BLOCK)
    return raw if isinstance(raw, dict) else {}


def load_settings(path: Path) -> tuple[OperatorsSettings, str | None]:
    """Load operator settings.

    Args:
        path: Config file, or a directory containing ``todo_manager.yaml``.

    Returns:
        A tuple of ``(settings, error_message)``.  On any read or validation
        failure the default settings are returned along with the message.
    """
    if path.is_dir():
        path = path / CONFIG_FILE
    data, err = _load_yaml_with_error(path)
    if err:
        return OperatorsSettings(), err
    try:
        return OperatorsSettings(**get_operators_config(data)), None
    except ValidationError as exc:
        return OperatorsSettings(), f"{path.name}: invalid {SETTINGS_BLOCK} block: {exc}"
