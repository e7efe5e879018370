"""
Configuration loader for houston workspaces.

A workspace is any directory containing houston.config.yaml (or .yml). The
file is optional beyond marking the root; every key has a default.

    tracking:
      root: .             # tracking root, relative to the workspace root
      schemaDir: schema   # JSON schema directory, relative to the workspace root
    validation:
      signaturePrefix: houston@
      maxHistoryBytes: 5242880
      historyToleranceSeconds: 1
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from houston.lib.constants import (
    DEFAULT_HISTORY_TOLERANCE_SECONDS,
    DEFAULT_MAX_HISTORY_BYTES,
    DEFAULT_SIGNATURE_PREFIX,
)
from houston.lib.yamlio import read_yaml_file

logger = logging.getLogger(__name__)

CONFIG_FILE_CANDIDATES = ("houston.config.yaml", "houston.config.yml")
CONFIG_PATH_ENV = "HOUSTON_CONFIG_PATH"


class WorkspaceConfigError(Exception):
    """Workspace configuration is missing or invalid."""


class WorkspaceConfigNotFoundError(WorkspaceConfigError):
    """No houston workspace could be located."""


@dataclass
class WorkspaceConfig:
    """Resolved workspace configuration."""
    workspace_root: Path
    tracking_root: Path
    schema_dir: Path
    signature_prefix: str = DEFAULT_SIGNATURE_PREFIX
    max_history_bytes: int = DEFAULT_MAX_HISTORY_BYTES
    history_tolerance_seconds: float = DEFAULT_HISTORY_TOLERANCE_SECONDS


def bundled_schema_dir() -> Path:
    """Schemas shipped with the package."""
    return Path(__file__).parent.parent / "schemas"


def locate_config_file(start_dir: Path) -> Path | None:
    """Walk up from start_dir looking for a workspace config file."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        path = Path(override).expanduser().resolve()
        return path if path.is_file() else None

    current = start_dir.resolve()
    for directory in (current, *current.parents):
        for name in CONFIG_FILE_CANDIDATES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def _section(raw: dict, key: str) -> dict:
    value = raw.get(key)
    return value if isinstance(value, dict) else {}


def build_config(workspace_root: Path, raw: dict | None = None) -> WorkspaceConfig:
    """Apply defaults to a raw config mapping."""
    raw = raw or {}
    tracking = _section(raw, "tracking")
    validation = _section(raw, "validation")

    workspace_root = workspace_root.resolve()
    tracking_root = workspace_root
    if isinstance(tracking.get("root"), str):
        tracking_root = (workspace_root / tracking["root"]).resolve()

    if isinstance(tracking.get("schemaDir"), str):
        schema_dir = (workspace_root / tracking["schemaDir"]).resolve()
    elif (tracking_root / "schema").is_dir():
        schema_dir = tracking_root / "schema"
    else:
        schema_dir = bundled_schema_dir()

    try:
        max_history_bytes = int(validation.get("maxHistoryBytes", DEFAULT_MAX_HISTORY_BYTES))
        tolerance = float(validation.get("historyToleranceSeconds", DEFAULT_HISTORY_TOLERANCE_SECONDS))
    except (TypeError, ValueError) as e:
        raise WorkspaceConfigError(f"Invalid validation settings: {e}") from None

    return WorkspaceConfig(
        workspace_root=workspace_root,
        tracking_root=tracking_root,
        schema_dir=schema_dir,
        signature_prefix=str(validation.get("signaturePrefix", DEFAULT_SIGNATURE_PREFIX)),
        max_history_bytes=max_history_bytes,
        history_tolerance_seconds=tolerance,
    )


def load_config(cwd: Path | None = None) -> WorkspaceConfig:
    """Locate and load the workspace config.

    Raises:
        WorkspaceConfigNotFoundError: if no config file is found
        WorkspaceConfigError: if the config file cannot be read or is not a YAML mapping
    """
    start_dir = cwd or Path.cwd()
    config_path = locate_config_file(start_dir)
    if config_path is None:
        raise WorkspaceConfigNotFoundError(
            f"No houston workspace detected from {start_dir}. "
            f"Run inside a workspace or set {CONFIG_PATH_ENV}."
        )

    try:
        raw = read_yaml_file(config_path)
    except yaml.YAMLError as e:
        raise WorkspaceConfigError(f"Invalid YAML in {config_path}: {e}") from None
    except (OSError, UnicodeDecodeError) as e:
        raise WorkspaceConfigError(f"Unable to read {config_path}: {e}") from None

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise WorkspaceConfigError(f"{config_path} must contain a mapping")

    logger.debug(f"[CONFIG] Loaded {config_path}")
    return build_config(config_path.parent, raw)
