"""YAML config loading with env var expansion."""

import os
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import PermatrixConfig

CONFIG_ENV_VAR = "PERMATRIX_CONFIG"
PROJECT_CONFIG = "permatrix.yaml"

# ${VAR} or ${VAR:-fallback}
_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def _candidate_paths(cli_path: str | None) -> Iterator[Path]:
    if cli_path:
        yield Path(cli_path)
    if os.environ.get(CONFIG_ENV_VAR):
        yield Path(os.environ[CONFIG_ENV_VAR])
    yield Path(PROJECT_CONFIG)
    yield Path.home() / ".permatrix" / "config.yaml"


def _read_config_file(path: Path) -> dict[str, Any] | None:
    """Parse one config file; None when it is empty."""
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: top level must be a mapping")
    return _expand_env_vars(raw)


def load_config(cli_path: str | None = None) -> PermatrixConfig:
    """Load the first non-empty config file, else defaults.

    Lookup order: *cli_path*, ``$PERMATRIX_CONFIG``, ``./permatrix.yaml``,
    ``~/.permatrix/config.yaml``.
    """
    for path in _candidate_paths(cli_path):
        if not path.exists():
            continue
        raw = _read_config_file(path)
        if raw is None:
            continue
        try:
            return PermatrixConfig.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
    return PermatrixConfig()


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand ${VAR} and ${VAR:-fallback} in strings."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `permatrix config init`
DEFAULT_CONFIG_TEMPLATE = """\
# permatrix.yaml

# Initial policy for a new session
seed: "example"                # example | empty

# CSV export
csv:
  export_filename: "permission_matrix.csv"

# JSON export
json:
  indent: 2

# Extra access kinds appended to the built-in catalog
access_types: []
#  - kind: "EXPORT"
#    label: "Export"
#    color: "#f0f0f0"
#    text_color: "#333333"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
