"""Configuration and lookup file loader for MTS."""

from __future__ import annotations

import importlib.util
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from mts.config.schema import MtsConfig


CONFIG_FILENAMES = [".mts.yaml", ".mts.yml", "mts.yaml", "mts.yml"]
GLOBAL_CONFIG_DIR = Path.home() / ".config" / "mts"
GLOBAL_CONFIG_FILE = GLOBAL_CONFIG_DIR / "config.yaml"

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "MTS_SCRIPT": ("paths", "script"),
    "MTS_GLOBALS": ("paths", "globals_file"),
    "MTS_ELEMENTS": ("paths", "elements_file"),
    "MTS_LIBRARIES": ("paths", "libraries_dir"),
    "MTS_BASE_URL": ("app", "base_url"),
    "MTS_WS_URL": ("browser", "ws_url"),
}


def find_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find configuration file in current or parent directories."""
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    # Search upward for config file
    while current != current.parent:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.exists():
                return config_path
        current = current.parent

    return None


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load YAML configuration file."""
    if not path.exists():
        return {}

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def get_env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect configuration values set through environment variables."""
    if environ is None:
        environ = os.environ

    data: Dict[str, Any] = {}
    for var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            data.setdefault(section, {})[key] = value

    debug = environ.get("DEBUG")
    if debug and debug not in ("0", "false", "False"):
        data["debug"] = True

    return data


def load_config(
    config_file: Optional[Path] = None,
    project_dir: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> MtsConfig:
    """Load and merge configuration from all sources.

    Priority (later overrides earlier):
    1. Built-in defaults
    2. Global config (~/.config/mts/config.yaml)
    3. Project config (.mts.yaml)
    4. Explicit config file (if provided)
    5. MTS_* environment variables
    """
    config_data: Dict[str, Any] = {}

    if GLOBAL_CONFIG_FILE.exists():
        global_data = load_yaml_file(GLOBAL_CONFIG_FILE)
        config_data = _deep_merge(config_data, global_data)

    if config_file is None:
        config_file = find_config_file(project_dir)

    if config_file and config_file.exists():
        project_data = load_yaml_file(config_file)
        config_data = _deep_merge(config_data, project_data)

    config_data = _deep_merge(config_data, get_env_overrides(environ))

    return MtsConfig(**config_data) if config_data else MtsConfig()


def load_lookup(path: Optional[Path], attribute: Optional[str] = None) -> Dict[str, Any]:
    """Load a values or locators dictionary.

    ``.yaml``, ``.yml`` and ``.json`` files are read with PyYAML. ``.py``
    files are imported and ``attribute`` is read from the module (the
    whole module namespace when the attribute is absent).

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file type is unsupported or holds no mapping
    """
    if path is None:
        return {}
    if not path.exists():
        raise FileNotFoundError(f"Lookup file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml", ".json"):
        data = load_yaml_file(path)
    elif suffix == ".py":
        data = _load_module_attribute(path, attribute)
    else:
        raise ValueError(f"Unsupported lookup file type: {path}")

    if not isinstance(data, Mapping):
        raise ValueError(f"Lookup file {path} does not define a mapping")
    return dict(data)


def _load_module_attribute(path: Path, attribute: Optional[str]) -> Any:
    spec = importlib.util.spec_from_file_location(f"mts_lookup_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Cannot import lookup module: {path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    if attribute and hasattr(module, attribute):
        return getattr(module, attribute)
    return {k: v for k, v in vars(module).items() if not k.startswith("_")}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def save_config(config: MtsConfig, path: Path, exclude_defaults: bool = True) -> None:
    """Save configuration to YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(exclude_defaults=exclude_defaults)

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
