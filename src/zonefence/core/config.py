import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import yaml

logger = logging.getLogger("zonefence.core.config")

CONFIG_VERSION = 1
RULE_FILENAME = ".zonefence.yaml"
RULE_FILENAME_ALIASES = (".zonefence.yml", "zonefence.yaml")
TSCONFIG_FILENAME = "tsconfig.json"

# Directories never scanned for rule files or sources.
SKIP_DIRECTORIES = frozenset({"node_modules", ".git", "dist", "build", "coverage"})
PACKAGE_STORE_DIRECTORIES = frozenset({"node_modules"})

LOG_LEVEL_ENV = "ZONEFENCE_LOG_LEVEL"


class ConfigError(Exception):
    """Raised when a rule file or project config is missing or invalid."""


class TsconfigError(ConfigError):
    """Raised when a tsconfig file cannot be read or parsed."""


def should_skip_directory(name: str) -> bool:
    return name in SKIP_DIRECTORIES or name.startswith(".")


def rule_file_candidates(directory: Path) -> Sequence[Path]:
    return [directory / RULE_FILENAME] + [
        directory / alias for alias in RULE_FILENAME_ALIASES
    ]


def find_rule_file(directory: Path) -> Optional[Path]:
    for candidate in rule_file_candidates(directory):
        if candidate.is_file():
            return candidate
    return None


def load_yaml_dict(path: Path) -> Dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read rule file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        raise ConfigError(f"Rule file is empty: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Rule file must be a mapping: {path}")
    return data
