from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Dict, Union

from ..core.config import find_rule_file, load_yaml_dict, should_skip_directory
from ..core.logging_utils import log_event
from ..core.utils import normalize_dir
from .schema import parse_policy
from .types import Policy, RuleSource

logger = logging.getLogger("zonefence.rules.loader")


@dataclasses.dataclass(frozen=True)
class LoadedRules:
    rules: Dict[str, RuleSource]
    all_directories: tuple[str, ...]


def load_rule_file(path: Union[str, Path]) -> Policy:
    path = Path(path)
    data = load_yaml_dict(path)
    return parse_policy(data, context=str(path))


def _scan_directory(
    current: Path,
    rules: Dict[str, RuleSource],
    directories: list[str],
) -> None:
    directory = normalize_dir(str(current))
    directories.append(directory)

    rule_file = find_rule_file(current)
    if rule_file is not None:
        rules[directory] = RuleSource(
            config=load_rule_file(rule_file),
            rule_file_path=normalize_dir(str(rule_file)),
        )
        log_event(
            logger,
            logging.DEBUG,
            "rules.file_loaded",
            directory=directory,
            rule_file=str(rule_file),
        )

    try:
        entries = sorted(current.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        logger.warning("Failed to list directory %s: %s", current, exc)
        return
    for entry in entries:
        if not entry.is_dir() or entry.is_symlink():
            continue
        if should_skip_directory(entry.name):
            continue
        _scan_directory(entry, rules, directories)


def load_rules_for_directory_with_all_dirs(root_dir: Union[str, Path]) -> LoadedRules:
    """Load every rule file under `root_dir` and list every scanned directory."""
    root = Path(root_dir).resolve()
    rules: Dict[str, RuleSource] = {}
    directories: list[str] = []
    _scan_directory(root, rules, directories)
    log_event(
        logger,
        logging.INFO,
        "rules.loaded",
        root=str(root),
        rule_files=len(rules),
        directories=len(directories),
    )
    return LoadedRules(rules=rules, all_directories=tuple(directories))


def load_rules_for_directory(root_dir: Union[str, Path]) -> Dict[str, RuleSource]:
    return load_rules_for_directory_with_all_dirs(root_dir).rules
