from __future__ import annotations

import dataclasses
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import PACKAGE_STORE_DIRECTORIES, TSCONFIG_FILENAME, TsconfigError
from .import_collector import ModuleResolver
from .logging_utils import log_event
from .utils import blank_comments, escapes_upward, relative_path

logger = logging.getLogger("zonefence.core.project")

_TRAILING_COMMA_RE = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')


@dataclasses.dataclass(frozen=True)
class Tsconfig:
    path: str
    compiler_options: Dict[str, Any]
    # Directory `compilerOptions.paths` targets are relative to.
    paths_base: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class ProjectOptions:
    root_dir: str
    tsconfig_path: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class Project:
    root_dir: str
    tsconfig_path: Optional[str]
    paths_mapping: Dict[str, List[str]]
    resolver: ModuleResolver


def find_tsconfig(start_dir: str) -> Optional[str]:
    start = Path(os.path.abspath(start_dir))
    for directory in (start, *start.parents):
        candidate = directory / TSCONFIG_FILENAME
        if candidate.is_file():
            return str(candidate)
    return None


def _keep_strings(match: "re.Match[str]") -> str:
    string = match.group(1)
    return string if string is not None else match.group(2)


def parse_jsonc(text: str, *, source: str = "<string>") -> Any:
    """Parse JSON that may contain comments and trailing commas."""
    cleaned = _TRAILING_COMMA_RE.sub(_keep_strings, blank_comments(text))
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise TsconfigError(f"Invalid JSON in {source}: {exc}") from exc


def _find_extended(extends: str, config_dir: Path) -> Optional[Path]:
    if extends.startswith(".") or os.path.isabs(extends):
        candidate = Path(os.path.normpath(config_dir / extends))
        if candidate.suffix != ".json" and not candidate.is_file():
            candidate = candidate.with_name(candidate.name + ".json")
        return candidate
    for directory in (config_dir, *config_dir.parents):
        for store in sorted(PACKAGE_STORE_DIRECTORIES):
            candidate = directory / store / extends
            for option in (candidate, candidate.with_name(candidate.name + ".json")):
                if option.is_file():
                    return option
            nested = candidate / TSCONFIG_FILENAME
            if nested.is_file():
                return nested
    return None


def _load_chain(path: Path, chain: Tuple[Path, ...]) -> Tsconfig:
    path = Path(os.path.abspath(path))
    if path in chain:
        raise TsconfigError(f"Circular tsconfig extends: {path}")
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TsconfigError(f"Failed to read tsconfig {path}: {exc}") from exc
    data = parse_jsonc(raw, source=str(path))
    if not isinstance(data, dict):
        raise TsconfigError(f"tsconfig must be a JSON object: {path}")

    config_dir = path.parent
    compiler_options: Dict[str, Any] = {}
    paths_base: Optional[str] = None

    extends = data.get("extends")
    parents = extends if isinstance(extends, list) else [extends] if extends else []
    for parent_ref in parents:
        if not isinstance(parent_ref, str):
            raise TsconfigError(f"tsconfig extends must be a string: {path}")
        parent_path = _find_extended(parent_ref, config_dir)
        if parent_path is None:
            log_event(
                logger,
                logging.DEBUG,
                "tsconfig.extends_unresolved",
                tsconfig=str(path),
                extends=parent_ref,
            )
            continue
        parent = _load_chain(parent_path, chain + (path,))
        compiler_options.update(parent.compiler_options)
        paths_base = parent.paths_base or paths_base

    own_options = data.get("compilerOptions") or {}
    if not isinstance(own_options, dict):
        raise TsconfigError(f"compilerOptions must be an object: {path}")
    own_options = dict(own_options)
    base_url = own_options.get("baseUrl")
    if isinstance(base_url, str):
        own_options["baseUrl"] = os.path.normpath(config_dir / base_url)
    if "paths" in own_options:
        paths_base = str(config_dir)
    compiler_options.update(own_options)

    if isinstance(compiler_options.get("baseUrl"), str):
        paths_base = compiler_options["baseUrl"]
    return Tsconfig(
        path=str(path), compiler_options=compiler_options, paths_base=paths_base
    )


def load_tsconfig(path: str) -> Tsconfig:
    """Load a tsconfig file, following `extends`."""
    return _load_chain(Path(path), ())


def load_paths_mapping(tsconfig_path: str, root_dir: str) -> Dict[str, List[str]]:
    """Return `compilerOptions.paths` with targets relative to `root_dir`."""
    tsconfig = load_tsconfig(tsconfig_path)
    paths = tsconfig.compiler_options.get("paths")
    if not paths:
        return {}
    if not isinstance(paths, dict):
        raise TsconfigError(f"compilerOptions.paths must be an object: {tsconfig_path}")
    base = tsconfig.paths_base or os.path.dirname(tsconfig.path)
    root = os.path.abspath(root_dir)
    mapping: Dict[str, List[str]] = {}
    for alias, targets in paths.items():
        if not isinstance(targets, list) or not all(
            isinstance(target, str) for target in targets
        ):
            raise TsconfigError(
                f"compilerOptions.paths.{alias} must be a list of strings: "
                f"{tsconfig_path}"
            )
        rebased = []
        for target in targets:
            rel = relative_path(root, os.path.normpath(os.path.join(base, target)))
            rebased.append(rel if escapes_upward(rel) else f"./{rel}")
        mapping[alias] = rebased
    return mapping


def create_project(options: ProjectOptions) -> Project:
    root = os.path.abspath(options.root_dir)
    tsconfig_path = options.tsconfig_path
    if tsconfig_path is not None and not Path(tsconfig_path).is_file():
        raise TsconfigError(f"tsconfig not found: {tsconfig_path}")
    paths_mapping = (
        load_paths_mapping(tsconfig_path, root) if tsconfig_path is not None else {}
    )
    log_event(
        logger,
        logging.DEBUG,
        "project.created",
        root=root,
        tsconfig=tsconfig_path,
        aliases=sorted(paths_mapping),
    )
    return Project(
        root_dir=root,
        tsconfig_path=os.path.abspath(tsconfig_path) if tsconfig_path else None,
        paths_mapping=paths_mapping,
        resolver=ModuleResolver(root, paths_mapping),
    )


__all__ = [
    "Project",
    "ProjectOptions",
    "Tsconfig",
    "create_project",
    "find_tsconfig",
    "load_paths_mapping",
    "load_tsconfig",
    "parse_jsonc",
]
