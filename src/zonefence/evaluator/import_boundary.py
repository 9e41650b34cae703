from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional, Sequence

from ..core.logging_utils import log_event
from ..core.types import ImportEdge
from ..core.utils import escapes_upward, is_within, relative_path
from ..rules.pattern_matcher import glob_match
from ..rules.types import EvaluationMode, ImportRule, ResolvedRule
from .types import EvaluateOptions, PathsMapping, Violation

logger = logging.getLogger("zonefence.evaluator.import_boundary")

_GLOB_CHARS = ("*", "?", "{")


def evaluate_import_boundary(
    import_edge: ImportEdge,
    rules: Sequence[ResolvedRule],
    root_dir: str,
    options: Optional[EvaluateOptions] = None,
) -> Optional[Violation]:
    """Return a Violation when the import crosses a boundary, else None."""
    applicable = find_applicable_rule(import_edge.source_file, rules)
    if applicable is None:
        return None

    if is_excluded(import_edge.source_file, applicable, root_dir):
        return None

    imports = applicable.config.imports
    if imports is None:
        return None

    paths_mapping = options.paths_mapping if options is not None else None
    path_to_match = get_path_to_match(import_edge, root_dir)

    def first_match(candidates: Iterable[ImportRule]) -> Optional[ImportRule]:
        return find_matching_rule(
            path_to_match,
            import_edge.module_specifier,
            candidates,
            source_file=import_edge.source_file,
            root_dir=root_dir,
            is_external=import_edge.is_external,
            paths_mapping=paths_mapping,
        )

    mode = imports.effective_mode
    if mode is EvaluationMode.ALLOW_FIRST:
        denied = first_match(imports.deny)
        if denied is not None:
            return _violation(import_edge, applicable, denied)
        if imports.allow and first_match(imports.allow) is None:
            not_allowed = ImportRule(
                from_=path_to_match,
                message=(
                    f'Import from "{import_edge.module_specifier}" '
                    "is not in the allow list"
                ),
            )
            return _violation(import_edge, applicable, not_allowed)
        return None

    if mode is EvaluationMode.DENY_FIRST:
        if first_match(imports.allow) is not None:
            return None
        denied = first_match(imports.deny)
        if denied is not None:
            return _violation(import_edge, applicable, denied)
        return None

    raise ValueError(f"Unknown evaluation mode: {mode!r}")  # pragma: no cover


def find_applicable_rule(
    file_path: str, rules: Iterable[ResolvedRule]
) -> Optional[ResolvedRule]:
    """Pick the deepest rule directory containing `file_path`."""
    most_specific: Optional[ResolvedRule] = None
    for rule in rules:
        if not is_within(rule.directory, file_path):
            continue
        if most_specific is None or len(rule.directory) > len(
            most_specific.directory
        ):
            most_specific = rule
    return most_specific


def is_excluded(file_path: str, rule: ResolvedRule, root_dir: str) -> bool:
    rel = relative_path(root_dir, file_path)
    base = os.path.basename(file_path)
    return any(
        glob_match(rel, pattern) or glob_match(base, pattern)
        for pattern in rule.exclude_patterns
    )


def get_path_to_match(import_edge: ImportEdge, root_dir: str) -> str:
    if import_edge.is_external:
        return import_edge.module_specifier
    if import_edge.resolved_path:
        return relative_path(root_dir, import_edge.resolved_path)
    return import_edge.module_specifier


def get_package_name(module_specifier: str) -> str:
    """`@scope/name/sub` -> `@scope/name`, `name/sub` -> `name`."""
    parts = module_specifier.split("/")
    if module_specifier.startswith("@") and len(parts) >= 2:
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


def resolve_pattern_with_paths(
    pattern: str, paths_mapping: Optional[PathsMapping]
) -> List[str]:
    """Expand an aliased pattern, e.g. `@/api/**` -> `src/api/**`."""
    patterns = [pattern]
    if not paths_mapping:
        return patterns
    for alias, targets in paths_mapping.items():
        alias_base = alias[:-1] if alias.endswith("*") else alias
        if not pattern.startswith(alias_base):
            continue
        remainder = pattern[len(alias_base) :]
        for target in targets:
            target_base = target[2:] if target.startswith("./") else target
            if target_base.endswith("*"):
                target_base = target_base[:-1]
            patterns.append(target_base + remainder)
    return patterns


def _is_glob(pattern: str) -> bool:
    return any(char in pattern for char in _GLOB_CHARS)


def _reroot(path: str, source_dir: str) -> str:
    rel = relative_path(source_dir, path)
    if escapes_upward(rel):
        return rel
    return f"./{rel}"


def _match_rerooted(path: str, pattern: str) -> bool:
    if pattern.startswith("./"):
        if not path.startswith("./"):
            return False
        return glob_match(path[2:], pattern[2:])
    return glob_match(path, pattern)


def matches_pattern(
    path_to_match: str,
    pattern: str,
    *,
    source_file: str,
    root_dir: str,
    is_external: bool,
    paths_mapping: Optional[PathsMapping] = None,
) -> bool:
    if pattern.startswith("./") or pattern.startswith("../"):
        # Compare relative to the importing file's directory so that glob
        # characters in ancestor directory names (e.g. `[id]`) do not leak
        # into the match.
        source_dir = os.path.dirname(source_file)
        absolute_path = os.path.normpath(os.path.join(root_dir, path_to_match))
        absolute_pattern = os.path.normpath(os.path.join(source_dir, pattern))
        return _match_rerooted(
            _reroot(absolute_path, source_dir),
            _reroot(absolute_pattern, source_dir),
        )

    for candidate in resolve_pattern_with_paths(pattern, paths_mapping):
        if _is_glob(candidate):
            if is_external and glob_match(get_package_name(path_to_match), candidate):
                return True
            if glob_match(path_to_match, candidate):
                return True
            continue

        candidate_package = get_package_name(candidate)
        if get_package_name(path_to_match) != candidate_package:
            continue
        if candidate == candidate_package:
            return True
        if path_to_match == candidate or path_to_match.startswith(f"{candidate}/"):
            return True

    return False


def find_matching_rule(
    path_to_match: str,
    module_specifier: str,
    rules: Iterable[ImportRule],
    *,
    source_file: str,
    root_dir: str,
    is_external: bool,
    paths_mapping: Optional[PathsMapping] = None,
) -> Optional[ImportRule]:
    candidates = [path_to_match]
    # Aliased or workspace specifiers (`@/api/x`) only match as written.
    if module_specifier != path_to_match:
        candidates.append(module_specifier)
    for rule in rules:
        for candidate in candidates:
            if matches_pattern(
                candidate,
                rule.from_,
                source_file=source_file,
                root_dir=root_dir,
                is_external=is_external,
                paths_mapping=paths_mapping,
            ):
                return rule
    return None


def _violation(
    import_edge: ImportEdge,
    applicable: ResolvedRule,
    matched: ImportRule,
) -> Violation:
    message = (
        matched.message
        if matched.message is not None
        else f'Import from "{import_edge.module_specifier}" is not allowed'
    )
    log_event(
        logger,
        logging.DEBUG,
        "evaluate.violation",
        source_file=import_edge.source_file,
        module_specifier=import_edge.module_specifier,
        pattern=matched.from_,
        rule_file=applicable.rule_file_path,
    )
    return Violation(
        source_file=import_edge.source_file,
        module_specifier=import_edge.module_specifier,
        line=import_edge.line,
        column=import_edge.column,
        message=message,
        rule_file_path=applicable.rule_file_path,
        design_intent=applicable.config.description,
    )
