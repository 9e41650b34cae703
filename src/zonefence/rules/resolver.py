"""Compile per-directory rule files into effective policies.

Every directory that owns a rule file, or that is matched by an ancestor's
`directoryPatterns`, gets exactly one ResolvedRule. The effective policy is
built from three kinds of layers:

* inherited layers from ancestors whose scope applies to descendants,
  merged root-to-leaf so the nearest ancestor wins scalar fields;
* the directory's own declared policy, merged on top of the inherited base;
* pattern fragments matched from ancestor pattern sources, folded lowest
  priority first and placed underneath the inherited/own result.

List fields (allow, deny, exclude) are concatenated across all layers.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..core.config import CONFIG_VERSION
from ..core.logging_utils import log_event
from ..core.utils import is_strict_descendant, normalize_dir, path_depth
from .pattern_matcher import (
    DirectoryPatternSource,
    PatternMatch,
    collect_pattern_sources,
    find_matching_patterns,
)
from .types import (
    AppliedPatternRule,
    ImportsConfig,
    MergeStrategy,
    Policy,
    ResolvedRule,
    RuleSource,
    ScopeApply,
    ScopeConfig,
)

logger = logging.getLogger("zonefence.rules.resolver")


def merge_two_configs(base: Policy, override: Policy) -> Policy:
    """Layer `override` on top of `base`.

    Scalars take the override's value when set; lists are concatenated
    base-first with no de-duplication. Directory patterns are not carried
    over because they are consumed as pattern sources.
    """
    scope: Optional[ScopeConfig] = None
    if base.scope is not None or override.scope is not None:
        base_scope = base.scope or ScopeConfig()
        override_scope = override.scope or ScopeConfig()
        scope = ScopeConfig(
            apply=override_scope.apply or base_scope.apply,
            exclude=base_scope.exclude + override_scope.exclude,
        )

    imports: Optional[ImportsConfig] = None
    if base.imports is not None or override.imports is not None:
        base_imports = base.imports or ImportsConfig()
        override_imports = override.imports or ImportsConfig()
        imports = ImportsConfig(
            allow=base_imports.allow + override_imports.allow,
            deny=base_imports.deny + override_imports.deny,
            mode=override_imports.mode or base_imports.mode,
        )

    return Policy(
        version=override.version or base.version,
        description=(
            override.description
            if override.description is not None
            else base.description
        ),
        scope=scope,
        imports=imports,
    )


def apply_pattern_rule(base: Policy, match: PatternMatch) -> Policy:
    fragment = match.config
    description = (
        fragment.description if fragment.description is not None else base.description
    )
    strategy = fragment.merge_strategy
    if strategy is MergeStrategy.OVERRIDE:
        imports = fragment.imports or ImportsConfig()
    elif strategy is MergeStrategy.MERGE:
        if fragment.imports is None:
            imports = base.imports
        else:
            base_imports = base.imports or ImportsConfig()
            imports = ImportsConfig(
                allow=base_imports.allow + fragment.imports.allow,
                deny=base_imports.deny + fragment.imports.deny,
                mode=fragment.imports.mode or base_imports.mode,
            )
    else:  # pragma: no cover
        raise ValueError(f"Unknown merge strategy: {strategy!r}")
    return Policy(
        version=base.version,
        description=description,
        scope=base.scope,
        imports=imports,
    )


def _fold_pattern_matches(
    matches: Sequence[PatternMatch], version: int
) -> tuple[Policy, tuple[AppliedPatternRule, ...]]:
    policy = Policy(version=version)
    applied: List[AppliedPatternRule] = []
    # Lowest priority first so higher-ranked fragments land last.
    for match in reversed(matches):
        policy = apply_pattern_rule(policy, match)
        applied.append(
            AppliedPatternRule(
                pattern=match.pattern,
                source_file=match.source_file,
                priority=match.priority,
            )
        )
    return policy, tuple(applied)


def _local_layer(
    directory: str,
    own: Optional[Policy],
    pattern_sources: Sequence[DirectoryPatternSource],
) -> Policy:
    """The layer a directory contributes to its descendants."""
    version = own.version if own is not None else CONFIG_VERSION
    matches = find_matching_patterns(directory, pattern_sources)
    pattern_policy, _ = _fold_pattern_matches(matches, version)
    if own is None:
        return pattern_policy
    return merge_two_configs(pattern_policy, own)


def _ancestors_root_to_leaf(
    directory: str,
    working: Mapping[str, Optional[Policy]],
) -> List[str]:
    ancestors = []
    for candidate, own in working.items():
        if not is_strict_descendant(candidate, directory):
            continue
        if own is not None and own.scope_apply is not ScopeApply.DESCENDANTS:
            continue
        ancestors.append(candidate)
    ancestors.sort(key=lambda item: (path_depth(item), item))
    return ancestors


def _normalize_rules(
    rules_by_directory: Mapping[str, RuleSource],
) -> Dict[str, RuleSource]:
    normalized: Dict[str, RuleSource] = {}
    for directory, source in rules_by_directory.items():
        key = normalize_dir(directory)
        if key in normalized:
            raise ValueError(f"Duplicate rule directory after normalization: {key}")
        normalized[key] = source
    return normalized


def _pattern_only_directories(
    rules: Mapping[str, RuleSource],
    all_directories: Iterable[str],
    pattern_sources: Sequence[DirectoryPatternSource],
) -> List[str]:
    found: List[str] = []
    seen = set(rules)
    for directory in all_directories:
        key = normalize_dir(directory)
        if key in seen:
            continue
        seen.add(key)
        if find_matching_patterns(key, pattern_sources):
            found.append(key)
    return found


def resolve_rules_with_patterns(
    rules_by_directory: Mapping[str, RuleSource],
    all_directories: Optional[Iterable[str]] = None,
) -> List[ResolvedRule]:
    """Resolve every rule directory plus directories matched only by patterns."""
    rules = _normalize_rules(rules_by_directory)
    pattern_sources = collect_pattern_sources(rules)

    # None marks a pattern-only directory with no rule file of its own.
    working: Dict[str, Optional[Policy]] = {
        directory: source.config for directory, source in rules.items()
    }
    if all_directories is not None and pattern_sources:
        for directory in _pattern_only_directories(
            rules, all_directories, pattern_sources
        ):
            working[directory] = None

    local_layers: Dict[str, Policy] = {}

    def local_layer(directory: str) -> Policy:
        layer = local_layers.get(directory)
        if layer is None:
            layer = _local_layer(directory, working[directory], pattern_sources)
            local_layers[directory] = layer
        return layer

    resolved: List[ResolvedRule] = []
    for directory in sorted(working):
        own = working[directory]
        version = own.version if own is not None else CONFIG_VERSION

        inherited = Policy(version=version)
        for ancestor in _ancestors_root_to_leaf(directory, working):
            inherited = merge_two_configs(inherited, local_layer(ancestor))
        if own is not None:
            inherited = merge_two_configs(inherited, own)

        matches = find_matching_patterns(directory, pattern_sources)
        pattern_policy, applied = _fold_pattern_matches(matches, version)
        config = merge_two_configs(pattern_policy, inherited) if matches else inherited

        if own is not None:
            rule_file_path = rules[directory].rule_file_path
        elif matches:
            rule_file_path = matches[0].source_file
        else:  # pragma: no cover
            continue

        resolved.append(
            ResolvedRule(
                directory=directory,
                rule_file_path=rule_file_path,
                config=config,
                exclude_patterns=config.scope.exclude if config.scope else (),
                applied_pattern_rules=applied,
            )
        )

    log_event(
        logger,
        logging.DEBUG,
        "rules.resolved",
        rule_directories=len(rules),
        pattern_sources=len(pattern_sources),
        resolved=len(resolved),
    )
    return resolved


def resolve_rules(rules_by_directory: Mapping[str, RuleSource]) -> List[ResolvedRule]:
    return resolve_rules_with_patterns(rules_by_directory, None)
