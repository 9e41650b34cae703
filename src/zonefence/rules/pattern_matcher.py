from __future__ import annotations

import dataclasses
from typing import Iterable, List, Mapping, Sequence

from wcmatch import glob

from ..core.utils import escapes_upward, normalize_dir, relative_path
from .types import DirectoryPatternRule, PatternRuleConfig, RuleSource

# minimatch-compatible: `**` spans segments, wildcards skip dotfiles.
GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.EXTGLOB | glob.CASE | glob.FORCEUNIX


@dataclasses.dataclass(frozen=True)
class PatternMatch:
    pattern: str
    config: PatternRuleConfig
    priority: int
    source_file: str
    specificity: int


@dataclasses.dataclass(frozen=True)
class DirectoryPatternSource:
    source_file: str
    source_dir: str
    patterns: tuple[DirectoryPatternRule, ...]


def glob_match(path: str, pattern: str) -> bool:
    return glob.globmatch(path, pattern, flags=GLOB_FLAGS)


def match_directory_pattern(target_dir: str, pattern: str, source_dir: str) -> bool:
    """Check whether `target_dir` matches `pattern` within `source_dir`'s subtree.

    A pattern never matches the directory that declares it, nor anything
    outside of it.
    """
    rel = relative_path(normalize_dir(source_dir), normalize_dir(target_dir))
    if not rel or rel == "." or escapes_upward(rel) or rel.startswith("/"):
        return False
    return glob_match(rel, pattern)


def calculate_specificity(pattern: str) -> int:
    """Score a pattern; higher means more specific."""
    specificity = 0
    for segment in pattern.split("/"):
        if segment == "**":
            specificity += 1
        elif segment == "*":
            specificity += 5
        elif "*" in segment:
            specificity += 8
        else:
            specificity += 10
    return specificity


def find_matching_patterns(
    target_dir: str, pattern_sources: Iterable[DirectoryPatternSource]
) -> List[PatternMatch]:
    matches: List[PatternMatch] = []
    for source in pattern_sources:
        for rule in source.patterns:
            if not match_directory_pattern(target_dir, rule.pattern, source.source_dir):
                continue
            matches.append(
                PatternMatch(
                    pattern=rule.pattern,
                    config=rule.config,
                    priority=rule.priority,
                    source_file=source.source_file,
                    specificity=calculate_specificity(rule.pattern),
                )
            )
    matches.sort(key=lambda match: (-match.priority, -match.specificity))
    return matches


def collect_pattern_sources(
    rules_by_directory: Mapping[str, RuleSource],
) -> Sequence[DirectoryPatternSource]:
    sources: List[DirectoryPatternSource] = []
    for directory, source in rules_by_directory.items():
        patterns = source.config.directory_patterns
        if not patterns:
            continue
        sources.append(
            DirectoryPatternSource(
                source_file=source.rule_file_path,
                source_dir=directory,
                patterns=tuple(patterns),
            )
        )
    return sources
