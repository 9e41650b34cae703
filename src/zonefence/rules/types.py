from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..core.config import CONFIG_VERSION


class ScopeApply(str, enum.Enum):
    SELF = "self"
    DESCENDANTS = "descendants"


class EvaluationMode(str, enum.Enum):
    ALLOW_FIRST = "allow-first"
    DENY_FIRST = "deny-first"


class MergeStrategy(str, enum.Enum):
    MERGE = "merge"
    OVERRIDE = "override"


@dataclass(frozen=True)
class ImportRule:
    from_: str
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"from": self.from_}
        if self.message is not None:
            payload["message"] = self.message
        return payload


@dataclass(frozen=True)
class ScopeConfig:
    # None means "not declared"; readers treat it as DESCENDANTS.
    apply: Optional[ScopeApply] = None
    exclude: tuple[str, ...] = ()

    @property
    def effective_apply(self) -> ScopeApply:
        return self.apply or ScopeApply.DESCENDANTS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "apply": self.effective_apply.value,
            "exclude": list(self.exclude),
        }


@dataclass(frozen=True)
class ImportsConfig:
    allow: tuple[ImportRule, ...] = ()
    deny: tuple[ImportRule, ...] = ()
    # None means "not declared"; readers treat it as ALLOW_FIRST.
    mode: Optional[EvaluationMode] = None

    @property
    def effective_mode(self) -> EvaluationMode:
        return self.mode or EvaluationMode.ALLOW_FIRST

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allow": [rule.to_dict() for rule in self.allow],
            "deny": [rule.to_dict() for rule in self.deny],
            "mode": self.effective_mode.value,
        }


@dataclass(frozen=True)
class PatternRuleConfig:
    """Policy fragment carried by a directory pattern."""

    description: Optional[str] = None
    imports: Optional[ImportsConfig] = None
    merge_strategy: MergeStrategy = MergeStrategy.MERGE

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"mergeStrategy": self.merge_strategy.value}
        if self.description is not None:
            payload["description"] = self.description
        if self.imports is not None:
            payload["imports"] = self.imports.to_dict()
        return payload


@dataclass(frozen=True)
class DirectoryPatternRule:
    pattern: str
    config: PatternRuleConfig
    priority: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern": self.pattern,
            "config": self.config.to_dict(),
            "priority": self.priority,
        }


@dataclass(frozen=True)
class Policy:
    """One directory's declared or merged rule configuration."""

    version: int = CONFIG_VERSION
    description: Optional[str] = None
    scope: Optional[ScopeConfig] = None
    imports: Optional[ImportsConfig] = None
    directory_patterns: tuple[DirectoryPatternRule, ...] = ()

    @property
    def scope_apply(self) -> ScopeApply:
        if self.scope is None:
            return ScopeApply.DESCENDANTS
        return self.scope.effective_apply

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"version": self.version}
        if self.description is not None:
            payload["description"] = self.description
        if self.scope is not None:
            payload["scope"] = self.scope.to_dict()
        if self.imports is not None:
            payload["imports"] = self.imports.to_dict()
        if self.directory_patterns:
            payload["directoryPatterns"] = [
                rule.to_dict() for rule in self.directory_patterns
            ]
        return payload


@dataclass(frozen=True)
class RuleSource:
    """A policy as declared by one rule file."""

    config: Policy
    rule_file_path: str


RulesByDirectory = Mapping[str, RuleSource]


@dataclass(frozen=True)
class AppliedPatternRule:
    pattern: str
    source_file: str
    priority: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern": self.pattern,
            "source_file": self.source_file,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class ResolvedRule:
    directory: str
    rule_file_path: str
    config: Policy
    exclude_patterns: tuple[str, ...] = ()
    applied_pattern_rules: tuple[AppliedPatternRule, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directory": self.directory,
            "rule_file_path": self.rule_file_path,
            "config": self.config.to_dict(),
            "exclude_patterns": list(self.exclude_patterns),
            "applied_pattern_rules": [
                applied.to_dict() for applied in self.applied_pattern_rules
            ],
        }
