"""Rule files: schema, discovery, pattern matching and resolution."""

from .loader import (
    LoadedRules,
    load_rule_file,
    load_rules_for_directory,
    load_rules_for_directory_with_all_dirs,
)
from .resolver import merge_two_configs, resolve_rules, resolve_rules_with_patterns
from .schema import parse_policy, validate_policy
from .types import (
    EvaluationMode,
    ImportRule,
    ImportsConfig,
    MergeStrategy,
    Policy,
    ResolvedRule,
    RuleSource,
    ScopeApply,
    ScopeConfig,
)

__all__ = [
    "EvaluationMode",
    "ImportRule",
    "ImportsConfig",
    "LoadedRules",
    "MergeStrategy",
    "Policy",
    "ResolvedRule",
    "RuleSource",
    "ScopeApply",
    "ScopeConfig",
    "load_rule_file",
    "load_rules_for_directory",
    "load_rules_for_directory_with_all_dirs",
    "merge_two_configs",
    "parse_policy",
    "resolve_rules",
    "resolve_rules_with_patterns",
    "validate_policy",
]
