"""Validation helpers for rule files.

Rule files are plain YAML mappings. Everything here normalizes the raw
mapping into the frozen types in `rules.types`; the resolver and the
evaluator never see raw data.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from ..core.config import ConfigError
from .types import (
    DirectoryPatternRule,
    EvaluationMode,
    ImportRule,
    ImportsConfig,
    MergeStrategy,
    PatternRuleConfig,
    Policy,
    ScopeApply,
    ScopeConfig,
)

_TOP_LEVEL_KEYS = frozenset(
    {"version", "description", "scope", "imports", "directoryPatterns"}
)
_SCOPE_KEYS = frozenset({"apply", "exclude"})
_IMPORTS_KEYS = frozenset({"allow", "deny", "mode"})
_IMPORT_RULE_KEYS = frozenset({"from", "message"})
_PATTERN_RULE_KEYS = frozenset({"pattern", "config", "priority", "mergeStrategy"})
_PATTERN_CONFIG_KEYS = frozenset({"description", "imports", "mergeStrategy"})


def _enum_values(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)


def _reject_unknown_keys(data: Dict[str, Any], allowed: frozenset, scope: str) -> None:
    unknown = sorted(str(key) for key in data if key not in allowed)
    if unknown:
        raise ConfigError(f"{scope} has unknown keys: {', '.join(unknown)}")


def _parse_optional_str(value: Any, *, scope: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{scope} must be a string")
    return value


def _parse_version(value: Any, *, scope: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{scope} must be an integer")
    if value < 1:
        raise ConfigError(f"{scope} must be >= 1")
    return value


def _parse_string_list(value: Any, *, scope: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"{scope} must be a list of strings")
    for index, entry in enumerate(value):
        if not isinstance(entry, str):
            raise ConfigError(f"{scope}[{index}] must be a string")
    return tuple(value)


def parse_import_rule(value: Any, *, scope: str) -> ImportRule:
    """Accept either a bare pattern string or a `{from, message}` mapping."""
    if isinstance(value, str):
        return ImportRule(from_=value)
    if not isinstance(value, dict):
        raise ConfigError(f"{scope} must be a string or a mapping with 'from'")
    _reject_unknown_keys(value, _IMPORT_RULE_KEYS, scope)
    pattern = value.get("from")
    if not isinstance(pattern, str):
        raise ConfigError(f"{scope}.from must be a string")
    message = _parse_optional_str(value.get("message"), scope=f"{scope}.message")
    return ImportRule(from_=pattern, message=message)


def _parse_import_rules(value: Any, *, scope: str) -> tuple[ImportRule, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"{scope} must be a list")
    return tuple(
        parse_import_rule(entry, scope=f"{scope}[{index}]")
        for index, entry in enumerate(value)
    )


def _parse_mode(value: Any, *, scope: str) -> Optional[EvaluationMode]:
    if value is None:
        return None
    try:
        return EvaluationMode(value)
    except ValueError as exc:
        raise ConfigError(
            f"{scope} must be one of: {_enum_values(EvaluationMode)}"
        ) from exc


def _parse_merge_strategy(value: Any, *, scope: str) -> Optional[MergeStrategy]:
    if value is None:
        return None
    try:
        return MergeStrategy(value)
    except ValueError as exc:
        raise ConfigError(
            f"{scope} must be one of: {_enum_values(MergeStrategy)}"
        ) from exc


def _parse_imports(value: Any, *, scope: str) -> Optional[ImportsConfig]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigError(f"{scope} must be a mapping if provided")
    _reject_unknown_keys(value, _IMPORTS_KEYS, scope)
    return ImportsConfig(
        allow=_parse_import_rules(value.get("allow"), scope=f"{scope}.allow"),
        deny=_parse_import_rules(value.get("deny"), scope=f"{scope}.deny"),
        mode=_parse_mode(value.get("mode"), scope=f"{scope}.mode"),
    )


def _parse_scope(value: Any, *, scope: str) -> Optional[ScopeConfig]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigError(f"{scope} must be a mapping if provided")
    _reject_unknown_keys(value, _SCOPE_KEYS, scope)
    apply_raw = value.get("apply")
    apply: Optional[ScopeApply] = None
    if apply_raw is not None:
        try:
            apply = ScopeApply(apply_raw)
        except ValueError as exc:
            raise ConfigError(
                f"{scope}.apply must be one of: {_enum_values(ScopeApply)}"
            ) from exc
    return ScopeConfig(
        apply=apply,
        exclude=_parse_string_list(value.get("exclude"), scope=f"{scope}.exclude"),
    )


def _parse_pattern_rule(value: Any, *, scope: str) -> DirectoryPatternRule:
    if not isinstance(value, dict):
        raise ConfigError(f"{scope} must be a mapping")
    _reject_unknown_keys(value, _PATTERN_RULE_KEYS, scope)
    pattern = value.get("pattern")
    if not isinstance(pattern, str) or not pattern.strip():
        raise ConfigError(f"{scope}.pattern must be a non-empty string")
    config_raw = value.get("config")
    if not isinstance(config_raw, dict):
        raise ConfigError(f"{scope}.config must be a mapping")
    _reject_unknown_keys(config_raw, _PATTERN_CONFIG_KEYS, f"{scope}.config")
    priority = value.get("priority", 0)
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise ConfigError(f"{scope}.priority must be an integer")
    # `config.mergeStrategy` is canonical; the rule-level key is a fallback.
    strategy = _parse_merge_strategy(
        config_raw.get("mergeStrategy"), scope=f"{scope}.config.mergeStrategy"
    ) or _parse_merge_strategy(
        value.get("mergeStrategy"), scope=f"{scope}.mergeStrategy"
    )
    return DirectoryPatternRule(
        pattern=pattern,
        config=PatternRuleConfig(
            description=_parse_optional_str(
                config_raw.get("description"), scope=f"{scope}.config.description"
            ),
            imports=_parse_imports(
                config_raw.get("imports"), scope=f"{scope}.config.imports"
            ),
            merge_strategy=strategy or MergeStrategy.MERGE,
        ),
        priority=priority,
    )


def _parse_directory_patterns(
    value: Any, *, scope: str
) -> tuple[DirectoryPatternRule, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"{scope} must be a list")
    return tuple(
        _parse_pattern_rule(entry, scope=f"{scope}[{index}]")
        for index, entry in enumerate(value)
    )


def parse_policy(data: Any, *, context: str = "rule file") -> Policy:
    """Validate a raw rule-file mapping and return the normalized Policy."""
    if not isinstance(data, dict):
        raise ConfigError(f"{context}: rule file must be a mapping")
    try:
        _reject_unknown_keys(data, _TOP_LEVEL_KEYS, "top level")
        if "version" not in data:
            raise ConfigError("version is required")
        return Policy(
            version=_parse_version(data.get("version"), scope="version"),
            description=_parse_optional_str(
                data.get("description"), scope="description"
            ),
            scope=_parse_scope(data.get("scope"), scope="scope"),
            imports=_parse_imports(data.get("imports"), scope="imports"),
            directory_patterns=_parse_directory_patterns(
                data.get("directoryPatterns"), scope="directoryPatterns"
            ),
        )
    except ConfigError as exc:
        raise ConfigError(f"{context}: {exc}") from exc


def validate_policy(data: Any) -> Tuple[Optional[Policy], List[str]]:
    try:
        return parse_policy(data), []
    except ConfigError as exc:
        return None, [str(exc)]
