from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, List

import typer

from ....core.config import ConfigError
from ....core.utils import relative_path
from ....rules.loader import load_rules_for_directory_with_all_dirs
from ....rules.resolver import resolve_rules_with_patterns
from ....rules.types import ResolvedRule
from .utils import configure_logging, resolve_target


def _format_rule(rule: ResolvedRule, root: str) -> List[str]:
    directory = relative_path(root, rule.directory)
    imports = rule.config.imports
    lines = [typer.style(directory, bold=True)]
    lines.append(f"  rule file: {relative_path(root, rule.rule_file_path)}")
    if rule.config.description:
        lines.append(f"  description: {rule.config.description}")
    lines.append(f"  scope: {rule.config.scope_apply.value}")
    if imports is not None:
        lines.append(f"  mode: {imports.effective_mode.value}")
        for label, entries in (("allow", imports.allow), ("deny", imports.deny)):
            for entry in entries:
                lines.append(f"  {label}: {entry.from_}")
    for pattern in rule.exclude_patterns:
        lines.append(f"  exclude: {pattern}")
    for applied in rule.applied_pattern_rules:
        lines.append(
            f"  pattern: {applied.pattern} "
            f"(priority {applied.priority}, "
            f"from {relative_path(root, applied.source_file)})"
        )
    return lines


def register_rules_commands(app: typer.Typer, *, raise_exit: Any) -> None:
    @app.command()
    def rules(
        path: Path = typer.Argument(Path("."), help="Directory to inspect"),
        json_output: bool = typer.Option(False, "--json", help="Emit JSON output"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    ):
        """Show the effective rules for every governed directory."""
        configure_logging(verbose)
        target = resolve_target(path)
        try:
            loaded = load_rules_for_directory_with_all_dirs(target)
        except (ConfigError, OSError) as exc:
            raise_exit(f"Error: {exc}", cause=exc)
        resolved = resolve_rules_with_patterns(loaded.rules, loaded.all_directories)

        if json_output:
            typer.echo(json.dumps([rule.to_dict() for rule in resolved], indent=2))
            return
        if not resolved:
            typer.echo(f"No rule files found under {target}")
            return
        root = os.fspath(target)
        for index, rule in enumerate(resolved):
            if index:
                typer.echo()
            for line in _format_rule(rule, root):
                typer.echo(line)
