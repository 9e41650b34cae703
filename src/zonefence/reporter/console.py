from __future__ import annotations

import json
import os
from typing import Dict, List, Optional

import typer

from ..core.utils import relative_path
from ..evaluator.types import EvaluationResult, Violation


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def group_by_file(
    violations: List[Violation], cwd: Optional[str] = None
) -> Dict[str, List[Violation]]:
    """Group violations by source file relative to `cwd`, ordered by position."""
    base = cwd or os.getcwd()
    grouped: Dict[str, List[Violation]] = {}
    for violation in violations:
        grouped.setdefault(relative_path(base, violation.source_file), []).append(
            violation
        )
    for file_violations in grouped.values():
        file_violations.sort(key=lambda item: (item.line, item.column))
    return grouped


def report_to_console(
    result: EvaluationResult, *, color: bool = True, cwd: Optional[str] = None
) -> int:
    """Print a human readable report and return the process exit code."""

    def style(text: str, **kwargs) -> str:
        return typer.style(text, **kwargs) if color else text

    if result.ok:
        typer.echo(style("✓ No import boundary violations found", fg="green"))
        typer.echo(
            style(
                f"  Checked {result.imports_checked} imports across "
                f"{result.files_checked} files",
                dim=True,
            )
        )
        return 0

    base = cwd or os.getcwd()
    grouped = group_by_file(list(result.violations), base)
    for file_path, file_violations in grouped.items():
        typer.echo()
        typer.echo(style(file_path, bold=True))
        for violation in file_violations:
            location = style(f"{violation.line}:{violation.column}", dim=True)
            rule = style(f"({violation.rule})", dim=True)
            typer.echo(
                f"  {location}  {style('error', fg='red')}  "
                f"{violation.message}  {rule}"
            )
            if violation.design_intent:
                typer.echo(
                    style(f"    Design intent: {violation.design_intent}", fg="cyan")
                )
            if violation.suggestion:
                typer.echo(style(f"    Suggestion: {violation.suggestion}", fg="yellow"))
            rule_file = relative_path(base, violation.rule_file_path)
            typer.echo(style(f"    Rule: {rule_file}", fg="bright_black"))

    typer.echo()
    summary = (
        f"✖ {_plural(len(result.violations), 'error')} in "
        f"{_plural(len(grouped), 'file')}"
    )
    typer.echo(style(summary, fg="red", bold=True))
    return 1


def report_to_json(result: EvaluationResult) -> int:
    typer.echo(json.dumps(result.to_dict(), indent=2))
    return 0 if result.ok else 1
