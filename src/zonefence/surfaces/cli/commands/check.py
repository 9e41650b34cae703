from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from ....core.config import ConfigError
from ....core.import_collector import collect_imports
from ....core.project import ProjectOptions, create_project, find_tsconfig
from ....evaluator import EvaluateOptions, EvaluationResult, evaluate
from ....reporter import report_to_console, report_to_json
from ....rules.loader import load_rules_for_directory_with_all_dirs
from ....rules.resolver import resolve_rules_with_patterns
from .utils import configure_logging, resolve_target


def run_check(
    target: Path, tsconfig_path: Optional[Path] = None
) -> Optional[EvaluationResult]:
    """Run the full pipeline; None when the tree has no imports."""
    if tsconfig_path is None:
        tsconfig = find_tsconfig(str(target))
    else:
        tsconfig = str(tsconfig_path.expanduser().resolve())
    project = create_project(ProjectOptions(root_dir=str(target), tsconfig_path=tsconfig))
    imports = collect_imports(project.root_dir, project.resolver)
    if not imports:
        return None
    loaded = load_rules_for_directory_with_all_dirs(project.root_dir)
    rules = resolve_rules_with_patterns(loaded.rules, loaded.all_directories)
    options = EvaluateOptions(paths_mapping=project.paths_mapping or None)
    return evaluate(imports, rules, project.root_dir, options)


def register_check_commands(app: typer.Typer, *, raise_exit: Any) -> None:
    @app.command()
    def check(
        path: Path = typer.Argument(Path("."), help="Directory to check"),
        config: Optional[Path] = typer.Option(
            None, "--config", "-c", help="Path to tsconfig.json"
        ),
        color: bool = typer.Option(True, "--color/--no-color", help="Colored output"),
        json_output: bool = typer.Option(False, "--json", help="Emit JSON output"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    ):
        """Check import boundaries in a directory."""
        configure_logging(verbose)
        target = resolve_target(path)
        if not json_output:
            typer.echo(f"Checking import boundaries in: {target}\n")

        try:
            result = run_check(target, config)
        except (ConfigError, OSError) as exc:
            raise_exit(f"Error: {exc}", cause=exc)

        if result is None:
            if json_output:
                report_to_json(
                    EvaluationResult(violations=(), files_checked=0, imports_checked=0)
                )
            else:
                typer.echo("No imports found to check.")
            return

        if json_output:
            exit_code = report_to_json(result)
        else:
            exit_code = report_to_console(result, color=color)
        if exit_code:
            raise typer.Exit(code=exit_code)
