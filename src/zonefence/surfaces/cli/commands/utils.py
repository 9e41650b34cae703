from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import typer

from ....core.logging_utils import resolve_log_level, setup_cli_logging


def get_zonefence_version() -> str:
    import importlib.metadata

    try:
        return importlib.metadata.version("zonefence")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def raise_exit(message: str, *, cause: Optional[BaseException] = None) -> NoReturn:
    typer.echo(message, err=True)
    if cause is not None:
        raise typer.Exit(code=1) from cause
    raise typer.Exit(code=1)


def configure_logging(verbose: bool) -> None:
    setup_cli_logging(resolve_log_level(verbose))


def resolve_target(path: Path) -> Path:
    target = path.expanduser().resolve()
    if not target.is_dir():
        raise_exit(f"Error: {target} is not a directory")
    return target
