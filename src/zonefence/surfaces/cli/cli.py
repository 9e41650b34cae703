import typer

from .commands.check import register_check_commands
from .commands.rules import register_rules_commands
from .commands.utils import get_zonefence_version
from .commands.utils import raise_exit as _raise_exit

app = typer.Typer(
    add_completion=False,
    help="Folder-based architecture guardrails for TypeScript projects.",
)


def _version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(f"zonefence {get_zonefence_version()}")
    raise typer.Exit(code=0)


@app.callback()
def _root(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    # `--version` is handled eagerly via `_version_callback`.
    return


def main() -> None:
    """Entrypoint for CLI execution."""
    app()


register_check_commands(app, raise_exit=_raise_exit)
register_rules_commands(app, raise_exit=_raise_exit)
