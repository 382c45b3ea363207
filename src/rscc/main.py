"""main.py – Console entry point for rscc.

The option table uses single-dash long options (``-emit-asm``,
``-bitcode-storage``) and ``@file`` response files, so Typer does not parse
anything itself: every argument is passed through, in order, to
:class:`rscc.driver.Driver`.
"""

from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from rscc.config import ConfigError
from rscc.driver import Driver

app = typer.Typer(
    help="RenderScript source compiler.",
    rich_markup_mode="rich",
    add_completion=False,
)

_err_console = Console(stderr=True)


def error_exit(msg: str, *, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    _err_console.print(f"[red bold]error:[/red bold] {escape(msg)}", highlight=False)
    raise typer.Exit(code=code)


@app.command(
    add_help_option=False,
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def main(ctx: typer.Context) -> None:
    """Compile RenderScript sources to bitcode."""
    prog = ctx.info_name or "rscc"
    try:
        code = Driver().run([prog, *ctx.args])
    except ConfigError as e:
        error_exit(str(e))
    raise typer.Exit(code=code)


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
