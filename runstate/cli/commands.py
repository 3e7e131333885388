import typer

from runstate.log import setup_logger as _setup_logger

from ._context import RunstateContext
from .containers import list_containers, show_state

_cli_logging_configured = False


def configure_cli_logging(log_level: str | None = None) -> None:
    """Configure CLI log levels once at runtime (not at import time)."""
    global _cli_logging_configured
    if _cli_logging_configured:
        return
    _cli_logging_configured = True
    _setup_logger(log_level)


cli_app = typer.Typer(
    help=("""[bold]runstate[/bold]\nReport the containers persisted under a runtime state root."""),
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@cli_app.callback()
def cli_callback(
    ctx: typer.Context,
    root: str | None = typer.Option(
        None,
        "--root",
        help="Root directory for storage of container state.",
        envvar="RUNSTATE_ROOT",
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Log level: DEBUG, INFO, WARNING or ERROR."),
) -> None:
    """Configure logging and resolve the state root before command execution."""
    configure_cli_logging(log_level)
    ctx.obj = RunstateContext.from_settings(root)


cli_app.command(name="list", help="Lists containers with state under the given root.")(list_containers)
cli_app.command(name="state", help="Outputs the state of a container.")(show_state)


if __name__ == "__main__":  # pragma: no cover - manual CLI invocation
    cli_app()
