"""Container listing CLI commands."""

from __future__ import annotations

from typing import NoReturn

import structlog
import typer
from rich.markup import escape

from runstate.container import BaseContainerFactory, ContainerFactoryRegistry
from runstate.exceptions import InvalidFormatError, RunstateException
from runstate.services.container_listing import enumerate_containers, load_container_record
from runstate.services.report import FORMAT_OPTIONS, parse_output_format, render_record, render_records

from ._context import RunstateContext
from .console import err_console

LOG = structlog.get_logger()


def _get_context(ctx: typer.Context) -> RunstateContext:
    if isinstance(ctx.obj, RunstateContext):
        return ctx.obj
    return RunstateContext.from_settings()


def _fail(error: RunstateException, exit_code: int = 1) -> NoReturn:
    LOG.debug("Command failed", error_type=type(error).__name__, exc_info=error)
    err_console.print(f"[red]Error: {escape(error.message or str(error))}[/red]")
    raise typer.Exit(exit_code)


def _get_factory(run_context: RunstateContext) -> BaseContainerFactory:
    try:
        return ContainerFactoryRegistry.get_factory(run_context.root, run_context.factory_backend)
    except RunstateException as e:
        _fail(e)


def list_containers(
    ctx: typer.Context,
    output_format: str = typer.Option(
        "",
        "--format",
        "-f",
        help=f"Select one of: {FORMAT_OPTIONS}. The default format is table.",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Display only container IDs."),
) -> None:
    """List containers with persisted state under the configured root."""
    try:
        selected_format = parse_output_format(output_format)
    except InvalidFormatError as e:
        raise typer.BadParameter(e.message or "invalid format option", param_hint="'--format' / '-f'") from e

    run_context = _get_context(ctx)
    factory = _get_factory(run_context)
    try:
        records = enumerate_containers(run_context.root, factory)
    except RunstateException as e:
        _fail(e)

    render_records(records, selected_format, quiet=quiet)


def show_state(
    ctx: typer.Context,
    container_id: str = typer.Argument(..., help="The container ID."),
) -> None:
    """Output the state of a single container as JSON."""
    run_context = _get_context(ctx)
    factory = _get_factory(run_context)
    try:
        record = load_container_record(factory, container_id)
    except RunstateException as e:
        _fail(e)

    render_record(record)
