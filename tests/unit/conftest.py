import sys

import pytest
import structlog

import runstate.cli.commands as cli_commands
from runstate.container.factory import ContainerFactoryRegistry


@pytest.fixture(autouse=True)
def reset_factory_registry():
    ContainerFactoryRegistry.reset()
    yield
    ContainerFactoryRegistry.reset()


@pytest.fixture(autouse=True)
def skip_cli_logging_setup(monkeypatch: pytest.MonkeyPatch):
    # keep tests from reconfiguring structlog globally
    monkeypatch.setattr(cli_commands, "_cli_logging_configured", True)
    # stdout is the report sink; keep structlog's default output off it
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(file=sys.stderr))
    yield
    structlog.reset_defaults()
