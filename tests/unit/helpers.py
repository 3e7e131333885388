from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from runstate.container.base import BaseContainer, BaseContainerFactory
from runstate.container.models import BaseState, ContainerConfig, ContainerStatus, RuntimeState
from runstate.exceptions import ContainerNotFound
from runstate.utils.timestamps import NanoTimestamp

DEFAULT_CREATED = "2024-05-01T12:30:45.123456789Z"


def write_state(
    root: Path,
    container_id: str,
    *,
    pid: int = 0,
    start: int = 0,
    created: str = DEFAULT_CREATED,
    labels: list[str] | None = None,
    cgroup_paths: dict[str, str] | None = None,
    exec_fifo: bool = False,
    state_id: str | None = None,
    extra: dict[str, Any] | None = None,
) -> Path:
    """Write a runc-style state.json for container_id under root and return its directory."""
    state_dir = root / container_id
    state_dir.mkdir(parents=True, exist_ok=True)
    state: dict[str, Any] = {
        "id": container_id if state_id is None else state_id,
        "init_process_pid": pid,
        "init_process_start": start,
        "created": created,
        "config": {"labels": labels if labels is not None else [f"bundle=/bundles/{container_id}"]},
        "cgroup_paths": cgroup_paths or {},
    }
    if extra:
        state.update(extra)
    (state_dir / "state.json").write_text(json.dumps(state))
    if exec_fifo:
        (state_dir / "exec.fifo").touch()
    return state_dir


def make_runtime_state(
    container_id: str,
    *,
    pid: int = 1000,
    created: str = DEFAULT_CREATED,
    labels: dict[str, str] | None = None,
) -> RuntimeState:
    return RuntimeState(
        base_state=BaseState(id=container_id, init_process_pid=pid, created=NanoTimestamp.parse(created)),
        config=ContainerConfig(labels=labels if labels is not None else {"bundle": f"/bundles/{container_id}"}),
    )


class FakeContainer(BaseContainer):
    def __init__(self, runtime_state: RuntimeState, status: ContainerStatus = ContainerStatus.RUNNING) -> None:
        self._runtime_state = runtime_state
        self._status = status
        self.status_calls = 0

    @property
    def id(self) -> str:
        return self._runtime_state.base_state.id

    def status(self) -> ContainerStatus:
        self.status_calls += 1
        return self._status

    def state(self) -> RuntimeState:
        return self._runtime_state


class FakeFactory(BaseContainerFactory):
    """Serves containers from memory; ids listed in failing raise the given error on load."""

    def __init__(
        self,
        containers: dict[str, FakeContainer] | None = None,
        failing: dict[str, Exception] | None = None,
        root: str = "/fake/root",
    ) -> None:
        self.containers = containers or {}
        self.failing = failing or {}
        self.loaded: list[str] = []
        self._root = root

    @property
    def root(self) -> str:
        return self._root

    def load(self, container_id: str) -> FakeContainer:
        self.loaded.append(container_id)
        if container_id in self.failing:
            raise self.failing[container_id]
        if container_id not in self.containers:
            raise ContainerNotFound(container_id)
        return self.containers[container_id]
