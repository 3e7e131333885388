"""Data models for persisted container runtime state."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from runstate.utils.labels import parse_labels
from runstate.utils.timestamps import NanoTimestamp


class FactoryBackend(StrEnum):
    """Supported container factory backends."""

    STATEDIR = "statedir"


class ContainerStatus(StrEnum):
    """Container lifecycle states."""

    CREATED = "created"
    RUNNING = "running"
    PAUSING = "pausing"
    PAUSED = "paused"
    STOPPED = "stopped"


class BaseState(BaseModel):
    id: str = ""
    # pid of the init process in the host pid namespace, 0 once it has been reaped
    init_process_pid: int = 0
    # start time of the init process in clock ticks since boot
    init_process_start: int = 0
    created: NanoTimestamp


class ContainerConfig(BaseModel):
    labels: dict[str, str] = Field(default_factory=dict)

    @field_validator("labels", mode="before")
    @classmethod
    def parse_label_list(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, list):
            return parse_labels(value)
        return value


class RuntimeState(BaseModel):
    """Persisted state of one container, as written by the runtime into ``state.json``.

    The file keeps the base state fields at the top level; they are gathered into
    ``base_state`` on load.
    """

    base_state: BaseState
    config: ContainerConfig = Field(default_factory=ContainerConfig)
    cgroup_paths: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def lift_base_state(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "base_state" in data:
            return data
        base_fields = {key: data[key] for key in BaseState.model_fields if key in data}
        rest = {key: value for key, value in data.items() if key not in BaseState.model_fields}
        return {**rest, "base_state": base_fields}

    @field_validator("cgroup_paths", mode="before")
    @classmethod
    def default_cgroup_paths(cls, value: Any) -> Any:
        return {} if value is None else value
