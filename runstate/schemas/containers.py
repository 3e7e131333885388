from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from runstate.utils.timestamps import NanoTimestamp


class ContainerRecord(BaseModel):
    """Platform agnostic snapshot of one container's status and state."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="The container ID, equal to its state directory name.")
    init_process_pid: int = Field(
        ...,
        alias="pid",
        description="The init process id in the host pid namespace.",
    )
    status: str = Field(..., description="Lifecycle status: created, running, pausing, paused or stopped.")
    bundle: str = Field("", description="Path on the filesystem to the OCI bundle.")
    created: NanoTimestamp = Field(
        ...,
        description="Creation time of the container in UTC, nanosecond precision.",
        examples=["2024-05-01T12:30:45.123456789Z"],
    )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
