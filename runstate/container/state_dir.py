import os
import re
from pathlib import Path

import psutil
import structlog
from pydantic import ValidationError

from runstate.constants import EXEC_FIFO_FILENAME, STATE_FILENAME
from runstate.exceptions import ContainerLoadError, ContainerNotFound, CorruptContainerState, InvalidContainerId

from .base import BaseContainer, BaseContainerFactory
from .models import ContainerStatus, RuntimeState

LOG = structlog.get_logger()

_CONTAINER_ID_RE = re.compile(r"^[\w+\-.]+$")
_DEFAULT_CLOCK_TICKS = 100
# boot time derived by psutil can drift slightly between reads
_START_TIME_TOLERANCE_SECONDS = 1.0


def validate_container_id(container_id: str) -> None:
    if container_id in (".", "..") or not _CONTAINER_ID_RE.match(container_id):
        raise InvalidContainerId(container_id)


def _clock_ticks() -> int:
    try:
        return os.sysconf("SC_CLK_TCK")
    except (AttributeError, ValueError, OSError):
        return _DEFAULT_CLOCK_TICKS


def _start_time_matches(process: psutil.Process, start_ticks: int) -> bool:
    """Check the process still is the one recorded, not a later process reusing the pid."""
    ticks = _clock_ticks()
    expected = psutil.boot_time() + start_ticks / ticks
    return abs(process.create_time() - expected) <= _START_TIME_TOLERANCE_SECONDS


class StateDirContainer(BaseContainer):
    """Container backed by a ``<root>/<id>/state.json`` directory."""

    def __init__(self, state_dir: Path, runtime_state: RuntimeState) -> None:
        self._state_dir = state_dir
        self._runtime_state = runtime_state

    @property
    def id(self) -> str:
        return self._runtime_state.base_state.id

    def state(self) -> RuntimeState:
        return self._runtime_state

    def status(self) -> ContainerStatus:
        freezer_status = self._freezer_status()
        if freezer_status is not None:
            return freezer_status
        if not self._init_process_alive():
            return ContainerStatus.STOPPED
        if (self._state_dir / EXEC_FIFO_FILENAME).exists():
            return ContainerStatus.CREATED
        return ContainerStatus.RUNNING

    def _read_cgroup_file(self, path: Path) -> str:
        try:
            return path.read_text().strip()
        except FileNotFoundError:
            return ""
        except OSError as e:
            raise ContainerLoadError(self.id, f"failed to read {path}: {e.strerror or e}") from e

    def _freezer_status(self) -> ContainerStatus | None:
        cgroup_paths = self._runtime_state.cgroup_paths

        # cgroup v1 keeps a dedicated freezer hierarchy
        freezer_path = cgroup_paths.get("freezer")
        if freezer_path:
            freezer_state = self._read_cgroup_file(Path(freezer_path) / "freezer.state")
            if freezer_state == "FROZEN":
                return ContainerStatus.PAUSED
            if freezer_state == "FREEZING":
                return ContainerStatus.PAUSING
            return None

        # cgroup v2 unified hierarchy is stored under the empty key
        unified_path = cgroup_paths.get("")
        if unified_path and self._read_cgroup_file(Path(unified_path) / "cgroup.freeze") == "1":
            return ContainerStatus.PAUSED
        return None

    def _init_process_alive(self) -> bool:
        base_state = self._runtime_state.base_state
        if base_state.init_process_pid <= 0:
            return False

        try:
            process = psutil.Process(base_state.init_process_pid)
            if process.status() in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD):
                return False
            if base_state.init_process_start and not _start_time_matches(process, base_state.init_process_start):
                LOG.debug(
                    "Init process pid was reused",
                    container_id=self.id,
                    pid=base_state.init_process_pid,
                )
                return False
        except psutil.NoSuchProcess:
            return False
        except psutil.AccessDenied:
            # the process exists, we just cannot inspect it
            LOG.debug("Access denied inspecting init process", container_id=self.id, pid=base_state.init_process_pid)
        return True


class StateDirContainerFactory(BaseContainerFactory):
    """Loads containers from runc-style state directories under a root."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = os.path.abspath(root)

    @property
    def root(self) -> str:
        return self._root

    def load(self, container_id: str) -> StateDirContainer:
        validate_container_id(container_id)

        state_dir = Path(self._root) / container_id
        if not state_dir.is_dir():
            raise ContainerNotFound(container_id)

        state_file = state_dir / STATE_FILENAME
        try:
            raw_state = state_file.read_bytes()
        except FileNotFoundError as e:
            # removed between listing and loading, or never fully written
            raise ContainerNotFound(container_id, "state file does not exist") from e
        except OSError as e:
            raise CorruptContainerState(container_id, f"failed to read state file: {e.strerror or e}") from e

        try:
            runtime_state = RuntimeState.model_validate_json(raw_state)
        except ValidationError as e:
            raise CorruptContainerState(
                container_id, f"invalid state file ({e.error_count()} validation errors)"
            ) from e

        base_state = runtime_state.base_state
        if not base_state.id:
            base_state.id = container_id
        elif base_state.id != container_id:
            raise CorruptContainerState(container_id, f"state file belongs to container {base_state.id}")

        LOG.debug("Loaded container state", container_id=container_id, state_dir=str(state_dir))
        return StateDirContainer(state_dir, runtime_state)
