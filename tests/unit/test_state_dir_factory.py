from __future__ import annotations

import os
import sys
from pathlib import Path
from types import SimpleNamespace

import psutil
import pytest

from runstate.container import state_dir as state_dir_module
from runstate.container.factory import ContainerFactoryRegistry
from runstate.container.models import ContainerStatus
from runstate.container.state_dir import StateDirContainerFactory, validate_container_id
from runstate.exceptions import ContainerNotFound, CorruptContainerState, InvalidContainerId, UnknownFactoryBackend
from tests.unit.helpers import write_state


def _own_start_ticks() -> int:
    stat = Path(f"/proc/{os.getpid()}/stat").read_text()
    # fields after the parenthesised command name start at field 3
    fields = stat[stat.rindex(")") + 2 :].split()
    return int(fields[22 - 3])


class TestValidateContainerId:
    @pytest.mark.parametrize("container_id", ["abc", "a.b-c_d+e", "0123456789abcdef"])
    def test_accepts_valid_ids(self, container_id: str) -> None:
        validate_container_id(container_id)

    @pytest.mark.parametrize("container_id", ["", ".", "..", "a/b", "a b", "a:b"])
    def test_rejects_invalid_ids(self, container_id: str) -> None:
        with pytest.raises(InvalidContainerId) as exc_info:
            validate_container_id(container_id)
        assert exc_info.value.container_id == container_id


class TestLoad:
    def test_loads_state(self, tmp_path: Path) -> None:
        write_state(tmp_path, "c1", labels=["bundle=/bundles/c1", "owner=root"])

        container = StateDirContainerFactory(tmp_path).load("c1")
        state = container.state()

        assert container.id == "c1"
        assert state.base_state.created.rfc3339_nano() == "2024-05-01T12:30:45.123456789Z"
        assert state.config.labels == {"bundle": "/bundles/c1", "owner": "root"}

    def test_root_is_absolute(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert StateDirContainerFactory("state").root == str(tmp_path / "state")

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(ContainerNotFound) as exc_info:
            StateDirContainerFactory(tmp_path).load("ghost")
        assert exc_info.value.container_id == "ghost"

    def test_missing_state_file(self, tmp_path: Path) -> None:
        (tmp_path / "half-written").mkdir()
        with pytest.raises(ContainerNotFound, match="state file does not exist"):
            StateDirContainerFactory(tmp_path).load("half-written")

    def test_corrupt_json(self, tmp_path: Path) -> None:
        (tmp_path / "c1").mkdir()
        (tmp_path / "c1" / "state.json").write_text('{"id": "c1", "created":')
        with pytest.raises(CorruptContainerState) as exc_info:
            StateDirContainerFactory(tmp_path).load("c1")
        assert exc_info.value.container_id == "c1"

    def test_invalid_created(self, tmp_path: Path) -> None:
        write_state(tmp_path, "c1", created="last tuesday")
        with pytest.raises(CorruptContainerState):
            StateDirContainerFactory(tmp_path).load("c1")

    def test_id_mismatch(self, tmp_path: Path) -> None:
        write_state(tmp_path, "c1", state_id="c2")
        with pytest.raises(CorruptContainerState, match="belongs to container c2"):
            StateDirContainerFactory(tmp_path).load("c1")

    def test_missing_id_defaults_to_directory_name(self, tmp_path: Path) -> None:
        write_state(tmp_path, "c1", state_id="")
        assert StateDirContainerFactory(tmp_path).load("c1").id == "c1"

    def test_invalid_id(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidContainerId):
            StateDirContainerFactory(tmp_path).load("..")


class TestStatus:
    def test_reaped_init_process_is_stopped(self, tmp_path: Path) -> None:
        write_state(tmp_path, "c1", pid=0)
        assert StateDirContainerFactory(tmp_path).load("c1").status() == ContainerStatus.STOPPED

    def test_vanished_init_process_is_stopped(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def _no_such_process(pid: int) -> None:
            raise psutil.NoSuchProcess(pid)

        monkeypatch.setattr(state_dir_module.psutil, "Process", _no_such_process)
        write_state(tmp_path, "c1", pid=4242)
        assert StateDirContainerFactory(tmp_path).load("c1").status() == ContainerStatus.STOPPED

    def test_zombie_init_process_is_stopped(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        zombie = SimpleNamespace(status=lambda: psutil.STATUS_ZOMBIE)
        monkeypatch.setattr(state_dir_module.psutil, "Process", lambda pid: zombie)
        write_state(tmp_path, "c1", pid=4242)
        assert StateDirContainerFactory(tmp_path).load("c1").status() == ContainerStatus.STOPPED

    def test_live_init_process_is_running(self, tmp_path: Path) -> None:
        write_state(tmp_path, "c1", pid=os.getpid())
        assert StateDirContainerFactory(tmp_path).load("c1").status() == ContainerStatus.RUNNING

    def test_exec_fifo_means_created(self, tmp_path: Path) -> None:
        write_state(tmp_path, "c1", pid=os.getpid(), exec_fifo=True)
        assert StateDirContainerFactory(tmp_path).load("c1").status() == ContainerStatus.CREATED

    def test_exec_fifo_with_dead_process_is_stopped(self, tmp_path: Path) -> None:
        write_state(tmp_path, "c1", pid=0, exec_fifo=True)
        assert StateDirContainerFactory(tmp_path).load("c1").status() == ContainerStatus.STOPPED

    def test_reused_pid_is_stopped(self, tmp_path: Path) -> None:
        # a start time one tick after boot cannot belong to this test process
        write_state(tmp_path, "c1", pid=os.getpid(), start=1)
        assert StateDirContainerFactory(tmp_path).load("c1").status() == ContainerStatus.STOPPED

    @pytest.mark.skipif(not sys.platform.startswith("linux"), reason="reads /proc")
    def test_matching_start_time_is_running(self, tmp_path: Path) -> None:
        write_state(tmp_path, "c1", pid=os.getpid(), start=_own_start_ticks())
        assert StateDirContainerFactory(tmp_path).load("c1").status() == ContainerStatus.RUNNING

    def test_frozen_cgroup_v1_is_paused(self, tmp_path: Path) -> None:
        freezer = tmp_path / "cgroup" / "freezer"
        freezer.mkdir(parents=True)
        (freezer / "freezer.state").write_text("FROZEN\n")
        write_state(tmp_path / "root", "c1", pid=os.getpid(), cgroup_paths={"freezer": str(freezer)})
        assert StateDirContainerFactory(tmp_path / "root").load("c1").status() == ContainerStatus.PAUSED

    def test_freezing_cgroup_v1_is_pausing(self, tmp_path: Path) -> None:
        freezer = tmp_path / "cgroup" / "freezer"
        freezer.mkdir(parents=True)
        (freezer / "freezer.state").write_text("FREEZING\n")
        write_state(tmp_path / "root", "c1", pid=os.getpid(), cgroup_paths={"freezer": str(freezer)})
        assert StateDirContainerFactory(tmp_path / "root").load("c1").status() == ContainerStatus.PAUSING

    def test_thawed_cgroup_v1_is_running(self, tmp_path: Path) -> None:
        freezer = tmp_path / "cgroup" / "freezer"
        freezer.mkdir(parents=True)
        (freezer / "freezer.state").write_text("THAWED\n")
        write_state(tmp_path / "root", "c1", pid=os.getpid(), cgroup_paths={"freezer": str(freezer)})
        assert StateDirContainerFactory(tmp_path / "root").load("c1").status() == ContainerStatus.RUNNING

    def test_frozen_cgroup_v2_is_paused(self, tmp_path: Path) -> None:
        unified = tmp_path / "cgroup" / "c1"
        unified.mkdir(parents=True)
        (unified / "cgroup.freeze").write_text("1\n")
        write_state(tmp_path / "root", "c1", pid=os.getpid(), cgroup_paths={"": str(unified)})
        assert StateDirContainerFactory(tmp_path / "root").load("c1").status() == ContainerStatus.PAUSED

    def test_missing_freezer_file_is_not_paused(self, tmp_path: Path) -> None:
        write_state(tmp_path, "c1", pid=os.getpid(), cgroup_paths={"": str(tmp_path / "gone")})
        assert StateDirContainerFactory(tmp_path).load("c1").status() == ContainerStatus.RUNNING


class TestContainerFactoryRegistry:
    def test_defaults_to_state_dir_backend(self, tmp_path: Path) -> None:
        factory = ContainerFactoryRegistry.get_factory(tmp_path)
        assert isinstance(factory, StateDirContainerFactory)
        assert factory.root == str(tmp_path)

    def test_backend_from_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUNSTATE_FACTORY_BACKEND", "StateDir")
        assert isinstance(ContainerFactoryRegistry.get_factory(tmp_path), StateDirContainerFactory)

    def test_unknown_backend(self, tmp_path: Path) -> None:
        with pytest.raises(UnknownFactoryBackend):
            ContainerFactoryRegistry.get_factory(tmp_path, "zfs")

    def test_injected_factory_wins(self, tmp_path: Path) -> None:
        injected = StateDirContainerFactory(tmp_path / "other")
        ContainerFactoryRegistry.set_factory(injected)
        assert ContainerFactoryRegistry.get_factory(tmp_path) is injected

        ContainerFactoryRegistry.reset()
        assert ContainerFactoryRegistry.get_factory(tmp_path) is not injected
