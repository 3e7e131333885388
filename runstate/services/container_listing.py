import os

import structlog

from runstate.constants import BUNDLE_LABEL
from runstate.container.base import BaseContainerFactory
from runstate.exceptions import ContainerLoadError, CorruptContainerState, RootDirectoryError
from runstate.schemas.containers import ContainerRecord
from runstate.utils.labels import extract_label

LOG = structlog.get_logger()


def resolve_root(root: str | os.PathLike[str]) -> str:
    try:
        return os.path.abspath(root)
    except (OSError, ValueError) as e:
        raise RootDirectoryError(os.fspath(root), str(e)) from e


def list_container_ids(root: str | os.PathLike[str]) -> list[str]:
    """Return the names of the directories directly under root, sorted by name.

    Stray files and symlinks are skipped.
    """
    abs_root = resolve_root(root)
    try:
        with os.scandir(abs_root) as entries:
            return sorted(entry.name for entry in entries if entry.is_dir(follow_symlinks=False))
    except OSError as e:
        raise RootDirectoryError(abs_root, e.strerror or str(e)) from e


def load_container_record(factory: BaseContainerFactory, container_id: str) -> ContainerRecord:
    try:
        container = factory.load(container_id)
        container_status = container.status()
        runtime_state = container.state()
    except OSError as e:
        raise ContainerLoadError(container_id, e.strerror or str(e)) from e

    base_state = runtime_state.base_state
    if base_state.id != container_id:
        raise CorruptContainerState(container_id, f"state belongs to container {base_state.id or '<empty>'}")
    return ContainerRecord(
        id=base_state.id,
        init_process_pid=base_state.init_process_pid,
        status=str(container_status),
        bundle=extract_label(runtime_state.config.labels, BUNDLE_LABEL),
        created=base_state.created,
    )


def enumerate_containers(root: str | os.PathLike[str], factory: BaseContainerFactory) -> list[ContainerRecord]:
    """Load a record for every container under root.

    The first container that fails to load aborts the whole enumeration; a directory
    that exists but cannot be loaded usually means a corrupt or half-written state and
    must not be hidden from the operator.

    Raises:
        RootDirectoryError: If root cannot be resolved or listed
        ContainerLoadError: If any single container cannot be loaded
    """
    container_ids = list_container_ids(root)
    records: list[ContainerRecord] = []
    for container_id in container_ids:
        record = load_container_record(factory, container_id)
        LOG.debug("Loaded container record", container_id=record.id, status=record.status)
        records.append(record)

    LOG.info("Enumerated containers", root=str(root), count=len(records))
    return records
