# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Batched snapshot of a runtime-tracked container.

Every field of a listing row is read while holding the container's lock
once, instead of taking the lock again for each accessor.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, TypeVar

from ..ISOLATION.namespace_inspector import DEFAULT_PROC_ROOT, inspect_namespaces
from ..MODELS.container_record import ContainerNamespaces, ContainerRecord, ContainerSize
from ..MODELS.list_options import ContainerListOptions
from ..RUNTIME.errors import SnapshotError
from ..RUNTIME.interfaces import ContainerHandle, Runtime

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _read(getter: Callable[[], T], container_id: str, what: str) -> T:
    """Read a field whose failure aborts the snapshot."""
    try:
        return getter()
    except Exception as e:
        raise SnapshotError(f"{what} for container {container_id}: {e}", container_id) from e


def _unix_time(getter: Callable[[], Optional[datetime]], container_id: str, what: str) -> int:
    """Read a timestamp whose failure only gets logged."""
    try:
        value = getter()
    except Exception as e:
        logger.error("Getting %s for %r: %s", what, container_id, e)
        return 0
    if value is None:
        return 0
    return int(value.timestamp())


def _size(getter: Callable[[], int], container_id: str, what: str) -> int:
    try:
        return getter()
    except Exception as e:
        logger.error("Getting %s for %r: %s", what, container_id, e)
        return 0


def list_container_batch(runtime: Runtime,
                         container: ContainerHandle,
                         options: ContainerListOptions,
                         proc_root: str = DEFAULT_PROC_ROOT) -> ContainerRecord:
    """
    Build the listing row of one container.

    Args:
        runtime: Runtime the container belongs to, used for pod lookups.
        container: Container to read.
        options: Listing options; sync, size, namespace and pod add work.
        proc_root: Mount point of procfs for namespace inspection.

    Returns:
        The container's ContainerRecord.

    Raises:
        SnapshotError: A required field could not be read. The original error
            is chained as the cause.
    """
    size: Optional[ContainerSize] = None
    namespaces: Optional[ContainerNamespaces] = None
    pod_name = ""

    with container.batch() as c:
        cid = c.id
        if options.sync:
            _read(c.sync, cid, "unable to update container state from OCI runtime")

        config = _read(c.config, cid, "unable to obtain container config")
        state = _read(c.state, cid, "unable to obtain container state")
        exit_code, exited = _read(c.exit_code, cid, "unable to obtain container exit code")
        started_at = _unix_time(c.started_time, cid, "started time")
        exited_at = _unix_time(c.finished_time, cid, "exited time")

        pid = _read(c.pid, cid, "unable to obtain container pid")
        ports = _read(c.port_mappings, cid, "unable to obtain port mappings")
        networks = _read(c.networks, cid, "unable to obtain networks")
        health = _read(c.health_check_status, cid, "unable to obtain health check status")
        restarts = _read(c.restart_count, cid, "unable to obtain restart count")
        auto_remove = _read(c.auto_remove, cid, "unable to obtain auto-remove setting")
        mounts = _read(c.user_volumes, cid, "unable to obtain volumes")

        if options.size:
            size = ContainerSize(
                root_fs_size=_size(c.root_fs_size, cid, "root fs size"),
                rw_size=_size(c.rw_size, cid, "rw size"),
            )

        if options.namespace:
            namespaces = inspect_namespaces(pid, proc_root)

        if options.pod and config.pod:
            try:
                pod_name = runtime.get_pod_name(config.pod)
            except Exception as e:
                raise SnapshotError(
                    f"could not find container {config.id} pod (id {config.pod}) in state: {e}",
                    config.id,
                ) from e

    return ContainerRecord(
        id=config.id,
        names=[config.name],
        pod=config.pod,
        pod_name=pod_name,
        image=config.rootfs_image_name,
        image_id=config.rootfs_image_id,
        created=config.created_time,
        started_at=started_at,
        exited=exited,
        exit_code=exit_code,
        exited_at=exited_at,
        state=state,
        restarts=restarts,
        pid=pid,
        ports=list(ports),
        networks=list(networks),
        status=health,
        mounts=list(mounts),
        exposed_ports={port: list(protos) for port, protos in config.exposed_ports.items()},
        auto_remove=auto_remove,
        is_infra=config.is_infra,
        labels=dict(config.labels),
        command=list(config.command),
        cid_file=config.cid_file,
        namespaces=namespaces,
        size=size,
    )
