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
In-memory container runtime.
Holds containers, pods, storage-only containers and images in process memory,
with one lock per container. Used by the CLI (loaded from a state file) and by tests.
"""

import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Tuple

import psutil
from pydantic import BaseModel, Field

from ..MODELS.container_config import ContainerConfig
from ..MODELS.container_record import ContainerStatus, PortMapping
from .errors import (
    ContainerUnknownError,
    ImageUnknownError,
    NoSuchContainerError,
    NoSuchPodError,
    StorageLoadError,
)
from .interfaces import ContainerFilter


class TrackedContainer(BaseModel):
    """
    Mutable state of a container tracked by the runtime.
    """
    config: ContainerConfig
    state: ContainerStatus = ContainerStatus.CREATED
    exit_code: int = 0
    exited: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    pid: int = 0
    ports: List[PortMapping] = []
    networks: List[str] = []
    health: str = ""
    restart_count: int = 0
    root_fs_size: int = 0
    rw_size: int = 0
    auto_remove: bool = False
    volumes: List[str] = []


class StoredContainer(BaseModel):
    """
    A container present only in the storage layer.
    """
    id: str
    names: List[str] = []
    created: datetime
    image_id: str = ""
    buildah: bool = False
    # Metadata that cannot be loaded, as left behind by an interrupted tool
    broken: bool = False


class StoredImage(BaseModel):
    id: str
    names_history: List[str] = Field(default_factory=list)


class MemoryImage:
    """Image catalog entry."""

    def __init__(self, image: StoredImage):
        self._image = image

    def names_history(self) -> List[str]:
        return list(self._image.names_history)


class MemoryContainer:
    """
    Handle to a container of a MemoryRuntime.
    """

    def __init__(self, data: TrackedContainer):
        self._data = data
        self._lock = threading.RLock()
        self._removed = False

    @property
    def id(self) -> str:
        return self._data.config.id

    @contextmanager
    def batch(self) -> Iterator["MemoryContainer"]:
        """
        Hold the container lock for the duration of the block.
        """
        with self._lock:
            self._check()
            yield self

    def _check(self) -> None:
        if self._removed:
            raise NoSuchContainerError(f"no container with ID {self.id} found in database")

    def _mark_removed(self) -> None:
        with self._lock:
            self._removed = True

    def created_time(self) -> datetime:
        return self._data.config.created_time

    def config(self) -> ContainerConfig:
        return self._data.config

    def sync(self) -> None:
        """
        Reconcile the recorded state with the host process table.
        A running container whose process is gone is marked exited.
        """
        with self._lock:
            self._check()
            data = self._data
            if data.state != ContainerStatus.RUNNING:
                return
            if data.pid > 0 and psutil.pid_exists(data.pid):
                return
            data.state = ContainerStatus.EXITED
            data.exited = True
            data.pid = 0
            data.finished_at = datetime.now(timezone.utc)

    def state(self) -> str:
        self._check()
        return self._data.state.value

    def exit_code(self) -> Tuple[int, bool]:
        self._check()
        return self._data.exit_code, self._data.exited

    def started_time(self) -> Optional[datetime]:
        self._check()
        return self._data.started_at

    def finished_time(self) -> Optional[datetime]:
        self._check()
        return self._data.finished_at

    def pid(self) -> int:
        self._check()
        return self._data.pid

    def port_mappings(self) -> List[PortMapping]:
        self._check()
        return list(self._data.ports)

    def networks(self) -> List[str]:
        self._check()
        return list(self._data.networks)

    def health_check_status(self) -> str:
        self._check()
        return self._data.health

    def restart_count(self) -> int:
        self._check()
        return self._data.restart_count

    def root_fs_size(self) -> int:
        self._check()
        return self._data.root_fs_size

    def rw_size(self) -> int:
        self._check()
        return self._data.rw_size

    def auto_remove(self) -> bool:
        return self._data.auto_remove

    def user_volumes(self) -> List[str]:
        return list(self._data.volumes)


class MemoryRuntime:
    """
    A runtime whose whole state lives in memory.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._containers: Dict[str, MemoryContainer] = {}
        self._pods: Dict[str, str] = {}
        self._storage: Dict[str, StoredContainer] = {}
        self._images: Dict[str, StoredImage] = {}

    def add_container(self, data: TrackedContainer) -> MemoryContainer:
        return self.add_handle(MemoryContainer(data))

    def add_handle(self, handle: MemoryContainer) -> MemoryContainer:
        with self._lock:
            self._containers[handle.id] = handle
        return handle

    def remove_container(self, container_id: str) -> None:
        with self._lock:
            handle = self._containers.pop(container_id, None)
        if handle is None:
            raise NoSuchContainerError(f"no container with ID {container_id} found in database")
        handle._mark_removed()

    def add_pod(self, pod_id: str, name: str) -> None:
        with self._lock:
            self._pods[pod_id] = name

    def remove_pod(self, pod_id: str) -> None:
        with self._lock:
            if self._pods.pop(pod_id, None) is None:
                raise NoSuchPodError(f"no pod with ID {pod_id} found in database")

    def add_storage_container(self, data: StoredContainer) -> None:
        with self._lock:
            self._storage[data.id] = data

    def remove_storage_container(self, container_id: str) -> None:
        with self._lock:
            self._storage.pop(container_id, None)

    def add_image(self, image: StoredImage) -> None:
        with self._lock:
            self._images[image.id] = image

    def get_containers(self, load_state: bool, *filters: ContainerFilter) -> List[MemoryContainer]:
        """
        Return the containers every filter accepts, in creation order.

        Container state always lives in memory, so load_state has no effect.
        """
        with self._lock:
            handles = list(self._containers.values())

        matched = []
        for handle in handles:
            try:
                with handle.batch():
                    include = all(f(handle) for f in filters)
            except NoSuchContainerError:
                continue
            if include:
                matched.append(handle)
        return matched

    def get_pod_name(self, pod_id: str) -> str:
        with self._lock:
            name = self._pods.get(pod_id)
        if name is None:
            raise NoSuchPodError(f"no pod with ID {pod_id} found in database")
        return name

    def storage_containers(self) -> List[StoredContainer]:
        # Runtime-tracked containers also live in storage but are listed separately
        with self._lock:
            return [c for c in self._storage.values() if c.id not in self._containers]

    def is_buildah_container(self, container_id: str) -> bool:
        with self._lock:
            data = self._storage.get(container_id)
        if data is None:
            raise ContainerUnknownError(f"container {container_id} not known")
        if data.broken:
            raise StorageLoadError(f"loading metadata of container {container_id}")
        return data.buildah

    def lookup_image(self, image_id: str) -> MemoryImage:
        with self._lock:
            image = self._images.get(image_id)
        if image is None:
            raise ImageUnknownError(f"{image_id}: image not known")
        return MemoryImage(image)
