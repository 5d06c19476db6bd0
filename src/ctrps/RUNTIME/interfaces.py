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
Contracts of the collaborators a listing reads from.

The listing engine only ever reads through these interfaces; it never
mutates the runtime, the storage layer or the image catalog.
"""
from datetime import datetime
from typing import Callable, ContextManager, List, Optional, Protocol, Tuple

from ..MODELS.container_config import ContainerConfig
from ..MODELS.container_record import ContainerRecord, PortMapping


class ContainerHandle(Protocol):
    """
    A container tracked by the runtime.

    Accessors other than ``id``, ``created_time`` and ``config`` read mutable
    state and should be called inside ``batch()``.
    """

    @property
    def id(self) -> str: ...

    def created_time(self) -> datetime: ...

    def batch(self) -> ContextManager["ContainerHandle"]:
        """Hold the container's lock for the duration of the ``with`` block."""
        ...

    def sync(self) -> None: ...

    def config(self) -> ContainerConfig: ...

    def state(self) -> str: ...

    def exit_code(self) -> Tuple[int, bool]: ...

    def started_time(self) -> Optional[datetime]: ...

    def finished_time(self) -> Optional[datetime]: ...

    def pid(self) -> int: ...

    def port_mappings(self) -> List[PortMapping]: ...

    def networks(self) -> List[str]: ...

    def health_check_status(self) -> str: ...

    def restart_count(self) -> int: ...

    def root_fs_size(self) -> int: ...

    def rw_size(self) -> int: ...

    def auto_remove(self) -> bool: ...

    def user_volumes(self) -> List[str]: ...


class StorageContainer(Protocol):
    """A container known only to the storage layer."""

    id: str
    names: List[str]
    created: datetime
    image_id: str


class ImageHandle(Protocol):
    def names_history(self) -> List[str]: ...


ContainerFilter = Callable[[ContainerHandle], bool]
ExternalContainerFilter = Callable[[ContainerRecord], bool]


class Runtime(Protocol):
    """
    The container runtime plus the storage layer and image catalog behind it.
    """

    def get_containers(self, load_state: bool, *filters: ContainerFilter) -> List[ContainerHandle]:
        """Return the containers for which every filter returns True."""
        ...

    def get_pod_name(self, pod_id: str) -> str: ...

    def storage_containers(self) -> List[StorageContainer]: ...

    def is_buildah_container(self, container_id: str) -> bool: ...

    def lookup_image(self, image_id: str) -> ImageHandle: ...


class FilterFactory(Protocol):
    """
    Builds predicates from a filter key and its raw values.
    """

    def container_filter(self, key: str, values: List[str], runtime: Runtime) -> ContainerFilter: ...

    def external_container_filter(self, key: str, values: List[str], runtime: Runtime) -> ExternalContainerFilter: ...
