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
Models describing a single row of a container listing.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

# State reported for containers that only exist in the storage layer.
STORAGE_STATE = "storage"


class ContainerStatus(str, Enum):
    """
    Lifecycle states of a runtime-tracked container.
    """
    UNKNOWN = "unknown"
    CONFIGURED = "configured"
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"
    PAUSED = "paused"
    EXITED = "exited"
    REMOVING = "removing"
    STOPPING = "stopping"


class PortMapping(BaseModel):
    """
    A published port: host side, container side and protocol.
    """
    model_config = ConfigDict(frozen=True)

    host_ip: str = ""
    host_port: int = 0
    container_port: int = 0
    protocol: str = "tcp"
    range: int = 1


class ContainerNamespaces(BaseModel):
    """
    Kernel namespace identifiers of a container's main process.
    Each field is empty when it could not be read.
    """
    model_config = ConfigDict(frozen=True)

    cgroup: str = ""
    ipc: str = ""
    mnt: str = ""
    net: str = ""
    pidns: str = ""
    user: str = ""
    uts: str = ""


class ContainerSize(BaseModel):
    """
    Disk usage of a container in bytes.
    """
    model_config = ConfigDict(frozen=True)

    root_fs_size: int = 0
    rw_size: int = 0


class ContainerRecord(BaseModel):
    """
    Read-only projection of a container, as returned by a listing.

    Records are built fresh for every listing call and never refer back to the
    live container they were read from. Freezing is shallow: fields cannot be
    reassigned, but the lists and dicts they hold are copies owned by the
    record, so changing them in place leaves the runtime untouched.
    """
    model_config = ConfigDict(frozen=True)

    # Identity
    id: str
    names: List[str] = []
    pod: str = ""
    pod_name: str = ""

    # Image
    image: str = ""
    image_id: str = ""

    # Lifecycle
    created: datetime
    started_at: int = 0
    exited: bool = False
    exit_code: int = 0
    exited_at: int = 0
    state: str = ContainerStatus.UNKNOWN.value
    restarts: int = 0

    # Runtime facts
    pid: int = 0
    ports: List[PortMapping] = []
    networks: List[str] = []
    status: str = ""
    mounts: List[str] = []
    exposed_ports: Dict[int, List[str]] = {}
    auto_remove: bool = False
    is_infra: bool = False
    labels: Dict[str, str] = {}
    command: List[str] = []
    cid_file: str = ""

    # Optional snapshots
    namespaces: Optional[ContainerNamespaces] = None
    size: Optional[ContainerSize] = None

    @property
    def is_external(self) -> bool:
        """True when the record came from the storage layer."""
        return self.state == STORAGE_STATE
