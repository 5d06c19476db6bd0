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
Linux namespace inspection for running container processes.
Reads the /proc/<pid>/ns/* links, which point at targets like "net:[4026531840]".
"""

import logging
import os
import re
from enum import Enum
from typing import Dict

from ..MODELS.container_record import ContainerNamespaces
from ..RUNTIME.errors import NamespaceReadError

logger = logging.getLogger(__name__)

DEFAULT_PROC_ROOT = "/proc"

_GROUP_RE = re.compile(r"\[([^\[\]]*)\]")
# Everything up to the last "[" and everything from the first "]" on
_BRACKETS_RE = re.compile(r".*\[|\].*")


class NamespaceKind(str, Enum):
    """Namespace link names under /proc/<pid>/ns."""

    CGROUP = "cgroup"
    IPC = "ipc"
    MOUNT = "mnt"
    NET = "net"
    PID = "pid"
    USER = "user"
    UTS = "uts"


# ContainerNamespaces field for each namespace kind
_FIELDS: Dict[NamespaceKind, str] = {
    NamespaceKind.CGROUP: "cgroup",
    NamespaceKind.IPC: "ipc",
    NamespaceKind.MOUNT: "mnt",
    NamespaceKind.NET: "net",
    NamespaceKind.PID: "pidns",
    NamespaceKind.USER: "user",
    NamespaceKind.UTS: "uts",
}


def get_str_from_square_brackets(value: str) -> str:
    """
    Get the text inside [] from a namespace link target.

    "net:[4026531840]" gives "4026531840" and "mnt:[123],[456]" gives "123,456".
    Text without any bracket group is returned with the brackets stripped.
    """
    groups = _GROUP_RE.findall(value)
    if groups:
        return ",".join(groups)
    return ",".join(_BRACKETS_RE.sub("", value).split(","))


def get_namespace_info(path: str) -> str:
    """
    Resolve a namespace link to its identifier.

    Args:
        path: Path of the link, e.g. /proc/1234/ns/net

    Returns:
        The namespace identifier.

    Raises:
        NamespaceReadError: The link could not be read (process gone,
            permission denied, platform without /proc).
    """
    try:
        target = os.readlink(path)
    except OSError as e:
        raise NamespaceReadError(f"getting info from {path!r}: {e}") from e
    return get_str_from_square_brackets(target)


def namespace_path(pid: int, kind: NamespaceKind, proc_root: str = DEFAULT_PROC_ROOT) -> str:
    return os.path.join(proc_root, str(pid), "ns", kind.value)


def inspect_namespaces(pid: int, proc_root: str = DEFAULT_PROC_ROOT) -> ContainerNamespaces:
    """
    Read all namespaces of a process.

    A namespace that cannot be read is reported as an empty string, so a
    process that already exited simply yields empty fields.

    Args:
        pid: Process id of the container's main process.
        proc_root: Mount point of procfs.

    Returns:
        ContainerNamespaces for the process.
    """
    values: Dict[str, str] = {}
    for kind, field_name in _FIELDS.items():
        try:
            values[field_name] = get_namespace_info(namespace_path(pid, kind, proc_root))
        except NamespaceReadError as e:
            logger.debug("Namespace %s of pid %d unavailable: %s", kind.value, pid, e)
            values[field_name] = ""
    return ContainerNamespaces(**values)
