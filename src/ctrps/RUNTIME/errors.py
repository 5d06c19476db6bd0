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
Errors raised by the runtime collaborators and by the listing engine.
"""
from typing import Optional


class CtrpsError(Exception):
    """Base class for all ctrps errors."""


class NoSuchContainerError(CtrpsError):
    """The container is no longer tracked by the runtime."""


class NoSuchPodError(CtrpsError):
    """The pod is no longer tracked by the runtime."""


class ContainerUnknownError(CtrpsError):
    """The storage layer has no container with the given id."""


class StorageLoadError(CtrpsError):
    """The storage layer could not load a container's metadata."""


class ImageUnknownError(CtrpsError):
    """The image catalog has no image with the given id."""


class FilterError(CtrpsError, ValueError):
    """A filter key or value is invalid."""


class StateFileError(CtrpsError):
    """A runtime state file could not be parsed."""


class NamespaceReadError(CtrpsError, OSError):
    """A namespace link of a process could not be read."""


class SnapshotError(CtrpsError):
    """
    Reading a container's state failed.

    The underlying error is kept as ``__cause__`` so callers can still tell a
    vanished container apart from a real failure.
    """

    def __init__(self, message: str, container_id: Optional[str] = None):
        super().__init__(message)
        self.container_id = container_id


VANISHED_ERRORS = (NoSuchContainerError, NoSuchPodError)


def is_vanished(err: BaseException) -> bool:
    """
    Check whether an error, or any error it was raised from, means the
    container or its pod disappeared.
    """
    current: Optional[BaseException] = err
    while current is not None:
        if isinstance(current, VANISHED_ERRORS):
            return True
        current = current.__cause__
    return False
