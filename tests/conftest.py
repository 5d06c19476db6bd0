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
Shared fixtures: a small in-memory runtime.
"""
from datetime import datetime, timedelta, timezone

import pytest

from ctrps.MODELS.container_config import ContainerConfig
from ctrps.MODELS.container_record import PortMapping
from ctrps.RUNTIME.memory_runtime import MemoryRuntime, StoredContainer, StoredImage, TrackedContainer

BASE_TIME = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

# A pid above the kernel's maximum, never alive
DEAD_PID = 2 ** 22 + 1


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def make_container(cid, name, minutes, state="running", **kwargs) -> TrackedContainer:
    config_keys = ("pod", "rootfs_image_name", "rootfs_image_id", "command", "labels",
                   "annotations", "exposed_ports", "is_infra")
    config_kwargs = {k: kwargs.pop(k) for k in config_keys if k in kwargs}
    config = ContainerConfig(id=cid, name=name, created_time=at(minutes), **config_kwargs)
    return TrackedContainer(config=config, state=state, **kwargs)


@pytest.fixture
def runtime():
    """
    Four runtime containers, two storage containers and one pod:

    alpha   running  +0m
    beta    exited   +5m   (exit code 1)
    gamma   running  +10m  (pod web-pod)
    delta   paused   +15m
    build1  storage  +2m   (buildah, no image)
    ext1    storage  +20m  (image img1)
    """
    rt = MemoryRuntime()
    rt.add_pod("pod1", "web-pod")
    rt.add_image(StoredImage(id="img1", names_history=["docker.io/library/alpine:latest", "alpine:3.18"]))

    rt.add_container(make_container(
        "aaaa1111", "alpha", 0, pid=DEAD_PID,
        rootfs_image_name="docker.io/library/nginx:latest", rootfs_image_id="nginx1",
        command=["nginx", "-g", "daemon off;"],
        labels={"tier": "front"},
        ports=[PortMapping(host_port=8080, container_port=80)],
        networks=["podman"],
        started_at=at(1),
    ))
    rt.add_container(make_container(
        "bbbb2222", "beta", 5, state="exited", exit_code=1, exited=True,
        rootfs_image_name="docker.io/library/alpine:latest", rootfs_image_id="img1",
        command=["false"],
        started_at=at(6), finished_at=at(7),
    ))
    rt.add_container(make_container(
        "cccc3333", "gamma", 10, pid=DEAD_PID, pod="pod1",
        rootfs_image_name="docker.io/library/redis:7", rootfs_image_id="redis7",
        labels={"tier": "back"},
        health="healthy", restart_count=2,
        root_fs_size=1000, rw_size=10,
    ))
    rt.add_container(make_container("dddd4444", "delta", 15, state="paused"))

    rt.add_storage_container(StoredContainer(id="eeee5555", names=["build1"], created=at(2), buildah=True))
    rt.add_storage_container(StoredContainer(id="ffff6666", names=["ext1"], created=at(20), image_id="img1"))
    return rt
