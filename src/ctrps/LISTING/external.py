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
Listing of containers that exist only in the storage layer,
e.g. working containers of an image build.
"""

import logging
from typing import List

from ..FILTERS.pipeline import apply_external_container_filters
from ..MODELS.container_record import STORAGE_STATE, ContainerRecord
from ..RUNTIME.errors import ContainerUnknownError, ImageUnknownError, SnapshotError, StorageLoadError
from ..RUNTIME.interfaces import ExternalContainerFilter, Runtime, StorageContainer

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "unknown"
BUILDAH_COMMAND = "buildah"
STORAGE_COMMAND = "storage"
SCRATCH_IMAGE = "scratch"


def list_storage_container(runtime: Runtime, container: StorageContainer) -> ContainerRecord:
    """
    Build the listing row of a storage-only container.

    Args:
        runtime: Runtime owning the storage layer and image catalog.
        container: The storage container.

    Returns:
        A ContainerRecord in state "storage".

    Raises:
        ContainerUnknownError: The container was removed meanwhile.
        StorageLoadError: The container's metadata could not be loaded.
        ImageUnknownError: The container's image is gone from the catalog.
        SnapshotError: Any other failure, naming the container.
    """
    name = container.names[0] if container.names else UNKNOWN_NAME

    try:
        buildah = runtime.is_buildah_container(container.id)
    except (ContainerUnknownError, StorageLoadError):
        raise
    except Exception as e:
        raise SnapshotError(f"determining buildah container for container {container.id}: {e}",
                            container.id) from e

    image_name = ""
    if container.image_id:
        try:
            image = runtime.lookup_image(container.image_id)
        except ImageUnknownError:
            raise
        except Exception as e:
            raise SnapshotError(f"looking up image {container.image_id} for container {container.id}: {e}",
                                container.id) from e
        history = image.names_history()
        if history:
            image_name = history[0]
    elif buildah:
        image_name = SCRATCH_IMAGE

    return ContainerRecord(
        id=container.id,
        names=[name],
        created=container.created,
        image=image_name,
        image_id=container.image_id,
        state=STORAGE_STATE,
        command=[BUILDAH_COMMAND if buildah else STORAGE_COMMAND],
    )


def get_external_container_lists(runtime: Runtime, *filters: ExternalContainerFilter) -> List[ContainerRecord]:
    """
    List the storage-only containers accepted by all filters.

    Containers removed or left unreadable while listing are skipped.
    """
    records = []
    for container in runtime.storage_containers():
        try:
            record = list_storage_container(runtime, container)
        except (StorageLoadError, ContainerUnknownError, ImageUnknownError) as e:
            logger.debug("Skipping storage container %s: %s", container.id, e)
            continue
        records.append(record)

    return apply_external_container_filters(records, *filters)
