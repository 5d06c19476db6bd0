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
Container listing: the data behind `ps`.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

from ..FILTERS.filter_factory import DefaultFilterFactory, running_only
from ..ISOLATION.namespace_inspector import DEFAULT_PROC_ROOT
from ..MODELS.container_record import ContainerRecord
from ..MODELS.list_options import ContainerListOptions
from ..RUNTIME.errors import CtrpsError, FilterError, is_vanished
from ..RUNTIME.interfaces import (
    ContainerFilter,
    ContainerHandle,
    ExternalContainerFilter,
    FilterFactory,
    Runtime,
)
from .external import get_external_container_lists
from .snapshot import list_container_batch
from .sorting import keep_most_recent, merge_records, sort_containers_newest_first

logger = logging.getLogger(__name__)


def _reject_all(container: ContainerHandle) -> bool:
    return False


class ContainerLister:
    """
    Produces filtered, ordered and bounded container listings.

    The lister keeps no state between calls; every call reads the runtime
    afresh.
    """

    def __init__(self,
                 runtime: Runtime,
                 filter_factory: Optional[FilterFactory] = None,
                 proc_root: str = DEFAULT_PROC_ROOT,
                 workers: int = 1):
        """
        Initializes the lister.

        :param runtime: Runtime to list containers from.
        :param filter_factory: Builds predicates from filter input.
        :param proc_root: Mount point of procfs, for namespace inspection.
        :param workers: Containers snapshotted concurrently. 1 reads them one by one.
        """
        self.runtime = runtime
        self.filter_factory = filter_factory or DefaultFilterFactory()
        self.proc_root = proc_root
        self.workers = max(1, workers)

    def resolve_filters(self, options: ContainerListOptions) -> Tuple[List[ContainerFilter], List[ExternalContainerFilter]]:
        """
        Builds the runtime and storage predicates for a listing.

        Unless all containers are wanted, a running-only predicate is added.
        Asking for the last N containers, or filtering by status, implies
        all containers.

        :param options: Listing options.
        :return: Runtime predicates and storage predicates.
        :raises FilterError: A filter could not be built.
        """
        filter_funcs: List[ContainerFilter] = []
        external_funcs: List[ExternalContainerFilter] = []
        include_all = options.all or options.last > 0

        for key, values in options.filters.items():
            try:
                filter_funcs.append(self.filter_factory.container_filter(key, values, self.runtime))
            except FilterError:
                if not options.external:
                    raise
                # Applies to storage containers only, so no runtime container matches
                logger.debug("Filter %s=%s only applies to storage containers", key, values)
                filter_funcs.append(_reject_all)

            if options.external:
                external_funcs.append(self.filter_factory.external_container_filter(key, values, self.runtime))

        # Like docker, a status filter means all containers are considered
        if options.filters.get("status"):
            include_all = True
        if not include_all:
            filter_funcs.append(running_only(self.filter_factory, self.runtime))

        return filter_funcs, external_funcs

    def list(self, options: ContainerListOptions) -> List[ContainerRecord]:
        """
        Lists containers.

        :param options: What to list and what to read per container.
        :return: Container records, oldest first, at most `options.last` if set.
        :raises CtrpsError: A container or the storage layer could not be read.
        """
        filter_funcs, external_funcs = self.resolve_filters(options)

        # States may be slightly outdated, which is fine for a listing: any
        # state is outdated once the container lock is released.
        containers = self.runtime.get_containers(True, *filter_funcs)

        if options.last > 0:
            # Trim before doing the expensive per-container reads
            containers = sort_containers_newest_first(containers)[:options.last]

        records = self._snapshot_all(containers, options)

        external: List[ContainerRecord] = []
        if options.external:
            external = get_external_container_lists(self.runtime, *external_funcs)

        merged = merge_records(records, external)
        if options.last > 0:
            merged = keep_most_recent(merged, options.last)

        logger.debug("Listed %d containers (%d from storage)", len(merged), len(external))
        return merged

    def _snapshot_all(self, containers: Sequence[ContainerHandle],
                      options: ContainerListOptions) -> List[ContainerRecord]:
        if self.workers > 1 and len(containers) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = [executor.submit(self._snapshot, c, options) for c in containers]
                results = [f.result() for f in futures]
        else:
            results = [self._snapshot(c, options) for c in containers]
        return [r for r in results if r is not None]

    def _snapshot(self, container: ContainerHandle, options: ContainerListOptions) -> Optional[ContainerRecord]:
        try:
            return list_container_batch(self.runtime, container, options, self.proc_root)
        except CtrpsError as e:
            # The container or its pod went away after it was enumerated
            if is_vanished(e):
                logger.debug("Skipping container %s: %s", container.id, e)
                return None
            raise


def get_container_lists(runtime: Runtime,
                        options: ContainerListOptions,
                        filter_factory: Optional[FilterFactory] = None) -> List[ContainerRecord]:
    """
    Lists containers of a runtime with default settings.
    """
    return ContainerLister(runtime, filter_factory=filter_factory).list(options)
