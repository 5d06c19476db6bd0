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
Construction of filter predicates from `--filter key=value` input.

Values given for one key are alternatives (any may match), except for
`label`, where every value must match. Predicates for different keys are
combined by the caller.
"""
import re
from typing import Dict, Iterable, List, Mapping

from ..MODELS.container_record import ContainerStatus
from ..RUNTIME.errors import FilterError, NoSuchPodError
from ..RUNTIME.interfaces import ContainerFilter, ContainerHandle, ExternalContainerFilter, FilterFactory, Runtime

_STATUS_VALUES = {s.value for s in ContainerStatus}


def parse_filters(raw: Iterable[str]) -> Dict[str, List[str]]:
    """
    Parses `key=value` strings into a mapping of key to values.

    :param raw: Filter strings as given on the command line.
    :return: Values per filter key, in input order.
    :raises FilterError: A filter has no `=` or an empty key.
    """
    filters: Dict[str, List[str]] = {}
    for item in raw:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise FilterError(f"invalid filter {item!r}, expected key=value")
        filters.setdefault(key, []).append(value)
    return filters


def _match_labels(labels: Mapping[str, str], wanted: List[str]) -> bool:
    for item in wanted:
        key, sep, value = item.partition("=")
        if key not in labels:
            return False
        if sep and labels[key] != value:
            return False
    return True


def _compile_names(values: List[str]) -> List["re.Pattern[str]"]:
    try:
        return [re.compile(v) for v in values]
    except re.error as e:
        raise FilterError(f"invalid name filter: {e}") from e


def _match_ancestor(image: str, image_id: str, values: List[str]) -> bool:
    for v in values:
        if image_id and image_id.startswith(v):
            return True
        if image and (image == v or image.startswith(v + ":") or image.endswith("/" + v)
                      or "/" + v + ":" in image):
            return True
    return False


class DefaultFilterFactory:
    """
    Builds predicates for both container families.
    """

    def container_filter(self, key: str, values: List[str], runtime: Runtime) -> ContainerFilter:
        """
        Builds a predicate over runtime-tracked containers.

        :param key: Filter key, e.g. `status`.
        :param values: Raw values given for the key.
        :param runtime: Runtime the containers belong to.
        :return: The predicate.
        :raises FilterError: Unknown key or invalid value.
        """
        if key == "id":
            return lambda c: any(c.id.startswith(v) for v in values)

        if key == "name":
            patterns = _compile_names(values)
            return lambda c: any(p.search(c.config().name) for p in patterns)

        if key == "label":
            return lambda c: _match_labels(c.config().labels, values)

        if key == "status":
            for v in values:
                if v not in _STATUS_VALUES:
                    raise FilterError(f"{v!r} is not a valid status")
            return lambda c: c.state() in values

        if key == "exited":
            try:
                codes = {int(v) for v in values}
            except ValueError as e:
                raise FilterError(f"exited code out of range {values!r}") from e

            def exited(c: ContainerHandle) -> bool:
                code, has_exited = c.exit_code()
                return has_exited and code in codes
            return exited

        if key == "ancestor":
            return lambda c: _match_ancestor(c.config().rootfs_image_name, c.config().rootfs_image_id, values)

        if key == "pod":
            def in_pod(c: ContainerHandle) -> bool:
                pod_id = c.config().pod
                if not pod_id:
                    return False
                if any(pod_id.startswith(v) for v in values):
                    return True
                try:
                    return runtime.get_pod_name(pod_id) in values
                except NoSuchPodError:
                    return False
            return in_pod

        if key == "network":
            return lambda c: any(n in values for n in c.networks())

        if key == "health":
            return lambda c: c.health_check_status() in values

        raise FilterError(f"{key} is an invalid filter")

    def external_container_filter(self, key: str, values: List[str], runtime: Runtime) -> ExternalContainerFilter:
        """
        Builds a predicate over storage-only container records.
        """
        if key == "id":
            return lambda r: any(r.id.startswith(v) for v in values)

        if key == "name":
            patterns = _compile_names(values)
            return lambda r: any(p.search(n) for p in patterns for n in r.names)

        if key == "label":
            return lambda r: _match_labels(r.labels, values)

        if key == "status":
            return lambda r: r.state in values

        if key == "ancestor":
            return lambda r: _match_ancestor(r.image, r.image_id, values)

        raise FilterError(f"{key} is an invalid external filter")


def running_only(factory: FilterFactory, runtime: Runtime) -> ContainerFilter:
    """The implicit filter applied when stopped containers are not wanted."""
    return factory.container_filter("status", [ContainerStatus.RUNNING.value], runtime)

