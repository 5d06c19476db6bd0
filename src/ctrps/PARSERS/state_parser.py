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
Parser for runtime state files (YAML) into an in-memory runtime.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..MODELS.container_config import ContainerConfig
from ..MODELS.container_record import PortMapping
from ..RUNTIME.errors import StateFileError
from ..RUNTIME.memory_runtime import MemoryRuntime, StoredContainer, StoredImage, TrackedContainer


class StateParser:
    """
    Parser for state files describing containers, pods, storage containers and images.
    """

    def parse(self, state_path: str) -> MemoryRuntime:
        """
        Parses a state file from a path.

        :param state_path: Path to the state file.
        :return: Runtime holding the described state.
        """
        with open(state_path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> MemoryRuntime:
        """
        Parses a state file from a string.

        :param content: YAML content of the state file.
        :return: Runtime holding the described state.
        :raises StateFileError: The content is not valid YAML or has invalid entries.
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise StateFileError(f"invalid state file: {e}") from e
        if not data:
            data = {}
        if not isinstance(data, dict):
            raise StateFileError("state file must be a mapping")

        runtime = MemoryRuntime()
        try:
            for pod in data.get('pods') or []:
                runtime.add_pod(str(pod['id']), str(pod.get('name', pod['id'])))
            for image in data.get('images') or []:
                runtime.add_image(StoredImage(id=str(image['id']), names_history=self._to_list(image.get('names'))))
            for spec in data.get('containers') or []:
                runtime.add_container(self._parse_container(spec))
            for spec in data.get('storage') or []:
                runtime.add_storage_container(self._parse_storage_container(spec))
        except (KeyError, TypeError) as e:
            raise StateFileError(f"invalid state file entry: missing or malformed {e}") from e
        except (ValidationError, ValueError) as e:
            raise StateFileError(f"invalid state file entry: {e}") from e
        return runtime

    def _parse_container(self, spec: Dict[str, Any]) -> TrackedContainer:
        """
        Parses a single runtime container.

        :param spec: The container entry.
        :return: A TrackedContainer instance.
        """
        size = spec.get('size') or {}
        config = ContainerConfig(
            id=str(spec['id']),
            name=str(spec.get('name', spec['id'])),
            created_time=self._to_datetime(spec['created']),
            pod=str(spec.get('pod') or ''),
            rootfs_image_name=spec.get('image', ''),
            rootfs_image_id=spec.get('image_id', ''),
            command=self._to_list(spec.get('command')),
            labels=spec.get('labels') or {},
            annotations=spec.get('annotations') or {},
            exposed_ports={int(k): self._to_list(v) for k, v in (spec.get('exposed_ports') or {}).items()},
            is_infra=bool(spec.get('infra', False)),
        )
        return TrackedContainer(
            config=config,
            state=spec.get('state', 'created'),
            exit_code=int(spec.get('exit_code', 0)),
            exited=bool(spec.get('exited', False)),
            started_at=self._to_datetime(spec.get('started')),
            finished_at=self._to_datetime(spec.get('finished')),
            pid=int(spec.get('pid', 0)),
            ports=[self._parse_port(p) for p in spec.get('ports') or []],
            networks=self._to_list(spec.get('networks')),
            health=spec.get('health', ''),
            restart_count=int(spec.get('restarts', 0)),
            root_fs_size=int(size.get('root_fs', 0)),
            rw_size=int(size.get('rw', 0)),
            auto_remove=bool(spec.get('auto_remove', False)),
            volumes=self._to_list(spec.get('volumes')),
        )

    def _parse_storage_container(self, spec: Dict[str, Any]) -> StoredContainer:
        return StoredContainer(
            id=str(spec['id']),
            names=self._to_list(spec.get('names')),
            created=self._to_datetime(spec['created']),
            image_id=spec.get('image_id', ''),
            buildah=bool(spec.get('buildah', False)),
            broken=bool(spec.get('broken', False)),
        )

    def _parse_port(self, value: Any) -> PortMapping:
        """
        Parses a port mapping, either a dict or a "[ip:]host:container[/proto]" string.

        :param value: The port entry.
        :return: A PortMapping instance.
        """
        if isinstance(value, dict):
            return PortMapping(**value)

        text = str(value)
        protocol = "tcp"
        if '/' in text:
            text, protocol = text.split('/', 1)
        parts = text.rsplit(':', 2)
        if len(parts) == 3:
            return PortMapping(host_ip=parts[0], host_port=int(parts[1]),
                               container_port=int(parts[2]), protocol=protocol)
        if len(parts) == 2:
            return PortMapping(host_port=int(parts[0]), container_port=int(parts[1]), protocol=protocol)
        return PortMapping(container_port=int(parts[0]), protocol=protocol)

    def _to_datetime(self, value: Any) -> Optional[datetime]:
        """
        Converts a YAML timestamp, ISO string or unix time to an aware datetime.
        Naive values are taken as UTC.
        """
        if value is None or value == '':
            return None
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        if isinstance(value, str):
            value = datetime.fromisoformat(value.replace('Z', '+00:00'))
        if not isinstance(value, datetime):
            raise StateFileError(f"invalid timestamp {value!r}")
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def _to_list(self, val: Any) -> List[str]:
        """
        Helper to ensure a value is a list of strings.

        :param val: The value to convert.
        :return: A list of strings.
        """
        if val is None:
            return []
        if isinstance(val, str):
            return [val]
        return [str(v) for v in val]
