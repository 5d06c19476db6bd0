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
Rendering of container records as a table, JSON, or a user template.
"""
import json
from typing import List, Sequence

from jinja2 import Template

from ..MODELS.container_record import ContainerRecord

TABLE_TEMPLATE = (
    "{{ '%-12s' | format(id[:12]) }}  {{ '%-30s' | format(image) }}  "
    "{{ '%-20s' | format(command | join(' ')) }}  {{ '%-10s' | format(state) }}  "
    "{{ ports_text }}  {{ names | join(',') }}"
)

TABLE_HEADER = f"{'CONTAINER ID':12}  {'IMAGE':30}  {'COMMAND':20}  {'STATE':10}  PORTS  NAMES"


def _ports_text(record: ContainerRecord) -> str:
    parts = []
    for p in record.ports:
        host = f"{p.host_ip}:" if p.host_ip else ""
        parts.append(f"{host}{p.host_port}->{p.container_port}/{p.protocol}")
    return ", ".join(parts)


class RecordFormatter:
    """
    Formats container records for display.
    """

    def __init__(self, fmt: str = "table"):
        """
        Initializes the formatter.

        :param fmt: "table", "json", or a Jinja2 template rendered once per record,
                    e.g. "{{ id }} {{ state }}".
        """
        self.fmt = fmt
        self.template = None
        if fmt == "table":
            self.template = Template(TABLE_TEMPLATE)
        elif fmt != "json":
            self.template = Template(fmt)

    def render(self, records: Sequence[ContainerRecord]) -> List[str]:
        """
        Renders the records.

        :param records: Records to render.
        :return: Output lines.
        """
        if self.fmt == "json":
            return [json.dumps([r.model_dump(mode="json") for r in records], indent=2)]

        lines = [TABLE_HEADER] if self.fmt == "table" else []
        for record in records:
            lines.append(self.template.render(ports_text=_ports_text(record),
                                              **record.model_dump()).rstrip())
        return lines
