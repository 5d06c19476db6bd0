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
Composition of filter predicates.
"""
from typing import Callable, Iterable, List, Sequence, TypeVar

from ..MODELS.container_record import ContainerRecord

T = TypeVar("T")


def matches_all(item: T, predicates: Iterable[Callable[[T], bool]]) -> bool:
    """
    Check an item against every predicate, stopping at the first rejection.
    No predicates means the item matches.
    """
    for predicate in predicates:
        if not predicate(item):
            return False
    return True


def apply_external_container_filters(records: Sequence[ContainerRecord],
                                     *filters: Callable[[ContainerRecord], bool]) -> List[ContainerRecord]:
    """
    Keep the storage-only container records accepted by all filters.
    """
    return [record for record in records if matches_all(record, filters)]
