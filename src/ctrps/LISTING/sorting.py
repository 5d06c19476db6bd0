"""
Ordering of listing results by creation time.

The two directions are kept as separate functions: handles are sorted
newest first so a prefix keeps the most recent ones, records are
presented oldest first.
"""
from typing import List, Sequence

from ..MODELS.container_record import ContainerRecord
from ..RUNTIME.interfaces import ContainerHandle


def sort_containers_newest_first(containers: Sequence[ContainerHandle]) -> List[ContainerHandle]:
    return sorted(containers, key=lambda c: c.created_time(), reverse=True)


def sort_records_oldest_first(records: Sequence[ContainerRecord]) -> List[ContainerRecord]:
    return sorted(records, key=lambda r: r.created)


def merge_records(runtime_records: Sequence[ContainerRecord],
                  external_records: Sequence[ContainerRecord]) -> List[ContainerRecord]:
    """
    Combine runtime and storage-only rows into one list, oldest first.
    """
    return sort_records_oldest_first(list(runtime_records) + list(external_records))


def keep_most_recent(records: List[ContainerRecord], last: int) -> List[ContainerRecord]:
    """
    Trim an oldest-first list to its `last` most recent entries.
    """
    if last <= 0 or len(records) <= last:
        return records
    return records[-last:]
