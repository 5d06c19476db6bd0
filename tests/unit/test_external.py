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
Unit tests for storage-only container listing.
"""
import pytest

from conftest import at
from ctrps.LISTING.external import get_external_container_lists, list_storage_container
from ctrps.RUNTIME.errors import ContainerUnknownError, ImageUnknownError, SnapshotError, StorageLoadError, is_vanished
from ctrps.RUNTIME.memory_runtime import MemoryRuntime, StoredContainer, StoredImage


class BrokenBuildahCheck(MemoryRuntime):
    def is_buildah_container(self, container_id):
        raise PermissionError("permission denied")


class CorruptedCatalog(MemoryRuntime):
    def lookup_image(self, image_id):
        raise RuntimeError("catalog corrupted")


class UnreadableStorage(MemoryRuntime):
    def storage_containers(self):
        raise StorageLoadError("reading containers.json: permission denied")


class TestListStorageContainer:
    """Tests for list_storage_container."""

    def test_buildah_scratch(self):
        rt = MemoryRuntime()
        ctr = StoredContainer(id="s1", names=["working"], created=at(0), buildah=True)
        rt.add_storage_container(ctr)
        record = list_storage_container(rt, ctr)
        assert record.image == "scratch"
        assert record.command == ["buildah"]
        assert record.state == "storage"
        assert record.is_external
        assert record.names == ["working"]

    def test_image_from_names_history(self):
        rt = MemoryRuntime()
        rt.add_image(StoredImage(id="img", names_history=["quay.io/x/y:1", "y:old"]))
        ctr = StoredContainer(id="s2", names=["a", "b"], created=at(0), image_id="img")
        rt.add_storage_container(ctr)
        record = list_storage_container(rt, ctr)
        assert record.image == "quay.io/x/y:1"
        assert record.image_id == "img"
        assert record.command == ["storage"]
        assert record.names == ["a"]

    def test_buildah_with_image(self):
        rt = MemoryRuntime()
        rt.add_image(StoredImage(id="img", names_history=["base:1"]))
        ctr = StoredContainer(id="s3", created=at(0), image_id="img", buildah=True)
        rt.add_storage_container(ctr)
        record = list_storage_container(rt, ctr)
        assert record.image == "base:1"
        assert record.command == ["buildah"]

    def test_unknown_name(self):
        rt = MemoryRuntime()
        ctr = StoredContainer(id="s4", created=at(0))
        rt.add_storage_container(ctr)
        record = list_storage_container(rt, ctr)
        assert record.names == ["unknown"]
        assert record.image == ""
        assert record.command == ["storage"]

    def test_empty_names_history(self):
        rt = MemoryRuntime()
        rt.add_image(StoredImage(id="img"))
        ctr = StoredContainer(id="s5", created=at(0), image_id="img")
        rt.add_storage_container(ctr)
        assert list_storage_container(rt, ctr).image == ""

    def test_missing_image_raises(self):
        rt = MemoryRuntime()
        ctr = StoredContainer(id="s6", created=at(0), image_id="gone")
        rt.add_storage_container(ctr)
        with pytest.raises(ImageUnknownError):
            list_storage_container(rt, ctr)

    def test_removed_container_raises(self):
        rt = MemoryRuntime()
        ctr = StoredContainer(id="s7", created=at(0))
        with pytest.raises(ContainerUnknownError):
            list_storage_container(rt, ctr)

    def test_buildah_check_failure_is_wrapped(self):
        rt = BrokenBuildahCheck()
        ctr = StoredContainer(id="s8", created=at(0))
        with pytest.raises(SnapshotError) as exc:
            list_storage_container(rt, ctr)
        assert "s8" in str(exc.value)

    def test_image_lookup_failure_is_wrapped(self):
        rt = CorruptedCatalog()
        ctr = StoredContainer(id="s123", created=at(0), image_id="img")
        rt.add_storage_container(ctr)
        with pytest.raises(SnapshotError) as exc:
            list_storage_container(rt, ctr)
        assert "s123" in str(exc.value)
        assert "img" in str(exc.value)
        assert "catalog corrupted" in str(exc.value)
        assert exc.value.container_id == "s123"
        assert isinstance(exc.value.__cause__, RuntimeError)


class TestGetExternalContainerLists:
    """Tests for get_external_container_lists."""

    def test_lists_storage_only(self, runtime):
        records = get_external_container_lists(runtime)
        assert sorted(r.id for r in records) == ["eeee5555", "ffff6666"]
        assert all(r.state == "storage" for r in records)

    def test_skips_vanished(self, runtime):
        runtime.add_storage_container(StoredContainer(id="gone1", created=at(3), image_id="missing"))
        runtime.add_storage_container(StoredContainer(id="gone2", created=at(4), broken=True))
        records = get_external_container_lists(runtime)
        assert "gone1" not in [r.id for r in records]
        assert "gone2" not in [r.id for r in records]

    def test_applies_filters(self, runtime):
        records = get_external_container_lists(runtime, lambda r: r.command == ["buildah"])
        assert [r.id for r in records] == ["eeee5555"]

    def test_runtime_containers_excluded(self, runtime):
        runtime.add_storage_container(StoredContainer(id="aaaa1111", created=at(0)))
        records = get_external_container_lists(runtime)
        assert "aaaa1111" not in [r.id for r in records]

    def test_other_errors_propagate(self):
        rt = BrokenBuildahCheck()
        rt.add_storage_container(StoredContainer(id="s9", created=at(0)))
        with pytest.raises(SnapshotError):
            get_external_container_lists(rt)

    def test_image_lookup_failure_propagates(self):
        rt = CorruptedCatalog()
        rt.add_storage_container(StoredContainer(id="s123", created=at(0), image_id="img"))
        with pytest.raises(SnapshotError) as exc:
            get_external_container_lists(rt)
        assert "s123" in str(exc.value)
        assert not is_vanished(exc.value)

    def test_unreadable_storage_propagates(self):
        with pytest.raises(StorageLoadError):
            get_external_container_lists(UnreadableStorage())
