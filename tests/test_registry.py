"""Tests for roost.registry: buckets, arrays, freezing."""

from types import MappingProxyType

import pytest

from roost.errors import RegistryFrozenError
from roost.registry import ModuleRegistry


class TestMerge:
    def test_merge_creates_bucket(self) -> None:
        registry = ModuleRegistry()
        registry.merge("service", {"user": "UserService"})
        assert dict(registry["service"]) == {"user": "UserService"}

    def test_merge_accumulates(self) -> None:
        registry = ModuleRegistry()
        registry.merge("util", {"a": 1})
        registry.merge("util", {"b": 2, "a": 3})
        assert dict(registry["util"]) == {"a": 3, "b": 2}

    @pytest.mark.parametrize("value", [None, 42, "text", ["a", "b"]])
    def test_non_mapping_is_ignored(self, value: object) -> None:
        registry = ModuleRegistry()
        registry.merge("service", value)
        assert "service" not in registry

    def test_non_mapping_keeps_existing_bucket(self) -> None:
        registry = ModuleRegistry()
        registry.merge("service", {"user": 1})
        registry.merge("service", None)
        assert dict(registry["service"]) == {"user": 1}

    def test_set(self) -> None:
        registry = ModuleRegistry()
        registry.set("glue_instance", "db", "pool")
        assert registry["glue_instance"]["db"] == "pool"


class TestArrays:
    def test_order_preserved_exactly(self) -> None:
        registry = ModuleRegistry()
        registry.set_array("middleware_order", ("b", "a", "c", "a"))
        assert registry["middleware_order"] == ["b", "a", "c", "a"]

    def test_replaced_wholesale(self) -> None:
        registry = ModuleRegistry()
        registry.set_array("middleware_order", ["a", "b"])
        registry.set_array("middleware_order", ["c"])
        assert registry["middleware_order"] == ["c"]

    def test_read_is_a_copy(self) -> None:
        registry = ModuleRegistry()
        registry.set_array("middleware_order", ["a"])
        registry["middleware_order"].append("b")
        assert registry["middleware_order"] == ["a"]

    def test_keyed_write_into_array_bucket(self) -> None:
        registry = ModuleRegistry()
        registry.set_array("middleware_order", ["a"])
        with pytest.raises(TypeError, match="ordered sequence"):
            registry.set("middleware_order", "x", 1)


class TestReadOnlyViews:
    def test_mapping_bucket_is_proxy(self) -> None:
        registry = ModuleRegistry()
        registry.merge("service", {"user": 1})
        bucket = registry["service"]
        assert isinstance(bucket, MappingProxyType)
        with pytest.raises(TypeError):
            bucket["other"] = 2  # type: ignore[index]

    def test_get_missing_bucket(self) -> None:
        assert ModuleRegistry().get("controller") is None

    def test_len_and_iter(self) -> None:
        registry = ModuleRegistry()
        registry.merge("a", {"x": 1})
        registry.set_array("b", [])
        assert len(registry) == 2
        assert list(registry) == ["a", "b"]


class TestFreeze:
    def test_writes_rejected_after_freeze(self) -> None:
        registry = ModuleRegistry()
        registry.freeze()
        assert registry.frozen
        with pytest.raises(RegistryFrozenError, match="service"):
            registry.merge("service", {"user": 1})
        with pytest.raises(RegistryFrozenError):
            registry.set("service", "user", 1)
        with pytest.raises(RegistryFrozenError):
            registry.set_array("middleware_order", [])

    def test_ignored_merge_does_not_raise_when_frozen(self) -> None:
        registry = ModuleRegistry()
        registry.freeze()
        registry.merge("service", None)

    def test_unlocked(self) -> None:
        registry = ModuleRegistry()
        registry.freeze()
        with registry.unlocked() as open_registry:
            open_registry.set("service", "cache", 1)
        assert registry.frozen
        assert registry["service"]["cache"] == 1

    def test_unlocked_restores_on_error(self) -> None:
        registry = ModuleRegistry()
        registry.freeze()
        with pytest.raises(RuntimeError), registry.unlocked():
            raise RuntimeError("boom")
        assert registry.frozen
