"""Unit tests for ObjectBuilder."""

import asyncio
from unittest.mock import MagicMock

import pytest

from tessera_di.application.builder import ObjectBuilder
from tessera_di.application.interception import create_predicate
from tessera_di.application.type_info import TypeInfoExtractor
from tessera_di.domain import HandlerConfig, IInstantiator


class Bar:
    pass


class Baz:
    pass


class Foo:
    def __init__(self, bar: Bar, baz: Baz):
        self.bar = bar
        self.baz = baz

    def run(self):
        return "ran"


FOO_INFO = TypeInfoExtractor().extract(Foo)


class TestBuildSync:
    """Test cases for blocking builds."""

    def test_resolves_arguments_in_declaration_order(self):
        """Test that each argument resolves before the next one."""
        order = []
        values = {"Bar": Bar(), "Baz": Baz()}

        def resolve_sync(key):
            order.append(key)
            return values[key]

        builder = ObjectBuilder(MagicMock(), resolve_sync)
        foo = builder.build_sync(FOO_INFO, [])

        assert order == ["Bar", "Baz"]
        assert foo.bar is values["Bar"]
        assert foo.baz is values["Baz"]

    def test_dependency_failure_aborts_construction(self):
        """Test that a failing dependency prevents instantiation."""
        instantiator = MagicMock(spec=IInstantiator)
        error = RuntimeError("fail")

        def resolve_sync(key):
            raise error

        builder = ObjectBuilder(MagicMock(), resolve_sync, instantiator)

        with pytest.raises(RuntimeError) as exc_info:
            builder.build_sync(FOO_INFO, [])

        assert exc_info.value is error
        instantiator.instantiate.assert_not_called()

    def test_custom_instantiator(self):
        """Test that the instantiation mechanism is pluggable."""
        instantiator = MagicMock(spec=IInstantiator)
        instantiator.instantiate.return_value = "built"

        builder = ObjectBuilder(MagicMock(), lambda key: key, instantiator)

        assert builder.build_sync(FOO_INFO, []) == "built"
        instantiator.instantiate.assert_called_once_with(FOO_INFO, ["Bar", "Baz"])

    def test_applies_interception(self):
        """Test that matched methods are wrapped after construction."""
        calls = []

        def handler(context, proceed):
            calls.append(context.method_name)
            proceed()

        builder = ObjectBuilder(MagicMock(), lambda key: None)
        foo = builder.build_sync(FOO_INFO, [HandlerConfig(matcher=create_predicate("run"), handlers=[handler])])

        assert foo.run() == "ran"
        assert calls == ["run"]


class TestBuildAsync:
    """Test cases for suspend-capable builds."""

    @pytest.mark.asyncio
    async def test_arguments_resolved_concurrently(self):
        """Test that all argument resolutions are issued before any completes."""
        started = []
        values = {"Bar": Bar(), "Baz": Baz()}

        async def resolve(key):
            started.append(key)
            await asyncio.sleep(0.01 if key == "Bar" else 0)
            assert set(started) == {"Bar", "Baz"}
            return values[key]

        builder = ObjectBuilder(resolve, MagicMock())
        foo = await builder.build(FOO_INFO, [])

        assert foo.bar is values["Bar"]
        assert foo.baz is values["Baz"]

    @pytest.mark.asyncio
    async def test_first_failure_propagates(self):
        """Test that a failing dependency aborts construction unchanged."""
        instantiator = MagicMock(spec=IInstantiator)
        error = RuntimeError("fail")

        async def resolve(key):
            if key == "Baz":
                raise error
            return Bar()

        builder = ObjectBuilder(resolve, MagicMock(), instantiator)

        with pytest.raises(RuntimeError) as exc_info:
            await builder.build(FOO_INFO, [])

        assert exc_info.value is error
        instantiator.instantiate.assert_not_called()
