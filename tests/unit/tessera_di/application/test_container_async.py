"""Unit tests for Container's asyncio resolution and injection."""

import asyncio

import pytest

from tessera_di.application.container import Container
from tessera_di.application.lifetimes import MemoryLifetime
from tessera_di.domain import IInjection, ILifetime, Lifetime, UnregisteredKeyError


class SpyLifetime(ILifetime):
    def __init__(self):
        self.fetched = 0
        self.stored = []

    def fetch(self):
        self.fetched += 1
        return None

    def store(self, instance):
        self.stored.append(instance)


class FlagInjection(IInjection):
    def inject_sync(self, instance, container):
        instance.injected = True

    async def inject(self, instance, container):
        await asyncio.sleep(0)
        instance.injected = True


class FailingInjection(IInjection):
    def __init__(self, error):
        self.error = error

    def inject_sync(self, instance, container):
        raise self.error

    async def inject(self, instance, container):
        raise self.error


class TestResolveAsync:
    """Test cases for suspend-capable resolution."""

    @pytest.mark.asyncio
    async def test_unregistered_key_raises(self):
        """Test that an unknown key is reported through the coroutine."""
        with pytest.raises(UnregisteredKeyError, match='Nothing with key "Foo" is registered in the container'):
            await Container().resolve("Foo")

    @pytest.mark.asyncio
    async def test_unregistered_key_in_result(self):
        """Test that resolve_result reports the error instead of raising."""
        result = await Container().resolve_result("Foo")

        assert isinstance(result.error, UnregisteredKeyError)
        assert result.instance is None

    @pytest.mark.asyncio
    async def test_nameless_key_in_result(self):
        """Test that a key that cannot be derived is reported, not raised."""
        nameless = lambda: None  # noqa: E731

        result = await Container().resolve_result(nameless)

        assert isinstance(result.error, TypeError)
        assert result.key == repr(nameless)
        assert not result.succeeded

        with pytest.raises(TypeError, match="Cannot derive a resolution key"):
            await Container().resolve(nameless)

    @pytest.mark.asyncio
    async def test_resolve_type_with_dependencies(self):
        """Test resolving a type whose dependency is itself a type."""

        class Bar:
            pass

        class Foo:
            def __init__(self, bar: Bar):
                self.bar = bar

        container = Container().register_type(Foo).register_type(Bar)
        resolved = await container.resolve(Foo)

        assert isinstance(resolved, Foo)
        assert isinstance(resolved.bar, Bar)

    @pytest.mark.asyncio
    async def test_uses_lifetime_for_type(self):
        """Test that fetch and store are consulted for types."""
        lifetime = SpyLifetime()

        class Foo:
            pass

        await Container().register_type(Foo, key="foo", lifetime=lifetime).resolve("foo")

        assert lifetime.fetched == 1
        assert isinstance(lifetime.stored[0], Foo)

    @pytest.mark.asyncio
    async def test_register_and_resolve_instance(self):
        """Test resolving an instance registration."""

        class Foo:
            pass

        instance = Foo()
        container = Container().register_instance(instance, "asdf")

        assert await container.resolve("asdf") is instance

    @pytest.mark.asyncio
    async def test_uses_lifetime_for_instance(self):
        """Test that fetch and store are consulted for instances."""
        lifetime = SpyLifetime()

        await Container().register_instance("foo", key="foo", lifetime=lifetime).resolve("foo")

        assert lifetime.fetched == 1
        assert lifetime.stored == ["foo"]

    @pytest.mark.asyncio
    async def test_async_factory(self):
        """Test that coroutine factories are awaited."""
        instance = object()

        async def factory(container):
            await asyncio.sleep(0)
            return instance

        container = Container().register_factory(factory, "poopoo")

        assert await container.resolve("poopoo") is instance

    @pytest.mark.asyncio
    async def test_sync_factory_in_async_mode(self):
        """Test that plain factories work in async mode."""
        container = Container().register_factory(lambda c: "foo", "foo")

        assert await container.resolve("foo") == "foo"

    @pytest.mark.asyncio
    async def test_factory_failure_reported_unchanged(self):
        """Test that a failing factory's exact error is reported and nothing is cached."""
        error = RuntimeError("fail")

        async def factory(container):
            raise error

        lifetime = MemoryLifetime()
        container = Container().register_factory(factory, "poopoo", lifetime=lifetime)

        with pytest.raises(RuntimeError) as exc_info:
            await container.resolve("poopoo")

        assert exc_info.value is error
        assert lifetime.fetch() is None

        result = await container.resolve_result("poopoo")
        assert result.error is error
        assert result.instance is None

    @pytest.mark.asyncio
    async def test_uses_lifetime_for_factory(self):
        """Test that fetch and store are consulted for factories."""
        lifetime = SpyLifetime()

        async def factory(container):
            return "foo"

        await Container().register_factory(factory, key="foo", lifetime=lifetime).resolve("foo")

        assert lifetime.fetched == 1
        assert lifetime.stored == ["foo"]

    @pytest.mark.asyncio
    async def test_singleton_hit_skips_injections(self):
        """Test that cached instances are returned without injecting again."""
        calls = []

        class CountingInjection(FlagInjection):
            async def inject(self, instance, container):
                calls.append(instance)

        class Foo:
            pass

        container = Container().register_type(Foo, lifetime=Lifetime.SINGLETON, injections=[CountingInjection()])
        first = await container.resolve(Foo)
        second = await container.resolve(Foo)

        assert first is second
        assert calls == [first]

    @pytest.mark.asyncio
    async def test_partial_injection_returns_instance_with_error(self):
        """Test that an injection failure still surfaces the instance, uncached."""
        error = RuntimeError("fail")

        class Foo:
            pass

        lifetime = MemoryLifetime()
        container = Container().register_type(
            Foo, lifetime=lifetime, injections=[FlagInjection(), FailingInjection(error)]
        )

        result = await container.resolve_result(Foo)

        assert isinstance(result.instance, Foo)
        assert result.error is error
        assert lifetime.fetch() is None

    @pytest.mark.asyncio
    async def test_partial_injection_raises_from_resolve(self):
        """Test that resolve raises the injection failure unchanged."""
        error = RuntimeError("fail")

        class Foo:
            pass

        container = Container().register_type(Foo, injections=[FailingInjection(error)])

        with pytest.raises(RuntimeError) as exc_info:
            await container.resolve(Foo)

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_dependency_failure_propagates(self):
        """Test that a failing dependency aborts the dependent's construction."""
        error = RuntimeError("fail")
        constructed = []

        async def factory(container):
            raise error

        class Foo:
            def __init__(self, bar: "bar"):  # noqa: F821
                constructed.append(self)

        container = Container().register_factory(factory, "bar").register_type(Foo)

        with pytest.raises(RuntimeError) as exc_info:
            await container.resolve(Foo)

        assert exc_info.value is error
        assert constructed == []


class TestInjectAsync:
    """Test cases for asyncio injection."""

    @pytest.mark.asyncio
    async def test_perform_injection(self):
        """Test injecting into an instance by key."""

        class Foo:
            pass

        container = Container().register_type(Foo, injections=[FlagInjection()])
        instance = Foo()

        await container.inject(instance, "Foo")

        assert instance.injected is True

    @pytest.mark.asyncio
    async def test_default_key(self):
        """Test that the key defaults to the instance's type name."""

        class Foo:
            pass

        container = Container().register_type(Foo, injections=[FlagInjection()])
        instance = Foo()

        await container.inject(instance)

        assert instance.injected is True

    @pytest.mark.asyncio
    async def test_raise_error(self):
        """Test that injection failures are raised unchanged."""
        error = RuntimeError("fail")

        class Foo:
            pass

        container = Container().register_type(Foo, injections=[FailingInjection(error)])

        with pytest.raises(RuntimeError) as exc_info:
            await container.inject(Foo(), "Foo")

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_unregistered_key(self):
        """Test that injecting against an unknown key raises."""
        with pytest.raises(UnregisteredKeyError):
            await Container().inject(object(), "asdf")
