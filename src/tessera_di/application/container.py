import inspect
import logging
import weakref
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from tessera_di.application.builder import ObjectBuilder
from tessera_di.application.dependency_graph import DependencyGraph
from tessera_di.application.injection import InjectionPipeline
from tessera_di.application.interception import InterceptionBuilder, Matcher
from tessera_di.application.lifetimes import MemoryLifetime, create_lifetime
from tessera_di.application.type_info import Instantiator, TypeInfoExtractor, key_from_descriptor
from tessera_di.domain import (
    HandlerConfig,
    IContainer,
    IInstantiator,
    ITypeInfoExtractor,
    KeyOrType,
    MissingKeyError,
    Registration,
    RegistrationKind,
    RegistrationOptions,
    ResolutionModeError,
    ResolutionResult,
    UnregisteredKeyError,
)

logger = logging.getLogger(__name__)

Options = Union[str, RegistrationOptions, Dict[str, Any], None]


class Container(IContainer):
    """Main dependency injection container.

    Orchestrates registration, cycle validation, lifetime-aware resolution,
    injection and interception. Every operation exists in a blocking form
    and in an asyncio form with the same observable behavior.

    Attributes:
        _parent: Weak reference to the container this one was forked from.
        _registrations: Registrations by resolution key.
        _handler_configs: Committed interception rules, in commit order.
        _graph: Declared dependency edges, used only to reject cycles.
        _extractor: Produces TypeInfo for registered types.
        _builder: Builds TYPE registrations.
        _pipeline: Runs post-construction injections.
    """

    def __init__(
        self,
        parent: Optional["Container"] = None,
        extractor: Optional[ITypeInfoExtractor] = None,
        instantiator: Optional[IInstantiator] = None,
    ) -> None:
        """Initialize an empty container.

        Args:
            parent: Container this one originates from, kept for provenance only.
            extractor: Type-info extractor; defaults to annotation introspection.
            instantiator: Instantiation mechanism; defaults to calling the constructor.
        """
        self._parent = weakref.ref(parent) if parent is not None else None
        self._registrations: Dict[str, Registration] = {}
        self._handler_configs: List[HandlerConfig] = []
        self._graph = DependencyGraph()
        self._extractor: ITypeInfoExtractor = extractor or TypeInfoExtractor()
        self._instantiator: IInstantiator = instantiator or Instantiator()
        self._builder = ObjectBuilder(self.resolve, self.resolve_sync, self._instantiator)
        self._pipeline = InjectionPipeline()

    @property
    def parent(self) -> Optional["Container"]:
        """The originating container, if it is still alive."""
        return self._parent() if self._parent is not None else None

    def register_type(self, descriptor: Callable[..., Any], options: Options = None, **overrides: Any) -> "Container":
        """Register a constructible type whose arguments are auto-wired.

        Args:
            descriptor: The class (or constructor-like callable) to register.
            options: A key string, a mapping or RegistrationOptions.
            **overrides: ``key``, ``lifetime`` or ``injections``.

        Returns:
            This container, for chaining.

        Raises:
            MissingKeyError: If no key is given and the descriptor has no name.
            UnresolvedParameterError: If a constructor parameter lacks a usable annotation.
            CyclicDependencyError: If the registration closes a dependency cycle.

        Example:
            >>> container.register_type(UserRepository, lifetime=Lifetime.SINGLETON)
            >>> container.register_type(UserService, "users")
        """
        opts = RegistrationOptions.normalize(options, **overrides)
        type_info = self._extractor.extract(descriptor, opts.key)
        registration = Registration(
            key=type_info.name,
            kind=RegistrationKind.TYPE,
            lifetime=create_lifetime(opts.lifetime),
            injections=opts.injections,
            type_info=type_info,
        )

        # Validated before anything is stored, so a cycle leaves the container untouched
        self._graph.add(type_info.name, [argument.type for argument in type_info.args])
        self._store(registration)
        return self

    def register_instance(self, instance: Any, options: Options = None, **overrides: Any) -> "Container":
        """Register a pre-built instance.

        Args:
            instance: The value to return on resolution.
            options: A key string, a mapping or RegistrationOptions.
            **overrides: ``key``, ``lifetime`` or ``injections``.

        Returns:
            This container, for chaining.

        Example:
            >>> container.register_instance(Settings.from_env())
            >>> container.register_instance("postgres://localhost/app", "dsn")
        """
        opts = RegistrationOptions.normalize(options, **overrides)
        key = opts.key or type(instance).__name__
        registration = Registration(
            key=key,
            kind=RegistrationKind.INSTANCE,
            lifetime=create_lifetime(opts.lifetime),
            injections=opts.injections,
            instance=instance,
        )
        self._graph.remove(key)
        self._store(registration)
        return self

    def register_factory(
        self,
        factory: Callable[[IContainer], Any],
        options: Options = None,
        **overrides: Any,
    ) -> "Container":
        """Register a factory that builds the instance from the container.

        The factory may be a coroutine function when resolved asynchronously.

        Args:
            factory: Callable receiving this container and returning the instance.
            options: A key string, a mapping or RegistrationOptions.
            **overrides: ``key``, ``lifetime`` or ``injections``.

        Returns:
            This container, for chaining.

        Raises:
            MissingKeyError: If no key is given.

        Example:
            >>> container.register_factory(
            ...     lambda c: Connection(c.resolve_sync("dsn")),
            ...     key="connection",
            ...     lifetime=Lifetime.SINGLETON,
            ... )
        """
        opts = RegistrationOptions.normalize(options, **overrides)
        if not opts.key:
            raise MissingKeyError("A resolution key must be passed to register_factory()")

        registration = Registration(
            key=opts.key,
            kind=RegistrationKind.FACTORY,
            lifetime=create_lifetime(opts.lifetime),
            injections=opts.injections,
            factory=factory,
        )
        self._graph.remove(opts.key)
        self._store(registration)
        return self

    def _store(self, registration: Registration) -> None:
        if registration.key in self._registrations:
            logger.debug("Replacing registration '%s'", registration.key)
        self._registrations[registration.key] = registration
        logger.debug("Registered '%s' as %s", registration.key, registration.kind)

    def is_registered(self, key: KeyOrType) -> bool:
        """Tell whether something is registered under the key or type name.

        Nameless callables such as lambdas are never registered.
        """
        try:
            key = self._normalize_key(key)
        except TypeError:
            return False
        return key in self._registrations

    def resolve_sync(self, key: KeyOrType) -> Any:
        """Resolve an instance in blocking mode.

        Args:
            key: The resolution key, or a type whose name is the key.

        Returns:
            The resolved instance.

        Raises:
            UnregisteredKeyError: If nothing is registered under the key.
            ResolutionModeError: If the registration's factory is asynchronous.
            Exception: Failures from factories, constructors or injections, unchanged.

        Example:
            >>> service = container.resolve_sync(UserService)
        """
        key = self._normalize_key(key)
        registration = self._lookup(key)

        existing = registration.lifetime.fetch()
        if existing is not None:
            return existing

        if registration.kind == RegistrationKind.INSTANCE:
            instance = registration.instance
        elif registration.kind == RegistrationKind.TYPE:
            instance = self._builder.build_sync(registration.type_info, self._handler_configs)
        else:
            instance = registration.factory(self)
            if inspect.isawaitable(instance):
                if inspect.iscoroutine(instance):
                    instance.close()
                raise ResolutionModeError(f"Factory for '{key}' is asynchronous; use 'await container.resolve()'")

        self.inject_sync(instance, key)
        registration.lifetime.store(instance)
        logger.debug("Resolved '%s'", key)
        return instance

    def try_resolve_sync(self, key: KeyOrType) -> Optional[Any]:
        """Same as resolve_sync(), but returns None instead of raising."""
        try:
            return self.resolve_sync(key)
        except Exception as e:
            logger.debug("Could not resolve '%s': %r", key, e)
            return None

    async def resolve(self, key: KeyOrType) -> Any:
        """Resolve an instance in suspend-capable mode.

        Constructor arguments are resolved concurrently and injections run
        concurrently; see resolve_result() to also receive an instance whose
        injection failed.

        Args:
            key: The resolution key, or a type whose name is the key.

        Returns:
            The resolved instance.

        Raises:
            UnregisteredKeyError: If nothing is registered under the key.
            Exception: Failures from factories, constructors or injections, unchanged.

        Example:
            >>> service = await container.resolve("users")
        """
        result = await self.resolve_result(key)
        return result.unwrap()

    async def resolve_result(self, key: KeyOrType) -> ResolutionResult:
        """Resolve in suspend-capable mode without raising resolution failures.

        When construction succeeds but an injection fails, the partially
        injected instance is returned together with the failure and is not
        stored in the lifetime cache.

        Args:
            key: The resolution key, or a type whose name is the key.

        Returns:
            The resolution outcome.
        """
        try:
            key = self._normalize_key(key)
        except TypeError as e:
            return ResolutionResult(key=repr(key), error=e)

        registration = self._registrations.get(key)
        if registration is None:
            return ResolutionResult(key=key, error=UnregisteredKeyError(key))

        existing = registration.lifetime.fetch()
        if existing is not None:
            return ResolutionResult(key=key, instance=existing)

        try:
            if registration.kind == RegistrationKind.INSTANCE:
                instance = registration.instance
            elif registration.kind == RegistrationKind.TYPE:
                instance = await self._builder.build(registration.type_info, self._handler_configs)
            else:
                instance = registration.factory(self)
                if inspect.isawaitable(instance):
                    instance = await instance
        except Exception as e:
            return ResolutionResult(key=key, error=e)

        try:
            await self.inject(instance, key)
        except Exception as e:
            logger.warning("Injection into '%s' failed; returning the instance uncached: %r", key, e)
            return ResolutionResult(key=key, instance=instance, error=e)

        registration.lifetime.store(instance)
        logger.debug("Resolved '%s'", key)
        return ResolutionResult(key=key, instance=instance)

    def inject_sync(self, instance: Any, key: Optional[str] = None) -> None:
        """Run the registration's injections against the instance, in order.

        Args:
            instance: The object to inject into.
            key: Resolution key; defaults to the instance's type name.

        Raises:
            UnregisteredKeyError: If nothing is registered under the key.
        """
        registration = self._lookup(key or type(instance).__name__)
        self._pipeline.run_sync(instance, registration.injections, self)

    async def inject(self, instance: Any, key: Optional[str] = None) -> None:
        """Run the registration's injections against the instance, concurrently.

        All injections start at once. The first observed failure is raised
        right away; injections still running are not cancelled and may
        mutate the instance after this call has raised.

        Args:
            instance: The object to inject into.
            key: Resolution key; defaults to the instance's type name.

        Raises:
            UnregisteredKeyError: If nothing is registered under the key.
        """
        registration = self._lookup(key or type(instance).__name__)
        await self._pipeline.run(instance, registration.injections, self)

    def intercept(self, matcher: Matcher, *handlers: Callable[..., Any]) -> InterceptionBuilder:
        """Configure interception of methods on instances built from types.

        Args:
            matcher: Method name, ``(cls, method_name_or_None)``, boolean, or
                predicate ``(instance, method_name) -> bool``.
            *handlers: Call handlers ``handler(context, proceed)``, run in order.

        Returns:
            A builder; call ``sync()`` or ``async_()`` on it to commit.

        Example:
            >>> container.intercept("charge", log_call, retry_once).sync()
        """
        return InterceptionBuilder(self, matcher, handlers, self._handler_configs.append)

    def create_child_container(self) -> "Container":
        """Create a child container from a snapshot of this one.

        Registrations, dependency edges and interception rules are copied;
        later changes on either side are not visible to the other.
        Registrations themselves are shared, so cached singletons are too.

        Returns:
            The child container.

        Example:
            >>> child = container.create_child_container()
            >>> child.register_instance(FakeMailer(), "Mailer")  # parent unaffected
        """
        child = type(self)(parent=self, extractor=self._extractor, instantiator=self._instantiator)
        self._copy_into(child)
        return child

    def _copy_into(self, other: "Container") -> None:
        other._registrations = dict(self._registrations)
        other._graph = self._graph.copy()
        other._handler_configs = list(self._handler_configs)

    def _isolate_lifetimes(self, keys: Optional[Iterable[str]] = None) -> None:
        """Give registrations a cache of their own in this container.

        Registrations copied from a parent share its MemoryLifetime caches.
        The selected ones (all by default) get a fresh, empty policy of the
        same type here; the parent's registrations are left untouched.

        Args:
            keys: Keys to isolate; every registration when omitted.
        """
        for key in list(self._registrations) if keys is None else keys:
            registration = self._registrations.get(key)
            if registration is None or not isinstance(registration.lifetime, MemoryLifetime):
                continue
            self._registrations[key] = registration.model_copy(update={"lifetime": type(registration.lifetime)()})
            logger.debug("Isolated lifetime of '%s'", key)

    def _lookup(self, key: str) -> Registration:
        registration = self._registrations.get(key)
        if registration is None:
            raise UnregisteredKeyError(key)
        return registration

    @staticmethod
    def _normalize_key(key: KeyOrType) -> str:
        if isinstance(key, str):
            return key
        name = key_from_descriptor(key)
        if name is None:
            raise TypeError(f"Cannot derive a resolution key from {key!r}")
        return name
