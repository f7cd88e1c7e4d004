from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, Union

if TYPE_CHECKING:
    from tessera_di.domain.models import RegistrationOptions, ResolutionResult, TypeInfo

KeyOrType = Union[str, Callable[..., Any]]


class ILifetime(ABC):
    """Cache policy consulted before and after every construction."""

    @abstractmethod
    def fetch(self) -> Optional[Any]:
        """Return the cached instance, or None when nothing is cached."""

    @abstractmethod
    def store(self, instance: Any) -> None:
        """Offer a freshly constructed and injected instance to the cache.

        Args:
            instance: The instance produced by the resolve protocol.
        """


class IInjection(ABC):
    """Post-construction mutator applied to every newly built instance."""

    @abstractmethod
    def inject_sync(self, instance: Any, container: "IContainer") -> None:
        """Apply the injection synchronously.

        Args:
            instance: The object to mutate.
            container: Container to pull further dependencies from.
        """

    @abstractmethod
    async def inject(self, instance: Any, container: "IContainer") -> None:
        """Apply the injection, suspending on any awaited resolution.

        Args:
            instance: The object to mutate.
            container: Container to pull further dependencies from.
        """


class ITypeInfoExtractor(ABC):
    """Produces the resolution key and constructor dependencies of a type."""

    @abstractmethod
    def extract(self, descriptor: Callable[..., Any], key: Optional[str] = None) -> "TypeInfo":
        """Describe a constructible type.

        Args:
            descriptor: The class or constructor-like callable.
            key: Optional override for the resolution key.

        Raises:
            MissingKeyError: If no key is given and none can be derived.
            UnresolvedParameterError: If a parameter's type cannot be determined.
        """


class IInstantiator(ABC):
    """Low-level object creation from resolved argument values."""

    @abstractmethod
    def instantiate(self, type_info: "TypeInfo", values: Sequence[Any]) -> Any:
        """Create a new instance.

        Args:
            type_info: Description of the type, including its constructor.
            values: Resolved values ordered like ``type_info.args``.
        """


class IContainer(ABC):
    """Abstract interface for dependency injection container operations."""

    @abstractmethod
    def register_type(
        self,
        descriptor: Callable[..., Any],
        options: Union[str, "RegistrationOptions", dict, None] = None,
        **overrides: Any,
    ) -> "IContainer":
        """Register a constructible type whose arguments are auto-wired."""

    @abstractmethod
    def register_instance(
        self,
        instance: Any,
        options: Union[str, "RegistrationOptions", dict, None] = None,
        **overrides: Any,
    ) -> "IContainer":
        """Register a pre-built instance."""

    @abstractmethod
    def register_factory(
        self,
        factory: Callable[["IContainer"], Any],
        options: Union[str, "RegistrationOptions", dict, None] = None,
        **overrides: Any,
    ) -> "IContainer":
        """Register a factory function; an explicit key is required."""

    @abstractmethod
    def is_registered(self, key: KeyOrType) -> bool:
        """Tell whether a registration exists for the key or type."""

    @abstractmethod
    def resolve_sync(self, key: KeyOrType) -> Any:
        """Resolve an instance in blocking mode."""

    @abstractmethod
    def try_resolve_sync(self, key: KeyOrType) -> Optional[Any]:
        """Resolve in blocking mode, returning None on any failure."""

    @abstractmethod
    async def resolve(self, key: KeyOrType) -> Any:
        """Resolve an instance in suspend-capable mode."""

    @abstractmethod
    async def resolve_result(self, key: KeyOrType) -> "ResolutionResult":
        """Resolve in suspend-capable mode, reporting failures in the result."""

    @abstractmethod
    def inject_sync(self, instance: Any, key: Optional[str] = None) -> None:
        """Run the registration's injections in order against the instance."""

    @abstractmethod
    async def inject(self, instance: Any, key: Optional[str] = None) -> None:
        """Run the registration's injections concurrently against the instance."""

    @abstractmethod
    def intercept(self, matcher: Any, *handlers: Callable[..., Any]) -> Any:
        """Start an interception configuration; commit with sync() or async_()."""

    @abstractmethod
    def create_child_container(self) -> "IContainer":
        """Create an isolated child container from a snapshot of this one."""
