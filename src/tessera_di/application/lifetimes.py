from typing import Any, Optional, Union

from tessera_di.domain import ILifetime, Lifetime


class TransientLifetime(ILifetime):
    """Never caches; every resolution constructs a new instance."""

    def fetch(self) -> Optional[Any]:
        return None

    def store(self, instance: Any) -> None:
        pass


class MemoryLifetime(ILifetime):
    """Singleton policy: keeps the first stored instance forever.

    Attributes:
        _instance: The cached instance, or None until the first store.
    """

    def __init__(self) -> None:
        """Initialize the lifetime with an empty cache."""
        self._instance: Optional[Any] = None

    def fetch(self) -> Optional[Any]:
        """Return the cached instance, if any."""
        return self._instance

    def store(self, instance: Any) -> None:
        """Cache the instance unless one is already cached.

        Args:
            instance: The freshly resolved instance.
        """
        if self._instance is None:
            self._instance = instance

    def clear(self) -> None:
        """Forget the cached instance.

        Useful for testing or resetting container state.
        """
        self._instance = None


def create_lifetime(lifetime: Union[Lifetime, ILifetime, None] = None) -> ILifetime:
    """Turn a lifetime option into a policy object.

    Shorthand values always produce a fresh policy, so two registrations
    never share a cache by accident.

    Args:
        lifetime: None (transient), a Lifetime member, or a policy object.

    Returns:
        The lifetime policy to attach to a registration.

    Example:
        >>> isinstance(create_lifetime(Lifetime.SINGLETON), MemoryLifetime)
        True
    """
    if isinstance(lifetime, ILifetime):
        return lifetime
    if lifetime is None or lifetime == Lifetime.TRANSIENT:
        return TransientLifetime()
    if lifetime == Lifetime.SINGLETON:
        return MemoryLifetime()
    raise ValueError(f"Unsupported lifetime: {lifetime}")
