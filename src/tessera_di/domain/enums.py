from enum import Enum


class Lifetime(str, Enum):
    """Shorthand for the built-in lifetime policies.

    Attributes:
        TRANSIENT: New instance created on each resolution.
        SINGLETON: First resolved instance is cached and shared forever.
    """

    TRANSIENT = "transient"
    SINGLETON = "singleton"

    def __str__(self) -> str:
        return self.value


class RegistrationKind(str, Enum):
    """Defines how a registration produces its instance.

    Attributes:
        TYPE: Constructed from a type descriptor with auto-wired arguments.
        INSTANCE: A pre-built value returned as-is.
        FACTORY: A user function invoked with the container.
    """

    TYPE = "type"
    INSTANCE = "instance"
    FACTORY = "factory"

    def __str__(self) -> str:
        return self.value
