from typing import Optional


class DIException(Exception):
    """Base exception for DI-related errors."""


class MissingKeyError(DIException):
    """Raised when no resolution key can be derived at registration time.

    This occurs when:
    - A nameless callable (e.g. a lambda) is registered as a type without a key.
    - A factory is registered without an explicit key.
    """


class UnresolvedParameterError(DIException):
    """Raised when a constructor parameter's type cannot be determined.

    Attributes:
        position: 1-based position of the parameter in the constructor signature.
        owner: Resolution key of the type declaring the parameter.
        parameter: Name of the offending parameter, if known.
    """

    def __init__(self, position: int, owner: str, parameter: Optional[str] = None) -> None:
        self.position = position
        self.owner = owner
        self.parameter = parameter
        message = f'Unable to determine type of parameter at position {position} for type "{owner}"'
        if parameter:
            message += f" (parameter '{parameter}')"
        super().__init__(message)


class CyclicDependencyError(DIException):
    """Raised when a registration would close a dependency cycle.

    Attributes:
        source: Key whose dependency edge closes the cycle.
        target: Key the closing edge points back to.
    """

    def __init__(self, source: str, target: str) -> None:
        self.source = source
        self.target = target
        super().__init__(f"Cyclic dependency from {source} to {target}")


class UnregisteredKeyError(DIException):
    """Raised when resolving or injecting against an unknown key.

    Attributes:
        key: The resolution key that has no registration.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f'Nothing with key "{key}" is registered in the container')


class InterceptionError(DIException):
    """Raised for invalid interception configurations.

    This occurs when:
    - The matcher is not a string, tuple, boolean or predicate.
    - Handler kinds do not match the sync/async commit mode.
    - An interception builder is committed more than once.
    - A matched method cannot be replaced on the instance.
    """


class ResolutionModeError(DIException):
    """Raised when an asynchronous factory is resolved in blocking mode."""
