"""
tessera-di: Dependency injection container with cycle validation, lifetimes,
injections and method interception, in blocking and asyncio flavors.

Public API exports for the tessera-di package.
"""

# Application exports
from tessera_di.application.container import Container
from tessera_di.application.injection import MethodInjection, PropertyInjection
from tessera_di.application.lifetimes import MemoryLifetime, TransientLifetime

# Domain exports
from tessera_di.domain.enums import Lifetime
from tessera_di.domain.exceptions import (
    CyclicDependencyError,
    DIException,
    InterceptionError,
    MissingKeyError,
    ResolutionModeError,
    UnregisteredKeyError,
    UnresolvedParameterError,
)
from tessera_di.domain.interfaces import IInjection, ILifetime
from tessera_di.domain.models import InvocationContext, RegistrationOptions, ResolutionResult

__version__ = "0.1.0"

__all__ = [
    # Container
    "Container",
    # Lifetimes
    "Lifetime",
    "ILifetime",
    "TransientLifetime",
    "MemoryLifetime",
    # Injections
    "IInjection",
    "PropertyInjection",
    "MethodInjection",
    # Models
    "RegistrationOptions",
    "ResolutionResult",
    "InvocationContext",
    # Exceptions
    "DIException",
    "MissingKeyError",
    "UnresolvedParameterError",
    "CyclicDependencyError",
    "UnregisteredKeyError",
    "InterceptionError",
    "ResolutionModeError",
]
