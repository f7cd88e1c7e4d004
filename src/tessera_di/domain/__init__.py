"""
Domain layer - Core models, interfaces and errors.

This layer contains the registration model and the contracts of the
resolution engine's collaborators. It has no dependencies on other layers.
"""

from .enums import Lifetime, RegistrationKind
from .exceptions import (
    CyclicDependencyError,
    DIException,
    InterceptionError,
    MissingKeyError,
    ResolutionModeError,
    UnregisteredKeyError,
    UnresolvedParameterError,
)
from .interfaces import IContainer, IInjection, IInstantiator, ILifetime, ITypeInfoExtractor, KeyOrType
from .models import (
    HandlerConfig,
    InvocationContext,
    Registration,
    RegistrationOptions,
    ResolutionResult,
    TypeArgument,
    TypeInfo,
)

__all__ = [
    # Enums
    "Lifetime",
    "RegistrationKind",
    # Exceptions
    "DIException",
    "MissingKeyError",
    "UnresolvedParameterError",
    "CyclicDependencyError",
    "UnregisteredKeyError",
    "InterceptionError",
    "ResolutionModeError",
    # Interfaces
    "IContainer",
    "IInjection",
    "IInstantiator",
    "ILifetime",
    "ITypeInfoExtractor",
    "KeyOrType",
    # Models
    "TypeArgument",
    "TypeInfo",
    "RegistrationOptions",
    "Registration",
    "HandlerConfig",
    "InvocationContext",
    "ResolutionResult",
]
