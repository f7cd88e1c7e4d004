"""
Application layer - Resolution engine and orchestration.

This layer contains the container and the components it orchestrates.
It depends only on the Domain layer.
"""

from .builder import ObjectBuilder
from .container import Container
from .dependency_graph import DependencyGraph
from .injection import InjectionPipeline, MethodInjection, PropertyInjection
from .interception import InterceptionBuilder, apply_interception, create_predicate
from .lifetimes import MemoryLifetime, TransientLifetime, create_lifetime
from .type_info import Instantiator, TypeInfoExtractor

__all__ = [
    "Container",
    "DependencyGraph",
    "ObjectBuilder",
    "InjectionPipeline",
    "PropertyInjection",
    "MethodInjection",
    "InterceptionBuilder",
    "apply_interception",
    "create_predicate",
    "TransientLifetime",
    "MemoryLifetime",
    "create_lifetime",
    "TypeInfoExtractor",
    "Instantiator",
]
