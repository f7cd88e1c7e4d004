import inspect
import logging
from typing import Any, Callable, List, Optional, Sequence

from tessera_di.domain import (
    IInstantiator,
    ITypeInfoExtractor,
    MissingKeyError,
    TypeArgument,
    TypeInfo,
    UnresolvedParameterError,
)

logger = logging.getLogger(__name__)


def key_from_descriptor(descriptor: Callable[..., Any]) -> Optional[str]:
    """Derive a resolution key from a class or function name.

    Returns:
        The ``__name__`` of the descriptor, or None for nameless callables
        such as lambdas.
    """
    name = getattr(descriptor, "__name__", None)
    if not isinstance(name, str) or not name or name.startswith("<"):
        return None
    return name


def key_from_annotation(annotation: Any) -> Optional[str]:
    """Derive the resolution key a parameter annotation points to.

    String annotations (forward references, or every annotation under
    ``from __future__ import annotations``) are used verbatim.
    """
    if isinstance(annotation, str):
        return annotation.strip().strip("'\"") or None
    if isinstance(annotation, type):
        return annotation.__name__
    return None


class TypeInfoExtractor(ITypeInfoExtractor):
    """Describes constructors using signature introspection and annotations.

    Parameters with default values, ``*args`` and ``**kwargs`` are left to
    the constructor and not resolved.
    """

    def extract(self, descriptor: Callable[..., Any], key: Optional[str] = None) -> TypeInfo:
        """Build the TypeInfo for a constructible descriptor.

        Args:
            descriptor: The class or callable to describe.
            key: Optional resolution key override.

        Returns:
            The resolution key with the ordered constructor dependencies.

        Raises:
            MissingKeyError: If no key is given and the descriptor has no usable name.
            UnresolvedParameterError: If a required parameter lacks a usable annotation.

        Example:
            >>> class UserService:
            ...     def __init__(self, repository: UserRepository):
            ...         self.repository = repository
            >>>
            >>> TypeInfoExtractor().extract(UserService).args[0].type
            'UserRepository'
        """
        if not callable(descriptor):
            raise TypeError(f"Cannot register non-callable {descriptor!r} as a type")

        name = key or key_from_descriptor(descriptor)
        if not name:
            raise MissingKeyError("A resolution key must be given if a named type is not")

        return TypeInfo(name=name, constructor=descriptor, args=tuple(self._arguments(descriptor, name)))

    def _arguments(self, descriptor: Callable[..., Any], owner: str) -> List[TypeArgument]:
        try:
            signature = inspect.signature(descriptor)
        except (TypeError, ValueError):
            # Builtins without introspectable signatures are built without arguments
            logger.debug("No signature available for '%s', assuming no dependencies", owner)
            return []

        arguments = []
        for position, (param_name, param) in enumerate(signature.parameters.items(), start=1):
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            if param.default is not inspect.Parameter.empty:
                continue

            dependency_key = None
            if param.annotation is not inspect.Parameter.empty:
                dependency_key = key_from_annotation(param.annotation)
            if dependency_key is None:
                raise UnresolvedParameterError(position, owner, param_name)

            arguments.append(
                TypeArgument(
                    name=param_name,
                    type=dependency_key,
                    keyword_only=param.kind == inspect.Parameter.KEYWORD_ONLY,
                )
            )
        return arguments


class Instantiator(IInstantiator):
    """Calls the constructor with resolved values."""

    def instantiate(self, type_info: TypeInfo, values: Sequence[Any]) -> Any:
        args = []
        kwargs = {}
        for argument, value in zip(type_info.args, values):
            if argument.keyword_only:
                kwargs[argument.name] = value
            else:
                args.append(value)
        return type_info.constructor(*args, **kwargs)
