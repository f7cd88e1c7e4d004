import asyncio
from typing import Any, Awaitable, Callable, Optional, Sequence

from tessera_di.application.interception import apply_interception
from tessera_di.application.type_info import Instantiator
from tessera_di.domain import HandlerConfig, IInstantiator, TypeInfo


class ObjectBuilder:
    """Turns a TypeInfo into an instance with resolved constructor arguments.

    Dependencies are resolved through the owning container, re-entering its
    full resolve protocol for each argument.

    Attributes:
        _resolve: The container's suspend-capable resolve.
        _resolve_sync: The container's blocking resolve.
        _instantiator: Low-level constructor invocation.
    """

    def __init__(
        self,
        resolve: Callable[[str], Awaitable[Any]],
        resolve_sync: Callable[[str], Any],
        instantiator: Optional[IInstantiator] = None,
    ) -> None:
        self._resolve = resolve
        self._resolve_sync = resolve_sync
        self._instantiator = instantiator or Instantiator()

    def build_sync(self, type_info: TypeInfo, handler_configs: Sequence[HandlerConfig]) -> Any:
        """Build an instance, resolving arguments one by one in declaration order.

        Args:
            type_info: Description of the type to build.
            handler_configs: Interception rules to apply to the new instance.

        Returns:
            The constructed, intercepted instance.
        """
        values = [self._resolve_sync(argument.type) for argument in type_info.args]
        instance = self._instantiator.instantiate(type_info, values)
        return apply_interception(instance, handler_configs)

    async def build(self, type_info: TypeInfo, handler_configs: Sequence[HandlerConfig]) -> Any:
        """Build an instance, resolving all arguments concurrently.

        The constructor runs only after every argument resolved; the first
        failure is raised unchanged and no instance is created.

        Args:
            type_info: Description of the type to build.
            handler_configs: Interception rules to apply to the new instance.

        Returns:
            The constructed, intercepted instance.
        """
        values = await asyncio.gather(*(self._resolve(argument.type) for argument in type_info.args))
        instance = self._instantiator.instantiate(type_info, values)
        return apply_interception(instance, handler_configs)
