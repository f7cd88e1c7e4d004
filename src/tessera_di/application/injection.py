"""Application layer - Post-construction injection."""

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence, Set

from tessera_di.domain import IContainer, IInjection

logger = logging.getLogger(__name__)

_UNSET = object()


class InjectionPipeline:
    """Runs a registration's injections against a constructed instance.

    The blocking form runs injections strictly in order. The suspend-capable
    form starts every injection at once and reports the first failure as
    soon as it is observed; injections still in flight are not cancelled and
    may keep mutating the instance afterwards.

    Attributes:
        _detached: Injection tasks still running after the pipeline returned.
    """

    def __init__(self) -> None:
        """Initialize the pipeline with no detached tasks."""
        self._detached: Set["asyncio.Future[Any]"] = set()

    def run_sync(self, instance: Any, injections: Sequence[IInjection], container: IContainer) -> None:
        """Apply injections one after another.

        Raises:
            Exception: The first injection failure, unchanged.
        """
        for injection in injections:
            injection.inject_sync(instance, container)

    async def run(self, instance: Any, injections: Sequence[IInjection], container: IContainer) -> None:
        """Apply all injections concurrently.

        Raises:
            Exception: The first observed injection failure, unchanged.
        """
        if not injections:
            return

        tasks = [asyncio.ensure_future(injection.inject(instance, container)) for injection in injections]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

        for task in pending:
            self._detach(task)

        failures = [task.exception() for task in tasks if task in done and task.exception() is not None]
        if failures:
            raise failures[0]

    @property
    def pending(self) -> int:
        """Number of injections still running after their pipeline reported."""
        return len(self._detached)

    def _detach(self, task: "asyncio.Future[Any]") -> None:
        self._detached.add(task)
        task.add_done_callback(self._on_detached_done)

    def _on_detached_done(self, task: "asyncio.Future[Any]") -> None:
        self._detached.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Injection failed after its pipeline had already reported: %r", error)


class PropertyInjection(IInjection):
    """Sets an attribute on the instance to a fixed value or a resolved key.

    Example:
        >>> container.register_type(
        ...     ReportService,
        ...     injections=[PropertyInjection("clock", key="Clock"), PropertyInjection("retries", value=3)],
        ... )
    """

    def __init__(self, name: str, key: Optional[str] = None, value: Any = _UNSET) -> None:
        """Initialize the injection.

        Args:
            name: Attribute to set.
            key: Resolution key to resolve the value from.
            value: Fixed value to set; exclusive with ``key``.
        """
        if (key is None) == (value is _UNSET):
            raise ValueError("PropertyInjection needs exactly one of 'key' or 'value'")
        self.name = name
        self.key = key
        self.value = value

    def inject_sync(self, instance: Any, container: IContainer) -> None:
        value = self.value if self.key is None else container.resolve_sync(self.key)
        setattr(instance, self.name, value)

    async def inject(self, instance: Any, container: IContainer) -> None:
        value = self.value if self.key is None else await container.resolve(self.key)
        setattr(instance, self.name, value)


class MethodInjection(IInjection):
    """Calls a method on the instance with fixed values and resolved keys.

    Positional ``args`` are passed as-is; ``keys`` maps keyword argument
    names to resolution keys whose instances are passed by keyword.

    Example:
        >>> MethodInjection("configure", "eu-west-1", keys={"clock": "Clock"})
    """

    def __init__(self, name: str, *args: Any, keys: Optional[Dict[str, str]] = None) -> None:
        self.name = name
        self.args = args
        self.keys = dict(keys or {})

    def inject_sync(self, instance: Any, container: IContainer) -> None:
        kwargs = {param: container.resolve_sync(key) for param, key in self.keys.items()}
        getattr(instance, self.name)(*self.args, **kwargs)

    async def inject(self, instance: Any, container: IContainer) -> None:
        kwargs = {}
        for param, key in self.keys.items():
            kwargs[param] = await container.resolve(key)
        result = getattr(instance, self.name)(*self.args, **kwargs)
        if asyncio.iscoroutine(result):
            await result
