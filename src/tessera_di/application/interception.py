"""Application layer - Method interception configuration and wrapping."""

import functools
import inspect
import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from tessera_di.domain import HandlerConfig, IContainer, InterceptionError, InvocationContext

logger = logging.getLogger(__name__)

Matcher = Union[str, bool, Tuple[type, Optional[str]], Callable[[Any, str], bool]]


def create_predicate(matcher: Matcher) -> Callable[[Any, str], bool]:
    """Normalize any supported matcher into a predicate.

    Args:
        matcher: A method name, a ``(cls, method_name_or_None)`` tuple, a
            boolean, or a predicate ``(instance, method_name) -> bool``.

    Raises:
        InterceptionError: If the matcher has an unsupported form.
    """
    if isinstance(matcher, str):
        return lambda instance, method_name: method_name == matcher

    if isinstance(matcher, tuple):
        if len(matcher) not in (1, 2) or not isinstance(matcher[0], type):
            raise InterceptionError(f"Tuple matchers must be (type, method_name), got {matcher!r}")
        cls = matcher[0]
        name = matcher[1] if len(matcher) == 2 else None
        return lambda instance, method_name: isinstance(instance, cls) and (not name or name == method_name)

    if isinstance(matcher, bool):
        return lambda instance, method_name: matcher

    if callable(matcher):
        return matcher

    raise InterceptionError(f"Unsupported interception matcher: {matcher!r}")


class InterceptionBuilder:
    """Pending interception configuration returned by ``Container.intercept``.

    Nothing happens until exactly one of ``sync()`` or ``async_()`` commits it.

    Example:
        >>> container.intercept("save", log_call, retry).sync()
        >>> container.intercept((Repository, None), audit).async_()
    """

    def __init__(
        self,
        container: IContainer,
        matcher: Matcher,
        handlers: Sequence[Callable[..., Any]],
        commit: Callable[[HandlerConfig], None],
    ) -> None:
        self._container = container
        self._predicate = create_predicate(matcher)
        self._handlers = list(handlers)
        self._commit = commit
        self._committed = False

    def sync(self) -> IContainer:
        """Commit the handlers for plain (non-coroutine) methods.

        Raises:
            InterceptionError: If a handler is a coroutine function or the
                configuration was already committed.
        """
        for handler in self._handlers:
            if inspect.iscoroutinefunction(handler):
                raise InterceptionError(f"Handler {handler!r} is asynchronous; commit it with async_()")
        return self._finish(is_async=False)

    def async_(self) -> IContainer:
        """Commit the handlers for coroutine methods.

        Raises:
            InterceptionError: If a handler is not a coroutine function or the
                configuration was already committed.
        """
        for handler in self._handlers:
            if not inspect.iscoroutinefunction(handler):
                raise InterceptionError(f"Handler {handler!r} is synchronous; commit it with sync()")
        return self._finish(is_async=True)

    def _finish(self, is_async: bool) -> IContainer:
        if self._committed:
            raise InterceptionError("Interception configuration has already been committed")
        self._committed = True
        self._commit(HandlerConfig(matcher=self._predicate, handlers=self._handlers, is_async=is_async))
        return self._container


def _intercept_sync(instance: Any, name: str, method: Callable[..., Any], handlers: List[Callable[..., Any]]):
    @functools.wraps(method)
    def intercepted(*args: Any, **kwargs: Any) -> Any:
        context = InvocationContext(instance=instance, method_name=name, args=args, kwargs=kwargs)

        def invoke(index: int) -> None:
            if index == len(handlers):
                context.return_value = method(*context.args, **context.kwargs)
                return
            handlers[index](context, lambda: invoke(index + 1))

        invoke(0)
        return context.return_value

    return intercepted


def _intercept_async(instance: Any, name: str, method: Callable[..., Any], handlers: List[Callable[..., Any]]):
    @functools.wraps(method)
    async def intercepted(*args: Any, **kwargs: Any) -> Any:
        context = InvocationContext(instance=instance, method_name=name, args=args, kwargs=kwargs)

        async def invoke(index: int) -> None:
            if index == len(handlers):
                context.return_value = await method(*context.args, **context.kwargs)
                return
            await handlers[index](context, lambda: invoke(index + 1))

        await invoke(0)
        return context.return_value

    return intercepted


def _interceptable_methods(instance: Any) -> List[Tuple[str, bool]]:
    methods = []
    for name in dir(type(instance)):
        if name.startswith("_"):
            continue
        attribute = inspect.getattr_static(instance, name)
        if inspect.isfunction(attribute):
            methods.append((name, inspect.iscoroutinefunction(attribute)))
    return methods


def apply_interception(instance: Any, handler_configs: Sequence[HandlerConfig]) -> Any:
    """Wrap every matched public method of a freshly built instance.

    Handlers of all matching configs run in registration order. Synchronous
    configs only wrap plain methods; asynchronous configs only wrap
    coroutine methods.

    Args:
        instance: The newly constructed instance.
        handler_configs: The container's committed configurations.

    Returns:
        The same instance, with matched methods replaced on it.

    Raises:
        InterceptionError: If a matched method cannot be replaced.
    """
    if not handler_configs:
        return instance

    for name, is_coroutine in _interceptable_methods(instance):
        handlers: List[Callable[..., Any]] = []
        for config in handler_configs:
            if config.is_async == is_coroutine and config.matcher(instance, name):
                handlers.extend(config.handlers)
        if not handlers:
            continue

        method = getattr(instance, name)
        wrap = _intercept_async if is_coroutine else _intercept_sync
        try:
            setattr(instance, name, wrap(instance, name, method, handlers))
        except AttributeError as e:
            raise InterceptionError(f"Cannot intercept {type(instance).__name__}.{name}: {e}") from e
        logger.debug("Intercepted %s.%s with %d handler(s)", type(instance).__name__, name, len(handlers))

    return instance
