from typing import Any, Awaitable, Callable, Coroutine

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from tessera_di.application import Container
from tessera_di.domain import IContainer, KeyOrType


def create_fastapi_dependency(container: IContainer, key: KeyOrType) -> Callable[[], Any]:
    """Create a FastAPI Depends() callable that resolves from the container.

    The returned callable resolves in blocking mode; FastAPI runs it in its
    threadpool. The instance lifetime follows the registration.

    Args:
        container: The DI container to resolve from.
        key: The resolution key or type to resolve.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> container = Container().register_type(UserRepository, lifetime=Lifetime.SINGLETON)
        >>> get_user_repo = create_fastapi_dependency(container, UserRepository)
        >>>
        >>> @app.get("/users")
        >>> async def list_users(repo: UserRepository = Depends(get_user_repo)):
        ...     return await repo.get_all()
    """

    def dependency() -> Any:
        """Resolve the dependency from the container."""
        return container.resolve_sync(key)

    return dependency


def create_async_dependency(container: IContainer, key: KeyOrType) -> Callable[[], Coroutine[Any, Any, Any]]:
    """Create a FastAPI Depends() coroutine that resolves asynchronously.

    Use this when registrations rely on async factories or injections.

    Args:
        container: The DI container to resolve from.
        key: The resolution key or type to resolve.

    Returns:
        A coroutine function that FastAPI can use with Depends().
    """

    async def dependency() -> Any:
        """Resolve the dependency from the container."""
        return await container.resolve(key)

    return dependency


def create_request_dependency(key: KeyOrType) -> Callable[[Request], Coroutine[Any, Any, Any]]:
    """Create a FastAPI dependency resolving from the request's child container.

    Requires the ChildContainerMiddleware to be installed.

    Args:
        key: The resolution key or type to resolve.

    Returns:
        A coroutine function resolving from the request's container.

    Example:
        >>> app.add_middleware(ChildContainerMiddleware, container=container)
        >>>
        >>> get_request_context = create_request_dependency("RequestContext")
        >>>
        >>> @app.get("/process")
        >>> async def process_request(ctx=Depends(get_request_context)):
        ...     return {"request_id": ctx.request_id}
    """

    async def request_dependency(request: Request) -> Any:
        """Resolve from the request's child container."""
        if not hasattr(request.state, "di_container"):
            raise RuntimeError(
                "Request does not have a DI container. Did you forget to add ChildContainerMiddleware?"
            )
        child_container: IContainer = request.state.di_container
        return await child_container.resolve(key)

    return request_dependency


class ChildContainerMiddleware(BaseHTTPMiddleware):
    """Middleware that forks a child container for each request.

    Registrations made on the child during a request (for example the
    request object itself) shadow the parent's for that request only. The
    child container is accessible via ``request.state.di_container``.
    Singleton types that depend on ``"Request"``, directly or through other
    types, are cached per request; other singletons stay shared.

    Attributes:
        container: The parent DI container to fork from.
        register_request: Whether to register the Request instance in the child.

    Example:
        >>> container = Container().register_type(DatabaseConnection, lifetime=Lifetime.SINGLETON)
        >>>
        >>> app = FastAPI()
        >>> app.add_middleware(ChildContainerMiddleware, container=container)
    """

    def __init__(self, app: FastAPI, container: Container, register_request: bool = True):
        """Initialize the middleware with a parent container.

        Args:
            app: The FastAPI/Starlette application.
            container: The parent DI container to fork from.
            register_request: Register the Request under the key ``"Request"``.
        """
        super().__init__(app)
        self.container = container
        self.register_request = register_request

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Fork a child container for the request and execute the endpoint.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            The response from the endpoint.
        """
        child_container = self.container.create_child_container()
        if self.register_request:
            child_container.register_instance(request, "Request")
            # Singletons built from the request must not outlive it
            child_container._isolate_lifetimes(child_container._graph.dependents_of("Request"))
        request.state.di_container = child_container
        return await call_next(request)
