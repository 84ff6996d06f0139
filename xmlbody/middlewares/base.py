"""Base middleware architecture for Robyn applications."""

import inspect
from collections.abc import Callable

from robyn import Request, Response, Robyn

from xmlbody.core.logger import LogIcon, logger


class BaseMiddleware:
    """Base class for middlewares with before/after hooks.

    Subclasses override ``before``, ``after`` or both; hooks may be coroutines.
    With ``endpoints`` the middleware is scoped to those routes, otherwise it
    applies to every route of the app.
    """

    endpoints: frozenset[str]

    def __init__(self, endpoints: frozenset[str] | list[str] | None = None) -> None:
        self.endpoints = frozenset(endpoints) if endpoints else frozenset()

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if not (cls.has_before() or cls.has_after()):
            raise TypeError(f"{cls.__name__} must implement at least one of before/after")

    @classmethod
    def has_before(cls) -> bool:
        return cls.before is not BaseMiddleware.before

    @classmethod
    def has_after(cls) -> bool:
        return cls.after is not BaseMiddleware.after

    def before(self, request: Request) -> Request | Response:
        """Called before request handling. Return Request to continue or Response to short-circuit."""
        return request

    def after(self, response: Response) -> Response:
        """Called after request handling. Return modified Response."""
        return response


class MiddlewareHandler:
    """Manages middleware registration for a Robyn application.

    Hooks are registered as global Robyn middlewares: Robyn only runs
    endpoint-bound hooks for GET requests, so route scoping is done here by
    matching the request path against ``middleware.endpoints``.
    """

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._middlewares: list[BaseMiddleware] = []

    @property
    def middlewares(self) -> list[BaseMiddleware]:
        return self._middlewares

    def register(self, middleware: BaseMiddleware) -> "MiddlewareHandler":
        """Register a middleware instance. Returns self for chaining."""
        if middleware.endpoints and middleware.has_after():
            raise TypeError(f"{middleware.__class__.__name__}: after hooks cannot be scoped to endpoints")

        if middleware.has_before():
            self._register_before(middleware)
        if middleware.has_after():
            self._register_after(middleware.after)

        self._middlewares.append(middleware)
        logger.info(
            f"Registered middleware: {middleware.__class__.__name__}",
            icon=LogIcon.ADAPTER,
            endpoints=sorted(middleware.endpoints) or "*",
        )
        return self

    def _register_before(self, middleware: BaseMiddleware) -> None:
        """Register a global before_request handler, skipping paths outside the middleware's endpoints."""
        endpoints = frozenset(normalize_path(endpoint) for endpoint in middleware.endpoints)

        @self._app.before_request()
        async def before_wrapper(request: Request) -> Request | Response:
            if endpoints and normalize_path(request.url.path) not in endpoints:
                return request
            result = middleware.before(request)
            if inspect.isawaitable(result):
                result = await result
            return result

    def _register_after(self, handler: Callable) -> None:
        """Register a global after_request handler."""
        @self._app.after_request()
        def after_wrapper(response: Response) -> Response:
            return handler(response)


def normalize_path(path: str) -> str:
    """Drop the trailing slash so '/echo' and '/echo/' scope the same route."""
    return path.rstrip("/") or "/"
