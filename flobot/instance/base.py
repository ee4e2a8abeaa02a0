"""
Base Instance

Abstract interface shared by platform instances. Middlewares and handlers are
written against this interface, not against a concrete platform.

Middleware: async (instance, event) -> bool
    Runs before any handler, in registration order, on the same event object
    (mutations are seen by later stages). Returning False drops the event
    silently; raising drops it and logs the error.

Handler: async (instance, event) -> None
    Runs after all middlewares allowed the event, in registration order, on
    its own copy of the event. Raising logs the error; the next handler still
    runs.

A handler may expose `name` and `help` attributes; those feed !help.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..common.config import InstanceConfig
from ..models import User, WebSocketEvent

MiddlewareResult = Union[bool, Awaitable[bool]]
HandlerResult = Optional[Awaitable[None]]

Middleware = Callable[["Instance", WebSocketEvent], MiddlewareResult]
Handler = Callable[["Instance", WebSocketEvent], HandlerResult]


def stage_name(stage: Callable) -> str:
    """Display name of a middleware or handler"""
    name = getattr(stage, "name", None)
    if isinstance(name, str) and name:
        return name
    return getattr(stage, "__name__", type(stage).__name__)


class Instance(ABC):
    """Composition root of a running bot"""

    @property
    @abstractmethod
    def config(self) -> InstanceConfig:
        pass

    @property
    @abstractmethod
    def store(self) -> Any:
        """Persistence handle, passed through untouched"""
        pass

    @property
    @abstractmethod
    def client(self) -> Any:
        """REST client of the platform"""
        pass

    @property
    @abstractmethod
    def me(self) -> User:
        """The bot's own user, fetched at startup"""
        pass

    @property
    @abstractmethod
    def helps(self) -> Dict[str, str]:
        """Help texts of registered handlers, by handler name"""
        pass

    @abstractmethod
    def add_middleware(self, middleware: Middleware) -> "Instance":
        pass

    @abstractmethod
    def add_handler(self, handler: Handler) -> "Instance":
        pass

    @abstractmethod
    async def run(self) -> None:
        pass

    @abstractmethod
    async def handle(self, event: WebSocketEvent) -> None:
        pass
