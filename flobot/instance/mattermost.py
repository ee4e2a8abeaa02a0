"""
Mattermost Instance

Connects the Mattermost websocket stream to the middleware and handler chains.

Bootstrap (each step fatal on failure):
1. Build the authenticated REST client
2. Fetch the bot's own user (handlers need it to ignore themselves)
3. Open and authenticate the websocket, start listening
4. Announce "bot <name> is up" in the debug channel

Run:
- Chains are frozen; adding to them afterwards raises ProgrammingError
- Each event is dispatched on its own task, at most max_concurrent_events
  at a time, each bounded by dispatch_timeout
- Events of different tasks are not ordered relative to each other
- If the event stream ends without stop(), ConnectionClosedError is raised
- A fatal error from a job cancels the other in-flight jobs and is raised

Handler errors and the loaded chains are also posted in the debug channel.
"""

import asyncio
import inspect
import logging
import threading
from typing import Any, Dict, Optional, Sequence, Set

from ..client import MattermostClient, WebSocketClient
from ..common.config import InstanceConfig, RuntimeConfig
from ..errors import (
    BootstrapError,
    ClientError,
    ConnectionClosedError,
    ProgrammingError,
)
from ..models import User, WebSocketEvent
from .base import Handler, Instance, Middleware, stage_name

logger = logging.getLogger("flobot.instance.mattermost")


class MattermostInstance(Instance):
    """
    Bot instance for a Mattermost server.

    Usage:
        instance = await MattermostInstance.create(config, store)
        instance.add_middleware(ignore_self).add_handler(HelpHandler())
        await instance.run()
    """

    def __init__(
        self,
        config: InstanceConfig,
        store: Any,
        runtime: Optional[RuntimeConfig] = None,
        client: Optional[MattermostClient] = None,
        websocket: Optional[WebSocketClient] = None,
    ):
        """
        Build an instance without any I/O. Use create() to get a ready one.

        Args:
            config: Platform settings
            store: Persistence handle, opaque to the instance
            runtime: Dispatch tuning (defaults apply when omitted)
            client: Prebuilt REST client (built from config otherwise)
            websocket: Prebuilt websocket client (built from config otherwise)
        """
        self._config = config
        self._store = store
        self._runtime = runtime or RuntimeConfig()
        self._client = client
        self._websocket = websocket
        self._me: Optional[User] = None

        self._lock = threading.Lock()
        self._running = False
        self._stopping = False
        self._middlewares: Sequence[Middleware] = []
        self._handlers: Sequence[Handler] = []
        self._helps: Dict[str, str] = {}

        self._jobs: Set[asyncio.Task] = set()
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._fatal: Optional[BaseException] = None

    @classmethod
    async def create(
        cls,
        config: InstanceConfig,
        store: Any,
        runtime: Optional[RuntimeConfig] = None,
        client: Optional[MattermostClient] = None,
        websocket: Optional[WebSocketClient] = None,
    ) -> "MattermostInstance":
        """
        Create and bootstrap an instance.

        Raises:
            BootstrapError: if any bootstrap step fails
        """
        instance = cls(config, store, runtime=runtime, client=client, websocket=websocket)
        try:
            await instance._bootstrap()
        except BaseException:
            await instance.close()
            raise
        return instance

    # ------------------------------------------------------------------ #
    # Bootstrap
    # ------------------------------------------------------------------ #

    async def _bootstrap(self) -> None:
        self._init_client()
        await self._fetch_me()
        await self._connect_websocket()
        await self._announce()

    def _init_client(self) -> None:
        if self._client is None:
            self._client = MattermostClient(
                api_url=self._config.api_url,
                token=self._config.token,
                debug_channel=self._config.debug_channel,
                timeout=self._runtime.request_timeout,
            )

    async def _fetch_me(self) -> None:
        try:
            self._me = await self._client.get_me()
        except ClientError as e:
            raise BootstrapError("fetch identity", e) from e
        logger.info("Logged in as %s (%s)", self._me.username, self._me.id)

    async def _connect_websocket(self) -> None:
        if self._websocket is None:
            self._websocket = WebSocketClient(self._config.ws_url, self._config.token)
        try:
            await self._websocket.connect()
            self._websocket.listen()
        except ClientError as e:
            raise BootstrapError("websocket", e) from e

    async def _announce(self) -> None:
        try:
            channel = await self._client.get_channel(self._config.debug_channel)
            await self._client.create_post(channel.id, f"bot {self._config.name} is up")
        except ClientError as e:
            raise BootstrapError("announce", e) from e

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> InstanceConfig:
        return self._config

    @property
    def store(self) -> Any:
        return self._store

    @property
    def client(self) -> MattermostClient:
        return self._client

    @property
    def me(self) -> User:
        return self._me

    @property
    def helps(self) -> Dict[str, str]:
        return dict(self._helps)

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------ #
    # Chains
    # ------------------------------------------------------------------ #

    def add_middleware(self, middleware: Middleware) -> "MattermostInstance":
        with self._lock:
            if self._running:
                raise ProgrammingError("programming error: cannot add middleware while running")
            self._middlewares.append(middleware)
        return self

    def add_handler(self, handler: Handler) -> "MattermostInstance":
        with self._lock:
            if self._running:
                raise ProgrammingError("programming error: cannot add handler while running")
            self._handlers.append(handler)
            help_text = getattr(handler, "help", None)
            if isinstance(help_text, str) and help_text:
                self._helps[stage_name(handler)] = help_text
        return self

    # ------------------------------------------------------------------ #
    # Event loop
    # ------------------------------------------------------------------ #

    async def run(self) -> None:
        """
        Consume events until stop() is called.

        Raises:
            ProgrammingError: if the instance is already running or a stage
                misused the instance API
            ConnectionClosedError: if the event stream ended on its own
        """
        with self._lock:
            if self._running:
                raise ProgrammingError("programming error: instance is already running")
            if self._websocket is None:
                raise ProgrammingError("programming error: run() before bootstrap, use create()")
            self._running = True
            self._middlewares = tuple(self._middlewares)
            self._handlers = tuple(self._handlers)

        logger.info(
            "Running with middlewares [%s] and handlers [%s]",
            ", ".join(stage_name(m) for m in self._middlewares),
            ", ".join(stage_name(h) for h in self._handlers),
        )
        await self._report(self._loaded_summary())

        self._semaphore = asyncio.Semaphore(self._runtime.max_concurrent_events)
        events = self._websocket.events

        try:
            while True:
                event = await events.get()
                if self._fatal is not None:
                    raise self._fatal
                if event is None:
                    if self._stopping:
                        break
                    raise ConnectionClosedError("websocket event stream closed")

                await self._semaphore.acquire()
                job = asyncio.create_task(self._dispatch(event))
                self._jobs.add(job)
                job.add_done_callback(self._job_done)
        except ConnectionClosedError:
            raise
        except BaseException:
            # Fatal errors and cancellation abort in-flight jobs; stop() and a
            # closed stream let them finish
            for job in list(self._jobs):
                job.cancel()
            raise
        finally:
            if self._jobs:
                await asyncio.gather(*self._jobs, return_exceptions=True)

        logger.info("Stopped")

    def _loaded_summary(self) -> str:
        lines = ["## Loaded middlewares"]
        lines.extend(f" * `{stage_name(m)}`" for m in self._middlewares)
        lines.append("## Loaded post handlers")
        lines.extend(f" * `{stage_name(h)}`" for h in self._handlers)
        return "\n".join(lines) + "\n"

    async def _report(self, message: str) -> None:
        """Post message in the debug channel; failing to do so is only logged"""
        if self._client is None:
            return
        try:
            await self._client.debug(message)
        except Exception as e:
            logger.warning("debug error: %s", e)

    def stop(self) -> None:
        """Ask run() to return once in-flight jobs are done"""
        self._stopping = True
        if self._websocket is not None:
            self._websocket.events.put_nowait(None)

    async def close(self) -> None:
        """Release the websocket and the HTTP pool (process exit otherwise)"""
        if self._websocket is not None:
            await self._websocket.close()
        if self._client is not None:
            await self._client.close()

    async def _dispatch(self, event: WebSocketEvent) -> None:
        timeout = self._runtime.dispatch_timeout
        try:
            if timeout and timeout > 0:
                await asyncio.wait_for(self.handle(event), timeout=timeout)
            else:
                await self.handle(event)
        except asyncio.TimeoutError:
            logger.error("dispatch of %s event timed out after %ss", event.event or "unknown", timeout)

    def _job_done(self, job: asyncio.Task) -> None:
        self._jobs.discard(job)
        self._semaphore.release()
        if job.cancelled():
            return
        exc = job.exception()
        if exc is not None and self._fatal is None:
            # Only fatal errors escape handle(); surface them in run()
            self._fatal = exc
            self._websocket.events.put_nowait(None)

    # ------------------------------------------------------------------ #
    # Pipeline
    # ------------------------------------------------------------------ #

    async def handle(self, event: WebSocketEvent) -> None:
        """
        Run one event through the middlewares, then the handlers.

        A middleware returning False or raising stops the event. Handlers all
        run; a handler raising does not stop the next one.
        """
        for index, middleware in enumerate(self._middlewares):
            try:
                cont = await _call(middleware, self, event)
            except ProgrammingError:
                raise
            except Exception as e:
                logger.error("error from middleware: %d: %s", index, e)
                return
            if not cont:
                return

        for index, handler in enumerate(self._handlers):
            try:
                await _call(handler, self, event.model_copy(deep=True))
            except ProgrammingError:
                raise
            except Exception as e:
                logger.error("error from handler: %d: %s", index, e)
                await self._report(f"error: {e}")


async def _call(stage, instance: Instance, event: WebSocketEvent):
    """Call a stage that may be a plain function or a coroutine function"""
    result = stage(instance, event)
    if inspect.isawaitable(result):
        result = await result
    return result
