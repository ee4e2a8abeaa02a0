"""
Flobot Errors

Two tiers:
- Fatal: BootstrapError, ProgrammingError, ConnectionClosedError, ConfigError.
  Never caught inside the library; they end the process.
- Soft: anything raised by a middleware or handler while dispatching one
  event. Logged by the instance, the event loop carries on.
"""

from typing import Optional


class FlobotError(Exception):
    """Base error for the bot"""
    pass


class ConfigError(FlobotError):
    """Required configuration is missing or invalid"""
    pass


class BootstrapError(FlobotError):
    """The instance could not be brought up (identity, websocket, announce)"""

    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"bootstrap failed at {step}: {cause}")


class ProgrammingError(FlobotError):
    """The instance API was misused (e.g. adding a handler while running)"""
    pass


class ConnectionClosedError(FlobotError):
    """The live connection stopped delivering events"""
    pass


class ClientError(FlobotError):
    """Error talking to the chat platform"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class EventDecodeError(FlobotError):
    """A websocket frame or its embedded payload could not be decoded"""
    pass


class StoreError(FlobotError):
    """Persistence failure"""
    pass
