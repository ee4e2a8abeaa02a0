"""
Configuration Management for Flobot

Loads configuration from ~/.flobot/config.json, a dotenv file (flobot.env)
and environment variables.

The instance section is required: the bot cannot start without knowing where
the platform lives, who it is and where to announce itself.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from ..errors import ConfigError

logger = logging.getLogger("flobot.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".flobot"
CONFIG_PATH = CONFIG_DIR / "config.json"
ENV_FILE = "flobot.env"


@dataclass(frozen=True)
class InstanceConfig:
    """Chat platform connection settings. Read-only after construction."""
    name: str
    debug_channel: str
    api_url: str
    ws_url: str
    token: str


@dataclass
class RuntimeConfig:
    """Dispatch and client tuning"""
    max_concurrent_events: int = 64
    dispatch_timeout: float = 60.0  # seconds, 0 disables
    request_timeout: float = 10.0
    trigger_delay: int = 120  # seconds between two identical trigger replies
    log_level: str = "INFO"


@dataclass
class FlobotConfig:
    """Main Flobot configuration"""
    instance: InstanceConfig
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    db_url: str = "flobot.db"


# env var -> InstanceConfig field
_INSTANCE_ENV = {
    "BOT_NAME": "name",
    "BOT_DEBUG_CHAN": "debug_channel",
    "BOT_API_URL": "api_url",
    "BOT_WS_URL": "ws_url",
    "BOT_TOKEN": "token",
}


def _parse_instance_section(data: dict) -> dict:
    """Read instance fields from the config file, then let env vars win."""
    instance_data = data.get("instance", {})
    values = {
        name: instance_data.get(name, "")
        for name in _INSTANCE_ENV.values()
    }
    for env_var, attr in _INSTANCE_ENV.items():
        val = os.getenv(env_var)
        if val:
            values[attr] = val
    return values


def _parse_runtime_config(data: dict) -> RuntimeConfig:
    """Parse runtime section from config dict"""
    runtime_data = data.get("runtime", {})
    config = RuntimeConfig(
        max_concurrent_events=runtime_data.get("max_concurrent_events", 64),
        dispatch_timeout=runtime_data.get("dispatch_timeout", 60.0),
        request_timeout=runtime_data.get("request_timeout", 10.0),
        trigger_delay=runtime_data.get("trigger_delay", 120),
        log_level=runtime_data.get("log_level", "INFO"),
    )

    try:
        if os.getenv("BOT_MAX_CONCURRENT_EVENTS"):
            config.max_concurrent_events = int(os.getenv("BOT_MAX_CONCURRENT_EVENTS"))
        if os.getenv("BOT_DISPATCH_TIMEOUT"):
            config.dispatch_timeout = float(os.getenv("BOT_DISPATCH_TIMEOUT"))
        if os.getenv("BOT_REQUEST_TIMEOUT"):
            config.request_timeout = float(os.getenv("BOT_REQUEST_TIMEOUT"))
        if os.getenv("BOT_TRIGGER_DELAY"):
            config.trigger_delay = int(os.getenv("BOT_TRIGGER_DELAY"))
    except ValueError as e:
        raise ConfigError(f"invalid numeric runtime setting: {e}") from e

    if os.getenv("BOT_LOG_LEVEL"):
        config.log_level = os.getenv("BOT_LOG_LEVEL")

    if config.max_concurrent_events < 1:
        raise ConfigError("max_concurrent_events must be at least 1")

    return config


def _read_config_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            return json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning("Failed to load config file %s: %s", path, e)
        return {}


def load_config(
    path: Optional[Path] = None,
    env_file: Optional[str] = ENV_FILE,
) -> FlobotConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (including those from the dotenv file)
    2. Config file (~/.flobot/config.json)
    3. Default values (runtime section only)

    Raises:
        ConfigError: if any instance setting is missing
    """
    if env_file:
        # Existing environment wins over the dotenv file
        load_dotenv(env_file, override=False)

    data = _read_config_file(Path(path) if path else CONFIG_PATH)

    instance_values = _parse_instance_section(data)
    missing = sorted(
        env_var for env_var, attr in _INSTANCE_ENV.items()
        if not instance_values[attr]
    )
    if missing:
        raise ConfigError(f"missing required settings: {', '.join(missing)}")

    return FlobotConfig(
        instance=InstanceConfig(**instance_values),
        runtime=_parse_runtime_config(data),
        db_url=os.getenv("BOT_DB_URL") or data.get("db_url", "flobot.db"),
    )
