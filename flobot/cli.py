"""
Flobot CLI

Loads the configuration, opens the store, bootstraps the instance with the
built-in chains and runs it until SIGINT/SIGTERM.

Any bootstrap failure ends the process with the traceback of the error.
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from .common.config import ENV_FILE, FlobotConfig, load_config
from .common.tempo import Tempo
from .handlers import EditHandler, HelpHandler, TriggerHandler
from .instance import MattermostInstance
from .middleware import ignore_self, posted_only
from .store import SQLiteStore

logger = logging.getLogger("flobot.cli")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="flobot", description="Mattermost chat bot")
    parser.add_argument("--config", type=Path, default=None, help="JSON config file")
    parser.add_argument("--env-file", default=ENV_FILE, help="dotenv file (default: %(default)s)")
    parser.add_argument("--log-level", default=None, help="overrides BOT_LOG_LEVEL")
    return parser.parse_args(argv)


async def serve(config: FlobotConfig, store: SQLiteStore) -> None:
    instance = await MattermostInstance.create(config.instance, store, runtime=config.runtime)

    tempo = Tempo()
    (
        instance
        .add_middleware(ignore_self)
        .add_middleware(posted_only)
        .add_handler(HelpHandler())
        .add_handler(TriggerHandler(tempo, delay_repeat=config.runtime.trigger_delay))
        .add_handler(EditHandler())
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, instance.stop)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass

    try:
        await instance.run()
    finally:
        await instance.close()


def main(argv=None) -> None:
    args = parse_args(argv)
    config = load_config(args.config, env_file=args.env_file)

    logging.basicConfig(
        level=(args.log_level or config.runtime.log_level).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    store = SQLiteStore(config.db_url).connect()
    try:
        logger.info("Launching bot %s", config.instance.name)
        asyncio.run(serve(config, store))
    finally:
        store.close()


if __name__ == "__main__":
    main()
