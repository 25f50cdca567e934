"""
Launcher for a demo plugin attached to a host over a WebSocket.

The demo plugin logs every lifecycle message it receives and closes the
activity screen as soon as ``open`` has run.
"""

import argparse
import dataclasses
import logging

from ofs_plugin.channel import WebSocketHostChannel
from ofs_plugin.config import configure_logging, load_plugin_config
from ofs_plugin.plugin import OFSPlugin
from ofs_plugin.storage import JsonFilePropertyStore, MemoryPropertyStore

logger = logging.getLogger(__name__)


class LoggingPlugin(OFSPlugin):
    def init(self, message):
        logger.info("%s: init with %d application(s)", self.tag, len(message.applications))
        return None

    async def open(self, message):
        if self.proxy is not None:
            logger.info("%s: open with proxy for %s", self.tag, self.proxy.base_url)
        else:
            logger.info("%s: open without proxy", self.tag)
        self.close()

    def error(self, message):
        logger.error("%s: host reported errors: %s", self.tag, message.errors)

    def wakeup(self, message):
        logger.info("%s: wakeup", self.tag)

    def call_procedure_result(self, message):
        logger.info("%s: %s result for %s", self.tag, message.procedure, message.call_id)


def resolve_config(debug=False, env=None):
    """Environment configuration with the command-line debug switch applied."""
    config = load_plugin_config(env)
    if debug:
        config = dataclasses.replace(
            config,
            logging=dataclasses.replace(config.logging, enabled=True),
        )
    return config


def launch_plugin(url, tag="demo", debug=False, store_path=None, referrer=None):
    """Connect a :class:`LoggingPlugin` to the host at *url* and serve it."""

    config = resolve_config(debug)
    configure_logging(config.logging)

    store = JsonFilePropertyStore(store_path) if store_path else MemoryPropertyStore()
    channel = WebSocketHostChannel(url, referrer=referrer)
    plugin = LoggingPlugin(tag, channel=channel, store=store, config=config)
    logger.info("Launching plugin %s against %s", tag, url)
    try:
        channel.run(plugin)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    logger.info("Plugin closed")


def main(argv=None):
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="OFS plugin host bridge")
    parser.add_argument("--url", default="ws://localhost:8765", help="Host WebSocket URL (default: ws://localhost:8765)")
    parser.add_argument("--tag", default="demo", help="Plugin tag used in logs and stored properties")
    parser.add_argument("--referrer", default=None, help="Page URL of the host document (default: derived from --url)")
    parser.add_argument("--store", default=None, help="JSON file for persisted plugin properties (default: in memory)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    launch_plugin(
        args.url,
        tag=args.tag,
        debug=args.debug,
        store_path=args.store,
        referrer=args.referrer,
    )


if __name__ == "__main__":
    main()
