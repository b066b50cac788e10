"""Bridge client - command line entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path to support direct execution
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from bridgeClient.cli import BridgeCLI
from bridgeClient.config.settings import get_settings
from bridgeClient.loader import load_mcp_config
from bridgeClient.orchestrator import BridgeClient
from bridgeClient.prompts import csv_prompt
from shared.errors import BridgeError
from shared.logging_utils import setup_logging

LOGGER = logging.getLogger("bridgeClient.main")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="bridge-chat",
        description="Chat with a model that can call tools on MCP servers.",
    )
    parser.add_argument(
        "--server",
        action="append",
        default=[],
        metavar="SCRIPT",
        help="Server script (.py or .js) to connect; repeatable. Defaults to the MCP config file.",
    )
    parser.add_argument("--token", help="Access token to store in the servers' session context")
    parser.add_argument("--csv", type=Path, metavar="FILE", help="CSV file to forward as context")
    parser.add_argument("--message", "-m", help="Send one message, print the reply and exit")
    return parser.parse_args(argv)


async def async_main(args: argparse.Namespace) -> int:
    settings = get_settings()
    client = BridgeClient(settings=settings)
    interactive = False

    try:
        LOGGER.info("MCP ecosystem is booting up...")
        if args.server:
            for script in args.server:
                await client.connect_to_server(script)
        else:
            await client.connect_configured_servers(load_mcp_config(Path(settings.mcp_config_path)))

        if args.token:
            result = await client.send_access_token(args.token)
            if result.is_error:
                print(f"❌ {result.as_text()}", file=sys.stderr)

        if args.csv:
            reply = await client.process_query(csv_prompt(args.csv.read_text(encoding="utf-8")))
            if reply:
                print(f"\n{reply}\n")

        if args.message:
            reply = await client.process_query(args.message)
            print(reply if reply is not None else "The model returned an empty or invalid reply.")
            return 0 if reply is not None else 1
        interactive = True
    finally:
        # The CLI closes the channels itself when it exits
        if not interactive:
            await client.cleanup()

    await BridgeCLI(client).run()
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging("bridgeClient", settings.log_level, Path(settings.log_dir))

    try:
        sys.exit(asyncio.run(async_main(args)))
    except KeyboardInterrupt:
        LOGGER.info("Interrupted")
    except (BridgeError, FileNotFoundError) as e:
        LOGGER.error(f"Fatal error in bridge client: {e}")
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
