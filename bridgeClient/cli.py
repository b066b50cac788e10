"""Interactive command line for the bridge client."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Optional

from bridgeClient.orchestrator import BridgeClient

LOGGER = logging.getLogger(__name__)


class BridgeCLI:
    """Chat loop over a connected ``BridgeClient``.

    Provides:
    - Command routing (/quit, /help, /history, /tools, /reset)
    - Main input/output loop
    - Channel cleanup on exit
    """

    COMMANDS: Dict[str, str] = {
        "/quit": "Exit",
        "/exit": "Exit",
        "/help": "Show this help",
        "/history": "Show the conversation so far",
        "/tools": "List the tools of every connected server",
        "/reset": "Forget the conversation (servers stay connected)",
    }

    def __init__(self, client: BridgeClient):
        self.client = client
        self._command_handlers = self._build_command_handlers()
        self._running = False

    def _build_command_handlers(self) -> Dict[str, Callable]:
        return {
            "/quit": self._handle_quit,
            "/exit": self._handle_quit,
            "/help": self._handle_help,
            "/history": self._handle_history,
            "/tools": self._handle_tools,
            "/reset": self._handle_reset,
        }

    # ========== Main Loop ==========

    async def run(self) -> None:
        """Read lines until /quit or EOF, then close all channels."""
        self._running = True
        self.print_welcome()

        while self._running:
            try:
                user_input = await self.get_input()

                if not user_input:
                    continue

                if self.is_command(user_input):
                    should_continue = await self.handle_command(user_input)
                    if not should_continue:
                        break
                else:
                    await self.handle_user_message(user_input)

            except (KeyboardInterrupt, EOFError):
                print("\nGoodbye!")
                LOGGER.info("Session interrupted by user")
                break
            except Exception as e:
                LOGGER.error(f"Unexpected error in main loop: {e}", exc_info=True)
                print(f"❌ Error: {e}")

        await self.on_shutdown()

    async def on_shutdown(self) -> None:
        LOGGER.info("CLI shutting down")
        await self.client.cleanup()

    def print_welcome(self) -> None:
        print("MCP client started.")
        print(f"Connected servers: {', '.join(self.client.server_ids) or 'none'}")
        print("Type /help for commands.\n")

    async def get_input(self) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: input("Query> ").strip())

    async def handle_user_message(self, message: str) -> None:
        reply = await self.client.process_query(message)
        if reply is None:
            print("\nSorry, the model returned an empty or invalid reply. Please try again.\n")
        else:
            print(f"\n{reply}\n")

    # ========== Command Handling ==========

    def is_command(self, text: str) -> bool:
        return text.startswith("/")

    async def handle_command(self, cmd: str) -> bool:
        """Dispatch a slash command.

        Returns:
            True to continue main loop, False to exit
        """
        parts = cmd.split(maxsplit=1)
        cmd_name = parts[0].lower()
        cmd_arg = parts[1] if len(parts) > 1 else None

        handler = self._command_handlers.get(cmd_name)
        if handler:
            return await handler(cmd_arg)
        print(f"❌ Unknown command: {cmd_name}")
        print("   Type /help for available commands")
        return True

    async def _handle_quit(self, arg: Optional[str]) -> bool:
        print("Session ended.")
        LOGGER.info("Exit requested by /quit command")
        return False

    async def _handle_help(self, arg: Optional[str]) -> bool:
        print("\nAvailable commands:")
        for cmd, desc in self.COMMANDS.items():
            print(f"  {cmd:<20} {desc}")
        print()
        return True

    async def _handle_history(self, arg: Optional[str]) -> bool:
        history = self.client.history
        if not history:
            print("No messages yet.\n")
            return True
        print()
        for turn in history:
            label = "You" if turn.role == "user" else "Agent"
            text = turn.text if len(turn.text) <= 200 else turn.text[:200] + "..."
            print(f"  {label}> {text}")
        print()
        return True

    async def _handle_tools(self, arg: Optional[str]) -> bool:
        names = self.client.tool_names
        if not names:
            print("No tools connected.\n")
        else:
            print(f"\n{len(names)} tool(s): {', '.join(names)}\n")
        return True

    async def _handle_reset(self, arg: Optional[str]) -> bool:
        self.client.reset()
        print("✅ Conversation cleared.\n")
        return True


__all__ = ["BridgeCLI"]
