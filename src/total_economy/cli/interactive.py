"""
Economy Admin Shell

A line-oriented shell over the economy plugin: each line is split with
shell quoting rules and dispatched to a registered command. The shell
starts the plugin before the first prompt and saves accounts on the way out.
"""

import asyncio
import logging
import os
import shlex
import signal
import sys
from contextlib import asynccontextmanager
from typing import Optional

from total_economy.cogs.economy.main import TotalEconomyPlugin
from total_economy.core.errors import ConfigurationError
from total_economy.core.logging import log_context

from .builtin_commands import ExitCommand, HelpCommand, QuitCommand
from .commands import CommandRegistry, CommandResult
from .economy_commands import create_economy_commands

PROMPT = "economy> "


class InteractiveShell:
    """Reads commands from the terminal and runs them against one plugin."""

    def __init__(self, plugin: TotalEconomyPlugin):
        self.plugin = plugin
        self.logger = logging.getLogger("total_economy.cli.interactive_shell")
        self.running = False
        self.should_shutdown = False
        self._closed = False
        # Piped input or NON_INTERACTIVE=1 prints the banner and exits
        self._is_interactive = (
            sys.stdin.isatty() and sys.stdout.isatty()
            and not os.environ.get('NON_INTERACTIVE')
        )

        self.command_registry = CommandRegistry()
        for command in (HelpCommand(self.command_registry), ExitCommand(self), QuitCommand(self),
                        *create_economy_commands(plugin)):
            self.command_registry.register_command(command)

    async def initialize(self) -> None:
        """
        Start the plugin

        Raises:
            ConfigurationError: when the plugin cannot load its accounts
        """
        try:
            await self.plugin.initialize()
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                "interactive_shell", f"Failed to initialize interactive shell: {e}", cause=e
            )
        self.logger.info("Interactive shell ready")

    async def start(self) -> None:
        """Prompt for commands until exit, end of input or SIGTERM"""
        if not self.plugin.is_initialized:
            raise ConfigurationError(
                "interactive_shell", "Shell not initialized. Call initialize() first."
            )

        self.running = True
        try:
            signal.signal(signal.SIGTERM, self._on_sigterm)
        except ValueError:
            # not the main thread
            self.logger.warning("Signal handling not available in this environment")

        with log_context(component="interactive_shell", session="terminal"):
            self._print_banner()
            if not self._is_interactive:
                self.logger.info("Auto-exiting in non-interactive environment")
                return
            await self._loop()

    def _on_sigterm(self, signum, frame):
        self.logger.info("Received termination signal, shutting down")
        self.should_shutdown = True

    def _print_banner(self) -> None:
        currency = self.plugin.account_manager.default_currency
        print("💰 Total Economy Admin Shell")
        print(f"Default currency: {currency.display_name} ({currency.symbol})")
        print("-" * 60)
        print("Type 'help' for available commands, 'exit' to quit\n")

    async def _loop(self) -> None:
        while self.running and not self.should_shutdown:
            try:
                line = await self._read_line()
            except KeyboardInterrupt:
                print("\n⚠️  Interrupted. Type 'exit' to quit.")
                continue
            if line is None:
                print("\n👋 Session ended")
                return
            if line.strip():
                result = await self.process_command(line.strip())
                if result.message:
                    print(result)

    async def _read_line(self) -> Optional[str]:
        """Next input line, or None at end of input"""
        try:
            return await asyncio.to_thread(input, PROMPT)
        except EOFError:
            return None

    async def process_command(self, input_line: str) -> CommandResult:
        """Split one line into a command name and arguments and run it"""
        try:
            words = shlex.split(input_line)
        except ValueError as e:
            return CommandResult(False, f"Could not parse command: {e}", error=e)
        if not words:
            return CommandResult(False, "Empty command")

        name, args = words[0].lower(), words[1:]
        self.logger.info("Processing command", extra={"command": name, "args_count": len(args)})
        return await self.command_registry.execute_command(name, args)

    def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        """Save accounts and stop the plugin; safe to call more than once"""
        if self._closed:
            return
        self._closed = True
        self.running = False
        try:
            await self.plugin.shutdown()
        finally:
            self.command_registry.clear_registry()
        self.logger.info("Interactive shell closed")

    @asynccontextmanager
    async def session(self):
        await self.initialize()
        try:
            yield self
        finally:
            await self.shutdown()

    def is_running(self) -> bool:
        return self.running

    def is_interactive(self) -> bool:
        return self._is_interactive
