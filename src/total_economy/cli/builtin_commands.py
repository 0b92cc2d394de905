"""
Built-in Shell Commands

This module provides the commands that are always available in the economy
admin shell: help, exit and quit.
"""

from typing import TYPE_CHECKING, List

from .commands import BaseCommand, CommandRegistry, CommandResult

if TYPE_CHECKING:
    from .interactive import InteractiveShell

BUILTIN_COMMAND_NAMES = ("help", "exit", "quit")


class HelpCommand(BaseCommand):
    """
    Display help information about available commands
    """

    def __init__(self, command_registry: CommandRegistry):
        super().__init__(
            name="help",
            description="Display help information about available commands"
        )
        self.command_registry = command_registry

    async def execute(self, args: List[str]) -> CommandResult:
        self.validate_args(args, max_args=1)

        if args:
            command_name = args[0].lower()
            command = self.command_registry.find_command(command_name)

            if command is None:
                suggestions = self.command_registry.find_similar_commands(command_name)
                if suggestions:
                    message = f"Command '{command_name}' not found. Did you mean: {', '.join(suggestions)}?"
                else:
                    message = f"Command '{command_name}' not found."
                return CommandResult(False, message)

            help_text = (
                f"📖 Help for '{command_name}':\n"
                f"Description: {command.description}\n"
                f"Syntax: {command.get_syntax()}\n\n"
                f"{command.get_help()}"
            )
            return CommandResult(True, help_text)

        commands = sorted(self.command_registry.get_all_commands(), key=lambda c: c.name)
        builtin = [cmd for cmd in commands if cmd.name in BUILTIN_COMMAND_NAMES]
        economy = [cmd for cmd in commands if cmd.name not in BUILTIN_COMMAND_NAMES]

        lines = ["📖 Available Commands:", ""]
        if builtin:
            lines.append("Built-in Commands:")
            lines.extend(f"  {cmd.name:<14} - {cmd.description}" for cmd in builtin)
            lines.append("")
        if economy:
            lines.append("Economy Commands:")
            lines.extend(f"  {cmd.name:<14} - {cmd.description}" for cmd in economy)
            lines.append("")
        lines.append("Type 'help <command>' for detailed information about a specific command.")
        lines.append("Type 'exit' or 'quit' to leave the shell.")

        return CommandResult(True, "\n".join(lines), data={"commands": [c.name for c in commands]})

    def get_help(self) -> str:
        return """Display help information about available commands.

Usage:
  help              - Show all available commands
  help <command>    - Show detailed help for a specific command

Examples:
  help
  help pay"""

    def get_syntax(self) -> str:
        return "help [command_name]"


class ExitCommand(BaseCommand):
    """
    Exit the interactive shell session
    """

    def __init__(self, shell: 'InteractiveShell'):
        super().__init__(
            name="exit",
            description="Exit the interactive shell session"
        )
        self.shell = shell

    async def execute(self, args: List[str]) -> CommandResult:
        self.logger.info("Exit command executed, stopping shell")
        self.shell.stop()
        return CommandResult(True, "👋 Exiting economy shell...")

    def get_help(self) -> str:
        return """Exit the interactive shell session.

Usage:
  exit              - Exit the shell
  quit              - Alias for exit

The account file is saved and the event bus is shut down on exit."""

    def get_syntax(self) -> str:
        return self.name


class QuitCommand(ExitCommand):
    """
    Alias for the exit command
    """

    def __init__(self, shell: 'InteractiveShell'):
        super().__init__(shell)
        self.name = "quit"
        self.description = "Exit the interactive shell session (alias for exit)"
