"""
Shell Command Framework

Every admin shell command subclasses ``BaseCommand`` and is looked up by name
through ``CommandRegistry``. Commands report outcomes as ``CommandResult``;
application errors raised while a command runs are turned into failed
results by the registry, so a bad argument never ends the shell session.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from total_economy.core.errors import AppError, ValidationError

COMMAND_NAME_PATTERN = re.compile(r'^[a-z][a-z0-9_-]*$')
_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f-\x9f]')
MAX_ARG_LENGTH = 1000


class CommandResult:
    """Outcome of one command, printed by the shell when it has a message."""

    def __init__(self,
                 success: bool = True,
                 message: str = "",
                 data: Optional[Dict[str, Any]] = None,
                 error: Optional[Exception] = None):
        self.success = success
        self.message = message
        self.data = data or {}
        self.error = error

    def __str__(self) -> str:
        if self.success:
            return f"✅ {self.message or 'Command executed successfully'}"
        text = self.message or "Command failed"
        if self.error is not None and str(self.error) != self.message:
            text = f"{text} - {self.error}"
        return f"❌ {text}"


class BaseCommand(ABC):
    """
    A named shell command

    Subclasses implement ``execute`` and ``get_help``; ``get_syntax`` is
    shown in usage errors and in ``help <command>``.
    """

    def __init__(self, name: str, description: str):
        self.name = name.lower()
        self.description = description
        self.logger = logging.getLogger(f"total_economy.cli.command.{self.name}")

    @abstractmethod
    async def execute(self, args: List[str]) -> CommandResult:
        """Run the command with the words after its name"""

    @abstractmethod
    def get_help(self) -> str:
        """Long help text"""

    def get_syntax(self) -> str:
        return f"{self.name} [options]"

    def validate_args(self, args: List[str], min_args: int = 0, max_args: Optional[int] = None) -> None:
        """
        Check the argument count

        Raises:
            ValidationError: with the command's usage line in the message
        """
        count = len(args)
        if count < min_args:
            rule, bound = f"minimum {min_args} arguments required", f"at least {min_args}"
        elif max_args is not None and count > max_args:
            rule, bound = f"maximum {max_args} arguments allowed", f"at most {max_args}"
        else:
            return

        raise ValidationError(
            field="args",
            value=args,
            validation_rule=rule,
            message=f"Command '{self.name}' accepts {bound} arguments, got {count}. "
                    f"Usage: {self.get_syntax()}"
        )

    def sanitize_input(self, input_str: str) -> str:
        """Drop control characters and cap the length before logging"""
        return _CONTROL_CHARS.sub('', input_str)[:MAX_ARG_LENGTH]

    def log_command_execution(self, args: List[str], result: CommandResult) -> None:
        """Audit record for every command that ran to completion"""
        fields = {
            "command": self.name,
            "command_args": [self.sanitize_input(str(arg)) for arg in args],
            "success": result.success,
            "result_message": result.message,
        }
        if result.success:
            self.logger.info("Command executed successfully", extra=fields)
        else:
            fields["error"] = str(result.error) if result.error else "Unknown error"
            self.logger.warning("Command execution failed", extra=fields)


class CommandRegistry:
    """Name to command lookup used by the shell and the help command."""

    def __init__(self):
        self.commands: Dict[str, BaseCommand] = {}
        self.logger = logging.getLogger("total_economy.cli.command_registry")

    def register_command(self, command: BaseCommand) -> None:
        """
        Add ``command``, replacing any command with the same name

        Raises:
            ValidationError: if the name is empty or not lowercase alphanumeric
        """
        if not COMMAND_NAME_PATTERN.match(command.name or ""):
            raise ValidationError(
                field="command_name",
                value=command.name,
                validation_rule="lowercase letter followed by letters, digits, '-' or '_'",
                message=f"Invalid command name '{command.name}'"
            )

        if command.name in self.commands:
            self.logger.warning(f"Overriding existing command: {command.name}")
        self.commands[command.name] = command

    def unregister_command(self, command_name: str) -> bool:
        return self.commands.pop(command_name.lower(), None) is not None

    def find_command(self, command_name: str) -> Optional[BaseCommand]:
        return self.commands.get(command_name.lower())

    def get_all_commands(self) -> List[BaseCommand]:
        return list(self.commands.values())

    def get_command_names(self) -> List[str]:
        return sorted(self.commands)

    def find_similar_commands(self, command_name: str, max_suggestions: int = 3) -> List[str]:
        """Names sharing a two-letter prefix with, or containing, the typed name"""
        typed = command_name.lower()

        def similar(name: str) -> bool:
            return (name[:2] == typed[:2] or typed.startswith(name[:2])
                    or typed in name or name in typed)

        return [name for name in sorted(self.commands) if similar(name)][:max_suggestions]

    async def execute_command(self, command_name: str, args: List[str]) -> CommandResult:
        """
        Run a command and turn its errors into a failed result

        Application errors keep their message; anything else is logged with
        a traceback and reported as an internal error.
        """
        command = self.find_command(command_name)
        if command is None:
            suggestions = self.find_similar_commands(command_name)
            hint = (f"Did you mean: {', '.join(suggestions)}?" if suggestions
                    else "Type 'help' for available commands.")
            return CommandResult(False, f"Unknown command: {command_name}. {hint}")

        try:
            result = await command.execute(args)
        except AppError as e:
            self.logger.warning(f"Command '{command_name}' rejected: {e.message}")
            return CommandResult(False, e.message, error=e)
        except Exception as e:
            self.logger.error(f"Command execution error for '{command_name}': {e}", exc_info=True)
            return CommandResult(False, f"Internal error executing command '{command_name}'", error=e)

        command.log_command_execution(args, result)
        return result

    def clear_registry(self) -> None:
        self.commands.clear()
