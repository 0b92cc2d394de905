"""
Economy Shell Commands

This module provides the admin commands that drive player accounts:
account creation, balance lookup, setting balances, admin payments and
player-to-player transfers. Every balance command goes through the account
operations, so each one persists the account file and publishes an event.
"""

import uuid
from typing import TYPE_CHECKING, List

from total_economy.cogs.economy.models import ResultType, TransactionResult, parse_amount
from total_economy.core.errors import ValidationError

from .commands import BaseCommand, CommandResult

if TYPE_CHECKING:
    from total_economy.cogs.economy.main import TotalEconomyPlugin
    from total_economy.cogs.economy.service import AccountManager, EconomyAccount

SHELL_CAUSE = {"source": "admin_shell"}

_RESULT_MESSAGES = {
    ResultType.FAILED: "transaction failed",
    ResultType.ACCOUNT_NO_FUNDS: "insufficient funds",
}


def parse_unique_id(value: str) -> uuid.UUID:
    """
    Parse a player UUID argument

    Raises:
        ValidationError: If the value is not a UUID
    """
    try:
        return uuid.UUID(value)
    except ValueError:
        raise ValidationError(
            field="uuid",
            value=value,
            validation_rule="player UUID",
            message=f"Invalid player UUID: {value}"
        )


class EconomyCommand(BaseCommand):
    """
    Base class for commands that operate on the plugin's accounts
    """

    def __init__(self, plugin: 'TotalEconomyPlugin', name: str, description: str):
        super().__init__(name=name, description=description)
        self.plugin = plugin

    @property
    def manager(self) -> 'AccountManager':
        return self.plugin.account_manager

    def resolve_account(self, value: str) -> 'EconomyAccount':
        """
        Look up an existing account by UUID or virtual account name

        Raises:
            NotFoundError: If no account exists for the identifier
        """
        try:
            identifier = str(uuid.UUID(value))
        except ValueError:
            identifier = value
        return self.manager.get_account(identifier)

    def format_amount(self, amount) -> str:
        return self.manager.default_currency.format(amount)

    def transaction_result(self, result: TransactionResult, success_message: str) -> CommandResult:
        data = result.to_dict()
        if result.is_success:
            return CommandResult(True, success_message, data=data)
        reason = _RESULT_MESSAGES.get(result.result, result.result.value)
        return CommandResult(
            False,
            f"{result.type.value.capitalize()} for {result.account.identifier} failed: {reason}",
            data=data
        )


class CreateAccountCommand(EconomyCommand):
    """
    Create a player account with the starting balance
    """

    def __init__(self, plugin: 'TotalEconomyPlugin'):
        super().__init__(plugin, "createaccount", "Create a player account with the starting balance")

    async def execute(self, args: List[str]) -> CommandResult:
        self.validate_args(args, min_args=1, max_args=1)
        unique_id = parse_unique_id(args[0])

        if self.manager.has_account(unique_id):
            return CommandResult(False, f"Account {unique_id} already exists")

        account = await self.manager.create_account(unique_id)
        balance = account.get_balance(self.manager.default_currency)
        return CommandResult(
            True,
            f"Created account {unique_id} with {self.format_amount(balance)}",
            data={"account": account.identifier, "balance": format(balance, "f")}
        )

    def get_help(self) -> str:
        return """Create a player account.

Usage:
  createaccount <uuid>

The new account receives the configured starting balance in the default
currency. Creating an account that already exists fails without changes."""

    def get_syntax(self) -> str:
        return "createaccount <uuid>"


class BalanceCommand(EconomyCommand):
    """
    Show an account's balance
    """

    def __init__(self, plugin: 'TotalEconomyPlugin'):
        super().__init__(plugin, "balance", "Show an account's balance")

    async def execute(self, args: List[str]) -> CommandResult:
        self.validate_args(args, min_args=1, max_args=1)
        account = self.resolve_account(args[0])
        currency = self.manager.default_currency

        balance = account.get_balance(currency)
        display_name = await account.get_display_name()
        return CommandResult(
            True,
            f"{display_name} ({account.identifier}): {self.format_amount(balance)}",
            data={
                "account": account.identifier,
                "display_name": display_name,
                "balance": format(balance, "f"),
                "has_balance": account.has_balance(currency),
            }
        )

    def get_help(self) -> str:
        return """Show the default currency balance of an account.

Usage:
  balance <uuid|name>"""

    def get_syntax(self) -> str:
        return "balance <uuid|name>"


class SetBalanceCommand(EconomyCommand):
    """
    Set an account's balance
    """

    def __init__(self, plugin: 'TotalEconomyPlugin'):
        super().__init__(plugin, "setbalance", "Set an account's balance")

    async def execute(self, args: List[str]) -> CommandResult:
        self.validate_args(args, min_args=2, max_args=2)
        account = self.resolve_account(args[0])
        amount = parse_amount(args[1])

        result = await account.set_balance(
            self.manager.default_currency, amount, cause=SHELL_CAUSE
        )
        balance = account.get_balance(self.manager.default_currency)
        return self.transaction_result(
            result, f"Balance of {account.identifier} set to {self.format_amount(balance)}"
        )

    def get_help(self) -> str:
        return """Set the default currency balance of an account.

Usage:
  setbalance <uuid|name> <amount>

The amount is truncated (not rounded) to two decimal places. The money cap
does not apply."""

    def get_syntax(self) -> str:
        return "setbalance <uuid|name> <amount>"


class AdminPayCommand(EconomyCommand):
    """
    Add money to or remove money from an account
    """

    def __init__(self, plugin: 'TotalEconomyPlugin'):
        super().__init__(plugin, "adminpay", "Add money to or remove money from an account")

    async def execute(self, args: List[str]) -> CommandResult:
        self.validate_args(args, min_args=2, max_args=2)
        account = self.resolve_account(args[0])
        amount = parse_amount(args[1])
        currency = self.manager.default_currency

        if amount < 0:
            result = await account.withdraw(currency, -amount, cause=SHELL_CAUSE)
            verb = f"Removed {self.format_amount(-amount)} from"
        else:
            result = await account.deposit(currency, amount, cause=SHELL_CAUSE)
            verb = f"Added {self.format_amount(amount)} to"

        balance = account.get_balance(currency)
        return self.transaction_result(
            result, f"{verb} {account.identifier}, balance is now {self.format_amount(balance)}"
        )

    def get_help(self) -> str:
        return """Deposit into or withdraw from an account.

Usage:
  adminpay <uuid|name> <amount>

A positive amount is deposited (clamped to the money cap when enabled).
A negative amount is withdrawn and fails when funds are insufficient."""

    def get_syntax(self) -> str:
        return "adminpay <uuid|name> <amount>"


class PayCommand(EconomyCommand):
    """
    Transfer money between two accounts
    """

    def __init__(self, plugin: 'TotalEconomyPlugin'):
        super().__init__(plugin, "pay", "Transfer money between two accounts")

    async def execute(self, args: List[str]) -> CommandResult:
        self.validate_args(args, min_args=3, max_args=3)
        source = self.resolve_account(args[0])
        target = self.resolve_account(args[1])
        amount = parse_amount(args[2])

        if amount <= 0:
            raise ValidationError(
                field="amount",
                value=args[2],
                validation_rule="positive amount",
                message=f"Transfer amount must be positive: {args[2]}"
            )

        result = await source.transfer(
            target, self.manager.default_currency, amount, cause=SHELL_CAUSE
        )
        return self.transaction_result(
            result,
            f"Transferred {self.format_amount(amount)} from {source.identifier} to {target.identifier}"
        )

    def get_help(self) -> str:
        return """Transfer money from one account to another.

Usage:
  pay <from uuid|name> <to uuid|name> <amount>

The transfer is atomic: either both balances change or neither does."""

    def get_syntax(self) -> str:
        return "pay <from> <to> <amount>"


def create_economy_commands(plugin: 'TotalEconomyPlugin') -> List[EconomyCommand]:
    """Build all economy commands bound to the given plugin"""
    return [
        CreateAccountCommand(plugin),
        BalanceCommand(plugin),
        SetBalanceCommand(plugin),
        AdminPayCommand(plugin),
        PayCommand(plugin),
    ]
