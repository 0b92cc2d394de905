"""
CLI Module for the Economy Admin Shell

This module provides the interactive shell, the command registry and the
economy commands.
"""

from .commands import BaseCommand, CommandRegistry, CommandResult
from .interactive import InteractiveShell

__all__ = [
    'BaseCommand',
    'CommandRegistry',
    'CommandResult',
    'InteractiveShell',
]
