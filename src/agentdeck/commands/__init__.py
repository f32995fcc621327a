"""CLI commands module."""

from .base import BaseCommand, CommandContext, CommandRegistry
from .builtin import load_builtin_commands
from .config_cmd import ConfigCommand
from .memory_cmd import MemoryCommand, RememberCommand

__all__ = [
    "BaseCommand",
    "CommandContext",
    "CommandRegistry",
    "load_builtin_commands",
    "ConfigCommand",
    "MemoryCommand",
    "RememberCommand",
]
