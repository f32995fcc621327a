"""Input handling module."""

from .completer import CLICompleter, create_completer
from .history import HistoryManager
from .parser import InputParser, InputType, ParsedInput

__all__ = [
    "CLICompleter",
    "create_completer",
    "HistoryManager",
    "InputParser",
    "InputType",
    "ParsedInput",
]
