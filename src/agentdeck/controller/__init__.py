"""Turn execution and backend lifecycle control."""

from .editor import ConfigEdit, ConfigEditorFlow
from .engine import TurnEngine
from .indicator import SpinnerIndicator, WaitingIndicator
from .keys import KeySource, NullKeySource, TerminalKeySource
from .manager import ExecutionBackendManager, SwitchResult

__all__ = [
    "ConfigEdit",
    "ConfigEditorFlow",
    "TurnEngine",
    "SpinnerIndicator",
    "WaitingIndicator",
    "KeySource",
    "NullKeySource",
    "TerminalKeySource",
    "ExecutionBackendManager",
    "SwitchResult",
]
