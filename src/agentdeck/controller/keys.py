"""Cancel-key detection while a turn streams."""

import logging
import os
import sys
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

logger = logging.getLogger(__name__)

ESCAPE_BYTE = b"\x1b"

# Bytes of an escape sequence (arrow keys, etc.) arrive well within this window
_SEQUENCE_WINDOW = 0.01

_IS_WINDOWS = sys.platform == "win32"


class KeySource(ABC):
    """
    Non-blocking source of the cancel key.

    poll() must return immediately. capture() puts the input device into
    the mode poll() needs for the duration of one turn.
    """

    @contextmanager
    def capture(self) -> Iterator["KeySource"]:
        yield self

    @abstractmethod
    def poll(self) -> bool:
        """Return True if the cancel key was pressed since the last poll."""


class NullKeySource(KeySource):
    """Key source that never reports a cancel (non-interactive input)."""

    def poll(self) -> bool:
        return False


class TerminalKeySource(KeySource):
    """
    Reads a bare Escape from the terminal without blocking.

    On POSIX the terminal is switched to cbreak mode inside capture() and
    restored on exit. A lone ESC cancels; ESC followed by more bytes is an
    escape sequence and is consumed silently.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdin
        self._active = False

    def _is_tty(self) -> bool:
        try:
            return os.isatty(self.stream.fileno())
        except (AttributeError, OSError, ValueError):
            return False

    @contextmanager
    def capture(self) -> Iterator["TerminalKeySource"]:
        if _IS_WINDOWS or not self._is_tty():
            self._active = self._is_tty()
            try:
                yield self
            finally:
                self._active = False
            return

        import termios
        import tty

        fd = self.stream.fileno()
        old_settings = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            self._active = True
            yield self
        finally:
            self._active = False
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)

    def poll(self) -> bool:
        if not self._active:
            return False
        if _IS_WINDOWS:
            return self._poll_windows()
        return self._poll_posix()

    def _poll_posix(self) -> bool:
        import select

        # Raw fd reads: a buffered text read could hide bytes from select
        fd = self.stream.fileno()
        pressed = False
        while True:
            ready, _, _ = select.select([fd], [], [], 0)
            if not ready:
                return pressed
            if os.read(fd, 1) != ESCAPE_BYTE:
                continue
            more, _, _ = select.select([fd], [], [], _SEQUENCE_WINDOW)
            if not more:
                pressed = True
                continue
            # Consume the rest of the escape sequence
            while select.select([fd], [], [], 0)[0]:
                os.read(fd, 1)

    def _poll_windows(self) -> bool:
        import msvcrt

        pressed = False
        while msvcrt.kbhit():
            ch = msvcrt.getch()
            if ch != ESCAPE_BYTE:
                continue
            time.sleep(_SEQUENCE_WINDOW)
            if not msvcrt.kbhit():
                pressed = True
                continue
            while msvcrt.kbhit():
                msvcrt.getch()
        return pressed
