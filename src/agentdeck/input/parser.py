"""Input parsing for CLI."""

import logging
import mimetypes
import re
import shlex
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from ..models.turn import Attachment

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}

EXIT_WORDS = {"exit"}


class InputType(Enum):
    """Type of parsed input."""

    MESSAGE = "message"  # Regular chat message
    COMMAND = "command"  # Slash command
    EXIT = "exit"  # Bare exit word
    EMPTY = "empty"  # Empty input


@dataclass
class ParsedInput:
    """Result of parsing user input."""

    type: InputType
    content: str
    command_name: Optional[str] = None
    command_args: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)


class InputParser:
    """
    Parser for user input.

    Handles:
    - Slash commands (/help, /config, etc.)
    - The bare exit word
    - Image paths in messages (.png, .jpg, .jpeg, .webp), attached as bytes
    - Regular messages
    """

    COMMAND_PATTERN = re.compile(r"^/([a-zA-Z0-9_:-]+)(?:\s+(.*))?$", re.DOTALL)

    def __init__(self, base_dir: Optional[Path] = None):
        """
        Initialize parser.

        Args:
            base_dir: Directory relative image paths resolve against
        """
        self.base_dir = base_dir or Path.cwd()

    def parse(self, text: str) -> ParsedInput:
        """
        Parse user input.

        Args:
            text: Raw user input

        Returns:
            ParsedInput with type and parsed content
        """
        if not text or not text.strip():
            return ParsedInput(type=InputType.EMPTY, content="")

        text = text.strip()

        if text.lower() in EXIT_WORDS:
            return ParsedInput(type=InputType.EXIT, content=text)

        cmd_match = self.COMMAND_PATTERN.match(text)
        if cmd_match:
            return ParsedInput(
                type=InputType.COMMAND,
                content=text,
                command_name=cmd_match.group(1),
                command_args=cmd_match.group(2) or "",
            )

        return ParsedInput(
            type=InputType.MESSAGE,
            content=text,
            attachments=self.extract_attachments(text),
        )

    def extract_attachments(self, text: str) -> List[Attachment]:
        """
        Load images named by whitespace-separated tokens of a message.

        Tokens that are not image paths, or name unreadable files, are skipped.

        Args:
            text: Message text

        Returns:
            Attachments in order of appearance, without duplicates
        """
        attachments: List[Attachment] = []
        seen = set()

        for token in text.split():
            token = token.strip("\"'`,;()")
            suffix = Path(token).suffix.lower()
            if suffix not in IMAGE_EXTENSIONS or token in seen:
                continue
            seen.add(token)

            path = Path(token).expanduser()
            if not path.is_absolute():
                path = self.base_dir / path
            try:
                data = path.read_bytes()
            except OSError as e:
                logger.debug(f"Skipping attachment {token}: {e}")
                continue

            mime_type = IMAGE_EXTENSIONS.get(suffix) or mimetypes.guess_type(token)[0] or "application/octet-stream"
            attachments.append(Attachment(name=path.name, mime_type=mime_type, data=data))

        return attachments

    @staticmethod
    def split_args(args: str) -> List[str]:
        """
        Split command arguments, honoring quotes.

        Falls back to whitespace splitting for unbalanced quotes.
        """
        try:
            return shlex.split(args)
        except ValueError:
            return args.split()
