"""Color themes for CLI output."""

from dataclasses import dataclass
from typing import Dict


@dataclass
class Theme:
    """Color theme definition."""

    name: str

    # Agent response text
    agent_color: str

    # Messages
    info_color: str
    success_color: str
    warning_color: str
    error_color: str
    dim_color: str

    spinner: str = "dots"


THEMES: Dict[str, Theme] = {
    "monokai": Theme(
        name="monokai",
        agent_color="bright_white",
        info_color="cyan",
        success_color="green",
        warning_color="yellow",
        error_color="red",
        dim_color="dim",
    ),
    "dracula": Theme(
        name="dracula",
        agent_color="#f8f8f2",  # Dracula foreground
        info_color="#8be9fd",
        success_color="#50fa7b",
        warning_color="#ffb86c",
        error_color="#ff5555",
        dim_color="#6272a4",
        spinner="dots12",
    ),
    "nord": Theme(
        name="nord",
        agent_color="#eceff4",  # Nord snow
        info_color="#88c0d0",
        success_color="#a3be8c",
        warning_color="#ebcb8b",
        error_color="#bf616a",
        dim_color="#4c566a",
    ),
    "light": Theme(
        name="light",
        agent_color="black",
        info_color="blue",
        success_color="green",
        warning_color="dark_orange",
        error_color="red",
        dim_color="grey50",
        spinner="line",
    ),
}


def get_theme(name: str) -> Theme:
    """
    Get a theme by name.

    Args:
        name: Theme name

    Returns:
        Theme instance (falls back to monokai if not found)
    """
    return THEMES.get(name.lower(), THEMES["monokai"])
