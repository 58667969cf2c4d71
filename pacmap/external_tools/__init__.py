"""External package manager wrappers used to resolve package records."""

from enum import Enum

from pacmap.external_tools.base import ExternalTool
from pacmap.external_tools.pacman import PacmanTool


class ExternalToolName(str, Enum):
    """Available package manager tools.

    Only pacman (Arch Linux and derivatives) prints records in the
    `Key : Value` format the parser understands.
    """

    PACMAN = "pacman"


def get_tool(name: ExternalToolName = ExternalToolName.PACMAN) -> ExternalTool:
    """Get the package manager wrapper for `name`."""
    if name is ExternalToolName.PACMAN:
        return PacmanTool()
    raise ValueError(f"Unsupported package manager: {name}")


__all__ = ["ExternalTool", "ExternalToolName", "PacmanTool", "get_tool"]
