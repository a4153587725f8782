"""Tool implementations for fileguard."""

from fileguard.tools.filesystem import SourceFileTools
from fileguard.tools.toolset import FileGuardToolset

__all__ = ["FileGuardToolset", "SourceFileTools"]
