"""fileguard - Sandboxed file access layer for automated agents."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fileguard")
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "0.0.0.dev"

__all__ = ["__version__"]
