"""Configuration constants for fileguard.

This module provides a single source of truth for all default configuration values.
Separated from schema.py and manager.py to avoid circular imports.
"""

from pathlib import Path

# Default paths
DEFAULT_CONFIG_PATH = Path.home() / ".fileguard" / "settings.json"
DEFAULT_WORKSPACE_DIR = "./workspace"
BACKUP_DIR_NAME = ".backups"

# Default limits
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
DEFAULT_MAX_CONCURRENT_OPERATIONS = 10
DEFAULT_MAX_SEARCH_DIRECTORIES = 1000
DEFAULT_LOG_LEVEL = "warning"

# Chunk size used when the CLI streams stdin into stream_write
DEFAULT_STREAM_CHUNK_SIZE = 64 * 1024

DEFAULT_ALLOWED_EXTENSIONS = [
    # Programming languages
    ".js", ".ts", ".jsx", ".tsx", ".py", ".cpp", ".cc", ".cxx", ".c", ".h", ".hpp",
    ".java", ".cs", ".php", ".rb", ".go", ".rs", ".swift", ".kt", ".scala",
    # Web technologies
    ".html", ".css", ".scss", ".less", ".json", ".xml", ".yaml", ".yml",
    # Documentation and text
    ".md", ".txt", ".rst", ".adoc",
    # Scripts and configs
    ".sh", ".bat", ".ps1", ".sql", ".r", ".matlab", ".pl",
    # Template and config files
    ".template", ".example", ".sample", ".config",
    # Files without extension (Dockerfile, Makefile, .gitignore)
    "",
]  # fmt: skip

# Substring patterns matched against the root-relative path
DEFAULT_BLACKLISTED_SUBSTRINGS = [
    "..",
    ".git/",
    "node_modules/",
    "secrets/",
    ".DS_Store",
    "Thumbs.db",
]

# Environment files are denied unless they are shareable templates
ENV_FILE_NAME = ".env"
ENV_FILE_PREFIX = ".env."
ENV_FILE_ALLOWED_SUFFIXES = [".template", ".example", ".sample"]
