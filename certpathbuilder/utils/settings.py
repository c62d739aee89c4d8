# certpathbuilder/utils/settings.py

"""
Default settings and constants for certpathbuilder.

This module centralizes:
  - Default path-length budget and search depth bounds
  - Store timeouts and certificate file extensions
  - Environment variable names for overriding behavior
"""

from typing import List

# -----------------------------------------------------------------------------
# Search bounds
# -----------------------------------------------------------------------------
# Maximum number of non-self-issued intermediate CA certificates, as in
# PKIX builder parameters. -1 means unlimited.
DEFAULT_MAX_PATH_LENGTH = 5
UNLIMITED_PATH_LENGTH = -1

# Extra depth allowed on top of max_path_length before a branch is cut.
# Self-issued certificates do not consume the budget, so the recursion
# needs some room beyond it.
DEPTH_SLACK = 4

# Recursion cap used when max_path_length is unlimited.
UNLIMITED_DEPTH = 64

# -----------------------------------------------------------------------------
# Certificate stores
# -----------------------------------------------------------------------------
DEFAULT_STORE_TIMEOUT = 5.0  # seconds, per remote request
DEFAULT_URI_CACHE_TTL = 900  # seconds a fetched URI stays cached

CERTIFICATE_EXTENSIONS: List[str] = [".pem", ".crt", ".cer", ".der", ".p7b", ".p7c"]

DEFAULT_EXCLUDE_PATTERNS: List[str] = [
    "*/.git/*",
    "*/__pycache__/*",
    "*/.venv/*",
]

# -----------------------------------------------------------------------------
# Environment variable names for overriding behavior
# -----------------------------------------------------------------------------
ENV_LOG_LEVEL = "CERTPATHBUILDER_LOG"          # e.g., "DEBUG", "INFO", etc.
ENV_DISABLE_COLORS = "CERTPATHBUILDER_NO_COLOR"  # if set, disable terminal colors


def max_search_depth(max_path_length: int) -> int:
    """
    Return the recursion cap for a given `max_path_length`.
    """
    if max_path_length == UNLIMITED_PATH_LENGTH:
        return UNLIMITED_DEPTH
    return max_path_length + DEPTH_SLACK
