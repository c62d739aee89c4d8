# certpathbuilder/utils/file_utils.py

"""
Utility functions for file operations in certpathbuilder.

Provides helpers for:
  - Reading binary certificate files and writing text reports
  - Checking file types (e.g., `.pem`, `.der` files)
  - Ensuring directories exist before writing
  - Walking a directory tree to list files by extension
"""

import os
from fnmatch import fnmatch
from typing import Iterable, List

from certpathbuilder.utils.settings import CERTIFICATE_EXTENSIONS


def is_certificate_file(path: str) -> bool:
    """
    Return True if the given path points to an existing file with a
    certificate-like extension (.pem, .crt, .cer, .der, .p7b, .p7c).

    :param path: File path to check
    :return: True if file exists and has a known extension, False otherwise
    """
    return os.path.isfile(path) and path.lower().endswith(tuple(CERTIFICATE_EXTENSIONS))


def read_binary_file(path: str) -> bytes:
    """
    Read and return the entire contents of a file as bytes.

    Raises FileNotFoundError if the file does not exist.

    :param path: Path to the file
    :return: File contents
    """
    with open(path, mode="rb") as f:
        return f.read()


def write_text_file(path: str, content: str, encoding: str = "utf-8") -> None:
    """
    Write the given content to a text file, creating parent directories if needed.

    :param path: Path to the output text file
    :param content: String content to write
    :param encoding: Encoding to use (default: utf-8)
    """
    directory = os.path.dirname(path)
    if directory:
        ensure_directory(directory)
    with open(path, mode="w", encoding=encoding) as f:
        f.write(content)


def list_files_with_extensions(
    root_dir: str,
    extensions: Iterable[str],
    recursive: bool = True,
    exclude_patterns: List[str] = None
) -> List[str]:
    """
    Return a sorted list of file paths under `root_dir` that end with one of
    the given extensions.

    :param root_dir: Directory to search
    :param extensions: File extensions to match (e.g., [".pem", ".der"])
    :param recursive: If True, walk subdirectories; if False, only list top-level files
    :param exclude_patterns: List of glob patterns; any path matching one is skipped
    :return: Sorted list of matching file paths
    """
    exclude_patterns = exclude_patterns or []
    exts = tuple(e.lower() for e in extensions)
    matches: List[str] = []

    if recursive:
        for dirpath, _, filenames in os.walk(root_dir):
            for fname in filenames:
                full_path = os.path.join(dirpath, fname)
                if fname.lower().endswith(exts) and not _is_excluded(full_path, exclude_patterns):
                    matches.append(full_path)
    else:
        for fname in os.listdir(root_dir):
            full_path = os.path.join(root_dir, fname)
            if os.path.isfile(full_path) and fname.lower().endswith(exts):
                if not _is_excluded(full_path, exclude_patterns):
                    matches.append(full_path)

    return sorted(matches)


def _is_excluded(path: str, patterns: List[str]) -> bool:
    return any(fnmatch(path, pat) for pat in patterns)


def ensure_directory(path: str) -> None:
    """
    Ensure that the directory `path` exists. If it does not, create it (recursively).
    """
    if not os.path.exists(path):
        os.makedirs(path, exist_ok=True)
