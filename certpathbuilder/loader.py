# certpathbuilder/loader.py

"""
Helpers for discovering certificate files and parsing them, respecting
exclude patterns from configuration.
"""

import fnmatch
import glob
import os
from typing import List

from certpathbuilder.model.certificate import Certificate, load_certificates
from certpathbuilder.utils.file_utils import (
    is_certificate_file,
    list_files_with_extensions,
    read_binary_file,
)
from certpathbuilder.utils.logger import get_logger
from certpathbuilder.utils.settings import CERTIFICATE_EXTENSIONS, DEFAULT_EXCLUDE_PATTERNS

LOG = get_logger(__name__)


def discover_certificate_files(target: str, exclude_patterns: List[str] = None,
                               recursive: bool = True) -> List[str]:
    """
    Return a sorted list of certificate files under `target`, filtered by
    `exclude_patterns`.

    :param target: File path, directory, or glob pattern
    :param exclude_patterns: Glob patterns of paths to skip
    :param recursive: Walk subdirectories when `target` is a directory
    :return: List of certificate file paths
    """
    excludes = DEFAULT_EXCLUDE_PATTERNS if exclude_patterns is None else exclude_patterns

    if any(c in target for c in ("*", "?", "[")):
        LOG.debug("Treating target as glob: %s", target)
        paths = glob.glob(target, recursive=True)
    elif os.path.isfile(target):
        paths = [target]
    elif os.path.isdir(target):
        LOG.debug("Walking directory for certificate files: %s", target)
        paths = list_files_with_extensions(target, CERTIFICATE_EXTENSIONS, recursive, excludes)
    else:
        raise FileNotFoundError(f"No such file or directory: {target}")

    result = []
    for p in paths:
        if not os.path.isfile(p):
            continue
        if glob.has_magic(target) and not is_certificate_file(p):
            continue
        if any(fnmatch.fnmatch(p, pat) for pat in excludes):
            LOG.debug("Excluding path (matched pattern): %s", p)
            continue
        result.append(p)

    LOG.debug("Discovered %d certificate file(s)", len(result))
    return sorted(result)


def load_certificate_file(path: str) -> List[Certificate]:
    """
    Read and parse every certificate in a PEM, DER or PKCS#7 file.

    :raises ValueError: if the file holds no parseable certificate
    """
    LOG.debug("Loading certificates from %s", path)
    return load_certificates(read_binary_file(path))


def load_certificates_from(target: str, exclude_patterns: List[str] = None,
                           recursive: bool = True) -> List[Certificate]:
    """
    Load every certificate found under `target`. Files that do not parse
    are logged and skipped.
    """
    certs: List[Certificate] = []
    for path in discover_certificate_files(target, exclude_patterns, recursive):
        try:
            certs.extend(load_certificate_file(path))
        except ValueError as e:
            LOG.warning("Skipping unparseable certificate file %s: %s", path, e)
    return certs
