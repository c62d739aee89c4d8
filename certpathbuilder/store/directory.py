# certpathbuilder/store/directory.py

import os
from typing import List

from certpathbuilder.exceptions import CertStoreError
from certpathbuilder.loader import load_certificates_from
from certpathbuilder.store.base import CertStore
from certpathbuilder.utils.logger import get_logger

LOG = get_logger(__name__)


class DirectoryCertStore(CertStore):
    """
    Local store backed by the PEM, DER and PKCS#7 files under a directory
    (or a single file / glob). Files are read once, on the first query.
    """
    NAME = "directory"

    def __init__(self, path: str, recursive: bool = True, exclude_patterns: List[str] = None):
        self.path = path
        self.recursive = recursive
        self.exclude_patterns = exclude_patterns
        self._certificates = None

    @property
    def name(self) -> str:
        return f"{self.NAME}:{self.path}"

    def _load(self) -> List:
        if self._certificates is None:
            try:
                certs = load_certificates_from(self.path, self.exclude_patterns, self.recursive)
            except OSError as e:
                raise CertStoreError(f"Cannot read {self.path}: {e}", store_name=self.name) from e
            self._certificates = list(dict.fromkeys(certs))
            LOG.debug("Loaded %d certificate(s) from %s", len(self._certificates),
                      os.path.abspath(self.path))
        return self._certificates

    def query(self, selector) -> List:
        return [cert for cert in self._load() if selector.match(cert)]
