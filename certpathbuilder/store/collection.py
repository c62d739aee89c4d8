# certpathbuilder/store/collection.py

from typing import Iterable, List

from certpathbuilder.store.base import CertStore


class CollectionCertStore(CertStore):
    """
    In-memory store over a fixed collection of certificates. Duplicates are
    dropped; the first occurrence keeps its position.
    """
    NAME = "collection"

    def __init__(self, certificates: Iterable, name: str = None):
        self._certificates = list(dict.fromkeys(certificates))
        if name:
            self.NAME = name

    @property
    def certificates(self) -> List:
        return list(self._certificates)

    def query(self, selector) -> List:
        return [cert for cert in self._certificates if selector.match(cert)]

    def __len__(self) -> int:
        return len(self._certificates)
