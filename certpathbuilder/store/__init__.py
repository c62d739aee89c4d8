"""
Certificate stores answer "which certificates match this selector?".
Local stores are always consulted before remote ones.
"""

from certpathbuilder.store.base import CertStore, sort_stores
from certpathbuilder.store.collection import CollectionCertStore
from certpathbuilder.store.directory import DirectoryCertStore
from certpathbuilder.store.uri import URICertStore

__all__ = [
    "CertStore",
    "CollectionCertStore",
    "DirectoryCertStore",
    "URICertStore",
    "sort_stores",
]
