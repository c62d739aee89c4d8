# certpathbuilder/store/uri.py

"""
Remote certificate store that fetches a certificate, or a bundle of them,
from an HTTP(S) URI. This is how issuers named in a certificate's Authority
Information Access (caIssuers) extension are retrieved.

The response body may be a DER or PEM certificate, or a PKCS#7 bundle in
either encoding. Responses are cached for `cache_ttl` seconds.
"""

import time
from typing import List, Optional

import requests

from certpathbuilder.exceptions import CertStoreError
from certpathbuilder.model.certificate import load_certificates
from certpathbuilder.store.base import CertStore
from certpathbuilder.utils.logger import get_logger
from certpathbuilder.utils.settings import DEFAULT_STORE_TIMEOUT, DEFAULT_URI_CACHE_TTL

LOG = get_logger(__name__)


class URICertStore(CertStore):
    NAME = "uri"
    is_local = False

    def __init__(self, uri: str, timeout: float = DEFAULT_STORE_TIMEOUT,
                 cache_ttl: float = DEFAULT_URI_CACHE_TTL, session: Optional[requests.Session] = None):
        if not uri.lower().startswith(("http://", "https://")):
            raise ValueError(f"Unsupported URI scheme: {uri}")
        self.uri = uri
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self._session = session
        self._cached = None
        self._fetched_at = 0.0

    @property
    def name(self) -> str:
        return f"{self.NAME}:{self.uri}"

    def _get(self) -> requests.Response:
        getter = self._session.get if self._session is not None else requests.get
        return getter(self.uri, timeout=self.timeout)

    def _fetch(self) -> List:
        if self._cached is not None and time.monotonic() - self._fetched_at < self.cache_ttl:
            return self._cached

        LOG.debug("Fetching certificates from %s", self.uri)
        try:
            res = self._get()
            res.raise_for_status()
        except requests.RequestException as e:
            raise CertStoreError(f"Failed to fetch {self.uri}: {e}", store_name=self.name) from e

        try:
            certs = load_certificates(res.content)
        except ValueError as e:
            raise CertStoreError(f"Unparseable response from {self.uri}: {e}",
                                 store_name=self.name) from e

        self._cached = certs
        self._fetched_at = time.monotonic()
        LOG.debug("Fetched %d certificate(s) from %s", len(certs), self.uri)
        return certs

    def query(self, selector) -> List:
        return [cert for cert in self._fetch() if selector.match(cert)]
