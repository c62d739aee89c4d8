# certpathbuilder/builder/state.py

"""
Per-path search state and cooperative cancellation.

ForwardState is an immutable snapshot of the path being extended from the
target toward a trust anchor. Every recursive step of the search receives
its own extended copy, so abandoning a branch never has to undo anything.
"""

import threading
import time
from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from cryptography import x509

from certpathbuilder.exceptions import BuildCancelledError
from certpathbuilder.model.identity import CertIdentity
from certpathbuilder.model.names import certificate_names


@dataclass(frozen=True)
class ForwardState:
    # Target first, most recently added issuer last
    certificates: Tuple = ()
    identities: FrozenSet[CertIdentity] = frozenset()
    # Non-self-issued intermediate CA certificates on the path
    traversed_ca_count: int = 0
    # Names that constraints of certificates further up must permit
    traversed_names: Tuple[x509.GeneralName, ...] = ()

    @classmethod
    def initial(cls, target) -> "ForwardState":
        return cls(
            certificates=(target,),
            identities=frozenset([target.identity]),
            traversed_ca_count=0,
            traversed_names=tuple(certificate_names(target)),
        )

    @property
    def depth(self) -> int:
        return len(self.certificates)

    def contains(self, cert) -> bool:
        return cert.identity in self.identities

    def extend(self, issuer) -> "ForwardState":
        """
        Return the state of the path with `issuer` added above the current
        last certificate.
        """
        names = self.traversed_names
        count = self.traversed_ca_count
        if not issuer.is_self_issued:
            count += 1
            names = names + tuple(n for n in certificate_names(issuer) if n not in names)
        return ForwardState(
            certificates=self.certificates + (issuer,),
            identities=self.identities | {issuer.identity},
            traversed_ca_count=count,
            traversed_names=names,
        )


class CancellationToken:
    """
    Thread-safe cancellation flag with an optional deadline.

    The path builder calls check() before every store query and every
    candidate it examines.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def check(self) -> None:
        if self._event.is_set():
            raise BuildCancelledError("Path building was cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise BuildCancelledError("Path building ran past its deadline")
