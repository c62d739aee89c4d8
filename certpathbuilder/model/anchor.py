# certpathbuilder/model/anchor.py

"""
Trust anchors: a trusted certificate, or a bare subject name + public key.
"""

import hashlib
from typing import Optional

from cryptography import x509

from certpathbuilder.model.names import NameConstraints


class TrustAnchor:
    def __init__(
        self,
        certificate=None,
        subject: Optional[x509.Name] = None,
        public_key_bytes: Optional[bytes] = None,
        name_constraints: Optional[NameConstraints] = None,
    ):
        """
        :param certificate: Trusted Certificate, or None for a bare key anchor
        :param subject: Subject name of a bare key anchor
        :param public_key_bytes: DER SubjectPublicKeyInfo of a bare key anchor
        :param name_constraints: Name constraints attached to the anchor.
            Accepted here so configuration can be validated, but the builder
            refuses to run with them.
        """
        if certificate is None and (subject is None or public_key_bytes is None):
            raise ValueError("A trust anchor needs a certificate or a subject and public key")
        if certificate is not None and (subject is not None or public_key_bytes is not None):
            raise ValueError("A certificate trust anchor cannot also take a subject or key")
        self.certificate = certificate
        self._subject = subject
        self._public_key_bytes = public_key_bytes
        self._name_constraints = name_constraints

    @classmethod
    def from_certificate(cls, cert) -> "TrustAnchor":
        return cls(certificate=cert)

    @property
    def subject(self) -> x509.Name:
        if self.certificate is not None:
            return self.certificate.subject
        return self._subject

    @property
    def subject_string(self) -> str:
        return self.subject.rfc4514_string()

    @property
    def public_key_bytes(self) -> bytes:
        if self.certificate is not None:
            return self.certificate.public_key_bytes
        return self._public_key_bytes

    @property
    def subject_key_identifier(self) -> Optional[bytes]:
        if self.certificate is not None:
            return self.certificate.subject_key_identifier
        return None

    @property
    def name_constraints(self) -> Optional[NameConstraints]:
        if self._name_constraints is not None:
            return self._name_constraints
        if self.certificate is not None:
            return self.certificate.name_constraints
        return None

    def is_anchor_certificate(self, cert) -> bool:
        return self.certificate is not None and self.certificate.identity == cert.identity

    def issued(self, cert) -> bool:
        """
        Return True if `cert` names this anchor as its issuer. When the
        certificate carries an authority key identifier and the anchor a
        subject key identifier, they must agree.
        """
        if cert.issuer != self.subject:
            return False
        aki = cert.authority_key_identifier
        ski = self.subject_key_identifier
        if aki is not None and ski is not None:
            return aki == ski
        return True

    def to_dict(self) -> dict:
        d = {
            "subject": self.subject_string,
            "key_sha256": hashlib.sha256(self.public_key_bytes).hexdigest(),
        }
        if self.certificate is not None:
            d["serial"] = f"{self.certificate.serial_number:x}"
        return d

    def __eq__(self, other) -> bool:
        if not isinstance(other, TrustAnchor):
            return NotImplemented
        return self.subject == other.subject and self.public_key_bytes == other.public_key_bytes

    def __hash__(self) -> int:
        return hash((self.subject, self.public_key_bytes))

    def __repr__(self) -> str:
        kind = "certificate" if self.certificate is not None else "key"
        return f"<TrustAnchor {kind} subject={self.subject_string!r}>"
