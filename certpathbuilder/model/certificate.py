# certpathbuilder/model/certificate.py

"""
Read-only certificate view used by the path builder.

Wraps a `cryptography` x509.Certificate, parses the extensions the builder
consumes once, and exposes them as plain Python values.
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat, pkcs7

from certpathbuilder.model.extensions import ParsedExtensions, parse_extensions
from certpathbuilder.model.identity import CertIdentity
from certpathbuilder.model.names import NameConstraints


class Certificate:
    def __init__(self, cert: x509.Certificate):
        """
        :param cert: Parsed `cryptography` certificate
        :raises ValueError: if the certificate's extensions are malformed
        """
        self._cert = cert
        self._der = cert.public_bytes(Encoding.DER)
        self._extensions: ParsedExtensions = parse_extensions(cert)
        self._public_key_bytes = self._read_public_key(cert)
        self._identity = CertIdentity.of(cert.subject, self._public_key_bytes, cert.serial_number)

    @staticmethod
    def _read_public_key(cert: x509.Certificate) -> bytes:
        try:
            return cert.public_key().public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
        except (ValueError, UnsupportedAlgorithm):
            # Keys cryptography cannot load still need a stable identity
            return cert.tbs_certificate_bytes

    @classmethod
    def from_pem(cls, data: bytes) -> "Certificate":
        return cls(x509.load_pem_x509_certificate(data))

    @classmethod
    def from_der(cls, data: bytes) -> "Certificate":
        return cls(x509.load_der_x509_certificate(data))

    @property
    def x509_certificate(self) -> x509.Certificate:
        return self._cert

    @property
    def der(self) -> bytes:
        return self._der

    @property
    def subject(self) -> x509.Name:
        return self._cert.subject

    @property
    def issuer(self) -> x509.Name:
        return self._cert.issuer

    @property
    def subject_string(self) -> str:
        return self._cert.subject.rfc4514_string()

    @property
    def issuer_string(self) -> str:
        return self._cert.issuer.rfc4514_string()

    @property
    def serial_number(self) -> int:
        return self._cert.serial_number

    @property
    def version(self) -> int:
        """X.509 version number as written in documents (1 or 3)."""
        return self._cert.version.value + 1

    @property
    def not_valid_before(self) -> datetime:
        return self._cert.not_valid_before_utc

    @property
    def not_valid_after(self) -> datetime:
        return self._cert.not_valid_after_utc

    @property
    def public_key_bytes(self) -> bytes:
        return self._public_key_bytes

    @property
    def identity(self) -> CertIdentity:
        return self._identity

    @property
    def is_ca(self) -> bool:
        bc = self._extensions.basic_constraints
        return bc is not None and bc.ca

    @property
    def path_length_constraint(self) -> Optional[int]:
        """
        The pathLenConstraint of a CA certificate, or None when unconstrained.
        """
        bc = self._extensions.basic_constraints
        if bc is None or not bc.ca:
            return None
        return bc.path_length

    @property
    def key_usage(self) -> Optional[Tuple[bool, ...]]:
        ku = self._extensions.key_usage
        return ku.bits if ku is not None else None

    @property
    def name_constraints(self) -> Optional[NameConstraints]:
        nc = self._extensions.name_constraints
        return nc.constraints if nc is not None else None

    @property
    def subject_alt_names(self) -> Tuple[x509.GeneralName, ...]:
        return self._extensions.subject_alt_names

    @property
    def subject_key_identifier(self) -> Optional[bytes]:
        return self._extensions.subject_key_identifier

    @property
    def authority_key_identifier(self) -> Optional[bytes]:
        return self._extensions.authority_key_identifier

    @property
    def ca_issuer_urls(self) -> Tuple[str, ...]:
        return self._extensions.ca_issuer_urls

    @property
    def unsupported_critical_extensions(self) -> Tuple[str, ...]:
        return self._extensions.unsupported_critical

    @property
    def is_self_issued(self) -> bool:
        return self._cert.subject == self._cert.issuer

    def is_valid_at(self, when: Optional[datetime] = None) -> bool:
        when = when or datetime.now(timezone.utc)
        return self.not_valid_before <= when <= self.not_valid_after

    def __eq__(self, other) -> bool:
        if not isinstance(other, Certificate):
            return NotImplemented
        return self._der == other._der

    def __hash__(self) -> int:
        return hash(self._der)

    def __repr__(self) -> str:
        return f"<Certificate subject={self.subject_string!r} serial={self.serial_number:x}>"

    def describe(self) -> str:
        """
        Multi-line summary used in build traces.
        """
        lines = [
            f"Issuer:     {self.issuer_string}",
            f"Subject:    {self.subject_string}",
            f"SerialNum:  {self.serial_number:x}",
            f"Expires:    {self.not_valid_after.isoformat()}",
        ]
        if self.subject_key_identifier:
            lines.append(f"SubjKeyID:  {self.subject_key_identifier.hex()}")
        if self.authority_key_identifier:
            lines.append(f"AuthKeyID:  {self.authority_key_identifier.hex()}")
        return "\n".join(lines)


def load_certificates(data: bytes) -> List[Certificate]:
    """
    Parse `data` as one or more certificates. Accepts PEM (one or many
    certificates), DER, and PKCS#7 bundles in PEM or DER form.

    :raises ValueError: if nothing in `data` parses as a certificate
    """
    try:
        return _parse_certificates(data)
    except x509.InvalidVersion as e:
        raise ValueError(f"Unsupported certificate version: {e}") from e


def _parse_certificates(data: bytes) -> List[Certificate]:
    stripped = data.lstrip()
    if stripped.startswith(b"-----BEGIN PKCS7-----"):
        return [Certificate(c) for c in pkcs7.load_pem_pkcs7_certificates(data)]
    if stripped.startswith(b"-----BEGIN"):
        return [Certificate(c) for c in x509.load_pem_x509_certificates(data)]
    try:
        return [Certificate.from_der(data)]
    except ValueError:
        return [Certificate(c) for c in pkcs7.load_der_pkcs7_certificates(data)]
