# certpathbuilder/model/selector.py

"""
Immutable certificate selector used to query certificate stores and to
describe the target of a build.

Supported target kinds:
  - by subject name
  - by issuer name + serial number
  - by exact certificate instance

Additional optional criteria narrow a query further: subject key
identifier, a date the certificate must be valid at, and key-usage bits
that must be asserted.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from cryptography import x509

from certpathbuilder.model.extensions import KEY_USAGE_NAMES


class SelectorKind(Enum):
    SUBJECT = "subject"
    ISSUER_SERIAL = "issuer_serial"
    CERTIFICATE = "certificate"


@dataclass(frozen=True)
class X509Selector:
    subject: Optional[x509.Name] = None
    issuer: Optional[x509.Name] = None
    serial_number: Optional[int] = None
    certificate: Optional[object] = None
    subject_key_identifier: Optional[bytes] = None
    certificate_valid: Optional[datetime] = None
    key_usage: Tuple[str, ...] = ()

    def __post_init__(self):
        unknown = [name for name in self.key_usage if name not in KEY_USAGE_NAMES]
        if unknown:
            raise ValueError(f"Unknown key usage name(s): {', '.join(unknown)}")

    @classmethod
    def for_certificate(cls, cert) -> "X509Selector":
        return cls(certificate=cert)

    @classmethod
    def for_issuer_of(cls, cert) -> "X509Selector":
        """
        Selector for candidate issuers of `cert`: subject equal to its issuer
        name, optionally narrowed by its authority key identifier.
        """
        return cls(
            subject=cert.issuer,
            subject_key_identifier=cert.authority_key_identifier,
        )

    @property
    def kind(self) -> Optional[SelectorKind]:
        """
        The target kind this selector describes, or None if it names no
        certificate precisely enough to start a build from.
        """
        if self.certificate is not None:
            return SelectorKind.CERTIFICATE
        if self.subject is not None:
            return SelectorKind.SUBJECT
        if self.issuer is not None and self.serial_number is not None:
            return SelectorKind.ISSUER_SERIAL
        return None

    def match(self, cert) -> bool:
        if self.certificate is not None and cert != self.certificate:
            return False
        if self.subject is not None and cert.subject != self.subject:
            return False
        if self.issuer is not None and cert.issuer != self.issuer:
            return False
        if self.serial_number is not None and cert.serial_number != self.serial_number:
            return False
        if self.subject_key_identifier is not None:
            # Certificates without an SKI cannot be excluded on this criterion
            ski = cert.subject_key_identifier
            if ski is not None and ski != self.subject_key_identifier:
                return False
        if self.certificate_valid is not None and not cert.is_valid_at(self.certificate_valid):
            return False
        if self.key_usage:
            bits = cert.key_usage
            if bits is not None:
                asserted = {name for name, bit in zip(KEY_USAGE_NAMES, bits) if bit}
                if not set(self.key_usage) <= asserted:
                    return False
        return True

    def __str__(self) -> str:
        parts = []
        if self.certificate is not None:
            parts.append(f"certificate={self.certificate!r}")
        if self.subject is not None:
            parts.append(f"subject={self.subject.rfc4514_string()}")
        if self.issuer is not None:
            parts.append(f"issuer={self.issuer.rfc4514_string()}")
        if self.serial_number is not None:
            parts.append(f"serial={self.serial_number:x}")
        if self.subject_key_identifier is not None:
            parts.append(f"ski={self.subject_key_identifier.hex()}")
        if self.certificate_valid is not None:
            parts.append(f"valid_at={self.certificate_valid.isoformat()}")
        if self.key_usage:
            parts.append(f"key_usage={','.join(self.key_usage)}")
        return "X509Selector(" + ", ".join(parts) + ")"
