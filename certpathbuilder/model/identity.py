# certpathbuilder/model/identity.py

"""
Certificate identity used for cycle detection: the subject name, a digest
of the subject public key, and the serial number.
"""

import hashlib
from dataclasses import dataclass

from cryptography import x509


@dataclass(frozen=True)
class CertIdentity:
    subject_der: bytes
    key_hash: bytes
    serial_number: int

    @classmethod
    def of(cls, subject: x509.Name, public_key_bytes: bytes, serial_number: int) -> "CertIdentity":
        return cls(
            subject_der=subject.public_bytes(),
            key_hash=hashlib.sha256(public_key_bytes).digest(),
            serial_number=serial_number,
        )

    def __str__(self) -> str:
        return f"{self.key_hash.hex()[:16]}/{self.serial_number:x}"
