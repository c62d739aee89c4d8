import datetime
from dataclasses import dataclass
from typing import Optional

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import AuthorityInformationAccessOID, NameOID

from certpathbuilder.model.certificate import Certificate

UTC = datetime.timezone.utc
NOW = datetime.datetime.now(UTC)

# Private-enterprise OID the builder knows nothing about
UNKNOWN_EXTENSION_OID = "1.3.6.1.4.1.55555.1"
SECOND_UNKNOWN_EXTENSION_OID = "1.3.6.1.4.1.55555.2"


def make_name(cn: str, org: Optional[str] = None) -> x509.Name:
    attrs = []
    if org:
        attrs.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, org))
    attrs.append(x509.NameAttribute(NameOID.COMMON_NAME, cn))
    return x509.Name(attrs)


@dataclass
class Issued:
    cert: Certificate
    key: ec.EllipticCurvePrivateKey

    @property
    def name(self) -> x509.Name:
        return self.cert.subject

    @property
    def pem(self) -> bytes:
        return self.cert.x509_certificate.public_bytes(Encoding.PEM)

    @property
    def der(self) -> bytes:
        return self.cert.der


class CertFactory:
    """
    Issues test certificates. `issuer=None` makes a self-signed certificate.
    """

    def __init__(self):
        self._serial = 1

    def _next_serial(self) -> int:
        self._serial += 1
        return self._serial

    def root(self, cn: str = "Root CA", **kwargs) -> Issued:
        kwargs.setdefault("ca", True)
        return self.issue(cn, None, **kwargs)

    def ca(self, cn: str, issuer: Issued, **kwargs) -> Issued:
        kwargs.setdefault("ca", True)
        return self.issue(cn, issuer, **kwargs)

    def leaf(self, cn: str, issuer: Issued, **kwargs) -> Issued:
        kwargs.setdefault("ca", False)
        return self.issue(cn, issuer, **kwargs)

    def issue(self, cn, issuer: Optional[Issued], *, org=None, subject=None, key=None,
              ca=False, path_length=None, basic_constraints=True, key_usage=True,
              key_cert_sign=True, permitted=None, excluded=None, san=None, aia=None,
              not_before=None, not_after=None, critical_extension=False,
              subject_key_id=True, authority_key_id=True, serial=None) -> Issued:
        key = key or ec.generate_private_key(ec.SECP256R1())
        subject = subject or make_name(cn, org)
        issuer_name = issuer.name if issuer is not None else subject
        signing_key = issuer.key if issuer is not None else key

        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer_name)
            .public_key(key.public_key())
            .serial_number(serial or self._next_serial())
            .not_valid_before(not_before or NOW - datetime.timedelta(days=1))
            .not_valid_after(not_after or NOW + datetime.timedelta(days=365))
        )
        if basic_constraints:
            builder = builder.add_extension(
                x509.BasicConstraints(ca=ca, path_length=path_length if ca else None),
                critical=True)
        if key_usage:
            builder = builder.add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=ca and key_cert_sign,
                    crl_sign=ca,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True)
        if subject_key_id:
            builder = builder.add_extension(
                x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
        if authority_key_id:
            builder = builder.add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(signing_key.public_key()),
                critical=False)
        if permitted or excluded:
            builder = builder.add_extension(
                x509.NameConstraints(permitted_subtrees=permitted or None,
                                     excluded_subtrees=excluded or None),
                critical=True)
        if san:
            builder = builder.add_extension(x509.SubjectAlternativeName(san), critical=False)
        if aia:
            builder = builder.add_extension(
                x509.AuthorityInformationAccess([
                    x509.AccessDescription(AuthorityInformationAccessOID.CA_ISSUERS,
                                           x509.UniformResourceIdentifier(url))
                    for url in aia
                ]),
                critical=False)
        if critical_extension:
            builder = builder.add_extension(
                x509.UnrecognizedExtension(x509.ObjectIdentifier(UNKNOWN_EXTENSION_OID),
                                           b"\x05\x00"),
                critical=True)

        cert = builder.sign(signing_key, hashes.SHA256())
        return Issued(cert=Certificate(cert), key=key)

    def duplicate_extension_der(self, cn: str, issuer: Issued) -> bytes:
        """
        DER for a CA certificate that carries the same extension twice.
        cryptography refuses to issue one, so the second OID is patched
        after signing.
        """
        key = ec.generate_private_key(ec.SECP256R1())
        builder = (
            x509.CertificateBuilder()
            .subject_name(make_name(cn))
            .issuer_name(issuer.name)
            .public_key(key.public_key())
            .serial_number(self._next_serial())
            .not_valid_before(NOW - datetime.timedelta(days=1))
            .not_valid_after(NOW + datetime.timedelta(days=365))
            .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        )
        for oid in (UNKNOWN_EXTENSION_OID, SECOND_UNKNOWN_EXTENSION_OID):
            builder = builder.add_extension(
                x509.UnrecognizedExtension(x509.ObjectIdentifier(oid), b"\x05\x00"),
                critical=False)
        der = builder.sign(issuer.key, hashes.SHA256()).public_bytes(Encoding.DER)
        # Both OIDs encode to the same bytes apart from the final arc
        second = bytes.fromhex("06092b0601040183b20302")
        assert der.count(second) == 1
        return der.replace(second, second[:-1] + b"\x01")


class StubCert:
    """
    Duck-typed certificate for checks that need shapes cryptography cannot
    issue, such as version 1 certificates.
    """

    def __init__(self, subject: x509.Name, issuer: x509.Name, version: int = 3, ca: bool = True,
                 path_length=None, name_constraints=None, subject_alt_names=()):
        self.subject = subject
        self.issuer = issuer
        self.version = version
        self.is_ca = ca and version >= 3
        self.path_length_constraint = path_length if self.is_ca else None
        self.name_constraints = name_constraints
        self.subject_alt_names = tuple(subject_alt_names)
        self.key_usage = None

    @property
    def subject_string(self) -> str:
        return self.subject.rfc4514_string()

    @property
    def is_self_issued(self) -> bool:
        return self.subject == self.issuer


@pytest.fixture
def factory():
    return CertFactory()


@pytest.fixture
def simple_chain(factory):
    """TA -> I (pathLen 0) -> L"""
    ta = factory.root("Test Root")
    inter = factory.ca("Test Intermediate", ta, path_length=0)
    leaf = factory.leaf("leaf.example.com", inter)
    return ta, inter, leaf
