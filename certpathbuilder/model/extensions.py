# certpathbuilder/model/extensions.py

"""
Closed set of certificate extensions the path builder understands.

Extensions that drive path checks:
  - BasicConstraintsExt: CA flag and path-length constraint
  - KeyUsageExt: the nine RFC 5280 key-usage bits
  - NameConstraintsExt: permitted / excluded subtrees

Extensions read for candidate selection or diagnostics: subject alternative
names, subject / authority key identifiers, authority information access and
extended key usage. Any *other* extension marked critical is reported in
ParsedExtensions.unsupported_critical so the caller can reject the
certificate explicitly.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from cryptography import x509
from cryptography.x509.oid import AuthorityInformationAccessOID, ExtensionOID

from certpathbuilder.model.names import NameConstraints

# Index of keyCertSign in the key-usage bit tuple
KEY_CERT_SIGN = 5

KEY_USAGE_NAMES = (
    "digital_signature",
    "content_commitment",
    "key_encipherment",
    "data_encipherment",
    "key_agreement",
    "key_cert_sign",
    "crl_sign",
    "encipher_only",
    "decipher_only",
)


@dataclass(frozen=True)
class BasicConstraintsExt:
    ca: bool
    path_length: Optional[int]
    critical: bool = False


@dataclass(frozen=True)
class KeyUsageExt:
    bits: Tuple[bool, ...]
    critical: bool = False


@dataclass(frozen=True)
class NameConstraintsExt:
    constraints: NameConstraints
    critical: bool = False


@dataclass(frozen=True)
class ParsedExtensions:
    basic_constraints: Optional[BasicConstraintsExt] = None
    key_usage: Optional[KeyUsageExt] = None
    name_constraints: Optional[NameConstraintsExt] = None
    subject_alt_names: Tuple[x509.GeneralName, ...] = ()
    subject_key_identifier: Optional[bytes] = None
    authority_key_identifier: Optional[bytes] = None
    ca_issuer_urls: Tuple[str, ...] = ()
    unsupported_critical: Tuple[str, ...] = ()


def _key_usage_bits(ku: x509.KeyUsage) -> Tuple[bool, ...]:
    # encipher_only / decipher_only are only defined when key_agreement is set
    encipher_only = ku.encipher_only if ku.key_agreement else False
    decipher_only = ku.decipher_only if ku.key_agreement else False
    return (
        ku.digital_signature,
        ku.content_commitment,
        ku.key_encipherment,
        ku.data_encipherment,
        ku.key_agreement,
        ku.key_cert_sign,
        ku.crl_sign,
        encipher_only,
        decipher_only,
    )


def parse_extensions(cert: x509.Certificate) -> ParsedExtensions:
    """
    Parse the extensions of a `cryptography` certificate into the closed
    ParsedExtensions record.

    Raises ValueError if the extension block itself is malformed
    (e.g. duplicate extensions).
    """
    fields = {}
    unsupported = []

    try:
        extensions = cert.extensions
    except (x509.DuplicateExtension, x509.UnsupportedGeneralNameType) as e:
        raise ValueError(f"Malformed extensions: {e}") from e

    for ext in extensions:
        oid = ext.oid
        value = ext.value
        if oid == ExtensionOID.BASIC_CONSTRAINTS:
            fields["basic_constraints"] = BasicConstraintsExt(
                ca=value.ca, path_length=value.path_length, critical=ext.critical
            )
        elif oid == ExtensionOID.KEY_USAGE:
            fields["key_usage"] = KeyUsageExt(bits=_key_usage_bits(value), critical=ext.critical)
        elif oid == ExtensionOID.NAME_CONSTRAINTS:
            fields["name_constraints"] = NameConstraintsExt(
                constraints=NameConstraints.from_extension(value), critical=ext.critical
            )
        elif oid == ExtensionOID.SUBJECT_ALTERNATIVE_NAME:
            fields["subject_alt_names"] = tuple(value)
        elif oid == ExtensionOID.SUBJECT_KEY_IDENTIFIER:
            fields["subject_key_identifier"] = value.digest
        elif oid == ExtensionOID.AUTHORITY_KEY_IDENTIFIER:
            fields["authority_key_identifier"] = value.key_identifier
        elif oid == ExtensionOID.AUTHORITY_INFORMATION_ACCESS:
            fields["ca_issuer_urls"] = tuple(
                desc.access_location.value
                for desc in value
                if desc.access_method == AuthorityInformationAccessOID.CA_ISSUERS
                and isinstance(desc.access_location, x509.UniformResourceIdentifier)
            )
        elif oid == ExtensionOID.EXTENDED_KEY_USAGE:
            # Left to the application consuming the path
            continue
        elif ext.critical:
            unsupported.append(oid.dotted_string)

    return ParsedExtensions(unsupported_critical=tuple(unsupported), **fields)
