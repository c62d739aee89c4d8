"""
Value types consumed by the path builder: certificates, their extensions,
name constraints, identities, selectors and trust anchors.
"""

from certpathbuilder.model.anchor import TrustAnchor
from certpathbuilder.model.certificate import Certificate, load_certificates
from certpathbuilder.model.identity import CertIdentity
from certpathbuilder.model.names import NameConstraints
from certpathbuilder.model.selector import SelectorKind, X509Selector

__all__ = [
    "Certificate",
    "CertIdentity",
    "NameConstraints",
    "SelectorKind",
    "TrustAnchor",
    "X509Selector",
    "load_certificates",
]
