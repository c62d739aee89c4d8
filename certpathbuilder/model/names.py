# certpathbuilder/model/names.py

"""
Name-constraint value types.

A NameConstraints value is built from a certificate's NameConstraints
extension and folded together along a path with `merge()`:

  - permitted: one tuple of subtrees per certificate that declared any.
    A name must lie within at least one subtree of *every* set that
    constrains its name type (the intersection of the sets).
  - excluded: the union of all excluded subtrees.

Supported name forms: DNS names, RFC 822 mailboxes, URIs (host part),
directory names (RDN prefix) and IP addresses (network). Other name forms
only match a subtree of the same form when they are equal.
"""

import ipaddress
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

from cryptography import x509
from cryptography.x509.oid import NameOID


def _dns_within(name: str, constraint: str) -> bool:
    name = name.lower().rstrip(".")
    constraint = constraint.lower().rstrip(".")
    if not constraint:
        return True
    if constraint.startswith("."):
        return name.endswith(constraint)
    return name == constraint or name.endswith("." + constraint)


def _host_within(host: str, constraint: str) -> bool:
    # URI and mailbox host constraints: a leading dot means "any subdomain",
    # otherwise the host must be equal.
    host = host.lower().rstrip(".")
    constraint = constraint.lower().rstrip(".")
    if not constraint:
        return True
    if constraint.startswith("."):
        return host.endswith(constraint)
    return host == constraint


def _email_within(address: str, constraint: str) -> bool:
    if "@" in constraint:
        return address.lower() == constraint.lower()
    return _host_within(address.rpartition("@")[2], constraint)


def _uri_within(uri: str, constraint: str) -> bool:
    host = urlsplit(uri).hostname
    if not host:
        return False
    return _host_within(host, constraint)


def _normalize_rdn(rdn: x509.RelativeDistinguishedName) -> frozenset:
    return frozenset(
        (attr.oid.dotted_string, " ".join(str(attr.value).split()).lower())
        for attr in rdn
    )


def _directory_within(name: x509.Name, constraint: x509.Name) -> bool:
    base = [_normalize_rdn(rdn) for rdn in constraint.rdns]
    if len(base) > len(name.rdns):
        return False
    return [_normalize_rdn(rdn) for rdn in name.rdns[:len(base)]] == base


def _ip_within(address, network) -> bool:
    if isinstance(address, (ipaddress.IPv4Network, ipaddress.IPv6Network)):
        if address.version != network.version:
            return False
        return address.subnet_of(network)
    if address.version != network.version:
        return False
    return address in network


_MATCHERS = {
    x509.DNSName: _dns_within,
    x509.RFC822Name: _email_within,
    x509.UniformResourceIdentifier: _uri_within,
    x509.DirectoryName: _directory_within,
    x509.IPAddress: _ip_within,
}


def name_within(name: x509.GeneralName, subtree: x509.GeneralName) -> bool:
    """
    Return True if `name` lies within `subtree`. Names of a different form
    never lie within a subtree.
    """
    if type(name) is not type(subtree):
        return False
    matcher = _MATCHERS.get(type(name))
    if matcher is None:
        return name == subtree
    return matcher(name.value, subtree.value)


def certificate_names(cert) -> List[x509.GeneralName]:
    """
    Collect every name of `cert` that name constraints apply to: the
    subject DN (when not empty), each subject alternative name, and any
    emailAddress attribute of the subject DN as an RFC 822 name.
    """
    names: List[x509.GeneralName] = []
    if len(cert.subject.rdns) > 0:
        names.append(x509.DirectoryName(cert.subject))
    names.extend(cert.subject_alt_names)
    for attr in cert.subject.get_attributes_for_oid(NameOID.EMAIL_ADDRESS):
        email = x509.RFC822Name(str(attr.value))
        if email not in names:
            names.append(email)
    return names


def format_general_name(name: x509.GeneralName) -> str:
    if isinstance(name, x509.DirectoryName):
        return f"DirName:{name.value.rfc4514_string()}"
    if isinstance(name, x509.DNSName):
        return f"DNS:{name.value}"
    if isinstance(name, x509.RFC822Name):
        return f"email:{name.value}"
    if isinstance(name, x509.UniformResourceIdentifier):
        return f"URI:{name.value}"
    if isinstance(name, x509.IPAddress):
        return f"IP:{name.value}"
    return repr(name)


def _ordered_union(left: Tuple, right: Iterable) -> Tuple:
    merged = list(left)
    for item in right:
        if item not in merged:
            merged.append(item)
    return tuple(merged)


@dataclass(frozen=True)
class NameConstraints:
    permitted: Tuple[Tuple[x509.GeneralName, ...], ...] = ()
    excluded: Tuple[x509.GeneralName, ...] = ()

    @classmethod
    def from_extension(cls, ext: x509.NameConstraints) -> "NameConstraints":
        """
        Build from a parsed `cryptography` NameConstraints extension value.
        """
        permitted = ()
        if ext.permitted_subtrees:
            permitted = (tuple(ext.permitted_subtrees),)
        return cls(permitted=permitted, excluded=tuple(ext.excluded_subtrees or ()))

    @property
    def is_empty(self) -> bool:
        return not self.permitted and not self.excluded

    def merge(self, other: Optional["NameConstraints"]) -> "NameConstraints":
        """
        Fold `other` into these constraints and return the result. Permitted
        sets accumulate (intersection), excluded subtrees are unioned.
        Merging is associative, and `None` is the identity.
        """
        if other is None:
            return self
        return NameConstraints(
            permitted=_ordered_union(self.permitted, other.permitted),
            excluded=_ordered_union(self.excluded, other.excluded),
        )

    def excludes(self, name: x509.GeneralName) -> bool:
        return any(name_within(name, subtree) for subtree in self.excluded)

    def permits(self, name: x509.GeneralName) -> bool:
        """
        Return True if `name` is inside every applicable permitted set and
        not inside any excluded subtree.
        """
        if self.excludes(name):
            return False
        for subtrees in self.permitted:
            same_form = [s for s in subtrees if type(s) is type(name)]
            if same_form and not any(name_within(name, s) for s in same_form):
                return False
        return True

    def first_violation(self, names: Iterable[x509.GeneralName]) -> Optional[x509.GeneralName]:
        for name in names:
            if not self.permits(name):
                return name
        return None

    def __str__(self) -> str:
        permitted = "; ".join(
            ", ".join(format_general_name(n) for n in subtrees)
            for subtrees in self.permitted
        )
        excluded = ", ".join(format_general_name(n) for n in self.excluded)
        return f"NameConstraints(permitted=[{permitted}], excluded=[{excluded}])"
