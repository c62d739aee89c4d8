import ipaddress

import pytest
from cryptography import x509
from cryptography.x509.oid import NameOID

from certpathbuilder.model.names import NameConstraints, certificate_names, name_within

from conftest import make_name


def dns(value):
    return x509.DNSName(value)


def email(value):
    return x509.RFC822Name(value)


def dirname(*args):
    return x509.DirectoryName(make_name(*args))


@pytest.mark.parametrize("name,subtree,expected", [
    (dns("www.example.com"), dns("example.com"), True),
    (dns("example.com"), dns("example.com"), True),
    (dns("badexample.com"), dns("example.com"), False),
    (dns("www.example.com"), dns(".example.com"), True),
    (dns("example.com"), dns(".example.com"), False),
    (email("alice@example.com"), email("example.com"), True),
    (email("alice@mail.example.com"), email(".example.com"), True),
    (email("alice@example.com"), email("bob@example.com"), False),
    (x509.UniformResourceIdentifier("https://host.example.com/path"),
     x509.UniformResourceIdentifier(".example.com"), True),
    (x509.UniformResourceIdentifier("https://example.org/"),
     x509.UniformResourceIdentifier("example.com"), False),
    (x509.IPAddress(ipaddress.ip_address("10.1.2.3")),
     x509.IPAddress(ipaddress.ip_network("10.0.0.0/8")), True),
    (x509.IPAddress(ipaddress.ip_address("192.168.0.1")),
     x509.IPAddress(ipaddress.ip_network("10.0.0.0/8")), False),
    (dirname("leaf", "Acme"), x509.DirectoryName(x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "acme")])), True),
    (dirname("leaf", "Other"), x509.DirectoryName(x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Acme")])), False),
    (dns("example.com"), email("example.com"), False),
])
def test_name_within(name, subtree, expected):
    assert name_within(name, subtree) is expected


def test_excluded_subtree_wins_over_permitted():
    nc = NameConstraints(permitted=((dns("example.com"),),), excluded=(dns("bad.example.com"),))
    assert nc.permits(dns("www.example.com"))
    assert not nc.permits(dns("x.bad.example.com"))


def test_permitted_sets_are_intersected():
    nc = NameConstraints(permitted=((dns("example.com"),), (dns("www.example.com"),)))
    assert nc.permits(dns("a.www.example.com"))
    assert not nc.permits(dns("mail.example.com"))


def test_permitted_set_only_constrains_its_own_name_form():
    nc = NameConstraints(permitted=((dns("example.com"),),))
    assert nc.permits(email("alice@elsewhere.org"))


def test_first_violation_reports_offending_name():
    nc = NameConstraints(excluded=(dns("evil.com"),))
    names = [dns("ok.example.com"), dns("www.evil.com")]
    assert nc.first_violation(names) == dns("www.evil.com")
    assert nc.first_violation(names[:1]) is None


def test_merge_with_none_is_identity():
    nc = NameConstraints(permitted=((dns("example.com"),),))
    assert nc.merge(None) is nc


_A = NameConstraints(permitted=((dns("example.com"),),))
_B = NameConstraints(excluded=(dns("bad.example.com"),))
_C = NameConstraints(permitted=((dns("www.example.com"), email("example.com")),),
                     excluded=(email("spam@example.com"),))


@pytest.mark.parametrize("a,b,c", [(_A, _B, _C), (_C, _A, _B), (_B, _C, _A), (_A, _A, _B)])
def test_merge_is_associative(a, b, c):
    left = a.merge(b).merge(c)
    right = a.merge(b.merge(c))
    probes = [dns("www.example.com"), dns("x.bad.example.com"), dns("mail.example.com"),
              email("spam@example.com"), email("alice@example.com"), dns("other.org")]
    assert [left.permits(p) for p in probes] == [right.permits(p) for p in probes]
    assert left == right


def test_from_extension(factory):
    ca = factory.root("Constrained", permitted=[dns("example.com")],
                      excluded=[dns("bad.example.com")])
    nc = ca.cert.name_constraints
    assert nc.permitted == ((dns("example.com"),),)
    assert nc.excluded == (dns("bad.example.com"),)
    assert not nc.is_empty


def test_certificate_names_include_subject_and_sans(factory):
    root = factory.root()
    leaf = factory.leaf("www.example.com", root, org="Acme",
                        san=[dns("www.example.com"), email("ops@example.com")])
    names = certificate_names(leaf.cert)
    assert names[0] == x509.DirectoryName(leaf.cert.subject)
    assert dns("www.example.com") in names
    assert email("ops@example.com") in names
