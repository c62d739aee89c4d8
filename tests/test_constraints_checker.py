import pytest
from cryptography import x509
from cryptography.x509.oid import NameOID

from certpathbuilder.builder.constraints_checker import ConstraintsChecker
from certpathbuilder.builder.state import ForwardState
from certpathbuilder.exceptions import CertPathValidatorError, Reason
from certpathbuilder.model.names import NameConstraints

from conftest import StubCert, make_name


def test_rejects_max_path_length_below_unlimited():
    with pytest.raises(ValueError):
        ConstraintsChecker(max_path_length=-2)


def test_init_state():
    assert ConstraintsChecker(3).init().remaining_path_length == 3
    assert ConstraintsChecker(-1).init().remaining_path_length is None


def test_path_length_is_consumed_and_capped(factory):
    root = factory.root()
    inter = factory.ca("Inter", root, path_length=1)
    leaf = factory.leaf("leaf", inter)
    checker = ConstraintsChecker(5)

    state = checker.check(inter.cert, checker.init())
    assert state.remaining_path_length == 1
    assert state.index == 1
    state = checker.check(leaf.cert, state, is_terminal=True)
    assert state.remaining_path_length == 1


def test_path_too_long(factory):
    root = factory.root()
    i1 = factory.ca("I1", root)
    i2 = factory.ca("I2", i1)
    leaf = factory.leaf("leaf", i2)

    with pytest.raises(CertPathValidatorError) as exc:
        ConstraintsChecker(1).check_path([i1.cert, i2.cert, leaf.cert])
    assert exc.value.reason is Reason.PATH_TOO_LONG
    assert exc.value.index == 2


def test_unlimited_path_length(factory):
    chain = [factory.root()]
    for i in range(8):
        chain.append(factory.ca(f"I{i}", chain[-1]))
    chain.append(factory.leaf("leaf", chain[-1]))
    state = ConstraintsChecker(-1).check_path([c.cert for c in chain[1:]])
    assert state.remaining_path_length is None


def test_end_entity_as_intermediate_is_not_a_ca(factory):
    root = factory.root()
    ee = factory.leaf("ee", root)
    leaf = factory.leaf("leaf", ee)
    with pytest.raises(CertPathValidatorError) as exc:
        ConstraintsChecker(5).check_path([ee.cert, leaf.cert])
    assert exc.value.reason is Reason.NOT_A_CA


def test_self_issued_certificates_do_not_consume_path_length(factory):
    root = factory.root()
    old = factory.ca("Rollover CA", root)
    # Same subject, new key: self-issued, signed by the old key
    new = factory.issue("Rollover CA", old, ca=True)
    leaf = factory.leaf("leaf", new)
    assert new.cert.is_self_issued

    state = ConstraintsChecker(1).check_path([old.cert, new.cert, leaf.cert])
    assert state.remaining_path_length == 0


def test_path_length_monotonic_without_self_issued(factory):
    chain = [factory.root()]
    for i in range(4):
        chain.append(factory.ca(f"I{i}", chain[-1]))
    checker = ConstraintsChecker(4)
    state = checker.init()
    seen = [state.remaining_path_length]
    for c in chain[1:]:
        state = checker.check(c.cert, state)
        seen.append(state.remaining_path_length)
    assert seen == [4, 3, 2, 1, 0]


def test_version1_self_issued_accepted_only_below_anchor():
    name = make_name("Legacy Root")
    v1 = StubCert(name, name, version=1)
    leaf = StubCert(make_name("leaf"), name, ca=False)
    checker = ConstraintsChecker(5)
    state = checker.check(v1, checker.init())
    checker.check(leaf, state, is_terminal=True)


def test_version1_rejected_deeper_in_path():
    root = make_name("Root")
    inter = StubCert(make_name("Inter"), root)
    name = make_name("Inter")
    v1 = StubCert(name, name, version=1)
    checker = ConstraintsChecker(5)
    state = checker.check(inter, checker.init())
    with pytest.raises(CertPathValidatorError) as exc:
        checker.check(v1, state)
    assert exc.value.reason is Reason.NOT_A_CA
    assert exc.value.index == 2


def test_version1_not_self_issued_rejected():
    v1 = StubCert(make_name("Legacy"), make_name("Root"), version=1)
    checker = ConstraintsChecker(5)
    with pytest.raises(CertPathValidatorError) as exc:
        checker.check(v1, checker.init())
    assert exc.value.reason is Reason.NOT_A_CA


def test_name_constraints_exclusion(factory):
    root = factory.root()
    excluded = x509.DirectoryName(x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Evil")]))
    inter = factory.ca("Inter", root, excluded=[excluded])
    leaf = factory.leaf("leaf", inter, org="Evil")

    with pytest.raises(CertPathValidatorError) as exc:
        ConstraintsChecker(5).check_path([inter.cert, leaf.cert])
    assert exc.value.reason is Reason.INVALID_NAME
    assert exc.value.certificate == leaf.cert


def test_name_constraints_accumulate_along_path(factory):
    root = factory.root()
    i1 = factory.ca("I1", root, permitted=[x509.DNSName("example.com")])
    i2 = factory.ca("I2", i1, permitted=[x509.DNSName("www.example.com")])
    ok = factory.leaf("ok", i2, san=[x509.DNSName("a.www.example.com")])
    bad = factory.leaf("bad", i2, san=[x509.DNSName("mail.example.com")])
    checker = ConstraintsChecker(5)

    state = checker.check_path([i1.cert, i2.cert, ok.cert])
    assert len(state.merged_name_constraints.permitted) == 2
    with pytest.raises(CertPathValidatorError) as exc:
        checker.check_path([i1.cert, i2.cert, bad.cert])
    assert exc.value.reason is Reason.INVALID_NAME


def test_self_issued_intermediate_exempt_from_name_constraints():
    root = make_name("Root")
    nc = NameConstraints(excluded=(x509.DirectoryName(make_name("Inter")),))
    i1 = StubCert(make_name("Inter"), root, name_constraints=nc)
    rollover = StubCert(make_name("Inter"), make_name("Inter"))
    checker = ConstraintsChecker(5)
    state = checker.check(i1, checker.init())
    state = checker.check(rollover, state)
    assert state.merged_name_constraints == nc


def test_check_forward_rejects_short_path_length(factory):
    root = factory.root()
    inter = factory.ca("Inter", root, path_length=0)
    i2 = factory.ca("I2", inter)
    leaf = factory.leaf("leaf", i2)
    state = ForwardState.initial(leaf.cert).extend(i2.cert)

    with pytest.raises(CertPathValidatorError) as exc:
        ConstraintsChecker(5).check_forward(inter.cert, state)
    assert exc.value.reason is Reason.PATH_TOO_LONG


def test_check_forward_enforces_budget(factory):
    root = factory.root()
    i1 = factory.ca("I1", root)
    i2 = factory.ca("I2", i1)
    leaf = factory.leaf("leaf", i2)
    state = ForwardState.initial(leaf.cert).extend(i2.cert)

    ConstraintsChecker(2).check_forward(i1.cert, state)
    with pytest.raises(CertPathValidatorError) as exc:
        ConstraintsChecker(1).check_forward(i1.cert, state)
    assert exc.value.reason is Reason.PATH_TOO_LONG


def test_check_forward_rejects_end_entity_issuer(factory):
    root = factory.root()
    ee = factory.leaf("ee", root)
    leaf = factory.leaf("leaf", ee)
    with pytest.raises(CertPathValidatorError) as exc:
        ConstraintsChecker(5).check_forward(ee.cert, ForwardState.initial(leaf.cert))
    assert exc.value.reason is Reason.NOT_A_CA
