from unittest import mock

import pytest
import requests

from certpathbuilder.exceptions import CertStoreError
from certpathbuilder.loader import discover_certificate_files, load_certificates_from
from certpathbuilder.model.selector import X509Selector
from certpathbuilder.store.base import sort_stores
from certpathbuilder.store.collection import CollectionCertStore
from certpathbuilder.store.directory import DirectoryCertStore
from certpathbuilder.store.uri import URICertStore


def _response(content):
    res = mock.Mock(content=content)
    res.raise_for_status.return_value = None
    return res


def test_collection_store_dedupes_and_filters(simple_chain):
    ta, inter, leaf = simple_chain
    store = CollectionCertStore([inter.cert, leaf.cert, inter.cert])
    assert len(store) == 2
    assert store.query(X509Selector(subject=inter.name)) == [inter.cert]


def test_directory_store_reads_pem_and_der(tmp_path, simple_chain):
    ta, inter, leaf = simple_chain
    (tmp_path / "inter.pem").write_bytes(inter.pem)
    sub = tmp_path / "nested"
    sub.mkdir()
    (sub / "leaf.der").write_bytes(leaf.der)
    (tmp_path / "notes.txt").write_text("not a certificate")
    (tmp_path / "broken.pem").write_bytes(b"-----BEGIN CERTIFICATE-----\nAAAA\n-----END CERTIFICATE-----\n")

    store = DirectoryCertStore(str(tmp_path))
    assert store.query(X509Selector(subject=inter.name)) == [inter.cert]
    assert store.query(X509Selector(subject=leaf.name)) == [leaf.cert]
    assert DirectoryCertStore(str(tmp_path), recursive=False).query(
        X509Selector(subject=leaf.name)) == []


def test_directory_store_missing_path():
    store = DirectoryCertStore("/nonexistent/certs")
    with pytest.raises(CertStoreError) as exc:
        store.query(X509Selector())
    assert exc.value.store_name == "directory:/nonexistent/certs"


def test_discover_respects_exclude_patterns(tmp_path, simple_chain):
    ta, inter, leaf = simple_chain
    (tmp_path / "keep.crt").write_bytes(inter.pem)
    skip = tmp_path / "skip"
    skip.mkdir()
    (skip / "leaf.pem").write_bytes(leaf.pem)

    files = discover_certificate_files(str(tmp_path), exclude_patterns=["*/skip/*"])
    assert files == [str(tmp_path / "keep.crt")]
    assert load_certificates_from(str(tmp_path / "*.crt")) == [inter.cert]


def test_uri_store_fetches_and_caches(simple_chain):
    ta, inter, leaf = simple_chain
    with mock.patch("certpathbuilder.store.uri.requests.get",
                    return_value=_response(inter.pem + ta.pem)) as get:
        store = URICertStore("http://ca.example.com/bundle.pem", timeout=2)
        assert store.query(X509Selector(subject=inter.name)) == [inter.cert]
        assert store.query(X509Selector(subject=ta.name)) == [ta.cert]
    get.assert_called_once_with("http://ca.example.com/bundle.pem", timeout=2)
    assert not store.is_local


def test_uri_store_network_error():
    with mock.patch("certpathbuilder.store.uri.requests.get",
                    side_effect=requests.ConnectionError("refused")):
        store = URICertStore("https://ca.example.com/ca.der")
        with pytest.raises(CertStoreError):
            store.query(X509Selector())


def test_uri_store_unparseable_body():
    with mock.patch("certpathbuilder.store.uri.requests.get",
                    return_value=_response(b"<html>oops</html>")):
        with pytest.raises(CertStoreError):
            URICertStore("http://ca.example.com/ca.der").query(X509Selector())


def test_uri_store_rejects_other_schemes():
    with pytest.raises(ValueError):
        URICertStore("ldap://ldap.example.com/cn=CA")


def test_sort_stores_local_first(simple_chain):
    remote = URICertStore("http://ca.example.com/a.der")
    local_a = CollectionCertStore([], name="a")
    local_b = CollectionCertStore([], name="b")
    assert sort_stores([remote, local_a, local_b]) == [local_a, local_b, remote]
