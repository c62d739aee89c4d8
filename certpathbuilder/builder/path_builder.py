# certpathbuilder/builder/path_builder.py

"""
Depth-first, backtracking certification path builder.

The search starts from the certificates matching the target selector and
walks toward the trust anchors, one issuer at a time:

  1. Every candidate is recorded as POSSIBLE, then checked: cycles, the
     depth bound, validity, unsupported critical extensions, and either the
     target constraints (first row) or the issuer-side basic-constraints,
     name-constraints and key-usage checks. A failure is captured on the
     candidate's vertex and recorded as BACK.
  2. A candidate that is, or is issued by, a trust anchor completes a
     path. The complete path is validated from the anchor down to the
     target with fresh ConstraintsChecker and KeyChecker states; success
     is recorded as SUCCEED and ends the search.
  3. Otherwise the candidate is recorded as FOLLOW, its issuers are looked
     up in the stores (local stores first) and become a new row. When the
     row is exhausted without success the candidate is recorded as BACK,
     and the row's last candidate as FAIL.

Failing to find a path is not an error: build() returns a BuildResult
whose `failure` is set and whose adjacency list explains every rejection.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from certpathbuilder.builder.adjacency import AdjacencyList, StepResult, Vertex
from certpathbuilder.builder.constraints_checker import ConstraintsChecker
from certpathbuilder.builder.key_checker import KeyChecker
from certpathbuilder.builder.state import CancellationToken, ForwardState
from certpathbuilder.exceptions import (
    CertPathBuilderError,
    CertPathValidatorError,
    CertStoreError,
    InvalidConfigurationError,
    Reason,
)
from certpathbuilder.model.anchor import TrustAnchor
from certpathbuilder.model.selector import X509Selector
from certpathbuilder.store.base import CertStore, sort_stores
from certpathbuilder.store.uri import URICertStore
from certpathbuilder.utils.logger import get_logger
from certpathbuilder.utils.settings import (
    DEFAULT_MAX_PATH_LENGTH,
    DEFAULT_STORE_TIMEOUT,
    UNLIMITED_PATH_LENGTH,
    max_search_depth,
)

LOG = get_logger(__name__)


@dataclass
class BuilderParams:
    target: X509Selector
    trust_anchors: Sequence[TrustAnchor]
    cert_stores: Sequence[CertStore] = ()
    max_path_length: int = DEFAULT_MAX_PATH_LENGTH
    date: Optional[datetime] = None
    check_validity: bool = True
    use_aia: bool = False
    store_timeout: float = DEFAULT_STORE_TIMEOUT
    ignored_critical_extensions: Sequence[str] = ()

    def validate(self) -> None:
        """
        :raises InvalidConfigurationError: if the parameters cannot be used
        """
        if not isinstance(self.target, X509Selector):
            raise InvalidConfigurationError("the target constraints must be an X509Selector")
        if self.target.kind is None:
            raise InvalidConfigurationError(
                "the target selector must name a subject, an issuer and serial number, "
                "or a certificate")
        if not self.trust_anchors:
            raise InvalidConfigurationError("at least one trust anchor is required")
        for anchor in self.trust_anchors:
            if not isinstance(anchor, TrustAnchor):
                raise InvalidConfigurationError(f"not a TrustAnchor: {anchor!r}")
            if anchor.name_constraints is not None:
                raise InvalidConfigurationError("name constraints in trust anchor not supported")
        if isinstance(self.max_path_length, bool) or not isinstance(self.max_path_length, int):
            raise InvalidConfigurationError("max_path_length must be an integer")
        if self.max_path_length < UNLIMITED_PATH_LENGTH:
            raise InvalidConfigurationError(
                f"max_path_length must be >= -1, got {self.max_path_length}")
        for store in self.cert_stores:
            if not isinstance(store, CertStore):
                raise InvalidConfigurationError(f"not a CertStore: {store!r}")


@dataclass
class BuildResult:
    chain: Optional[List[Any]]
    anchor: Optional[TrustAnchor]
    adjacency_list: AdjacencyList
    failure: Optional[CertPathBuilderError] = None
    store_errors: List[CertStoreError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.chain is not None

    @property
    def path(self) -> List[Any]:
        """
        The certification path without the trust anchor's certificate,
        ordered from the anchor-adjacent certificate to the target.
        """
        if self.chain is None:
            return []
        if self.anchor is not None and self.anchor.certificate is not None:
            return self.chain[1:]
        return list(self.chain)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "chain": [
                {"subject": c.subject_string, "issuer": c.issuer_string,
                 "serial": f"{c.serial_number:x}"}
                for c in (self.chain or [])
            ],
            "anchor": self.anchor.to_dict() if self.anchor is not None else None,
            "failure": self.failure.to_dict() if self.failure is not None else None,
            "store_errors": [e.to_dict() for e in self.store_errors],
            "adjacency_list": self.adjacency_list.to_dict(),
        }


class _BuildContext:
    """State owned by one build() call."""

    def __init__(self, cancel: CancellationToken):
        self.adjacency = AdjacencyList()
        self.store_errors: List[CertStoreError] = []
        self.cancel = cancel
        self.aia_stores: Dict[str, URICertStore] = {}


class PathBuilder:
    def __init__(self, params: BuilderParams):
        """
        :param params: Build parameters
        :raises InvalidConfigurationError: if `params` are unusable
        """
        params.validate()
        self.params = params
        self._stores = sort_stores(params.cert_stores)
        self._constraints = ConstraintsChecker(params.max_path_length)
        self._key_checker = KeyChecker(params.target)
        self._max_depth = max_search_depth(params.max_path_length)
        date = params.date or datetime.now(timezone.utc)
        if date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)
        self._date = date

    def build(self, cancel: Optional[CancellationToken] = None) -> BuildResult:
        """
        Search for a certification path to the target.

        :param cancel: Optional token checked before each store query and
            each candidate
        :return: BuildResult with the chain (anchor first) on success, or
            with `failure` set and no chain
        :raises BuildCancelledError: if `cancel` fires during the search
        """
        ctx = _BuildContext(cancel or CancellationToken())
        LOG.info("Building certification path for %s", self.params.target)

        candidates = self._target_candidates(ctx)
        row = ctx.adjacency.add_row(candidates)
        LOG.debug("Found %d target candidate(s)", len(candidates))

        found = self._search_row(ctx, row, None)
        if found is None:
            LOG.info("No certification path found (%d vertices examined)",
                     len(ctx.adjacency.vertices))
            return BuildResult(
                chain=None,
                anchor=None,
                adjacency_list=ctx.adjacency,
                failure=CertPathBuilderError(
                    "unable to find valid certification path to requested target"),
                store_errors=ctx.store_errors,
            )

        handle, anchor = found
        path = ctx.adjacency.chain_from(handle)
        if anchor.is_anchor_certificate(path[0]):
            # The search ended on the anchor certificate itself
            path = path[1:]
        chain = ([anchor.certificate] if anchor.certificate is not None else []) + path
        LOG.info("Certification path of %d certificate(s) found, anchored at %s",
                 len(chain), anchor.subject_string)
        return BuildResult(chain=chain, anchor=anchor, adjacency_list=ctx.adjacency,
                           store_errors=ctx.store_errors)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _search_row(self, ctx: _BuildContext, row: int,
                    state: Optional[ForwardState]) -> Optional[Tuple[int, TrustAnchor]]:
        vertices = ctx.adjacency.get_row(row)
        for vertex in vertices:
            ctx.cancel.check()
            ctx.adjacency.record(vertex.handle, StepResult.POSSIBLE)
            found = self._try_candidate(ctx, vertex, state)
            if found is not None:
                return found
        if vertices:
            ctx.adjacency.record(vertices[-1].handle, StepResult.FAIL)
        return None

    def _try_candidate(self, ctx: _BuildContext, vertex: Vertex,
                       state: Optional[ForwardState]) -> Optional[Tuple[int, TrustAnchor]]:
        cert = vertex.certificate
        LOG.debug("Trying %s (issuer %s)", cert.subject_string, cert.issuer_string)

        try:
            if state is None:
                self._check_certificate(cert)
                self._key_checker.check(cert, is_terminal=True)
                next_state = ForwardState.initial(cert)
            else:
                if state.contains(cert):
                    raise CertPathValidatorError("certificate already appears in the path",
                                                 Reason.CYCLE_DETECTED, certificate=cert)
                anchor = self._anchor_certificate(cert)
                if anchor is not None:
                    # The anchor itself: the path below it is complete
                    return self._complete(ctx, vertex, list(reversed(state.certificates)), anchor)
                if state.depth + 1 > self._max_depth:
                    raise CertPathValidatorError(
                        f"search depth limit of {self._max_depth} reached",
                        Reason.PATH_TOO_LONG, certificate=cert)
                self._check_certificate(cert)
                self._constraints.check_forward(cert, state)
                self._key_checker.check(cert, is_terminal=False)
                next_state = state.extend(cert)
        except CertPathValidatorError as e:
            LOG.debug("Rejected %s: %s", cert.subject_string, e)
            vertex.set_error(e)
            ctx.adjacency.record(vertex.handle, StepResult.BACK)
            return None

        if state is None:
            anchor = self._anchor_certificate(cert)
            if anchor is not None:
                return self._complete(ctx, vertex, [], anchor)

        path = list(reversed(next_state.certificates))
        for anchor in self._anchors_issuing(cert):
            found = self._complete(ctx, vertex, path, anchor, record_failure=False)
            if found is not None:
                return found

        ctx.adjacency.record(vertex.handle, StepResult.FOLLOW)
        issuers = self._issuer_candidates(ctx, cert)
        row = ctx.adjacency.add_row(issuers, parent=vertex.handle)
        LOG.debug("Found %d issuer candidate(s) for %s", len(issuers), cert.subject_string)

        found = self._search_row(ctx, row, next_state)
        if found is not None:
            return found

        if vertex.error is None:
            vertex.set_error(CertPathBuilderError(
                f"no certification path from {cert.issuer_string} to a trust anchor"))
        ctx.adjacency.record(vertex.handle, StepResult.BACK)
        return None

    def _complete(self, ctx: _BuildContext, vertex: Vertex, path: List, anchor: TrustAnchor,
                  record_failure: bool = True) -> Optional[Tuple[int, TrustAnchor]]:
        """
        Validate `path` (anchor-adjacent first) under `anchor`. Records
        SUCCEED on success; on failure the error is captured on `vertex`
        and, if `record_failure`, a BACK step is recorded.
        """
        try:
            self._validate_path(path)
        except CertPathValidatorError as e:
            LOG.debug("Path under %s rejected: %s", anchor.subject_string, e)
            vertex.set_error(e)
            if record_failure:
                ctx.adjacency.record(vertex.handle, StepResult.BACK)
            return None
        ctx.adjacency.record(vertex.handle, StepResult.SUCCEED)
        return vertex.handle, anchor

    def _validate_path(self, path: List) -> None:
        state = self._constraints.init()
        last = len(path) - 1
        for i, cert in enumerate(path):
            state = self._constraints.check(cert, state, is_terminal=(i == last))
            try:
                self._key_checker.check(cert, is_terminal=(i == last))
            except CertPathValidatorError as e:
                e.index = i + 1
                raise

    def _check_certificate(self, cert) -> None:
        if self.params.check_validity:
            if self._date < cert.not_valid_before:
                raise CertPathValidatorError(
                    f"certificate not valid until {cert.not_valid_before.isoformat()}",
                    Reason.NOT_YET_VALID, certificate=cert)
            if self._date > cert.not_valid_after:
                raise CertPathValidatorError(
                    f"certificate expired on {cert.not_valid_after.isoformat()}",
                    Reason.EXPIRED, certificate=cert)
        unsupported = [oid for oid in cert.unsupported_critical_extensions
                       if oid not in self.params.ignored_critical_extensions]
        if unsupported:
            raise CertPathValidatorError(
                f"unrecognized critical extension(s): {', '.join(unsupported)}",
                Reason.UNRECOGNIZED_CRIT_EXT, certificate=cert)

    # ------------------------------------------------------------------
    # Anchors and stores
    # ------------------------------------------------------------------

    def _anchor_certificate(self, cert) -> Optional[TrustAnchor]:
        for anchor in self.params.trust_anchors:
            if anchor.is_anchor_certificate(cert):
                return anchor
        return None

    def _anchors_issuing(self, cert) -> List[TrustAnchor]:
        return [anchor for anchor in self.params.trust_anchors if anchor.issued(cert)]

    def _target_candidates(self, ctx: _BuildContext) -> List:
        selector = self.params.target
        certs = []
        if selector.certificate is not None:
            certs.append(selector.certificate)
        certs.extend(self._query_stores(ctx, selector, self._stores))
        return list(dict.fromkeys(certs))

    def _issuer_candidates(self, ctx: _BuildContext, cert) -> List:
        selector = X509Selector.for_issuer_of(cert)
        issuers = self._query_stores(ctx, selector, self._stores)
        if not issuers and self.params.use_aia and cert.ca_issuer_urls:
            issuers = self._query_stores(ctx, selector, self._aia_stores(ctx, cert))
        return issuers

    def _aia_stores(self, ctx: _BuildContext, cert) -> List[URICertStore]:
        stores = []
        for url in cert.ca_issuer_urls:
            if url not in ctx.aia_stores:
                try:
                    ctx.aia_stores[url] = URICertStore(url, timeout=self.params.store_timeout)
                except ValueError as e:
                    LOG.debug("Ignoring caIssuers location %s: %s", url, e)
                    continue
            stores.append(ctx.aia_stores[url])
        return stores

    def _query_stores(self, ctx: _BuildContext, selector: X509Selector,
                      stores: Sequence[CertStore]) -> List:
        found = []
        for store in stores:
            ctx.cancel.check()
            try:
                found.extend(store.query(selector))
            except CertStoreError as e:
                LOG.warning("Certificate store %s failed: %s", store.name, e)
                ctx.store_errors.append(e)
            except (OSError, ValueError) as e:
                LOG.warning("Certificate store %s failed: %s", store.name, e)
                ctx.store_errors.append(CertStoreError(str(e), store_name=store.name))
        return list(dict.fromkeys(found))


def build(selector: X509Selector, trust_anchors: Sequence[TrustAnchor],
          cert_stores: Sequence[CertStore] = (), max_path_length: int = DEFAULT_MAX_PATH_LENGTH,
          cancel: Optional[CancellationToken] = None, **options) -> BuildResult:
    """
    Build a certification path from the certificate selected by `selector`
    to one of `trust_anchors`, searching `cert_stores`.

    Extra keyword options are passed to BuilderParams (date,
    check_validity, use_aia, store_timeout, ignored_critical_extensions).

    :raises InvalidConfigurationError: before searching, for unusable parameters
    """
    params = BuilderParams(
        target=selector,
        trust_anchors=list(trust_anchors),
        cert_stores=list(cert_stores),
        max_path_length=max_path_length,
        **options,
    )
    return PathBuilder(params).build(cancel)
