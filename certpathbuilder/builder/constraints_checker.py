# certpathbuilder/builder/constraints_checker.py

"""
Basic-constraints and name-constraints checks.

ConstraintsChecker works on immutable ConstraintsState values:

    state = checker.init()
    for cert in path:                 # anchor-adjacent first, target last
        state = checker.check(cert, state, is_terminal=cert is path[-1])

Basic constraints (non-terminal certificates only):
  - The certificate must be a CA. A version 1 certificate, which cannot
    carry basic constraints, is accepted only when it is the first
    certificate (issued by the trust anchor) and is self-issued.
  - A certificate that is not self-issued consumes one unit of the
    remaining path length; at zero it is rejected. Self-issued
    certificates are free.
  - The certificate's own pathLenConstraint then caps the remainder.

Name constraints:
  - Once any earlier certificate declared name constraints, every later
    certificate that is the target or is not self-issued must have all of
    its names permitted by the merged constraints.
  - Each certificate's own constraints are merged in afterwards, whether
    or not it is self-issued.

check_forward() applies the same rules from the other end, while the
search still grows the path from the target toward an anchor.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from certpathbuilder.exceptions import CertPathValidatorError, Reason
from certpathbuilder.model.names import NameConstraints, certificate_names, format_general_name
from certpathbuilder.utils.logger import get_logger
from certpathbuilder.utils.settings import DEFAULT_MAX_PATH_LENGTH, UNLIMITED_PATH_LENGTH

LOG = get_logger(__name__)


@dataclass(frozen=True)
class ConstraintsState:
    # None means unconstrained
    remaining_path_length: Optional[int]
    merged_name_constraints: Optional[NameConstraints] = None
    # Number of certificates checked so far
    index: int = 0


class ConstraintsChecker:
    def __init__(self, max_path_length: int = DEFAULT_MAX_PATH_LENGTH):
        if max_path_length < UNLIMITED_PATH_LENGTH:
            raise ValueError(f"max_path_length must be >= -1, got {max_path_length}")
        self.max_path_length = max_path_length

    def init(self) -> ConstraintsState:
        """
        Return the state for a new path: the full configured budget and no
        name constraints.
        """
        remaining = None if self.max_path_length == UNLIMITED_PATH_LENGTH else self.max_path_length
        return ConstraintsState(remaining_path_length=remaining)

    def check(self, cert, state: ConstraintsState, is_terminal: bool = False) -> ConstraintsState:
        """
        Check the next certificate of the path and return the new state.

        :param cert: Certificate being added to the path
        :param state: State after the previous certificate
        :param is_terminal: True if `cert` is the target certificate
        :raises CertPathValidatorError: NOT_A_CA, PATH_TOO_LONG or INVALID_NAME
        """
        index = state.index + 1
        # Name constraints are checked second: they depend on the basic
        # constraints check having accepted the certificate
        remaining = self._check_basic_constraints(cert, state.remaining_path_length, index, is_terminal)
        merged = self._verify_name_constraints(cert, state.merged_name_constraints, index, is_terminal)
        return ConstraintsState(remaining_path_length=remaining, merged_name_constraints=merged,
                                index=index)

    def check_path(self, certs: Sequence) -> ConstraintsState:
        """
        Run check() over a complete path ordered from the certificate
        issued by the trust anchor to the target.
        """
        state = self.init()
        for i, cert in enumerate(certs):
            state = self.check(cert, state, is_terminal=(i == len(certs) - 1))
        return state

    def _check_basic_constraints(self, cert, remaining: Optional[int], index: int,
                                 is_terminal: bool) -> Optional[int]:
        LOG.debug("checking basic constraints: i=%d, remaining=%s, subject=%s",
                  index, remaining, cert.subject_string)
        if is_terminal:
            return remaining

        if cert.version < 3:
            # Only a self-issued certificate right below the trust anchor
            # (anchor key rollover) is accepted without basic constraints
            if not (index == 1 and cert.is_self_issued):
                raise CertPathValidatorError(
                    "basic constraints check failed: this is not a CA certificate",
                    Reason.NOT_A_CA, certificate=cert, index=index)
            path_len = None
        else:
            if not cert.is_ca:
                raise CertPathValidatorError(
                    "basic constraints check failed: this is not a CA certificate",
                    Reason.NOT_A_CA, certificate=cert, index=index)
            path_len = cert.path_length_constraint

        if not cert.is_self_issued and remaining is not None:
            if remaining <= 0:
                raise CertPathValidatorError(
                    "basic constraints check failed: pathLenConstraint violated - "
                    "this cert must be the last cert in the certification path",
                    Reason.PATH_TOO_LONG, certificate=cert, index=index)
            remaining -= 1

        if path_len is not None and (remaining is None or path_len < remaining):
            remaining = path_len

        LOG.debug("after processing, remaining path length = %s", remaining)
        return remaining

    def _verify_name_constraints(self, cert, merged: Optional[NameConstraints], index: int,
                                 is_terminal: bool) -> Optional[NameConstraints]:
        if merged is not None and (is_terminal or not cert.is_self_issued):
            LOG.debug("checking name constraints: %s against %s", cert.subject_string, merged)
            violation = merged.first_violation(certificate_names(cert))
            if violation is not None:
                raise CertPathValidatorError(
                    f"name constraints check failed: {format_general_name(violation)} "
                    "is not permitted",
                    Reason.INVALID_NAME, certificate=cert, index=index)

        own = cert.name_constraints
        if merged is None:
            return own
        return merged.merge(own)

    def check_forward(self, issuer, state) -> None:
        """
        Check `issuer` as the next intermediate CA above the path held in
        `state` (a ForwardState, target first).

        :raises CertPathValidatorError: NOT_A_CA, PATH_TOO_LONG or INVALID_NAME
        """
        if issuer.version < 3:
            # Decided for good once the trust anchor is known
            if not issuer.is_self_issued:
                raise CertPathValidatorError(
                    "basic constraints check failed: this is not a CA certificate",
                    Reason.NOT_A_CA, certificate=issuer)
        elif not issuer.is_ca:
            raise CertPathValidatorError(
                "basic constraints check failed: this is not a CA certificate",
                Reason.NOT_A_CA, certificate=issuer)

        below = state.traversed_ca_count
        path_len = issuer.path_length_constraint
        if path_len is not None and path_len < below:
            raise CertPathValidatorError(
                f"basic constraints check failed: pathLenConstraint {path_len} "
                f"allows fewer than the {below} CA certificate(s) below it",
                Reason.PATH_TOO_LONG, certificate=issuer)

        if not issuer.is_self_issued and self.max_path_length != UNLIMITED_PATH_LENGTH:
            if below + 1 > self.max_path_length:
                raise CertPathValidatorError(
                    f"basic constraints check failed: more than {self.max_path_length} "
                    "intermediate CA certificate(s)",
                    Reason.PATH_TOO_LONG, certificate=issuer)

        constraints = issuer.name_constraints
        if constraints is not None:
            violation = constraints.first_violation(state.traversed_names)
            if violation is not None:
                raise CertPathValidatorError(
                    f"name constraints check failed: {format_general_name(violation)} "
                    "is not permitted",
                    Reason.INVALID_NAME, certificate=issuer)
