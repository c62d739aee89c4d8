# certpathbuilder/exceptions.py

"""
Exceptions raised and captured while building certification paths.

Every failure carries a `Reason`, so a caller can tell *why* a candidate
was rejected or why no path could be built:

  - Per-candidate rejections (CertPathValidatorError) are captured on the
    search vertices and drive backtracking; they never escape build().
  - CertStoreError is logged per store and treated as "no candidates".
  - CertPathBuilderError (NO_PATH_FOUND) is returned on the BuildResult.
  - InvalidConfigurationError and BuildCancelledError propagate.
"""

from enum import Enum
from typing import Any, Dict, Optional


class Reason(Enum):
    NOT_A_CA = "not_a_ca"
    PATH_TOO_LONG = "path_too_long"
    INVALID_NAME = "invalid_name"
    INVALID_KEY_USAGE = "invalid_key_usage"
    TARGET_CONSTRAINTS_NOT_MET = "target_constraints_not_met"
    UNRECOGNIZED_CRIT_EXT = "unrecognized_critical_extension"
    EXPIRED = "expired"
    NOT_YET_VALID = "not_yet_valid"
    CYCLE_DETECTED = "cycle_detected"
    STORE_QUERY_FAILED = "store_query_failed"
    NO_PATH_FOUND = "no_path_found"
    INVALID_CONFIGURATION = "invalid_configuration"
    UNSPECIFIED = "unspecified"


class CertPathError(Exception):
    """Base exception for all certpathbuilder errors."""

    reason = Reason.UNSPECIFIED

    def __init__(self, message: str, reason: Optional[Reason] = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "error": type(self).__name__,
            "reason": self.reason.value,
            "message": str(self),
        }


class CertPathValidatorError(CertPathError):
    """
    A certificate failed a path check.

    Attributes:
        reason: Reason code of the failed check
        certificate: The certificate that failed, when known
        index: Position of the certificate in PKIX processing order
               (1 = issued by the trust anchor), or -1 if not applicable
    """

    def __init__(self, message: str, reason: Reason = Reason.UNSPECIFIED,
                 certificate=None, index: int = -1):
        super().__init__(message, reason)
        self.certificate = certificate
        self.index = index

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["index"] = self.index
        if self.certificate is not None:
            d["subject"] = self.certificate.subject_string
        return d


class CertPathBuilderError(CertPathError):
    """No certification path could be built."""

    reason = Reason.NO_PATH_FOUND


class CertStoreError(CertPathError):
    """A certificate store could not answer a query."""

    reason = Reason.STORE_QUERY_FAILED

    def __init__(self, message: str, store_name: str = ""):
        super().__init__(message)
        self.store_name = store_name

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["store"] = self.store_name
        return d


class InvalidConfigurationError(CertPathError):
    """Builder parameters are unusable; raised before any search starts."""

    reason = Reason.INVALID_CONFIGURATION


class BuildCancelledError(CertPathError):
    """The build was cancelled or ran past its deadline."""
