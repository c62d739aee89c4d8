# certpathbuilder/builder/key_checker.py

"""
Key-usage and target-constraint checks.

  - Every CA certificate in the path that carries a key-usage extension
    must assert keyCertSign. Without the extension no usage restriction is
    declared and the certificate is accepted. Extended key usage is not
    checked.
  - The target certificate must satisfy the caller's target selector.
"""

from certpathbuilder.exceptions import CertPathValidatorError, Reason
from certpathbuilder.model.extensions import KEY_CERT_SIGN
from certpathbuilder.utils.logger import get_logger

LOG = get_logger(__name__)


class KeyChecker:
    def __init__(self, target_constraints=None):
        """
        :param target_constraints: X509Selector the target must match, or None
        """
        self.target_constraints = target_constraints

    def check(self, cert, is_terminal: bool = False) -> None:
        """
        :raises CertPathValidatorError: TARGET_CONSTRAINTS_NOT_MET for a
            terminal certificate, INVALID_KEY_USAGE for a CA certificate
        """
        if is_terminal:
            if self.target_constraints is not None and not self.target_constraints.match(cert):
                raise CertPathValidatorError(
                    "target certificate constraints check failed",
                    Reason.TARGET_CONSTRAINTS_NOT_MET, certificate=cert)
        else:
            self.verify_ca_key_usage(cert)

    @staticmethod
    def verify_ca_key_usage(cert) -> None:
        LOG.debug("checking CA key usage of %s", cert.subject_string)
        bits = cert.key_usage
        if bits is None:
            return
        if not bits[KEY_CERT_SIGN]:
            raise CertPathValidatorError(
                "CA key usage check failed: keyCertSign bit is not set",
                Reason.INVALID_KEY_USAGE, certificate=cert)
