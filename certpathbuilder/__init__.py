"""
certpathbuilder: build X.509 certification paths from a target certificate
to a trust anchor, searching local and remote certificate stores.
"""

from certpathbuilder.builder import (
    AdjacencyList,
    BuilderParams,
    BuildResult,
    CancellationToken,
    PathBuilder,
    StepResult,
    build,
)
from certpathbuilder.exceptions import (
    BuildCancelledError,
    CertPathBuilderError,
    CertPathError,
    CertPathValidatorError,
    CertStoreError,
    InvalidConfigurationError,
    Reason,
)
from certpathbuilder.model import (
    Certificate,
    NameConstraints,
    TrustAnchor,
    X509Selector,
    load_certificates,
)
from certpathbuilder.store import (
    CertStore,
    CollectionCertStore,
    DirectoryCertStore,
    URICertStore,
)

__version__ = "1.0.0"
