#!/usr/bin/env python3
"""
Entry point for the certpathbuilder CLI.

Builds a certification path for the first certificate in TARGET. Any
further certificates in the TARGET file are searched as intermediates.

Usage examples:
  certpathbuilder leaf.pem -a root.pem -s intermediates/
  certpathbuilder leaf.pem -a roots/ --aia -f json -o report.json
  certpathbuilder chain.pem -a root.pem -m 2 --trace

Exit codes:
  0  a certification path was found
  1  no certification path could be built
  2  configuration or input error
"""

import argparse
import os
import sys
from typing import List

from colorama import just_fix_windows_console

from certpathbuilder.builder.path_builder import BuilderParams, PathBuilder
from certpathbuilder.builder.state import CancellationToken
from certpathbuilder.config import Config
from certpathbuilder.exceptions import BuildCancelledError, InvalidConfigurationError
from certpathbuilder.loader import load_certificate_file, load_certificates_from
from certpathbuilder.model.anchor import TrustAnchor
from certpathbuilder.model.selector import X509Selector
from certpathbuilder.reporter.json_reporter import JSONReporter
from certpathbuilder.reporter.text_reporter import TextReporter
from certpathbuilder.store.collection import CollectionCertStore
from certpathbuilder.store.directory import DirectoryCertStore
from certpathbuilder.store.uri import URICertStore
from certpathbuilder.utils.file_utils import ensure_directory, write_text_file
from certpathbuilder.utils.logger import get_logger, set_level

LOG = get_logger(__name__)

EXIT_FOUND = 0
EXIT_NO_PATH = 1
EXIT_CONFIG_ERROR = 2


def _parse_args(argv: List[str] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="certpathbuilder",
        description=(
            "Build an X.509 certification path from a target certificate to a trust anchor.\n\n"
            "TARGET is a PEM, DER or PKCS#7 file. Its first certificate is the target;\n"
            "any others are used as candidate intermediates."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument("target", help="Certificate file holding the target certificate")
    parser.add_argument(
        "-a", "--anchor", action="append", default=[],
        help="Trust anchor certificate file or directory (repeatable)"
    )
    parser.add_argument(
        "-s", "--store", action="append", default=[],
        help="Directory or file of candidate intermediate certificates (repeatable)"
    )
    parser.add_argument(
        "-u", "--uri", action="append", default=[],
        help="HTTP(S) URI serving a certificate or PKCS#7 bundle (repeatable)"
    )
    parser.add_argument(
        "-m", "--max-path-length", type=int, default=None,
        help="Maximum number of non-self-issued intermediate CAs (-1 for unlimited)"
    )
    parser.add_argument(
        "--aia", action="store_true",
        help="Fetch missing issuers from the caIssuers URLs in certificates"
    )
    parser.add_argument(
        "--no-validity", action="store_true",
        help="Do not reject expired or not-yet-valid certificates"
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to config file (TOML/YAML/INI). If omitted, will search in cwd for certpathbuilder.toml, etc."
    )
    parser.add_argument(
        "-f", "--format", choices=["text", "json"], default="text",
        help="Output format (default: text)"
    )
    parser.add_argument(
        "--timeout", type=float, default=None,
        help="Give up the search after this many seconds"
    )
    parser.add_argument("-o", "--output", help="Write report to file instead of stdout")
    parser.add_argument(
        "--trace", action="store_true",
        help="Include every search step in the report"
    )
    return parser.parse_args(argv)


def _load_anchors(paths: List[str], exclude_patterns: List[str]) -> List[TrustAnchor]:
    anchors = []
    for path in paths:
        LOG.debug("Loading trust anchors from %s", path)
        for cert in load_certificates_from(path, exclude_patterns or None):
            anchors.append(TrustAnchor.from_certificate(cert))
    return list(dict.fromkeys(anchors))


def _build_params(args: argparse.Namespace, config: Config) -> BuilderParams:
    """
    Merge command-line arguments over `config` and load every input.

    :raises InvalidConfigurationError: if an input cannot be read or parsed
    """
    try:
        target_certs = load_certificate_file(args.target)
    except (OSError, ValueError) as e:
        raise InvalidConfigurationError(f"Cannot load target {args.target}: {e}") from e
    target = target_certs[0]
    LOG.info("Target: %s", target.subject_string)

    anchor_paths = config.anchors + args.anchor
    try:
        anchors = _load_anchors(anchor_paths, config.exclude_patterns)
    except (OSError, ValueError) as e:
        raise InvalidConfigurationError(f"Cannot load trust anchors: {e}") from e
    LOG.info("Loaded %d trust anchor(s)", len(anchors))

    timeout = config.store_timeout
    stores = []
    if len(target_certs) > 1:
        stores.append(CollectionCertStore(target_certs[1:], name=f"bundle:{args.target}"))
    for path in config.stores + args.store:
        if not os.path.exists(path):
            raise InvalidConfigurationError(f"Certificate store not found: {path}")
        stores.append(DirectoryCertStore(path, exclude_patterns=config.exclude_patterns or None))
    for uri in config.uris + args.uri:
        try:
            stores.append(URICertStore(uri, timeout=timeout))
        except ValueError as e:
            raise InvalidConfigurationError(str(e)) from e

    max_path_length = (args.max_path_length if args.max_path_length is not None
                       else config.max_path_length)
    return BuilderParams(
        target=X509Selector.for_certificate(target),
        trust_anchors=anchors,
        cert_stores=stores,
        max_path_length=max_path_length,
        check_validity=config.check_validity and not args.no_validity,
        use_aia=args.aia or config.use_aia,
        store_timeout=timeout,
        ignored_critical_extensions=config.ignored_critical_extensions,
    )


def main(argv: List[str] = None):
    just_fix_windows_console()
    args = _parse_args(argv)

    try:
        LOG.debug("Loading configuration from %s", args.config)
        config = Config.load(args.config)
        if config.log_level:
            set_level(config.log_level)
        params = _build_params(args, config)
        builder = PathBuilder(params)
    except InvalidConfigurationError as e:
        LOG.error("Configuration error: %s", e)
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        result = builder.build(CancellationToken(timeout=args.timeout))
    except BuildCancelledError as e:
        LOG.error("Build cancelled: %s", e)
        sys.exit(EXIT_NO_PATH)

    if args.format == "json":
        report = JSONReporter.format(result, trace=args.trace)
    else:
        color = not args.output and sys.stdout.isatty()
        report = TextReporter(color=color).format(result, trace=args.trace)

    if args.output:
        LOG.info("Writing report to %s", args.output)
        parent = os.path.dirname(args.output)
        if parent:
            ensure_directory(parent)
        write_text_file(args.output, report)
    else:
        print(report)

    sys.exit(EXIT_FOUND if result.succeeded else EXIT_NO_PATH)


if __name__ == "__main__":
    main()
