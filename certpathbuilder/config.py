"""
Configuration loader for certpathbuilder.

Loads build settings (anchors, stores, path-length budget, etc.) from:
  - explicit path via --config, or
  - one of: .certpathbuilder.toml, certpathbuilder.toml,
            .certpathbuilder.yaml/yml, certpathbuilder.yaml/yml,
            pyproject.toml ([tool.certpathbuilder]),
            setup.cfg ([tool:certpathbuilder] or [certpathbuilder]).

Values given on the command line override the loaded ones.
"""

import os
import toml
import configparser
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field

from certpathbuilder.exceptions import InvalidConfigurationError
from certpathbuilder.utils.settings import DEFAULT_MAX_PATH_LENGTH, DEFAULT_STORE_TIMEOUT

# Ordered search paths
_CONFIG_FILES = [
    ".certpathbuilder.toml",
    "certpathbuilder.toml",
    ".certpathbuilder.yaml", ".certpathbuilder.yml",
    "certpathbuilder.yaml", "certpathbuilder.yml",
    "pyproject.toml",
    "setup.cfg",
]

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class Config:
    max_path_length: int = DEFAULT_MAX_PATH_LENGTH
    anchors: List[str] = field(default_factory=list)
    stores: List[str] = field(default_factory=list)
    uris: List[str] = field(default_factory=list)
    use_aia: bool = False
    store_timeout: float = DEFAULT_STORE_TIMEOUT
    check_validity: bool = True
    ignored_critical_extensions: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    log_level: Optional[str] = None

    @classmethod
    def load(cls, path: str = None) -> "Config":
        """
        :raises InvalidConfigurationError: if `path` does not exist or a
            value has the wrong type
        """
        if path and not os.path.isfile(path):
            raise InvalidConfigurationError(f"Config file not found: {path}")
        cfg_path = path or cls._find_config_file(os.getcwd())
        if not cfg_path:
            return cls()
        ext = os.path.splitext(cfg_path)[1].lower()
        if ext == ".toml":
            raw = toml.load(cfg_path)
            if os.path.basename(cfg_path) == "pyproject.toml":
                cfg = raw.get("tool", {}).get("certpathbuilder", {})
            else:
                cfg = raw.get("tool", {}).get("certpathbuilder", raw)
        elif ext in (".yaml", ".yml"):
            import yaml
            with open(cfg_path, "r", encoding="utf-8") as f:
                cfg = yaml.safe_load(f) or {}
        elif os.path.basename(cfg_path) == "setup.cfg":
            parser = configparser.ConfigParser()
            parser.read(cfg_path)
            if parser.has_section("tool:certpathbuilder"):
                cfg = dict(parser.items("tool:certpathbuilder"))
            elif parser.has_section("certpathbuilder"):
                cfg = dict(parser.items("certpathbuilder"))
            else:
                cfg = {}
        else:
            cfg = {}
        return cls._from_dict(cfg)

    @staticmethod
    def _find_config_file(start_dir: str) -> str:
        for fname in _CONFIG_FILES:
            candidate = os.path.join(start_dir, fname)
            if os.path.isfile(candidate):
                return candidate
        return ""

    @staticmethod
    def _ensure_list(val: Any) -> List[Any]:
        if val is None:
            return []
        if isinstance(val, list):
            return val
        return [v.strip() for v in str(val).split(",") if v.strip()]

    @staticmethod
    def _to_bool(key: str, val: Any) -> bool:
        if isinstance(val, bool):
            return val
        text = str(val).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise InvalidConfigurationError(f"{key} must be a boolean, got {val!r}")

    @classmethod
    def _from_dict(cls, raw: Dict[str, Any]) -> "Config":
        def get(key, default=None):
            for k in raw:
                if k.lower().replace("-", "_") == key:
                    return raw[k]
            return default

        try:
            max_path_length = int(get("max_path_length", DEFAULT_MAX_PATH_LENGTH))
            store_timeout = float(get("store_timeout", DEFAULT_STORE_TIMEOUT))
        except (TypeError, ValueError) as e:
            raise InvalidConfigurationError(f"Invalid numeric setting: {e}") from e

        log_level = get("log_level")
        return cls(
            max_path_length=max_path_length,
            anchors=[str(a) for a in cls._ensure_list(get("anchors", get("anchor")))],
            stores=[str(s) for s in cls._ensure_list(get("stores", get("store")))],
            uris=[str(u) for u in cls._ensure_list(get("uris", get("uri")))],
            use_aia=cls._to_bool("use_aia", get("use_aia", False)),
            store_timeout=store_timeout,
            check_validity=cls._to_bool("check_validity", get("check_validity", True)),
            ignored_critical_extensions=[
                str(o) for o in cls._ensure_list(get("ignored_critical_extensions"))
            ],
            exclude_patterns=[str(p) for p in cls._ensure_list(get("exclude_patterns"))],
            log_level=str(log_level) if log_level else None,
        )
