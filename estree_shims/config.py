# estree_shims/config.py
"""
Configuration for a lint run.

The configuration object is ESLint-shaped so existing ``.eslintrc.json``
fragments can be reused::

    {
        "parserOptions": {
            "ecmaVersion": 6,
            "sourceType": "module",
            "ecmaFeatures": {"impliedStrict": true}
        },
        "rules": {"no-lone-blocks": "warn"}
    }

``ParserOptions.supports_block_bindings`` is the single switch the lone
block rule reads: editions before ES2015 have no ``let``/``const``/``class``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from estree_shims.errors import ConfigError

logger = logging.getLogger(__name__)

SOURCE_TYPES = ("script", "module")

# ESLint rule severity settings
RULE_OFF = "off"
RULE_WARN = "warn"
RULE_ERROR = "error"

_SEVERITY_ALIASES: Dict[Union[str, int], str] = {
    "off": RULE_OFF,
    0: RULE_OFF,
    "warn": RULE_WARN,
    1: RULE_WARN,
    "error": RULE_ERROR,
    2: RULE_ERROR,
}


def normalize_ecma_version(value: Any) -> int:
    """
    Return the edition number for an ``ecmaVersion`` setting.

    Year forms (2015, 2016, ...) map to editions (6, 7, ...).
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"ecmaVersion must be an integer, got {value!r}")
    if value >= 2015:
        return value - 2009
    if value < 3:
        raise ConfigError(f"unsupported ecmaVersion {value}")
    return value


def normalize_rule_setting(value: Any) -> str:
    """Map an ESLint rule setting (``"warn"``, ``2``, ``["error"]``) to a name."""
    if isinstance(value, list):
        if not value:
            raise ConfigError("empty rule setting")
        value = value[0]
    if isinstance(value, str):
        value = value.lower()
    if isinstance(value, bool) or value not in _SEVERITY_ALIASES:
        raise ConfigError(f"invalid rule severity {value!r}")
    return _SEVERITY_ALIASES[value]


@dataclass
class ParserOptions:
    """Language level of the analysed source."""
    ecma_version: int = 5
    source_type: str = "script"
    implied_strict: bool = False

    @property
    def supports_block_bindings(self) -> bool:
        return self.ecma_version >= 6

    @property
    def supports_directives(self) -> bool:
        return self.ecma_version >= 5

    @property
    def is_module(self) -> bool:
        return self.source_type == "module"

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.source_type not in SOURCE_TYPES:
            warnings.append(f"unknown sourceType {self.source_type!r}")
        if self.is_module and self.ecma_version < 6:
            warnings.append("sourceType 'module' requires ecmaVersion 6 or later")
        if self.implied_strict and not self.supports_directives:
            warnings.append("impliedStrict has no effect before ecmaVersion 5")
        return warnings

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParserOptions":
        if not isinstance(data, Mapping):
            raise ConfigError("parserOptions must be an object")
        features = data.get("ecmaFeatures") or {}
        if not isinstance(features, Mapping):
            raise ConfigError("parserOptions.ecmaFeatures must be an object")
        opts = cls(
            ecma_version=normalize_ecma_version(data.get("ecmaVersion", 5)),
            source_type=str(data.get("sourceType", "script")),
            implied_strict=bool(features.get("impliedStrict", False)),
        )
        if opts.source_type not in SOURCE_TYPES:
            raise ConfigError(f"invalid sourceType {opts.source_type!r}")
        return opts


@dataclass
class LintConfig:
    """Parser options plus per-rule severity settings."""
    parser_options: ParserOptions = field(default_factory=ParserOptions)
    rules: Dict[str, str] = field(default_factory=dict)

    def rule_setting(self, name: str) -> Optional[str]:
        """``"off"``, ``"warn"``, ``"error"``, or None when unconfigured."""
        return self.rules.get(name)

    def is_enabled(self, name: str) -> bool:
        return self.rules.get(name) != RULE_OFF

    def validate(self) -> List[str]:
        return self.parser_options.validate()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LintConfig":
        if not isinstance(data, Mapping):
            raise ConfigError("configuration must be a JSON object")
        rules_raw = data.get("rules") or {}
        if not isinstance(rules_raw, Mapping):
            raise ConfigError("rules must be an object")
        return cls(
            parser_options=ParserOptions.from_dict(data.get("parserOptions") or {}),
            rules={
                str(name): normalize_rule_setting(setting)
                for name, setting in rules_raw.items()
            },
        )


def load_config(path: str) -> LintConfig:
    """Read a ``LintConfig`` from a JSON file (not yet validated)."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as exc:
        raise ConfigError(f"cannot read config: {exc.strerror}", file=path) from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON: {exc}", file=path) from exc

    try:
        config = LintConfig.from_dict(data)
    except ConfigError as exc:
        exc.file = path
        raise

    # validate() is left to the caller, which may still apply overrides
    logger.debug("Loaded config from %s: %s", path, config)
    return config


__all__ = [
    "ParserOptions",
    "LintConfig",
    "load_config",
    "normalize_ecma_version",
    "normalize_rule_setting",
    "RULE_OFF",
    "RULE_WARN",
    "RULE_ERROR",
]
