from __future__ import annotations

"""
Analyzer configuration: which rules run and how.

Carries the registered rules plus the knobs the CLI exposes: target C#
language version, whether generated code is analyzed, a per-file timeout,
disabled rule ids and per-rule severity overrides.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from invokelint.findings.models import SEVERITIES
from invokelint.rules.base import Rule
from invokelint.rules.invoke_delegate import UseInvokeMethodToFireEventRule

logger = logging.getLogger(__name__)

LATEST_LANGUAGE_VERSION = 12


@dataclass
class Config:
    """
    Analyzer configuration.

    timeout is in seconds per file and rule; None means no limit.
    """

    rules: Sequence[Rule] = field(default_factory=list)
    language_version: int = LATEST_LANGUAGE_VERSION
    analyze_generated_code: bool = False
    timeout: Optional[float] = None
    disabled_rules: Set[str] = field(default_factory=set)
    severity_overrides: Dict[str, str] = field(default_factory=dict)

    def severity_for(self, rule_id: str, default: str) -> str:
        return self.severity_overrides.get(rule_id, default)


def get_default_config() -> Config:
    """Return the default configuration with all implemented rules."""
    rules: List[Rule] = [
        UseInvokeMethodToFireEventRule(),
    ]
    return Config(rules=rules)


def parse_severity_overrides(values: Sequence[str]) -> Dict[str, str]:
    """
    Parse `RULE=LEVEL` pairs, e.g. ["CC0031=error"].

    Raises:
        ValueError: on a malformed pair or an unknown severity.
    """
    overrides: Dict[str, str] = {}
    for value in values:
        rule_id, sep, level = value.partition("=")
        rule_id, level = rule_id.strip(), level.strip().lower()
        if not sep or not rule_id or not level:
            raise ValueError(f"Expected RULE=LEVEL, got: {value!r}")
        if level not in SEVERITIES:
            raise ValueError(f"Unknown severity {level!r}; expected one of {', '.join(SEVERITIES)}")
        overrides[rule_id] = level
    return overrides


def get_enabled_rules(config: Config | None = None) -> Sequence[Rule]:
    """
    Return the rules of config (or the default config) that should run:
    not disabled, and supported by the configured language version.
    """
    if config is None:
        config = get_default_config()
    enabled: List[Rule] = []
    for rule in config.rules:
        if rule.id in config.disabled_rules:
            logger.info("Rule %s disabled by configuration", rule.id)
            continue
        descriptor = getattr(rule, "descriptor", None)
        if descriptor is not None and not descriptor.enabled_by_default:
            logger.info("Rule %s is disabled by default", rule.id)
            continue
        if rule.min_language_version > config.language_version:
            logger.info(
                "Rule %s requires C# %d; configured language version is %d",
                rule.id,
                rule.min_language_version,
                config.language_version,
            )
            continue
        enabled.append(rule)
    return enabled
