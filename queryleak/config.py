from __future__ import annotations

"""
Scanner configuration: which rules are enabled and which analysis session they share.

Configuration is code rather than a file: the capability names and the type
model are session constants, and this module is the single place that wires
them to the registered rules.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from queryleak.rules.base import Rule
from queryleak.rules.result_stream_leak import ResultStreamLeakRule
from queryleak.session import AnalysisSession, default_session


@dataclass
class Config:
    """
    Scanner configuration.

    Carries the enabled rules and the session (type system plus resolved
    capability types) every rule analyses against.
    """

    rules: Sequence[Rule] = field(default_factory=list)
    session: AnalysisSession = field(default_factory=default_session)


def get_default_config() -> Config:
    """Return the default configuration with all currently implemented rules."""
    rules: List[Rule] = [
        ResultStreamLeakRule(),
    ]
    return Config(rules=rules)


def get_enabled_rules(config: Config | None = None) -> Sequence[Rule]:
    """Return the list of enabled rules from the given config (or default config)."""
    if config is None:
        config = get_default_config()
    return config.rules
