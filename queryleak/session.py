# Analysis session: the type model plus the capability types resolved against it.
# Capabilities are resolved once, on first use, and are read-only afterwards.

from __future__ import annotations

import logging
from functools import cached_property, lru_cache
from typing import Optional

from queryleak.known_types import default_type_system
from queryleak.typesystem import Capabilities, CapabilityNames, TypeSystem

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Per-run state shared by every file and method: type system and capabilities."""

    def __init__(self, type_system: TypeSystem, names: Optional[CapabilityNames] = None) -> None:
        self.type_system = type_system
        self.names = names or CapabilityNames()

    @cached_property
    def capabilities(self) -> Capabilities:
        logger.debug("Resolving capability types for session %#x", id(self))
        return Capabilities.resolve(self.type_system, self.names)


@lru_cache(maxsize=1)
def default_session() -> AnalysisSession:
    """Session over the bundled JDK/jOOQ type model with the default capability names."""
    return AnalysisSession(default_type_system())
