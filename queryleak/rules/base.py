# Rule interface (abstract base class): defines the contract all rules must implement.
# Concrete rules (result_stream_leak, ...) subclass Rule and implement run().

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

# Contract: context is FileContext (path, source, tree, imports), config is
# Config (rules + analysis session), return type is list[Finding].


class Rule(ABC):
    """
    Abstract base class for all static analysis rules.

    Subclasses must define:
    - id: str - unique rule identifier (e.g. "jooq-result-stream-leak")
    - name: str - human-readable rule name
    - run(context, config) -> list[Finding] - analyze one file and return findings

    The scanner calls run() once per file; context holds path, source bytes, and AST.
    """

    id: str
    name: str

    @abstractmethod
    def run(self, context: Any, config: Any) -> list[Any]:
        """
        Analyze one file and return any findings.

        Args:
            context: Per-file state (path, source bytes, AST tree). Use context.tree
                     to walk the AST and context.source / helpers for snippets.
            config: Scanner config carrying the analysis session (type system
                    and resolved capabilities). Rules may accept None and fall
                    back to the default session.

        Returns:
            List of Finding objects for each issue found in this file.
            Return an empty list if no issues.
        """
        ...
