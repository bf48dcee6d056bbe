# jOOQ result stream leak detection: calls on a ResultQuery that return an
# AutoCloseable resource (Stream, Cursor, ResultSet) which is never closed.

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, TypeVar

from queryleak.callsites import CallSite, MethodScope, enclosing_declarations, iter_method_bodies, suppressed_warnings
from queryleak.closure import ResourceEscapeScanner
from queryleak.findings.models import Finding
from queryleak.rules.base import Rule
from queryleak.session import AnalysisSession, default_session
from queryleak.typesystem import Capabilities, TypeDescriptor

logger = logging.getLogger(__name__)

SUPPRESSION_KEY = "JooqResultStreamLeak"

T = TypeVar("T")


class CandidateMatcher:
    """Accepts any instance call whose receiver is (a descendant of) the fluent query root."""

    def __init__(self, capabilities: Capabilities) -> None:
        self.root = capabilities.fluent_query_root

    def matches(self, site: CallSite) -> bool:
        # Any method name qualifies; only the receiver is checked.
        if site.receiver_type is None:
            return False
        return site.receiver_type.is_subtype_of(self.root)


class CloseabilityClassifier:
    """
    Decides whether a matched call's return value must be closed.

    Query parts may implement AutoCloseable without ever holding a resource
    (e.g. SelectConditionStep), so query-part-ness exempts a closeable type.
    """

    def __init__(self, capabilities: Capabilities) -> None:
        self.closeable = capabilities.closeable
        self.query_part = capabilities.query_part

    def must_close(self, return_type: Optional[TypeDescriptor]) -> bool:
        if return_type is None:
            return False
        is_closeable = return_type.is_subtype_of(self.closeable)
        is_query_part = return_type.is_subtype_of(self.query_part)
        return is_closeable and not is_query_part


def must_close_call_sites(call_sites: Iterable[CallSite], capabilities: Capabilities) -> list[CallSite]:
    """Filter call sites down to the matched ones whose result must be closed, in encounter order."""
    matcher = CandidateMatcher(capabilities)
    classifier = CloseabilityClassifier(capabilities)
    flagged: list[CallSite] = []
    for site in call_sites:
        if not matcher.matches(site):
            continue
        if classifier.must_close(site.return_type):
            logger.debug("Must-close call site: %s -> %s", site.method_name, site.return_type)
            flagged.append(site)
        else:
            logger.debug("Exempt call site: %s -> %s", site.method_name, site.return_type)
    return flagged


def scan_method_for(
    call_sites: Iterable[CallSite],
    capabilities: Capabilities,
    collaborator: Callable[[list[CallSite]], T],
) -> T:
    """
    Hand the must-close call sites of one method to the closure-proof collaborator.

    The collaborator decides which resources are left unclosed and reports
    them; this function only supplies the filtered candidate set.
    """
    return collaborator(must_close_call_sites(call_sites, capabilities))


class ResultStreamLeakRule(Rule):
    """Flags ResultQuery calls returning AutoCloseable non-QueryPart values that are not closed."""

    id = "jooq-result-stream-leak"
    name = "jOOQ result stream leak"

    def _is_suppressed(self, context: Any, method: Any) -> bool:
        keys = {self.id, SUPPRESSION_KEY}
        if keys & suppressed_warnings(context, method):
            return True
        return any(keys & suppressed_warnings(context, decl) for decl in enclosing_declarations(method))

    def run(self, context: Any, config: Any) -> list[Any]:
        session: AnalysisSession = getattr(config, "session", None) or default_session()
        capabilities = session.capabilities
        findings: list[Finding] = []
        for method in iter_method_bodies(context.root_node):
            if self._is_suppressed(context, method):
                logger.debug("Skipping suppressed method at %s:%d", context.path, method.start_point[0] + 1)
                continue
            scope = MethodScope(context, method, session.type_system)
            scanner = ResourceEscapeScanner(context, method, self.id, session.names)
            findings.extend(scan_method_for(scope.call_sites(), capabilities, scanner))
        return findings
