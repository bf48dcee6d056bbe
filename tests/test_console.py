"""Tests for the Rich findings report."""

from pathlib import Path

from rich.console import Console

from queryleak.findings.models import Finding, Location
from queryleak.reporting.console import print_findings


def _console() -> Console:
    return Console(record=True, width=200)


def _finding(path: str, line: int) -> Finding:
    return Finding(
        rule_id="jooq-result-stream-leak",
        message="'fetchStream' returns Stream, which is AutoCloseable but not a QueryPart",
        location=Location(path=Path(path), line=line, column=5, snippet="query.fetchStream()"),
    )


def test_no_findings_prints_clean_panel():
    """An empty report prints the no-issues panel."""
    console = _console()
    print_findings([], console=console)
    assert "No issues found." in console.export_text()


def test_findings_grouped_with_snippets_and_summary():
    """Findings are grouped per file with snippets, hints and a summary."""
    console = _console()
    files = [Path("/repo/src/main/java/A.java"), Path("/repo/src/main/java/B.java")]
    print_findings(
        [_finding("/repo/src/main/java/A.java", 12), _finding("/repo/src/main/java/A.java", 3)],
        analyzed_files=files,
        verbose=True,
        console=console,
    )
    text = console.export_text()
    assert "src/main/java/A.java" in text
    assert "|-- query.fetchStream()" in text
    assert "[jooq-result-stream-leak]" in text
    assert "[Fix]" in text
    assert "LEAK" in text and "OK" in text
    assert "2 findings" in text
