"""Tests for the pydantic finding models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from queryleak.findings.models import Finding, Location


def _location(**overrides) -> Location:
    values = {"path": Path("Repo.java"), "line": 4, "column": 9, "snippet": "query.fetchLazy()"}
    values.update(overrides)
    return Location(**values)


def test_finding_defaults_to_warning():
    """A finding without an explicit severity is a warning."""
    finding = Finding(rule_id="jooq-result-stream-leak", message="leak", location=_location())
    assert finding.severity == "warning"
    assert finding.location.end_line is None


def test_location_rejects_zero_based_positions():
    """Lines and columns are 1-based."""
    with pytest.raises(ValidationError):
        _location(line=0)
    with pytest.raises(ValidationError):
        _location(column=0)


def test_unknown_severity_rejected():
    """Only error, warning and info are accepted severities."""
    with pytest.raises(ValidationError):
        Finding(rule_id="r", message="m", location=_location(), severity="fatal")


def test_findings_are_immutable():
    """Findings cannot be edited after a rule reports them."""
    finding = Finding(rule_id="r", message="m", location=_location())
    with pytest.raises(ValidationError):
        finding.message = "changed"
