# Pydantic data models for leak findings: Finding, Location, Severity.

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["error", "warning", "info"]


class Location(BaseModel):
    """Span of the offending call expression, in 1-based lines and columns."""

    model_config = ConfigDict(frozen=True)

    path: Path
    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=1, description="1-based column number")
    end_line: Optional[int] = Field(None, ge=1)
    end_column: Optional[int] = Field(None, ge=1)
    snippet: Optional[str] = Field(None, description="Source text of the call, e.g. query.fetchStream()")


class Finding(BaseModel):
    """An unclosed resource reported by a rule (e.g. a fetchLazy() cursor never closed)."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    message: str
    location: Location
    severity: Severity = "warning"
