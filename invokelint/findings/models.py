# Pydantic data models for diagnostics: DiagnosticDescriptor, Finding, Location.

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

HELP_LINK_BASE = "https://code-cracker.github.io/diagnostics"

SEVERITIES = ("error", "warning", "info", "hidden")


def help_link_for(rule_id: str) -> str:
    """Documentation URL for a rule id, e.g. CC0031."""
    return f"{HELP_LINK_BASE}/{rule_id}.html"


class Location(BaseModel):
    """Where in the source a finding was reported (file, line, column)."""

    path: Path
    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=1, description="1-based column number")
    end_line: Optional[int] = Field(None, ge=1)
    end_column: Optional[int] = Field(None, ge=1)
    snippet: Optional[str] = None

    model_config = {"arbitrary_types_allowed": True}


class Finding(BaseModel):
    """A single diagnostic reported by a rule."""

    rule_id: str
    message: str
    location: Location
    severity: str = Field(default="warning", description="error, warning, info or hidden")
    category: Optional[str] = None
    help_uri: Optional[str] = None

    model_config = {"arbitrary_types_allowed": True}


class DiagnosticDescriptor(BaseModel):
    """Static metadata of a rule's diagnostic: id, texts, category and default severity."""

    id: str
    title: str
    message_format: str
    category: str
    default_severity: str = "warning"
    enabled_by_default: bool = True
    description: str = ""
    help_link: Optional[str] = None

    model_config = {"frozen": True}

    def format_message(self, *args: Any) -> str:
        return self.message_format.format(*args)

    def create_finding(
        self,
        location: Location,
        *message_args: Any,
        severity: Optional[str] = None,
    ) -> Finding:
        return Finding(
            rule_id=self.id,
            message=self.format_message(*message_args),
            location=location,
            severity=severity or self.default_severity,
            category=self.category,
            help_uri=self.help_link,
        )
