"""
Outcome models — per-tool results of a batch operation.

The registry never lets one tool's failure abort a batch: every
tool gets a ToolOutcome, collected into a BatchReport that the CLI
prints at the end.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

OutcomeStatus = Literal["ok", "skipped", "failed", "cancelled"]


class ToolOutcome(BaseModel):
    """Result of installing, upgrading or removing one tool."""

    tool: str
    status: OutcomeStatus = "ok"
    version: str | None = None
    previous_version: str | None = None
    message: str = ""
    error: str | None = None
    hint: str | None = None         # recovery hint, e.g. manual download URL

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, tool: str, message: str = "", **kwargs: Any) -> ToolOutcome:
        """Create a success outcome."""
        return cls(tool=tool, status="ok", message=message, **kwargs)

    @classmethod
    def failure(cls, tool: str, error: str, **kwargs: Any) -> ToolOutcome:
        """Create a failure outcome."""
        return cls(tool=tool, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, tool: str, reason: str = "", **kwargs: Any) -> ToolOutcome:
        """Create a skip outcome."""
        return cls(tool=tool, status="skipped", message=reason, **kwargs)

    @classmethod
    def cancel(cls, tool: str, **kwargs: Any) -> ToolOutcome:
        return cls(tool=tool, status="cancelled", message="cancelled", **kwargs)


class BatchReport(BaseModel):
    """Ordered per-tool outcomes of one batch command."""

    operation: str
    outcomes: list[ToolOutcome] = Field(default_factory=list)

    def add(self, outcome: ToolOutcome) -> ToolOutcome:
        self.outcomes.append(outcome)
        return outcome

    def get(self, tool: str) -> ToolOutcome | None:
        for outcome in self.outcomes:
            if outcome.tool == tool:
                return outcome
        return None

    @property
    def succeeded(self) -> list[str]:
        return [o.tool for o in self.outcomes if o.status == "ok"]

    @property
    def failed(self) -> list[str]:
        return [o.tool for o in self.outcomes if o.status == "failed"]

    @property
    def ok(self) -> bool:
        """Whether no tool failed."""
        return not self.failed
