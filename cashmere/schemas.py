"""Editor-facing diagnostic payloads (Language Server Protocol shapes)."""

from typing import List

from pydantic import BaseModel, Field

from .models import Diagnostic

SEVERITY_ERROR = 1
DIAGNOSTIC_SOURCE = "cashmere"


class Position(BaseModel):
    line: int = Field(..., ge=0, description="0-based line")
    character: int = Field(..., ge=0, description="0-based column")


class Range(BaseModel):
    start: Position
    end: Position


class EditorDiagnostic(BaseModel):
    range: Range
    severity: int = SEVERITY_ERROR
    code: str
    source: str = DIAGNOSTIC_SOURCE
    message: str

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic) -> "EditorDiagnostic":
        line = diagnostic.line - 1
        character = diagnostic.column - 1
        return cls(
            range=Range(
                start=Position(line=line, character=character),
                end=Position(line=line, character=character + 1),
            ),
            code=diagnostic.rule,
            message=diagnostic.message,
        )


class PublishDiagnosticsParams(BaseModel):
    uri: str
    diagnostics: List[EditorDiagnostic] = Field(default_factory=list)
