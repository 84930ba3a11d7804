"""
Structured, line-addressable diff records.

A FileChange holds ordered hunks, a Hunk holds ordered lines, and every Line
carries its coordinates on the old side, the new side, or both. JSON field
names are camelCase (oldPath, oldStart, oldLineCount, newStart, newLineCount,
oldLineNumber, newLineNumber).
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import ConfigDict, Field, model_validator

from diffviewer.domain.schemas.base import CamelModel


class LineType(str, Enum):
    context = "context"
    addition = "addition"
    deletion = "deletion"


class _FrozenRecord(CamelModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class Line(_FrozenRecord):
    type: LineType
    content: str
    old_line_number: Optional[int] = None
    new_line_number: Optional[int] = None

    @model_validator(mode="after")
    def _check_coordinates(self) -> "Line":
        has_old = self.old_line_number is not None
        has_new = self.new_line_number is not None
        expected = {
            LineType.context: (True, True),
            LineType.addition: (False, True),
            LineType.deletion: (True, False),
        }[self.type]
        if (has_old, has_new) != expected:
            raise ValueError(f"{self.type.value} line has inconsistent line numbers")
        return self


class Hunk(_FrozenRecord):
    old_start: int = Field(ge=0)
    old_line_count: int = Field(ge=0)
    new_start: int = Field(ge=0)
    new_line_count: int = Field(ge=0)
    header: str
    lines: Tuple[Line, ...] = ()


class FileChange(_FrozenRecord):
    path: str
    old_path: Optional[str] = None
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    hunks: Tuple[Hunk, ...] = ()

    @property
    def is_rename(self) -> bool:
        return self.old_path is not None


class DiffResponse(CamelModel):
    diff: str = ""
    files: List[FileChange] = Field(default_factory=list)
