from __future__ import annotations

from typing import List

from pydantic import Field

from diffviewer.domain.schemas.base import CamelModel


class FolderInfo(CamelModel):
    name: str
    path: str
    has_changes: bool = False
    branch: str = "unknown"


class FolderList(CamelModel):
    folders: List[FolderInfo] = Field(default_factory=list)


class GitStatus(CamelModel):
    staged: List[str] = Field(default_factory=list)
    unstaged: List[str] = Field(default_factory=list)
    untracked: List[str] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.staged or self.unstaged or self.untracked)


class FileContent(CamelModel):
    content: str
