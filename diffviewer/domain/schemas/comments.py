from __future__ import annotations

from typing import List, Optional

from pydantic import ConfigDict, Field

from diffviewer.domain.schemas.base import CamelModel

COMMENT_FILE_VERSION = "1.0"


class Comment(CamelModel):
    """
    An inline review comment.

    line_number is None for a file-level comment. timestamp is Unix epoch
    milliseconds.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    folder_name: str
    file_path: str
    line_number: Optional[int] = None
    content: str
    timestamp: int


class CommentFile(CamelModel):
    version: str = COMMENT_FILE_VERSION
    repository: str
    last_modified: str
    comments: List[Comment] = Field(default_factory=list)


class CommentCreate(CamelModel):
    file_path: str = ""
    line_number: Optional[int] = None
    content: str = ""
    folder_name: Optional[str] = None


class AddCommentRequest(CamelModel):
    comment: CommentCreate


class UpdateCommentRequest(CamelModel):
    content: str


class MigrateCommentsRequest(CamelModel):
    comments: List[Comment]


class CommentList(CamelModel):
    comments: List[Comment] = Field(default_factory=list)


class CommentEnvelope(CamelModel):
    comment: Comment
