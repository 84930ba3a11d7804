"""
JSON file-based storage for review comments.

Each repository gets <source_dir>/code-review/<folder>/comments.json.
The whole list is rewritten on every change via a temp file + rename.
Read-modify-write sequences are serialized by a per-store lock, which covers
concurrent requests within one process only.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

from pydantic import ValidationError

from diffviewer.core.paths import validate_folder_name
from diffviewer.domain.schemas.comments import Comment, CommentCreate, CommentFile
from diffviewer.exceptions.errors import (
    CommentNotFoundError,
    CommentStoreError,
    CommentValidationError,
)

logger = logging.getLogger(__name__)

COMMENTS_DIRNAME = "code-review"
COMMENTS_FILENAME = "comments.json"
_GITIGNORE = "# Exclude all comment files from git\n*\n!.gitignore\n"


def _now_ms() -> int:
    return int(time.time() * 1000)


class CommentStore:
    """
    File-based storage for inline review comments, one file per repository.
    """

    def __init__(self, source_dir: Path):
        self.comments_dir = Path(source_dir) / COMMENTS_DIRNAME
        self._lock = threading.RLock()

    def ensure_dir(self) -> None:
        """Create the comments directory and its .gitignore if missing."""
        try:
            self.comments_dir.mkdir(parents=True, exist_ok=True)
            gitignore = self.comments_dir / ".gitignore"
            if not gitignore.exists():
                gitignore.write_text(_GITIGNORE, encoding="utf-8")
        except OSError as e:
            raise CommentStoreError(f"Failed to create comments directory: {e}") from e

    def _get_comments_path(self, folder_name: str) -> Path:
        validate_folder_name(folder_name)
        return self.comments_dir / folder_name / COMMENTS_FILENAME

    def load(self, folder_name: str) -> List[Comment]:
        """
        Load all comments for a repository.

        Returns an empty list when nothing has been saved yet.

        Raises:
            CommentStoreError: If the file exists but cannot be read or parsed
        """
        path = self._get_comments_path(folder_name)
        if not path.exists():
            return []

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return list(CommentFile.model_validate(data).comments)
        except (OSError, ValueError, ValidationError) as e:
            raise CommentStoreError(f"Failed to load comments: {e}") from e

    def save(self, folder_name: str, comments: Iterable[Comment]) -> None:
        path = self._get_comments_path(folder_name)
        data = CommentFile(
            repository=folder_name,
            last_modified=datetime.now(timezone.utc).isoformat(),
            comments=list(comments),
        )

        tmp_path = path.with_name(path.name + ".tmp")
        with self._lock:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(data.model_dump_json(indent=2, by_alias=True), encoding="utf-8")
                os.replace(tmp_path, path)
            except OSError as e:
                tmp_path.unlink(missing_ok=True)
                raise CommentStoreError(f"Failed to save comments: {e}") from e

    def add(self, folder_name: str, data: CommentCreate) -> Comment:
        if not data.content or not data.content.strip():
            raise CommentValidationError("Comment content is required")
        if not data.file_path:
            raise CommentValidationError("File path is required")

        comment = Comment(
            id=str(uuid.uuid4()),
            folder_name=data.folder_name or folder_name,
            file_path=data.file_path,
            line_number=data.line_number,
            content=data.content,
            timestamp=_now_ms(),
        )
        with self._lock:
            comments = self.load(folder_name)
            comments.append(comment)
            self.save(folder_name, comments)
        logger.info("Added comment %s to %s:%s", comment.id, folder_name, comment.file_path)
        return comment

    def update(self, folder_name: str, comment_id: str, content: str) -> Comment:
        if not content or not content.strip():
            raise CommentValidationError("Comment content is required")

        with self._lock:
            comments = self.load(folder_name)
            for i, existing in enumerate(comments):
                if existing.id == comment_id:
                    updated = existing.model_copy(update={"content": content, "timestamp": _now_ms()})
                    comments[i] = updated
                    self.save(folder_name, comments)
                    return updated

        raise CommentNotFoundError(f"Comment not found: {comment_id}")

    def delete(self, folder_name: str, comment_id: str) -> None:
        with self._lock:
            comments = self.load(folder_name)
            remaining = [c for c in comments if c.id != comment_id]
            if len(remaining) == len(comments):
                raise CommentNotFoundError(f"Comment not found: {comment_id}")
            self.save(folder_name, remaining)

    def clear(self, folder_name: str) -> None:
        self.save(folder_name, [])

    def merge(self, folder_name: str, incoming: Iterable[Comment]) -> int:
        """
        Import comments held by a client, keeping everything already stored.

        Returns the number of comments actually added.
        """
        with self._lock:
            comments = self.load(folder_name)
            known = {c.id for c in comments}
            added = 0
            for comment in incoming:
                if comment.id in known:
                    continue
                comments.append(comment)
                known.add(comment.id)
                added += 1
            self.save(folder_name, comments)
        return added
