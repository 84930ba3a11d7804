from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from diffviewer.domain.schemas.comments import COMMENT_FILE_VERSION, Comment
from diffviewer.domain.schemas.diff import DiffResponse
from diffviewer.domain.schemas.git import GitStatus
from diffviewer.tools.diff_parser import diff_stats, parse_diff
from diffviewer.tools.git_diff import DEFAULT_TIMEOUT, get_combined_diff

logger = logging.getLogger(__name__)

SYSTEM_NAME = "git-diff-code-review"


def load_diff(repo_path: Path, *, context_lines: int = 3, timeout: int = DEFAULT_TIMEOUT) -> DiffResponse:
    """Collect the combined diff of a repository and parse it."""
    diff_text = get_combined_diff(repo_path, context_lines=context_lines, timeout=timeout)
    if not diff_text.strip():
        return DiffResponse()

    files = parse_diff(diff_text)
    stats = diff_stats(files)
    logger.info(
        "DIFF repo=%s files=%d additions=%d deletions=%d",
        repo_path.name,
        stats["files"],
        stats["additions"],
        stats["deletions"],
    )
    return DiffResponse(diff=diff_text, files=files)


def _iso_from_ms(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).isoformat()


def build_metadata(
    *,
    folder_name: str,
    comments: List[Comment],
    status: GitStatus,
    diff: DiffResponse,
) -> Dict[str, Any]:
    """
    Self-describing summary of a repository's review: where comments live,
    their shape, per-file counts and the current git status.
    """
    stats = diff_stats(diff.files)
    by_file = Counter(c.file_path for c in comments)

    return {
        "system": SYSTEM_NAME,
        "version": COMMENT_FILE_VERSION,
        "repository": folder_name,
        "description": (
            "This is a code review system for viewing git diffs and adding "
            "inline comments to specific lines of code."
        ),
        "commentStorage": {
            "location": f"SOURCE_DIR/code-review/{folder_name}/comments.json",
            "format": "JSON",
            "structure": {
                "version": COMMENT_FILE_VERSION,
                "repository": folder_name,
                "lastModified": "ISO 8601 timestamp",
                "comments": [
                    {
                        "id": "UUID",
                        "folderName": "string",
                        "filePath": "relative/path/to/file",
                        "lineNumber": "number | null (null for file-level comments)",
                        "content": "string",
                        "timestamp": "number (Unix timestamp in milliseconds)",
                    }
                ],
            },
        },
        "statistics": {
            "totalComments": len(comments),
            "filesWithChanges": stats["files"],
            "additions": stats["additions"],
            "deletions": stats["deletions"],
            "commentsByFile": dict(by_file),
        },
        "comments": [
            {
                "id": c.id,
                "filePath": c.file_path,
                "lineNumber": c.line_number,
                "content": c.content,
                "timestamp": c.timestamp,
                "dateCreated": _iso_from_ms(c.timestamp),
            }
            for c in comments
        ],
        "apiEndpoints": {
            "loadComments": f"GET /api/comments/{folder_name}",
            "addComment": f"POST /api/comments/{folder_name}",
            "updateComment": f"PUT /api/comments/{folder_name}/:commentId",
            "deleteComment": f"DELETE /api/comments/{folder_name}/:commentId",
            "clearComments": f"DELETE /api/comments/{folder_name}",
            "metadata": f"GET /api/metadata/{folder_name}",
        },
        "gitStatus": {
            "staged": len(status.staged),
            "unstaged": len(status.unstaged),
            "untracked": len(status.untracked),
        },
    }
